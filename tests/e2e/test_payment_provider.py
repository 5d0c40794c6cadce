"""
E2E tests against the mock payment provider.

These tests require the mock payment server to be running:
    uvicorn mock.payment_server.main:app --port 8003

Scripted accounts:
- 0690000031: transfer queued successfully
- 0000000000: provider rejects the account
- 9999999999: provider hangs past the client timeout

Scripted charges (verify endpoint):
- 1001: successful, tx_ref STU-1001, 110.00 NGN
- 1002: failed, tx_ref STU-1002
"""

import asyncio
import pytest
from stuvendor.domain.exceptions import ProviderError, ProviderTimeout
from stuvendor.domain.withdrawals import build_transfer_request, new_transfer_reference
from stuvendor.infrastructure.clients.payments import FlutterwaveClient

MOCK_PROVIDER_URL = "http://localhost:8003"


@pytest.fixture
def provider() -> FlutterwaveClient:
    return FlutterwaveClient(base_url=MOCK_PROVIDER_URL, secret_key="FLWSECK_TEST-mock", timeout=2.0)


def transfer_to(account_number: str, amount: int = 150000):
    return build_transfer_request(
        "e2e-vendor",
        "044",
        account_number,
        amount,
        "NGN",
        new_transfer_reference(),
    )


@pytest.mark.integration
def test_transfer_is_queued(provider: FlutterwaveClient):
    outcome = asyncio.run(provider.transfer(transfer_to("0690000031")))

    assert outcome.succeeded is True
    assert outcome.transaction_id is not None


@pytest.mark.integration
def test_transfer_to_invalid_account_is_rejected(provider: FlutterwaveClient):
    outcome = asyncio.run(provider.transfer(transfer_to("0000000000")))

    assert outcome.succeeded is False
    assert outcome.message == "Account is not valid"


@pytest.mark.integration
def test_transfer_timeout(provider: FlutterwaveClient):
    with pytest.raises(ProviderTimeout):
        asyncio.run(provider.transfer(transfer_to("9999999999")))


@pytest.mark.integration
def test_bank_list_and_account_resolution(provider: FlutterwaveClient):
    banks = asyncio.run(provider.list_banks("NG"))
    assert "044" in {bank["code"] for bank in banks}

    assert asyncio.run(provider.resolve_account("0690000031", "044")) == "ADA VENDOR"

    with pytest.raises(ProviderError):
        asyncio.run(provider.resolve_account("0000000000", "044"))


@pytest.mark.integration
def test_verify_successful_charge(provider: FlutterwaveClient):
    verification = asyncio.run(provider.verify_transaction("1001"))

    assert verification.succeeded is True
    assert verification.tx_ref == "STU-1001"
    assert verification.amount == 11000
    assert verification.currency == "NGN"


@pytest.mark.integration
def test_verify_failed_and_unknown_charges(provider: FlutterwaveClient):
    failed = asyncio.run(provider.verify_transaction("1002"))
    unknown = asyncio.run(provider.verify_transaction("424242"))

    assert failed.succeeded is False
    assert unknown.succeeded is False
    assert unknown.message == "No transaction was found for this id"

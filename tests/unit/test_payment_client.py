"""Unit tests for the payment provider client"""

import asyncio
import httpx
import pytest
from unittest.mock import AsyncMock, patch
from stuvendor.domain.exceptions import ProviderError, ProviderTimeout, ProviderTransferFailed
from stuvendor.domain.models import TransferRequest
from stuvendor.infrastructure.clients.payments import FlutterwaveClient

BASE_URL = "https://provider.test/v3"


@pytest.fixture
def payment_client() -> FlutterwaveClient:
    return FlutterwaveClient(base_url=BASE_URL + "/", secret_key="FLWSECK_TEST-abc", timeout=2.0)


@pytest.fixture
def transfer_request() -> TransferRequest:
    return TransferRequest(
        account_bank="044",
        account_number="0690000031",
        amount=250050,
        currency="NGN",
        reference="WD-test",
        narration="Vendor withdrawal for v1",
    )


def reply(method: str, path: str, status_code: int = 200, **kwargs) -> httpx.Response:
    return httpx.Response(status_code, request=httpx.Request(method, BASE_URL + path), **kwargs)


def test_transfer_success(payment_client, transfer_request):
    response = reply(
        "POST",
        "/transfers",
        json={"status": "success", "message": "Transfer Queued Successfully", "data": {"id": 190626}},
    )

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response) as post:
        outcome = asyncio.run(payment_client.transfer(transfer_request))

    assert outcome.succeeded is True
    assert outcome.transaction_id == "190626"

    url = post.call_args.args[0]
    payload = post.call_args.kwargs["json"]
    assert url == f"{BASE_URL}/transfers"
    assert payload["amount"] == 2500.5
    assert payload["account_bank"] == "044"
    assert payload["reference"] == "WD-test"
    assert post.call_args.kwargs["headers"]["Authorization"] == "Bearer FLWSECK_TEST-abc"


def test_transfer_explicit_rejection(payment_client, transfer_request):
    response = reply("POST", "/transfers", 400, json={"status": "error", "message": "Account is not valid"})

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response):
        outcome = asyncio.run(payment_client.transfer(transfer_request))

    assert outcome.succeeded is False
    assert outcome.transaction_id is None
    assert outcome.message == "Account is not valid"


def test_transfer_timeout(payment_client, transfer_request):
    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, side_effect=httpx.ReadTimeout("timed out")):
        with pytest.raises(ProviderTimeout):
            asyncio.run(payment_client.transfer(transfer_request))


def test_transfer_transport_error(payment_client, transfer_request):
    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, side_effect=httpx.ConnectError("refused")):
        with pytest.raises(ProviderTransferFailed):
            asyncio.run(payment_client.transfer(transfer_request))


def test_transfer_unreadable_response(payment_client, transfer_request):
    response = reply("POST", "/transfers", 502, text="<html>Bad Gateway</html>")

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response):
        with pytest.raises(ProviderTransferFailed, match="HTTP 502"):
            asyncio.run(payment_client.transfer(transfer_request))


def test_list_banks(payment_client):
    response = reply(
        "GET",
        "/banks/NG",
        json={"status": "success", "data": [{"id": 1, "code": "044", "name": "Access Bank"}]},
    )

    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=response) as get:
        banks = asyncio.run(payment_client.list_banks("NG"))

    assert banks == [{"id": 1, "code": "044", "name": "Access Bank"}]
    assert get.call_args.args[0] == f"{BASE_URL}/banks/NG"


def test_list_banks_http_error(payment_client):
    response = reply("GET", "/banks/NG", 500, json={"status": "error"})

    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=response):
        with pytest.raises(ProviderError, match="500"):
            asyncio.run(payment_client.list_banks("NG"))


def test_resolve_account(payment_client):
    response = reply(
        "POST",
        "/accounts/resolve",
        json={"status": "success", "data": {"account_number": "0690000031", "account_name": "ADA VENDOR"}},
    )

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response):
        name = asyncio.run(payment_client.resolve_account("0690000031", "044"))

    assert name == "ADA VENDOR"


def test_resolve_account_not_found(payment_client):
    response = reply("POST", "/accounts/resolve", json={"status": "error", "message": "Account not found"})

    with patch.object(httpx.AsyncClient, "post", new_callable=AsyncMock, return_value=response):
        with pytest.raises(ProviderError, match="Account not found"):
            asyncio.run(payment_client.resolve_account("0000000000", "044"))


def test_verify_transaction_success(payment_client):
    response = reply(
        "GET",
        "/transactions/288200/verify",
        json={
            "status": "success",
            "message": "Transaction fetched successfully",
            "data": {"id": 288200, "tx_ref": "STU-42", "status": "successful", "amount": 110.05, "currency": "NGN"},
        },
    )

    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=response) as get:
        verification = asyncio.run(payment_client.verify_transaction("288200"))

    assert get.call_args.args[0] == f"{BASE_URL}/transactions/288200/verify"
    assert verification.succeeded is True
    assert verification.transaction_id == "288200"
    assert verification.tx_ref == "STU-42"
    assert verification.amount == 11005
    assert verification.currency == "NGN"


def test_verify_transaction_failed_charge(payment_client):
    response = reply(
        "GET",
        "/transactions/288201/verify",
        json={"status": "success", "data": {"id": 288201, "tx_ref": "STU-43", "status": "failed", "amount": 50}},
    )

    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=response):
        verification = asyncio.run(payment_client.verify_transaction("288201"))

    assert verification.succeeded is False
    assert verification.amount == 5000


def test_verify_transaction_unknown_id(payment_client):
    response = reply(
        "GET",
        "/transactions/1/verify",
        400,
        json={"status": "error", "message": "No transaction was found for this id", "data": None},
    )

    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=response):
        verification = asyncio.run(payment_client.verify_transaction("1"))

    assert verification.succeeded is False
    assert verification.message == "No transaction was found for this id"


def test_verify_transaction_timeout(payment_client):
    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, side_effect=httpx.ReadTimeout("timed out")):
        with pytest.raises(ProviderError, match="timeout"):
            asyncio.run(payment_client.verify_transaction("288200"))


def test_verify_transaction_server_error(payment_client):
    response = reply("GET", "/transactions/288200/verify", 503, json={"status": "error"})

    with patch.object(httpx.AsyncClient, "get", new_callable=AsyncMock, return_value=response):
        with pytest.raises(ProviderError, match="503"):
            asyncio.run(payment_client.verify_transaction("288200"))

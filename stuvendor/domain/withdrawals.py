"""Withdrawal rules and the payment provider contract"""

import uuid
from typing import Optional, Protocol
from stuvendor.domain.exceptions import InvalidAmount, BankDetailsMissing
from stuvendor.domain.models import TransferRequest, TransferOutcome

REFERENCE_PREFIX = "WD-"


class PaymentProvider(Protocol):
    """Narrow interface over the external transfer API"""

    async def transfer(self, request: TransferRequest) -> TransferOutcome:
        """
        Send a bank transfer.

        Returns an outcome for any explicit provider answer.

        Raises:
            ProviderTimeout: No answer within the configured timeout
            ProviderTransferFailed: Transport error or unreadable response
        """
        ...


def validate_amount(amount) -> int:
    """Accept only positive whole minor-unit amounts"""
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"Withdrawal amount must be a whole number of minor units, got {amount!r}")
    if amount <= 0:
        raise InvalidAmount(f"Withdrawal amount must be positive, got {amount}")
    return amount


def require_bank_details(bank_code: Optional[str], account_number: Optional[str]) -> None:
    if not bank_code or not account_number:
        raise BankDetailsMissing("Bank code and account number must be configured before withdrawing")


def new_transfer_reference() -> str:
    return f"{REFERENCE_PREFIX}{uuid.uuid4()}"


def build_transfer_request(
    vendor_id: uuid.UUID,
    bank_code: str,
    account_number: str,
    amount: int,
    currency: str,
    reference: str,
) -> TransferRequest:
    return TransferRequest(
        account_bank=bank_code,
        account_number=account_number,
        amount=amount,
        currency=currency,
        reference=reference,
        narration=f"Vendor withdrawal for {vendor_id}",
    )

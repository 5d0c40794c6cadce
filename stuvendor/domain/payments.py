"""Customer payment checks run before an order is recorded"""

from stuvendor.domain.exceptions import PaymentNotVerified
from stuvendor.domain.models import PaymentVerification


def check_payment(verification: PaymentVerification, tx_ref: str, amount: int, currency: str) -> None:
    """
    Confirm a provider charge pays for this order.

    The charge must be successful, carry the order's tx_ref, and match the
    order total and currency exactly.

    Raises:
        PaymentNotVerified: Any of the above does not hold
    """
    if not verification.succeeded:
        raise PaymentNotVerified(
            f"Transaction {verification.transaction_id} is not successful: {verification.message or 'no detail'}"
        )
    if verification.tx_ref != tx_ref:
        raise PaymentNotVerified(
            f"Transaction {verification.transaction_id} belongs to {verification.tx_ref}, not {tx_ref}"
        )
    if verification.amount != amount:
        raise PaymentNotVerified(
            f"Transaction {verification.transaction_id} charged {verification.amount}, order total is {amount}"
        )
    if verification.currency is not None and verification.currency != currency:
        raise PaymentNotVerified(
            f"Transaction {verification.transaction_id} is in {verification.currency}, expected {currency}"
        )

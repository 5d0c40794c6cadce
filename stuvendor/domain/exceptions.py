"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


# Identity and authorization: caller errors, never retried


class InvalidCredential(DomainException):
    """Bearer credential is absent, malformed, expired or badly signed"""

    pass


class UnknownAccount(DomainException):
    """Credential subject does not match any account"""

    pass


class VendorProfileMissing(DomainException):
    """Account claims the vendor role but has not completed vendor onboarding"""

    pass


class Unauthenticated(DomainException):
    """No principal was attached to the request"""

    pass


class Forbidden(DomainException):
    """Principal's persisted role does not match the required role"""

    def __init__(self, role: str):
        self.role = role
        super().__init__(f"Access denied, {role} only")


# Ledger and payouts


class InvalidAmount(DomainException):
    """Withdrawal amount is not a positive whole number of minor units"""

    pass


class BankDetailsMissing(DomainException):
    """Vendor has no bank code or account number configured"""

    pass


class InsufficientBalance(DomainException):
    """Requested amount exceeds the vendor's withdrawable balance"""

    def __init__(self, requested: int, available: int):
        self.requested = requested
        self.available = available
        super().__init__(f"Insufficient balance: requested {requested}, available {available}")


class LedgerUnavailable(DomainException):
    """Ledger could not be read or written"""

    pass


class InvalidTransition(DomainException):
    """Ledger entry status change other than pending -> completed | failed"""

    pass


class SplitPaymentFailed(DomainException):
    """Order split could not be recorded; no vendor was credited"""

    pass


class OrderTotalMismatch(SplitPaymentFailed):
    """Order total is not the line subtotal plus the delivery fee"""

    pass


class VendorNotFound(DomainException):
    """Vendor profile does not exist"""

    pass


# Payment provider


class ProviderError(DomainException):
    """Payment provider returned an error or is unavailable"""

    pass


class ProviderTransferFailed(ProviderError):
    """Provider rejected the transfer or the call failed in transport"""

    pass


class ProviderTimeout(ProviderError):
    """Provider did not answer within the configured timeout"""

    pass


class PaymentNotVerified(DomainException):
    """Customer payment is not a successful charge for this order"""

    pass


class ReconciliationRequired(DomainException):
    """Withdrawal outcome could not be recorded; entry left pending for an operator"""

    def __init__(self, entry_id, reference: str, outcome: str):
        self.entry_id = entry_id
        self.reference = reference
        self.outcome = outcome
        super().__init__(
            f"Withdrawal {reference} ({entry_id}) needs manual reconciliation: provider outcome {outcome}"
        )

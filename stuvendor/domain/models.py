"""Domain models - pure Python dataclasses representing business entities"""

import uuid
from dataclasses import dataclass
from typing import Optional, Union

# Account roles
ROLE_CUSTOMER = "customer"
ROLE_VENDOR = "vendor"
ROLE_ADMIN = "admin"

# Ledger entry types and statuses
ENTRY_ORDER_SPLIT = "order_split"
ENTRY_WITHDRAWAL = "withdrawal"

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class AccountPrincipal:
    """Request identity backed directly by an account (customer, admin, onboarding vendor)"""

    account_id: uuid.UUID
    role_claim: str


@dataclass(frozen=True)
class VendorPrincipal:
    """Request identity backed by a vendor storefront; account_id is the owning account"""

    vendor_id: uuid.UUID
    account_id: uuid.UUID
    role_claim: str


Principal = Union[AccountPrincipal, VendorPrincipal]


@dataclass
class OrderLineItem:
    """Purchased line used to compute vendor shares"""

    vendor_id: uuid.UUID
    unit_price: int
    quantity: int

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class VendorShare:
    """Portion of an order credited to a single vendor"""

    vendor_id: uuid.UUID
    amount: int


@dataclass
class TransferRequest:
    """Outbound bank transfer sent to the payment provider"""

    account_bank: str
    account_number: str
    amount: int
    currency: str
    reference: str
    narration: str


@dataclass
class TransferOutcome:
    """Provider's explicit answer to a transfer request"""

    succeeded: bool
    transaction_id: Optional[str] = None
    message: Optional[str] = None


@dataclass
class PaymentVerification:
    """Provider record of a customer charge, amount in minor units"""

    succeeded: bool
    transaction_id: str
    tx_ref: Optional[str] = None
    amount: Optional[int] = None
    currency: Optional[str] = None
    message: Optional[str] = None


@dataclass
class Balance:
    """Vendor balance snapshot; available is what can be withdrawn now"""

    vendor_id: uuid.UUID
    balance: int
    reserved: int

    @property
    def available(self) -> int:
        return self.balance - self.reserved


@dataclass
class WithdrawalResult:
    """Final state of a withdrawal attempt"""

    entry_id: uuid.UUID
    reference: str
    amount: int
    status: str
    provider_transaction_id: Optional[str]
    balance: int

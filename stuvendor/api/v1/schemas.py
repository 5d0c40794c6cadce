"""Pydantic schemas for API request/response validation

All amounts are integer minor units (kobo for NGN).
"""

import uuid
from pydantic import BaseModel, Field, EmailStr
from typing import List, Optional


class BalanceResponse(BaseModel):
    """Response for GET /v1/vendors/balance"""

    vendor_id: str
    balance: int
    reserved: int
    available: int
    balance_display: str


class WithdrawRequest(BaseModel):
    """Request body for POST /v1/vendors/withdraw"""

    amount: int = Field(..., description="Amount to withdraw in minor units")


class WithdrawResponse(BaseModel):
    """Response for POST /v1/vendors/withdraw"""

    status: str
    message: str
    entry_id: str
    reference: str
    amount: int
    provider_transaction_id: Optional[str] = None
    balance: int


class LedgerEntrySchema(BaseModel):
    """Single ledger event"""

    entry_id: str
    type: str
    status: str
    amount: int
    order_id: Optional[str] = None
    transfer_reference: Optional[str] = None
    provider_transaction_id: Optional[str] = None
    created_at: str


class LedgerResponse(BaseModel):
    """Response for GET /v1/vendors/ledger"""

    vendor_id: str
    entries: List[LedgerEntrySchema]


class CreateVendorProfileRequest(BaseModel):
    """Request body for POST /v1/vendors/create-vendor-profile"""

    business_name: str = Field(..., min_length=1)
    address: str = Field(..., min_length=1)
    phone_number: str = Field(..., pattern=r"^\d{11}$", description="11-digit phone number")
    description: Optional[str] = None
    bank_code: str = Field(..., min_length=1)
    bank_account_number: str = Field(..., min_length=1)
    bank_account_name: str = Field(..., min_length=1)


class UpdateVendorProfileRequest(BaseModel):
    """Request body for PUT /v1/vendors/update-vendor-profile; omitted fields keep their value"""

    business_name: Optional[str] = Field(None, min_length=1)
    address: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = Field(None, pattern=r"^\d{11}$", description="11-digit phone number")
    description: Optional[str] = None
    bank_code: Optional[str] = Field(None, min_length=1)
    bank_account_number: Optional[str] = Field(None, min_length=1)
    bank_account_name: Optional[str] = Field(None, min_length=1)


class VendorProfileResponse(BaseModel):
    """Vendor storefront profile"""

    vendor_id: str
    account_id: str
    business_name: str
    address: Optional[str] = None
    phone_number: Optional[str] = None
    description: Optional[str] = None
    bank_code: Optional[str] = None
    bank_account_number: Optional[str] = None
    bank_account_name: Optional[str] = None


class VerifyBankAccountRequest(BaseModel):
    """Request body for POST /v1/vendors/verify-bank-account"""

    bank_account_number: str = Field(..., min_length=1)
    bank_code: str = Field(..., min_length=1)


class VerifyBankAccountResponse(BaseModel):
    bank_account_name: str


class CartLine(BaseModel):
    """Paid cart line submitted with an order"""

    product_id: uuid.UUID
    vendor_id: uuid.UUID
    price: int = Field(..., gt=0, description="Unit price in minor units")
    quantity: int = Field(..., gt=0)


class CreateOrderRequest(BaseModel):
    """Request body for POST /v1/orders"""

    total_amount: int = Field(..., gt=0, description="Line subtotal plus delivery fee, minor units")
    delivery_fee: int = Field(0, ge=0, description="Shared equally among the order's vendors")
    transaction_id: str = Field(..., min_length=1, description="Provider id of the customer charge")
    tx_ref: str = Field(..., min_length=1, description="Merchant reference the charge was created with")
    shipping_address: str = Field(..., min_length=1, max_length=200)
    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=1)
    cart_products: List[CartLine] = Field(..., min_length=1)


class VendorShareSchema(BaseModel):
    vendor_id: str
    amount: int


class CreateOrderResponse(BaseModel):
    """Response for POST /v1/orders"""

    order_id: str
    status: str
    total_amount: int
    delivery_fee: int
    payouts: List[VendorShareSchema]


class StaleWithdrawal(BaseModel):
    entry_id: str
    vendor_id: str
    reference: Optional[str] = None
    amount: int
    created_at: str


class StaleWithdrawalsResponse(BaseModel):
    """Response for GET /v1/admin/withdrawals/stale"""

    grace_minutes: int
    withdrawals: List[StaleWithdrawal]

"""Vendor endpoints: balance, withdrawals, ledger history and storefront profile"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stuvendor.api.auth import require_role, require_vendor
from stuvendor.api.dependencies import get_payment_client, get_request_id, get_withdrawal_processor
from stuvendor.api.v1.schemas import (
    BalanceResponse,
    WithdrawRequest,
    WithdrawResponse,
    LedgerEntrySchema,
    LedgerResponse,
    CreateVendorProfileRequest,
    UpdateVendorProfileRequest,
    VendorProfileResponse,
    VerifyBankAccountRequest,
    VerifyBankAccountResponse,
)
from stuvendor.config import settings
from stuvendor.domain.exceptions import (
    InvalidAmount,
    BankDetailsMissing,
    InsufficientBalance,
    LedgerUnavailable,
    ProviderError,
    ProviderTimeout,
    ProviderTransferFailed,
    ReconciliationRequired,
    VendorNotFound,
)
from stuvendor.domain.models import Principal, VendorPrincipal, ROLE_VENDOR
from stuvendor.infrastructure.clients.payments import FlutterwaveClient
from stuvendor.infrastructure.database.models import VendorProfile
from stuvendor.infrastructure.database.repositories import LedgerRepository, VendorRepository
from stuvendor.infrastructure.database.session import get_db
from stuvendor.services.ledger import VendorLedger
from stuvendor.services.withdrawals import WithdrawalProcessor
from stuvendor.utils.money import format_amount

router = APIRouter()


def _profile_response(vendor: VendorProfile) -> VendorProfileResponse:
    return VendorProfileResponse(
        vendor_id=str(vendor.id),
        account_id=str(vendor.account_id),
        business_name=vendor.business_name,
        address=vendor.address,
        phone_number=vendor.phone_number,
        description=vendor.description,
        bank_code=vendor.bank_code,
        bank_account_number=vendor.bank_account_number,
        bank_account_name=vendor.bank_account_name,
    )


@router.get("/vendors/banks")
async def get_banks(client: FlutterwaveClient = Depends(get_payment_client)):
    """List banks supported for vendor payouts"""
    try:
        return await client.list_banks(settings.provider_country)
    except ProviderError as e:
        logging.error(f"Failed to fetch banks: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch bank list")


@router.post("/vendors/verify-bank-account", response_model=VerifyBankAccountResponse)
async def verify_bank_account(
    request_body: VerifyBankAccountRequest,
    client: FlutterwaveClient = Depends(get_payment_client),
):
    """Resolve the holder name of a bank account before saving it on a profile"""
    try:
        name = await client.resolve_account(request_body.bank_account_number, request_body.bank_code)
    except ProviderError as e:
        logging.warning(f"Bank verification failed: {e}")
        raise HTTPException(status_code=400, detail="Failed to verify bank account")
    return VerifyBankAccountResponse(bank_account_name=name)


@router.get("/vendors/balance", response_model=BalanceResponse)
def get_balance(
    principal: VendorPrincipal = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    """
    Current balance from the ledger.

    Returns:
        balance: completed splits minus completed withdrawals
        reserved: withdrawals awaiting a provider outcome
        available: what can be withdrawn now
    """
    try:
        snapshot = VendorLedger(LedgerRepository(db)).snapshot(principal.vendor_id)
    except LedgerUnavailable as e:
        logging.error(f"Balance fetch error: {e}")
        raise HTTPException(status_code=503, detail="Failed to fetch balance")

    return BalanceResponse(
        vendor_id=str(snapshot.vendor_id),
        balance=snapshot.balance,
        reserved=snapshot.reserved,
        available=snapshot.available,
        balance_display=format_amount(snapshot.balance),
    )


@router.post("/vendors/withdraw", response_model=WithdrawResponse)
async def withdraw(
    request_body: WithdrawRequest,
    request: Request,
    principal: VendorPrincipal = Depends(require_vendor),
    processor: WithdrawalProcessor = Depends(get_withdrawal_processor),
):
    """Transfer part of the vendor balance to the vendor's bank account"""
    request_id = get_request_id(request)

    try:
        result = await processor.withdraw(principal.vendor_id, request_body.amount, request_id=request_id)

    except (InvalidAmount, BankDetailsMissing) as e:
        raise HTTPException(status_code=400, detail=str(e))

    except InsufficientBalance:
        raise HTTPException(status_code=400, detail="Insufficient balance")

    except VendorNotFound:
        raise HTTPException(status_code=404, detail="Vendor profile not found")

    except ProviderTimeout:
        raise HTTPException(status_code=504, detail="Withdrawal failed: payment provider timed out")

    except ProviderTransferFailed as e:
        raise HTTPException(status_code=502, detail=f"Withdrawal failed at payment provider: {e}")

    except ReconciliationRequired as e:
        logging.error(f"Reconciliation required: {e}", extra={"request_id": request_id})
        raise HTTPException(
            status_code=500,
            detail=f"Withdrawal {e.reference} is being reviewed; do not retry",
        )

    except LedgerUnavailable as e:
        logging.error(f"Ledger unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Ledger unavailable")

    return WithdrawResponse(
        status="success",
        message="Withdrawal successful",
        entry_id=str(result.entry_id),
        reference=result.reference,
        amount=result.amount,
        provider_transaction_id=result.provider_transaction_id,
        balance=result.balance,
    )


@router.get("/vendors/ledger", response_model=LedgerResponse)
def get_ledger(
    limit: int = Query(50, ge=1, le=200),
    principal: VendorPrincipal = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    """Recent ledger entries for the calling vendor, newest first"""
    entries = VendorLedger(LedgerRepository(db)).history(principal.vendor_id, limit=limit)

    return LedgerResponse(
        vendor_id=str(principal.vendor_id),
        entries=[
            LedgerEntrySchema(
                entry_id=str(e.id),
                type=e.type,
                status=e.status,
                amount=e.amount,
                order_id=str(e.order_id) if e.order_id else None,
                transfer_reference=e.transfer_reference,
                provider_transaction_id=e.provider_transaction_id,
                created_at=e.created_at.isoformat(),
            )
            for e in entries
        ],
    )


@router.post("/vendors/create-vendor-profile", response_model=VendorProfileResponse, status_code=201)
def create_vendor_profile(
    request_body: CreateVendorProfileRequest,
    principal: Principal = Depends(require_role(ROLE_VENDOR, onboarding=True)),
    db: Session = Depends(get_db),
):
    """Create the storefront for a vendor account that has none yet"""
    vendors = VendorRepository(db)
    if vendors.get_by_account_id(principal.account_id) is not None:
        raise HTTPException(status_code=409, detail="Vendor profile already exists")

    try:
        vendor = vendors.create_profile(principal.account_id, **request_body.model_dump())
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Vendor profile already exists")
    return _profile_response(vendor)


@router.get("/vendors/vendor-profile", response_model=VendorProfileResponse)
def get_vendor_profile(
    principal: VendorPrincipal = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    vendor = VendorRepository(db).get_by_id(principal.vendor_id)
    if vendor is None:
        raise HTTPException(status_code=404, detail="Vendor profile not found")
    return _profile_response(vendor)


@router.put("/vendors/update-vendor-profile", response_model=VendorProfileResponse)
def update_vendor_profile(
    request_body: UpdateVendorProfileRequest,
    request: Request,
    principal: VendorPrincipal = Depends(require_vendor),
    db: Session = Depends(get_db),
):
    """
    Change storefront or payout bank details.

    Only fields present in the body change. Withdrawals started after the
    update pay out to the new bank account.
    """
    changes = request_body.model_dump(exclude_unset=True, exclude_none=True)

    try:
        vendor = VendorRepository(db).update_profile(principal.vendor_id, **changes)
        if vendor is None:
            raise HTTPException(status_code=404, detail="Vendor profile not found")
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Vendor profile update error: {e}", extra={"request_id": get_request_id(request)})
        raise HTTPException(status_code=500, detail="Failed to update vendor profile")

    logging.info(
        "Vendor profile updated",
        extra={"vendor_id": str(vendor.id), "fields": sorted(changes), "request_id": get_request_id(request)},
    )
    return _profile_response(vendor)

"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from stuvendor.config import settings
from stuvendor.infrastructure.clients.payments import FlutterwaveClient
from stuvendor.infrastructure.database.session import get_db
from stuvendor.infrastructure.security import TokenCodec
from stuvendor.services.splits import SplitPaymentProcessor
from stuvendor.services.withdrawals import VendorLockRegistry, WithdrawalProcessor

# Shared across requests so withdrawals for one vendor serialize in this process
vendor_locks = VendorLockRegistry()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_token_codec() -> TokenCodec:
    """Provide access token codec built from settings"""
    return TokenCodec(settings.jwt_secret, settings.jwt_issuer, settings.jwt_ttl_seconds)


def get_payment_client() -> FlutterwaveClient:
    """Provide payment provider client instance"""
    return FlutterwaveClient(
        base_url=settings.provider_api_base,
        secret_key=settings.provider_secret_key,
        timeout=settings.http_timeout_seconds,
    )


def get_vendor_locks() -> VendorLockRegistry:
    return vendor_locks


def get_withdrawal_processor(
    db: Session = Depends(get_db),
    provider: FlutterwaveClient = Depends(get_payment_client),
    locks: VendorLockRegistry = Depends(get_vendor_locks),
) -> WithdrawalProcessor:
    """Provide withdrawal processor wired to the request session"""
    return WithdrawalProcessor(
        db,
        provider,
        locks,
        currency=settings.transfer_currency,
        status_update_retries=settings.status_update_retries,
    )


def get_split_processor(db: Session = Depends(get_db)) -> SplitPaymentProcessor:
    """Provide split-payment processor wired to the request session"""
    return SplitPaymentProcessor(db)

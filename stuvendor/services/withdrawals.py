"""Vendor withdrawals: balance reservation, provider transfer and status reconciliation"""

import asyncio
import logging
import uuid
import weakref
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from stuvendor.domain.exceptions import (
    DomainException,
    InsufficientBalance,
    InvalidTransition,
    LedgerUnavailable,
    ProviderTimeout,
    ProviderTransferFailed,
    ReconciliationRequired,
    VendorNotFound,
)
from stuvendor.domain.models import TransferRequest, WithdrawalResult, STATUS_COMPLETED, STATUS_FAILED
from stuvendor.domain.withdrawals import (
    PaymentProvider,
    validate_amount,
    require_bank_details,
    new_transfer_reference,
    build_transfer_request,
)
from stuvendor.infrastructure.database.models import LedgerEntry
from stuvendor.infrastructure.database.repositories import LedgerRepository, VendorRepository
from stuvendor.infrastructure.observability.logging import log_withdrawal
from stuvendor.infrastructure.observability.metrics import record_withdrawal, stale_pending_withdrawals_gauge

logger = logging.getLogger(__name__)


class VendorLockRegistry:
    """
    One asyncio lock per vendor, serializing check-and-reserve within this process.

    Locks are held weakly: a lock lives only while some coroutine holds or
    waits on it, so the registry does not grow with every vendor ever seen.
    """

    def __init__(self):
        self._locks: "weakref.WeakValueDictionary[uuid.UUID, asyncio.Lock]" = weakref.WeakValueDictionary()

    def lock_for(self, vendor_id: uuid.UUID) -> asyncio.Lock:
        lock = self._locks.get(vendor_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[vendor_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)


class WithdrawalProcessor:
    """Converts ledger balance into an external bank transfer"""

    def __init__(
        self,
        db: Session,
        provider: PaymentProvider,
        locks: VendorLockRegistry,
        currency: str,
        status_update_retries: int = 1,
        retry_backoff_seconds: float = 0.2,
    ):
        self.db = db
        self.provider = provider
        self.locks = locks
        self.currency = currency
        self.status_update_retries = status_update_retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.ledger = LedgerRepository(db)
        self.vendors = VendorRepository(db)

    async def withdraw(self, vendor_id: uuid.UUID, amount, request_id: Optional[str] = None) -> WithdrawalResult:
        """
        Withdraw from a vendor's balance to its configured bank account.

        State machine: requested -> pending -> completed | failed

        Flow:
        1. Validate amount
        2. Under the vendor lock: check bank details and withdrawable balance,
           then commit a pending withdrawal entry
        3. Call the provider
        4. Record completed/failed, retrying the status write on DB errors

        Raises:
            InvalidAmount, VendorNotFound, BankDetailsMissing, InsufficientBalance,
            LedgerUnavailable: Rejected before any entry or external call
            ProviderTransferFailed, ProviderTimeout: Entry recorded as failed
            ReconciliationRequired: Outcome could not be recorded; entry left pending
        """
        amount = validate_amount(amount)
        entry_id, transfer = await self._reserve(vendor_id, amount)

        try:
            outcome = await self.provider.transfer(transfer)
        except ProviderTimeout:
            await self._finalize(entry_id, transfer.reference, STATUS_FAILED, outcome="timeout")
            record_withdrawal("failed")
            log_withdrawal(str(vendor_id), transfer.reference, amount, "timeout", request_id)
            raise
        except ProviderTransferFailed:
            await self._finalize(entry_id, transfer.reference, STATUS_FAILED, outcome="transport_error")
            record_withdrawal("failed")
            log_withdrawal(str(vendor_id), transfer.reference, amount, "transport_error", request_id)
            raise

        if not outcome.succeeded:
            await self._finalize(entry_id, transfer.reference, STATUS_FAILED, outcome="rejected")
            record_withdrawal("failed")
            log_withdrawal(str(vendor_id), transfer.reference, amount, "rejected", request_id)
            raise ProviderTransferFailed(outcome.message or "Withdrawal failed at payment provider")

        entry = await self._finalize(
            entry_id,
            transfer.reference,
            STATUS_COMPLETED,
            outcome="success",
            provider_transaction_id=outcome.transaction_id,
        )
        record_withdrawal("completed", amount)
        log_withdrawal(str(vendor_id), transfer.reference, amount, "completed", request_id, outcome.transaction_id)

        return WithdrawalResult(
            entry_id=entry.id,
            reference=transfer.reference,
            amount=amount,
            status=entry.status,
            provider_transaction_id=entry.provider_transaction_id,
            balance=self.ledger.compute_balance(vendor_id),
        )

    async def _reserve(self, vendor_id: uuid.UUID, amount: int) -> Tuple[uuid.UUID, TransferRequest]:
        """Check-and-create as one step; the pending entry commits before the lock is released"""
        async with self.locks.lock_for(vendor_id):
            try:
                vendor = self.vendors.get_for_update(vendor_id)
                if vendor is None:
                    raise VendorNotFound(f"Vendor {vendor_id} not found")
                require_bank_details(vendor.bank_code, vendor.bank_account_number)

                available = self.ledger.compute_balance(vendor_id) - self.ledger.reserved_amount(vendor_id)
                if amount > available:
                    record_withdrawal("rejected")
                    raise InsufficientBalance(amount, available)

                reference = new_transfer_reference()
                transfer = build_transfer_request(
                    vendor_id,
                    vendor.bank_code,
                    vendor.bank_account_number,
                    amount,
                    self.currency,
                    reference,
                )
                entry = self.ledger.add_pending_withdrawal(vendor_id, amount, reference)
                entry_id = entry.id
                self.db.commit()

            except DomainException:
                self.db.rollback()
                raise
            except SQLAlchemyError as e:
                self.db.rollback()
                raise LedgerUnavailable(f"Could not reserve withdrawal for vendor {vendor_id}") from e

        return entry_id, transfer

    async def _finalize(
        self,
        entry_id: uuid.UUID,
        reference: str,
        status: str,
        outcome: str,
        provider_transaction_id: Optional[str] = None,
    ) -> LedgerEntry:
        attempts = 1 + max(self.status_update_retries, 0)
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                return self.ledger.transition(entry_id, status, provider_transaction_id)
            except InvalidTransition as e:
                self.db.rollback()
                last_error = e
                break
            except SQLAlchemyError as e:
                self.db.rollback()
                last_error = e
                logger.warning(
                    "Withdrawal status update failed",
                    extra={"entry_id": str(entry_id), "reference": reference, "attempt": attempt, "error": str(e)},
                )
                if attempt < attempts and self.retry_backoff_seconds > 0:
                    await asyncio.sleep(self.retry_backoff_seconds)

        record_withdrawal("reconciliation_required")
        logger.error(
            "Withdrawal requires manual reconciliation",
            extra={
                "entry_id": str(entry_id),
                "reference": reference,
                "target_status": status,
                "provider_outcome": outcome,
                "provider_transaction_id": provider_transaction_id,
            },
        )
        raise ReconciliationRequired(entry_id, reference, outcome) from last_error


def flag_stale_pending(
    ledger: LedgerRepository,
    grace_minutes: int,
    now: Optional[datetime] = None,
) -> List[LedgerEntry]:
    """
    Report pending withdrawals older than the grace period.

    Stale entries represent an unresolved external state: they are surfaced
    for manual review and never resolved automatically.
    """
    now = now or datetime.now(timezone.utc)
    stale = ledger.stale_pending_withdrawals(now - timedelta(minutes=grace_minutes))

    stale_pending_withdrawals_gauge.set(len(stale))
    for entry in stale:
        logger.warning(
            "Stale pending withdrawal",
            extra={
                "entry_id": str(entry.id),
                "vendor_id": str(entry.vendor_id),
                "reference": entry.transfer_reference,
                "amount": entry.amount,
                "created_at": entry.created_at.isoformat(),
            },
        )
    return stale

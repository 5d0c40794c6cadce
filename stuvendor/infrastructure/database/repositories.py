"""Data access layer for accounts, vendors, orders and ledger entries"""

import uuid
from datetime import datetime
from typing import Iterable, List, Optional
from sqlalchemy import func, case
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from stuvendor.infrastructure.database.models import Account, VendorProfile, Order, OrderLine, LedgerEntry
from stuvendor.domain.exceptions import LedgerUnavailable, InvalidTransition
from stuvendor.domain.models import (
    VendorShare,
    ENTRY_ORDER_SPLIT,
    ENTRY_WITHDRAWAL,
    STATUS_PENDING,
    STATUS_COMPLETED,
    STATUS_FAILED,
)


class AccountRepository:
    """Repository for accounts"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, account_id: uuid.UUID) -> Optional[Account]:
        return self.db.get(Account, account_id)


class VendorRepository:
    """Repository for vendor profiles"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, vendor_id: uuid.UUID) -> Optional[VendorProfile]:
        return self.db.get(VendorProfile, vendor_id)

    def get_by_account_id(self, account_id: uuid.UUID) -> Optional[VendorProfile]:
        return (
            self.db.query(VendorProfile)
            .filter(VendorProfile.account_id == account_id)
            .first()
        )

    def get_for_update(self, vendor_id: uuid.UUID) -> Optional[VendorProfile]:
        """Fetch vendor row holding a row lock until the transaction ends (no-op on SQLite)"""
        return (
            self.db.query(VendorProfile)
            .filter(VendorProfile.id == vendor_id)
            .with_for_update()
            .first()
        )

    def get_many(self, vendor_ids: Iterable[uuid.UUID]) -> List[VendorProfile]:
        ids = list(vendor_ids)
        if not ids:
            return []
        return self.db.query(VendorProfile).filter(VendorProfile.id.in_(ids)).all()

    def create_profile(self, account_id: uuid.UUID, business_name: str, **fields) -> VendorProfile:
        profile = VendorProfile(account_id=account_id, business_name=business_name, **fields)
        self.db.add(profile)
        self.db.flush()
        return profile

    def update_profile(self, vendor_id: uuid.UUID, **fields) -> Optional[VendorProfile]:
        """Overwrite the given fields under the vendor row lock without committing"""
        profile = self.get_for_update(vendor_id)
        if profile is None:
            return None
        for name, value in fields.items():
            setattr(profile, name, value)
        self.db.flush()
        return profile


class OrderRepository:
    """Repository for orders and their lines"""

    def __init__(self, db: Session):
        self.db = db

    def get_by_transaction_reference(self, reference: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .filter(Order.transaction_reference == reference)
            .first()
        )

    def create_order(self, account_id: uuid.UUID, total_amount: int, lines: List[dict], **fields) -> Order:
        """Create order with lines without committing"""
        db_order = Order(account_id=account_id, total_amount=total_amount, **fields)
        db_order.lines = [OrderLine(**line) for line in lines]
        self.db.add(db_order)
        self.db.flush()  # Get IDs without committing
        return db_order


class LedgerRepository:
    """Repository for the append-only vendor ledger"""

    def __init__(self, db: Session):
        self.db = db

    def compute_balance(self, vendor_id: uuid.UUID) -> int:
        """Completed order splits minus completed withdrawals, aggregated at call time"""
        signed = case(
            (LedgerEntry.type == ENTRY_ORDER_SPLIT, LedgerEntry.amount),
            else_=-LedgerEntry.amount,
        )
        try:
            total = (
                self.db.query(func.coalesce(func.sum(signed), 0))
                .filter(
                    LedgerEntry.vendor_id == vendor_id,
                    LedgerEntry.status == STATUS_COMPLETED,
                )
                .scalar()
            )
        except SQLAlchemyError as e:
            raise LedgerUnavailable(f"Could not compute balance for vendor {vendor_id}") from e
        return int(total)

    def reserved_amount(self, vendor_id: uuid.UUID) -> int:
        """Sum of withdrawals whose transfer outcome is not yet recorded"""
        try:
            total = (
                self.db.query(func.coalesce(func.sum(LedgerEntry.amount), 0))
                .filter(
                    LedgerEntry.vendor_id == vendor_id,
                    LedgerEntry.type == ENTRY_WITHDRAWAL,
                    LedgerEntry.status == STATUS_PENDING,
                )
                .scalar()
            )
        except SQLAlchemyError as e:
            raise LedgerUnavailable(f"Could not read pending withdrawals for vendor {vendor_id}") from e
        return int(total)

    def get_by_id(self, entry_id: uuid.UUID) -> Optional[LedgerEntry]:
        return self.db.get(LedgerEntry, entry_id)

    def list_entries(self, vendor_id: uuid.UUID, limit: int = 50) -> List[LedgerEntry]:
        """Fetch recent entries for a vendor, newest first"""
        try:
            return (
                self.db.query(LedgerEntry)
                .filter(LedgerEntry.vendor_id == vendor_id)
                .order_by(LedgerEntry.created_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise LedgerUnavailable(f"Could not read ledger history for vendor {vendor_id}") from e

    def splits_for_order(self, order_id: uuid.UUID) -> List[LedgerEntry]:
        return (
            self.db.query(LedgerEntry)
            .filter(
                LedgerEntry.order_id == order_id,
                LedgerEntry.type == ENTRY_ORDER_SPLIT,
            )
            .all()
        )

    def add_order_splits(self, order_id: uuid.UUID, shares: List[VendorShare]) -> List[LedgerEntry]:
        """Stage one completed order_split entry per share; caller commits"""
        entries = [
            LedgerEntry(
                vendor_id=share.vendor_id,
                order_id=order_id,
                amount=share.amount,
                status=STATUS_COMPLETED,
                type=ENTRY_ORDER_SPLIT,
            )
            for share in shares
        ]
        self.db.add_all(entries)
        self.db.flush()
        return entries

    def add_pending_withdrawal(self, vendor_id: uuid.UUID, amount: int, reference: str) -> LedgerEntry:
        entry = LedgerEntry(
            vendor_id=vendor_id,
            amount=amount,
            status=STATUS_PENDING,
            type=ENTRY_WITHDRAWAL,
            transfer_reference=reference,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def transition(
        self,
        entry_id: uuid.UUID,
        status: str,
        provider_transaction_id: Optional[str] = None,
    ) -> LedgerEntry:
        """Move a pending entry to completed or failed and commit"""
        if status not in (STATUS_COMPLETED, STATUS_FAILED):
            raise InvalidTransition(f"Cannot move ledger entry to {status}")

        entry = self.db.get(LedgerEntry, entry_id)
        if entry is None:
            raise InvalidTransition(f"Ledger entry {entry_id} does not exist")
        if entry.status != STATUS_PENDING:
            raise InvalidTransition(f"Ledger entry {entry_id} is already {entry.status}")

        entry.status = status
        if provider_transaction_id is not None:
            entry.provider_transaction_id = provider_transaction_id
        self.db.commit()
        return entry

    def stale_pending_withdrawals(self, older_than: datetime) -> List[LedgerEntry]:
        return (
            self.db.query(LedgerEntry)
            .filter(
                LedgerEntry.type == ENTRY_WITHDRAWAL,
                LedgerEntry.status == STATUS_PENDING,
                LedgerEntry.created_at < older_than,
            )
            .order_by(LedgerEntry.created_at.asc())
            .all()
        )

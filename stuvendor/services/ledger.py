"""Vendor ledger reads"""

import uuid
from typing import List
from stuvendor.domain.models import Balance
from stuvendor.infrastructure.database.models import LedgerEntry
from stuvendor.infrastructure.database.repositories import LedgerRepository


class VendorLedger:
    """Balance view over the append-only ledger; nothing is cached between calls"""

    def __init__(self, repository: LedgerRepository):
        self.repository = repository

    def compute_balance(self, vendor_id: uuid.UUID) -> int:
        """
        Completed order splits minus completed withdrawals.

        Raises:
            LedgerUnavailable: Ledger could not be read
        """
        return self.repository.compute_balance(vendor_id)

    def snapshot(self, vendor_id: uuid.UUID) -> Balance:
        """Balance plus the amount reserved by in-flight withdrawals"""
        return Balance(
            vendor_id=vendor_id,
            balance=self.repository.compute_balance(vendor_id),
            reserved=self.repository.reserved_amount(vendor_id),
        )

    def history(self, vendor_id: uuid.UUID, limit: int = 50) -> List[LedgerEntry]:
        return self.repository.list_entries(vendor_id, limit=limit)

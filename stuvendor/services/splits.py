"""Split-payment processing on order completion"""

import logging
from typing import List
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from stuvendor.domain.exceptions import OrderTotalMismatch, SplitPaymentFailed
from stuvendor.domain.models import OrderLineItem
from stuvendor.domain.splits import compute_vendor_shares
from stuvendor.infrastructure.database.models import Order, LedgerEntry
from stuvendor.infrastructure.database.repositories import LedgerRepository, VendorRepository
from stuvendor.infrastructure.observability.logging import log_split
from stuvendor.infrastructure.observability.metrics import split_entries_counter, split_failures_counter

logger = logging.getLogger(__name__)


class SplitPaymentProcessor:
    """Credits each vendor in an order with its share, exactly once per order"""

    def __init__(self, db: Session):
        self.db = db
        self.ledger = LedgerRepository(db)
        self.vendors = VendorRepository(db)

    def split_payment(self, order: Order) -> List[LedgerEntry]:
        """
        Record one completed order_split entry per vendor with a nonzero share.

        Flow:
        1. Return existing entries if the order was already split
        2. Compute shares from the order lines and delivery fee
        3. Stage all entries and commit them in a single transaction

        Anything staged in the session alongside the order (e.g. the order
        itself) commits or rolls back together with the entries.

        Raises:
            OrderTotalMismatch: Total is not the line subtotal plus delivery fee
            SplitPaymentFailed: Unknown vendor or write failure; nothing was credited
        """
        existing = self.ledger.splits_for_order(order.id)
        if existing:
            log_split(str(order.id), len(existing), sum(entry.amount for entry in existing), duplicate=True)
            return existing

        items = [
            OrderLineItem(vendor_id=line.vendor_id, unit_price=line.unit_price, quantity=line.quantity)
            for line in order.lines
        ]
        try:
            shares = compute_vendor_shares(items, order.total_amount, delivery_fee=order.delivery_fee or 0)
        except OrderTotalMismatch:
            self.db.rollback()
            split_failures_counter.inc()
            raise

        known = {v.id for v in self.vendors.get_many(s.vendor_id for s in shares)}
        missing = [str(s.vendor_id) for s in shares if s.vendor_id not in known]
        if missing:
            self.db.rollback()
            split_failures_counter.inc()
            raise SplitPaymentFailed(f"Order {order.id} references unknown vendors: {', '.join(missing)}")

        try:
            entries = self.ledger.add_order_splits(order.id, shares)
            self.db.commit()

        except IntegrityError as e:
            # A concurrent split of the same order won the unique constraint
            self.db.rollback()
            existing = self.ledger.splits_for_order(order.id)
            if existing:
                log_split(str(order.id), len(existing), sum(entry.amount for entry in existing), duplicate=True)
                return existing
            split_failures_counter.inc()
            raise SplitPaymentFailed(f"Could not record split for order {order.id}") from e

        except SQLAlchemyError as e:
            self.db.rollback()
            split_failures_counter.inc()
            logger.error("Split payment rolled back", extra={"order_id": str(order.id), "error": str(e)})
            raise SplitPaymentFailed(f"Could not record split for order {order.id}") from e

        split_entries_counter.inc(len(entries))
        log_split(str(order.id), len(entries), sum(entry.amount for entry in entries))
        return entries

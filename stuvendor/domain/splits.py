"""Vendor share calculation for split payments"""

import uuid
from collections import OrderedDict
from typing import Dict, Iterable, List
from stuvendor.domain.exceptions import OrderTotalMismatch
from stuvendor.domain.models import OrderLineItem, VendorShare


def subtotals_by_vendor(lines: Iterable[OrderLineItem]) -> Dict[uuid.UUID, int]:
    """Sum unit_price * quantity per vendor, keeping first-seen order"""
    subtotals: Dict[uuid.UUID, int] = OrderedDict()
    for line in lines:
        subtotals[line.vendor_id] = subtotals.get(line.vendor_id, 0) + line.subtotal
    return subtotals


def check_order_total(lines: Iterable[OrderLineItem], total: int, delivery_fee: int = 0) -> int:
    """
    Confirm the order total is the line subtotal plus the delivery fee.

    Returns:
        int: The line subtotal

    Raises:
        OrderTotalMismatch: Total does not equal subtotal + delivery fee
    """
    if delivery_fee < 0:
        raise OrderTotalMismatch(f"Delivery fee must not be negative, got {delivery_fee}")
    line_total = sum(line.subtotal for line in lines)
    if line_total + delivery_fee != total:
        raise OrderTotalMismatch(
            f"Order total {total} does not match line subtotal {line_total} plus delivery fee {delivery_fee}"
        )
    return line_total


def compute_vendor_shares(
    lines: Iterable[OrderLineItem],
    total: int,
    delivery_fee: int = 0,
) -> List[VendorShare]:
    """
    Divide an order total among the vendors that supplied its lines.

    Rules:
    - The total must equal the line subtotal plus the delivery fee
    - Each vendor receives its own subtotal plus floor(delivery_fee / n),
      where n is the number of vendors with a nonzero subtotal
    - The delivery remainder goes to the vendor with the largest subtotal
      (ties go to the lowest vendor id)
    - Vendors with a zero subtotal are dropped

    The shares therefore always sum to the order total.

    Example:
        subtotals A=6000, B=4000, delivery fee 1001, total 11001
        each vendor gets 500 of the fee, remainder 1 goes to A
        A receives 6501, B receives 4500

    Raises:
        OrderTotalMismatch: Total does not equal subtotal + delivery fee,
            or a delivery fee is charged with no vendor to carry it
    """
    lines = list(lines)
    check_order_total(lines, total, delivery_fee)

    amounts = OrderedDict(
        (vendor_id, subtotal)
        for vendor_id, subtotal in subtotals_by_vendor(lines).items()
        if subtotal > 0
    )
    if not amounts:
        if total > 0:
            raise OrderTotalMismatch(f"Order total {total} has no vendor to credit")
        return []

    if delivery_fee:
        per_vendor, remainder = divmod(delivery_fee, len(amounts))
        for vendor_id in amounts:
            amounts[vendor_id] += per_vendor
        if remainder:
            largest = min(amounts, key=lambda vid: (-amounts[vid], str(vid)))
            amounts[largest] += remainder

    return [VendorShare(vendor_id=vendor_id, amount=amount) for vendor_id, amount in amounts.items()]

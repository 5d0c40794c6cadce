"""Unit tests for vendor share calculation"""

import uuid
import pytest
from stuvendor.domain.exceptions import OrderTotalMismatch, SplitPaymentFailed
from stuvendor.domain.models import OrderLineItem
from stuvendor.domain.splits import check_order_total, compute_vendor_shares, subtotals_by_vendor

VENDOR_A = uuid.UUID("00000000-0000-0000-0000-00000000000a")
VENDOR_B = uuid.UUID("00000000-0000-0000-0000-00000000000b")
VENDOR_C = uuid.UUID("00000000-0000-0000-0000-00000000000c")


def test_shares_match_line_subtotals():
    """Test vendors A (60) and B (40) of a 100 order get exactly their subtotals"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_A, unit_price=20, quantity=3),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=40, quantity=1),
    ]

    shares = compute_vendor_shares(lines, total=100)

    assert {s.vendor_id: s.amount for s in shares} == {VENDOR_A: 60, VENDOR_B: 40}
    assert sum(s.amount for s in shares) == 100
    assert VENDOR_C not in {s.vendor_id for s in shares}


def test_lines_for_same_vendor_are_aggregated():
    """Test several lines from one vendor produce a single share"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_A, unit_price=1500, quantity=2),
        OrderLineItem(vendor_id=VENDOR_A, unit_price=500, quantity=1),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=2000, quantity=1),
    ]

    assert subtotals_by_vendor(lines) == {VENDOR_A: 3500, VENDOR_B: 2000}

    shares = compute_vendor_shares(lines, total=5500)
    assert len(shares) == 2
    assert {s.vendor_id: s.amount for s in shares} == {VENDOR_A: 3500, VENDOR_B: 2000}


def test_total_above_line_subtotal_is_rejected():
    """Test a client total of 150 for lines worth 100 is not scaled into the shares"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_A, unit_price=60, quantity=1),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=40, quantity=1),
    ]

    with pytest.raises(OrderTotalMismatch):
        compute_vendor_shares(lines, total=150)


def test_total_below_line_subtotal_is_rejected():
    lines = [OrderLineItem(vendor_id=VENDOR_A, unit_price=60, quantity=1)]

    with pytest.raises(OrderTotalMismatch):
        compute_vendor_shares(lines, total=59)


def test_mismatch_is_a_split_failure():
    assert issubclass(OrderTotalMismatch, SplitPaymentFailed)


def test_delivery_fee_is_shared_equally():
    """Test each vendor gets its subtotal plus an equal part of the delivery fee"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_A, unit_price=6000, quantity=1),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=4000, quantity=1),
    ]

    shares = {s.vendor_id: s.amount for s in compute_vendor_shares(lines, total=11000, delivery_fee=1000)}

    assert shares == {VENDOR_A: 6500, VENDOR_B: 4500}
    assert sum(shares.values()) == 11000


def test_delivery_fee_remainder_goes_to_largest_subtotal():
    """Test 1001 over two vendors: 500 each, the extra unit goes to A (largest)"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_B, unit_price=4000, quantity=1),
        OrderLineItem(vendor_id=VENDOR_A, unit_price=6000, quantity=1),
    ]

    shares = {s.vendor_id: s.amount for s in compute_vendor_shares(lines, total=11001, delivery_fee=1001)}

    assert shares == {VENDOR_A: 6501, VENDOR_B: 4500}
    assert sum(shares.values()) == 11001


def test_delivery_fee_remainder_tie_goes_to_lowest_vendor_id():
    """Test equal subtotals break the remainder tie deterministically"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_C, unit_price=50, quantity=1),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=50, quantity=1),
        OrderLineItem(vendor_id=VENDOR_A, unit_price=50, quantity=1),
    ]

    # 11 / 3 = 3 each, remainder 2 -> A
    shares = {s.vendor_id: s.amount for s in compute_vendor_shares(lines, total=161, delivery_fee=11)}

    assert shares == {VENDOR_A: 55, VENDOR_B: 53, VENDOR_C: 53}
    assert sum(shares.values()) == 161


def test_delivery_fee_must_be_in_total():
    """Test a delivery fee not covered by the total is rejected"""
    lines = [OrderLineItem(vendor_id=VENDOR_A, unit_price=100, quantity=1)]

    with pytest.raises(OrderTotalMismatch):
        compute_vendor_shares(lines, total=100, delivery_fee=20)


def test_check_order_total_returns_line_subtotal():
    lines = [
        OrderLineItem(vendor_id=VENDOR_A, unit_price=250, quantity=2),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=100, quantity=1),
    ]

    assert check_order_total(lines, total=700, delivery_fee=100) == 600


def test_negative_delivery_fee_is_rejected():
    lines = [OrderLineItem(vendor_id=VENDOR_A, unit_price=100, quantity=1)]

    with pytest.raises(OrderTotalMismatch):
        check_order_total(lines, total=90, delivery_fee=-10)


def test_no_lines_produces_no_shares():
    assert compute_vendor_shares([], total=0) == []


def test_no_lines_with_positive_total_is_rejected():
    with pytest.raises(OrderTotalMismatch):
        compute_vendor_shares([], total=1000)


def test_zero_subtotal_vendor_gets_no_share():
    """Test vendor whose lines are all zero-quantity is dropped, including from the delivery split"""
    lines = [
        OrderLineItem(vendor_id=VENDOR_A, unit_price=100, quantity=1),
        OrderLineItem(vendor_id=VENDOR_B, unit_price=100, quantity=0),
    ]

    shares = compute_vendor_shares(lines, total=130, delivery_fee=30)

    assert [(s.vendor_id, s.amount) for s in shares] == [(VENDOR_A, 130)]

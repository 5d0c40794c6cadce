"""POST /v1/orders - Record a paid order and split it among vendors"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from stuvendor.api.auth import require_role
from stuvendor.api.dependencies import get_payment_client, get_request_id, get_split_processor
from stuvendor.api.v1.schemas import CreateOrderRequest, CreateOrderResponse, VendorShareSchema
from stuvendor.config import settings
from stuvendor.domain.exceptions import OrderTotalMismatch, PaymentNotVerified, ProviderError, SplitPaymentFailed
from stuvendor.domain.models import OrderLineItem, Principal, ROLE_CUSTOMER
from stuvendor.domain.payments import check_payment
from stuvendor.domain.splits import check_order_total
from stuvendor.infrastructure.clients.payments import FlutterwaveClient
from stuvendor.infrastructure.database.repositories import OrderRepository
from stuvendor.infrastructure.database.session import get_db
from stuvendor.services.splits import SplitPaymentProcessor

router = APIRouter()

DUPLICATE_ORDER = "Order already recorded for this transaction"


@router.post("/orders", response_model=CreateOrderResponse, status_code=201)
async def create_order(
    request_body: CreateOrderRequest,
    request: Request,
    principal: Principal = Depends(require_role(ROLE_CUSTOMER)),
    db: Session = Depends(get_db),
    client: FlutterwaveClient = Depends(get_payment_client),
    splitter: SplitPaymentProcessor = Depends(get_split_processor),
):
    """
    Save a paid order and credit its vendors.

    Flow:
    1. Check the total is the line subtotal plus the delivery fee (422)
    2. Reject a payment reference that was already recorded (409)
    3. Verify the charge with the provider: successful, same tx_ref,
       same amount and currency (400, or 502 when the provider fails)
    4. Stage order + lines and split the total among vendors; order and
       entries commit together
    """
    request_id = get_request_id(request)
    orders = OrderRepository(db)

    items = [
        OrderLineItem(vendor_id=line.vendor_id, unit_price=line.price, quantity=line.quantity)
        for line in request_body.cart_products
    ]
    try:
        check_order_total(items, request_body.total_amount, request_body.delivery_fee)
    except OrderTotalMismatch as e:
        raise HTTPException(status_code=422, detail=str(e))

    if orders.get_by_transaction_reference(request_body.transaction_id) is not None:
        raise HTTPException(status_code=409, detail=DUPLICATE_ORDER)

    try:
        verification = await client.verify_transaction(request_body.transaction_id)
        check_payment(verification, request_body.tx_ref, request_body.total_amount, settings.transfer_currency)

    except ProviderError as e:
        logging.error(f"Payment verification unavailable: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=502, detail="Could not verify payment with provider")

    except PaymentNotVerified as e:
        logging.warning(f"Payment verification failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail="Payment verification failed")

    try:
        order = orders.create_order(
            account_id=principal.account_id,
            total_amount=request_body.total_amount,
            delivery_fee=request_body.delivery_fee,
            lines=[
                {
                    "product_id": line.product_id,
                    "vendor_id": line.vendor_id,
                    "unit_price": line.price,
                    "quantity": line.quantity,
                }
                for line in request_body.cart_products
            ],
            transaction_reference=request_body.transaction_id,
            tx_ref=request_body.tx_ref,
            status="completed",
            shipping_address=request_body.shipping_address,
            customer_name=request_body.customer_name,
            customer_email=request_body.customer_email,
            customer_phone=request_body.customer_phone,
        )
        entries = splitter.split_payment(order)

    except OrderTotalMismatch as e:
        raise HTTPException(status_code=422, detail=str(e))

    except SplitPaymentFailed as e:
        logging.error(f"Split payment failed: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to process payouts")

    except IntegrityError as e:
        # Another request recorded the same transaction between the check and the flush
        db.rollback()
        logging.warning(f"Duplicate order insert: {e.orig}", extra={"request_id": request_id})
        raise HTTPException(status_code=409, detail=DUPLICATE_ORDER)

    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Order creation error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Failed to create order")

    return CreateOrderResponse(
        order_id=str(order.id),
        status=order.status,
        total_amount=order.total_amount,
        delivery_fee=order.delivery_fee,
        payouts=[VendorShareSchema(vendor_id=str(e.vendor_id), amount=e.amount) for e in entries],
    )

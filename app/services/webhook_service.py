"""
Paystack webhook handlers.

The webhook is a backstop for /verify-payment: it makes sure a purchase is
recorded even if the buyer closed the tab before the browser called us.
Customer e-mails from this path are opt-in (WEBHOOK_NOTIFICATIONS_ENABLED).
Either path sends the confirmation only after claiming it on the purchase
row, so a buyer gets at most one.
"""
import logging
from typing import Any, Callable, Dict, Optional

from sqlmodel import Session

from app.config import settings
from app.constants.products import BOOK_TYPE_PRODUCTS
from app.notifications import PurchaseEvent, dispatch_purchase_event
from app.schemas.paystack_schemas import PaystackEvent
from app.services.analytics_service import record_event
from app.services.download_links import issue_download_link
from app.services.payment_service import (
    PaymentDeclined,
    check_transaction,
    claim_confirmation,
    classify_book_type,
    mark_refunded,
    record_purchase,
    send_purchase_confirmation,
)

logger = logging.getLogger(__name__)


def handle_charge_success(session: Session, event: PaystackEvent) -> None:
    tx = event.transaction()
    book_type = classify_book_type(tx.metadata.product)

    # same acceptance rules as /verify-payment, so both paths agree
    try:
        check_transaction(tx, book_type)
    except PaymentDeclined as e:
        logger.warning(
            "webhook_charge_rejected",
            extra={"reference": tx.reference, "reason": e.details or e.message},
        )
        return

    metadata = tx.metadata
    purchase, created = record_purchase(
        session,
        reference=tx.reference,
        email=tx.customer_email,
        book_type=book_type,
        amount=tx.amount / 100,
        currency=(tx.currency or settings.currency).upper(),
        name=metadata.customer_name or tx.customer.full_name,
        phone=metadata.phone or tx.customer.phone,
        delivery_address=metadata.delivery_address if book_type == "hardcopy" else None,
        source="webhook",
    )

    if created:
        logger.info(
            "webhook_purchase_recorded",
            extra={"reference": tx.reference, "book_type": book_type, "amount": tx.amount / 100},
        )
    else:
        logger.info(f"Webhook: purchase {tx.reference} already recorded")

    # off by default: the confirmation stays unclaimed for /verify-payment
    if not settings.webhook_notifications_enabled:
        return

    if not claim_confirmation(session, purchase):
        return

    product = BOOK_TYPE_PRODUCTS[book_type]
    link = issue_download_link(purchase.email, product) if product else None
    send_purchase_confirmation(purchase, link)


def handle_charge_failed(session: Session, event: PaystackEvent) -> None:
    data = event.data
    reference = data.get("reference")
    email = (data.get("customer") or {}).get("email")
    logger.info("payment_failed", extra={"reference": reference, "email": email})

    record_event(
        session,
        action="payment_failed",
        category="ecommerce",
        label=reference,
        value=(data.get("amount") or 0) / 100,
        metadata={"source": "webhook"},
    )


def _refund_reference(data: Dict[str, Any]) -> Optional[str]:
    transaction = data.get("transaction")
    if isinstance(transaction, dict) and transaction.get("reference"):
        return transaction["reference"]
    return data.get("transaction_reference") or data.get("reference")


def handle_refund(session: Session, event: PaystackEvent) -> None:
    reference = _refund_reference(event.data)
    logger.info(f"Refund event {event.event} for {reference}")

    if event.event != "refund.processed" or not reference:
        return

    purchase = mark_refunded(session, reference)
    if purchase is None:
        return

    dispatch_purchase_event(
        event=PurchaseEvent.REFUND_PROCESSED,
        purchase=purchase,
        notify_user=False,
        extra={
            "admin_template": "admin_emails/refund_processed.html",
            "admin_subject": f"Refund processed – {reference}",
        },
    )


HANDLERS: Dict[str, Callable[[Session, PaystackEvent], None]] = {
    "charge.success": handle_charge_success,
    "charge.failed": handle_charge_failed,
}


def handle_paystack_event(session: Session, event: PaystackEvent) -> None:
    handler = HANDLERS.get(event.event)
    if handler is None and event.event.startswith("refund."):
        handler = handle_refund

    if handler is None:
        logger.info(f"Unhandled webhook event: {event.event}")
        return

    handler(session, event)

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from app.config import settings
from app.constants.products import BOOK_TYPE_PRODUCTS
from app.models.purchase import Purchase
from app.notifications import NotificationResult, PurchaseEvent, dispatch_purchase_event
from app.schemas.payment_schemas import VerifyPaymentSchema
from app.schemas.paystack_schemas import PaystackTransaction
from app.services.download_links import DownloadLink, issue_download_link
from app.services.paystack_client import PaystackClient, PaystackError
from app.utils.clock import utc_now

logger = logging.getLogger(__name__)

# Labels the checkout widget writes into the "product" custom field.
# Matching is exact after trim/lowercase; anything else is ignored and the
# classification falls back to the request body.
PRODUCT_LABELS = {
    "ebook": "ebook",
    "e-book": "ebook",
    "bundle": "bundle",
    "hardcopy": "hardcopy",
    "hardcopy book": "hardcopy",
}


class PaymentDeclined(Exception):
    def __init__(self, message: str = "Payment verification failed", details: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class PaymentConfigurationError(Exception):
    def __init__(self, message: str = "Payment system configuration error"):
        super().__init__(message)
        self.message = message


@dataclass
class PaymentOutcome:
    message: str
    book_type: str
    download_link: Optional[DownloadLink] = None
    email_sent: Optional[bool] = None
    purchase: Optional[Purchase] = None
    duplicate: bool = False

    @property
    def download_url(self) -> Optional[str]:
        return self.download_link.url() if self.download_link else None


def classify_book_type(
    metadata_product: Optional[str],
    client_book_type: Optional[str] = None,
    include_bundle: bool = False,
) -> str:
    if metadata_product:
        label = PRODUCT_LABELS.get(metadata_product.strip().lower())
        if label:
            return label
    if client_book_type in BOOK_TYPE_PRODUCTS:
        return client_book_type
    if include_bundle:
        return "bundle"
    return "ebook"


def price_in_minor_units(book_type: str) -> int:
    if book_type == "hardcopy":
        return settings.hardcopy_price * 100
    return settings.ebook_price * 100


def amount_covers(book_type: str, amount_minor: int) -> bool:
    return amount_minor >= price_in_minor_units(book_type)


# -----------------------------
# Purchase recorder
# -----------------------------

def record_purchase(
    session: Session,
    *,
    reference: str,
    email: str,
    book_type: str,
    amount: float,
    currency: str,
    name: Optional[str] = None,
    phone: Optional[str] = None,
    delivery_address: Optional[str] = None,
    source: str = "verify",
) -> Tuple[Purchase, bool]:
    """
    Insert the purchase for ``reference`` once.

    Returns ``(purchase, created)``. The unique index on ``reference`` is the
    only serialization point between /verify-payment and the webhook: the
    loser of a concurrent insert gets ``created=False`` and the winner's row.
    """

    existing = session.exec(
        select(Purchase).where(Purchase.reference == reference)
    ).first()
    if existing:
        return existing, False

    purchase = Purchase(
        reference=reference,
        email=email,
        name=name,
        phone=phone,
        book_type=book_type,
        amount=amount,
        currency=currency,
        delivery_address=delivery_address,
        source=source,
    )
    session.add(purchase)

    try:
        session.commit()
    except IntegrityError:
        # raced with the other confirmation path
        session.rollback()
        existing = session.exec(
            select(Purchase).where(Purchase.reference == reference)
        ).one()
        return existing, False

    session.refresh(purchase)
    return purchase, True


def mark_refunded(session: Session, reference: str) -> Optional[Purchase]:
    """Flag a purchase refunded. Returns it only when the status changed."""
    purchase = session.exec(
        select(Purchase).where(Purchase.reference == reference)
    ).first()

    if not purchase or purchase.status == "refunded":
        return None

    purchase.status = "refunded"
    purchase.updated_at = utc_now()
    session.add(purchase)
    session.commit()
    session.refresh(purchase)
    return purchase


def claim_confirmation(session: Session, purchase: Purchase) -> bool:
    """
    Atomically take the customer-confirmation duty for ``purchase``.

    Only one caller per reference gets True, whichever path (verify or
    webhook) inserted the row; later callers must not e-mail again.
    """
    now = utc_now()
    result = session.connection().execute(
        update(Purchase)
        .where(Purchase.id == purchase.id, Purchase.confirmation_sent_at.is_(None))
        .values(confirmation_sent_at=now, updated_at=now)
    )
    session.commit()
    session.refresh(purchase)
    return result.rowcount == 1


# -----------------------------
# Notifications
# -----------------------------

def send_purchase_confirmation(
    purchase: Purchase,
    link: Optional[DownloadLink] = None,
) -> NotificationResult:
    return dispatch_purchase_event(
        event=PurchaseEvent.PURCHASE_CONFIRMED,
        purchase=purchase,
        extra={
            "user_template": "user_emails/purchase_confirmation.html",
            "user_subject": "Your purchase of The Path to Purpose",
            "admin_template": "admin_emails/new_purchase.html",
            "admin_subject": f"New {purchase.book_type} purchase – {purchase.reference}",
            "download_url": link.url() if link else None,
            "link_ttl_hours": settings.download_link_ttl_hours,
            "sender_name": settings.mail_sender_name,
            "phone": purchase.phone,
        },
    )


# -----------------------------
# /verify-payment
# -----------------------------

def _simulate_dev_payment(payload: VerifyPaymentSchema) -> PaymentOutcome:
    if not payload.email:
        raise PaymentDeclined("Email is required")

    book_type = classify_book_type(None, payload.book_type, payload.include_bundle)
    product = BOOK_TYPE_PRODUCTS[book_type]

    logger.warning(f"DEV MODE: simulating payment {payload.reference}")
    return PaymentOutcome(
        message="DEV MODE: Payment simulated",
        book_type=book_type,
        download_link=issue_download_link(payload.email, product) if product else None,
        email_sent=False,
    )


def check_transaction(
    tx: PaystackTransaction,
    book_type: str,
    reference: Optional[str] = None,
) -> None:
    """Raise PaymentDeclined unless the gateway's record pays for ``book_type``."""
    if not tx.is_successful:
        raise PaymentDeclined(details=f"Transaction status: {tx.status}")

    if reference is not None and tx.reference != reference:
        logger.error(f"Paystack answered {tx.reference} for {reference}")
        raise PaymentDeclined()

    if tx.currency and tx.currency.upper() != settings.currency.upper():
        logger.warning(f"Currency mismatch on {tx.reference}: {tx.currency}")
        raise PaymentDeclined(details="Unexpected currency")

    if not amount_covers(book_type, tx.amount):
        logger.warning(
            f"Underpaid {book_type} on {tx.reference}: {tx.amount} < {price_in_minor_units(book_type)}"
        )
        raise PaymentDeclined(details="Amount does not match the selected product")


def verify_payment(
    session: Session,
    payload: VerifyPaymentSchema,
    client: Optional[PaystackClient],
) -> PaymentOutcome:
    if client is None:
        if settings.payment_dev_bypass_allowed:
            return _simulate_dev_payment(payload)
        logger.error("Paystack secret key not configured")
        raise PaymentConfigurationError()

    # Ask Paystack, never trust the browser
    try:
        tx = client.verify_transaction(payload.reference)
    except PaystackError as e:
        raise PaymentDeclined(details=e.message)

    metadata = tx.metadata
    book_type = classify_book_type(metadata.product, payload.book_type, payload.include_bundle)
    check_transaction(tx, book_type, payload.reference)

    # Identity comes from Paystack; body fields are display data only
    email = tx.customer_email
    name = payload.name or metadata.customer_name or tx.customer.full_name
    phone = payload.phone or metadata.phone or tx.customer.phone

    delivery_address = None
    if book_type == "hardcopy":
        if payload.delivery_address:
            delivery_address = payload.delivery_address.as_line() or None
        delivery_address = delivery_address or metadata.delivery_address

    product = BOOK_TYPE_PRODUCTS[book_type]
    link = issue_download_link(email, product) if product else None

    logger.info(
        "payment_verified",
        extra={"reference": tx.reference, "book_type": book_type, "amount": tx.amount / 100},
    )

    purchase = None
    should_notify = True
    try:
        purchase, _ = record_purchase(
            session,
            reference=tx.reference,
            email=email,
            book_type=book_type,
            amount=tx.amount / 100,
            currency=(tx.currency or settings.currency).upper(),
            name=name,
            phone=phone,
            delivery_address=delivery_address,
            source="verify",
        )
        should_notify = claim_confirmation(session, purchase)
    except SQLAlchemyError:
        session.rollback()
        logger.exception(f"Failed to record purchase {tx.reference}")

    if not should_notify:
        logger.info(f"Confirmation for {tx.reference} already sent, skipping notification")
        return PaymentOutcome(
            message="Payment already processed",
            book_type=book_type,
            download_link=link,
            email_sent=False,
            purchase=purchase,
            duplicate=True,
        )

    if purchase is None:
        # recorder down: still confirm to the buyer
        purchase = Purchase(
            reference=tx.reference,
            email=email,
            name=name,
            phone=phone,
            book_type=book_type,
            amount=tx.amount / 100,
            currency=(tx.currency or settings.currency).upper(),
            delivery_address=delivery_address,
        )

    result = send_purchase_confirmation(purchase, link)

    message = "Payment verified successfully"
    if not result.user_email_sent:
        message += ". We could not confirm delivery of your confirmation email."

    return PaymentOutcome(
        message=message,
        book_type=book_type,
        download_link=link,
        email_sent=bool(result.user_email_sent),
        purchase=purchase,
    )

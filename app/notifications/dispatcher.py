import logging
from dataclasses import dataclass
from typing import Optional

from app.notifications.rules import NOTIFICATION_RULES
from app.notifications.channels import Channel
from app.notifications.email_handlers import send_user_email, send_admin_email
from app.notifications.events import PurchaseEvent

logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    user_email_sent: Optional[bool] = None   # None: not attempted
    admin_email_sent: Optional[bool] = None


def dispatch_purchase_event(
    *,
    event: PurchaseEvent,
    purchase,
    extra: dict | None = None,
    notify_user: bool = True,
    notify_admin: bool = True,
) -> NotificationResult:
    """
    Central notification dispatcher.

    Handles:
    - customer email
    - admin email

    Best effort: a failed send is logged and reported in the result,
    never raised into the payment flow.
    """

    rules = NOTIFICATION_RULES.get(event, {})
    extra = extra or {}
    result = NotificationResult()

    context = {
        "purchase": purchase,
        "reference": purchase.reference,
        "book_type": purchase.book_type,
        "amount": purchase.amount,
        "currency": purchase.currency,
        "name": purchase.name,
        "email": purchase.email,
        "delivery_address": purchase.delivery_address,
        **extra,
    }

    # -------------------------
    # CUSTOMER EMAIL
    # -------------------------
    if notify_user and rules.get(Channel.EMAIL_USER):
        try:
            result.user_email_sent = send_user_email(
                template=extra["user_template"],
                subject=extra["user_subject"],
                to=purchase.email,
                **context,
            )
        except Exception:
            logger.exception(f"User email failed for {purchase.reference}")
            result.user_email_sent = False

    # -------------------------
    # ADMIN EMAIL
    # -------------------------
    if notify_admin and rules.get(Channel.EMAIL_ADMIN):
        try:
            result.admin_email_sent = send_admin_email(
                template=extra["admin_template"],
                subject=extra["admin_subject"],
                **context,
            )
        except Exception:
            logger.exception(f"Admin email failed for {purchase.reference}")
            result.admin_email_sent = False

    return result

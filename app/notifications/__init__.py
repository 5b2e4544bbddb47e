from .events import PurchaseEvent
from .dispatcher import dispatch_purchase_event, NotificationResult

__all__ = [
    "PurchaseEvent",
    "dispatch_purchase_event",
    "NotificationResult",
]

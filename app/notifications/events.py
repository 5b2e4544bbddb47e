from enum import Enum


class PurchaseEvent(str, Enum):
    PURCHASE_CONFIRMED = "purchase_confirmed"
    REFUND_PROCESSED = "refund_processed"

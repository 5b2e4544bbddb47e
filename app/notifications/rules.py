from app.notifications.events import PurchaseEvent
from app.notifications.channels import Channel


NOTIFICATION_RULES = {

    PurchaseEvent.PURCHASE_CONFIRMED: {
        Channel.EMAIL_USER: True,
        Channel.EMAIL_ADMIN: True,
    },

    PurchaseEvent.REFUND_PROCESSED: {
        Channel.EMAIL_ADMIN: True,
    },

}

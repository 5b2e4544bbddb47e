from app.models.purchase import Purchase
from app.models.download import Download
from app.models.analytics_event import AnalyticsEvent

# add ALL models here

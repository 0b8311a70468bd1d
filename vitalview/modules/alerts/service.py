from pathlib import Path

from vitalview.core.config import settings
from vitalview.modules.alerts.config import load_rules
from vitalview.modules.alerts.directory import PatientDirectory
from vitalview.modules.alerts.dispatcher import AlertDispatcher
from vitalview.modules.alerts.engine import AlertService
from vitalview.modules.alerts.manager import AlertStreamManager
from vitalview.modules.alerts.notifier import Notifier, StreamNotifier, WebhookNotifier
from vitalview.modules.alerts.store import LRUAlertStateStore
from vitalview.modules.alerts.tracker import AlertStateTracker

rules_path = Path(settings.ALERT_RULES_PATH) if settings.ALERT_RULES_PATH else None
rules = load_rules(rules_path, alert_on_recovery=settings.ALERT_ON_RECOVERY)

alert_manager = AlertStreamManager()

notifier: Notifier
if settings.NOTIFY_WEBHOOK_URL:
    notifier = WebhookNotifier(
        url=settings.NOTIFY_WEBHOOK_URL, timeout=settings.NOTIFY_TIMEOUT_SECONDS
    )
else:
    notifier = StreamNotifier(alert_manager)

alert_tracker = AlertStateTracker(
    rules=rules, store=LRUAlertStateStore(capacity=settings.ALERT_STATE_CAPACITY)
)
alert_dispatcher = AlertDispatcher(
    directory=PatientDirectory(),
    notifier=notifier,
    rules=rules,
    recipients=settings.ALERT_RECIPIENTS,
)
alert_service = AlertService(tracker=alert_tracker, dispatcher=alert_dispatcher)

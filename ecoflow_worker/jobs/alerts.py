from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ecoflow_worker.mail.sender import deliver
from ecoflow_worker.mail.templates import ALERT_LOG_TYPES, alert_email, format_number
from ecoflow_worker.utils.datetime import utc_now
from ecoflow_worker.utils.logger import get_logger


BATTERY_LOW = "BATTERY_LOW"
TEMPERATURE_HIGH = "TEMPERATURE_HIGH"
DEVICE_OFFLINE = "DEVICE_OFFLINE"

SEVERITY_CRITICAL = "CRITICAL"
SEVERITY_HIGH = "HIGH"
SEVERITY_MEDIUM = "MEDIUM"

DEFAULT_LOW_BATTERY_THRESHOLD = 20
CRITICAL_BATTERY_LEVEL = 10
# fixed; the per-user temperature setting is not consulted here
HIGH_TEMPERATURE_C = 45
CRITICAL_TEMPERATURE_C = 55
OFFLINE_AFTER = timedelta(minutes=30)

DEDUP_WINDOWS = {
    BATTERY_LOW: timedelta(minutes=60),
    TEMPERATURE_HIGH: timedelta(minutes=60),
    DEVICE_OFFLINE: timedelta(minutes=120),
}


@dataclass(frozen=True)
class AlertCandidate:
    type: str
    severity: str
    title: str
    message: str
    value: float | None = None
    threshold: float | None = None


@dataclass
class AlertSummary:
    devices_checked: int = 0
    alerts_created: int = 0
    errors: list[str] = field(default_factory=list)


def _device_label(device: dict) -> str:
    return device.get("device_name") or device["device_sn"]


def evaluate_reading(device: dict, reading: dict, notification_settings: dict | None, now: datetime) -> list[AlertCandidate]:
    """Apply the three alert rules to a device's latest reading.

    Rules are independent; dedup is left to the caller.
    """
    label = _device_label(device)
    candidates = []

    battery = reading.get("battery_level")
    if notification_settings and notification_settings.get("low_battery") and battery is not None:
        threshold = notification_settings.get("low_battery_threshold")
        if threshold is None:
            threshold = DEFAULT_LOW_BATTERY_THRESHOLD
        if battery < threshold:
            candidates.append(AlertCandidate(
                type=BATTERY_LOW,
                severity=SEVERITY_CRITICAL if battery < CRITICAL_BATTERY_LEVEL else SEVERITY_HIGH,
                title="Low Battery",
                message=f"{label} battery is at {format_number(battery)}%",
                value=battery,
                threshold=threshold,
            ))

    temperature = reading.get("temperature")
    if temperature is not None and temperature > HIGH_TEMPERATURE_C:
        candidates.append(AlertCandidate(
            type=TEMPERATURE_HIGH,
            severity=SEVERITY_CRITICAL if temperature > CRITICAL_TEMPERATURE_C else SEVERITY_HIGH,
            title="High Temperature",
            message=f"{label} temperature is {format_number(temperature)}°C",
            value=temperature,
            threshold=HIGH_TEMPERATURE_C,
        ))

    if reading["recorded_at"] < now - OFFLINE_AFTER:
        candidates.append(AlertCandidate(
            type=DEVICE_OFFLINE,
            severity=SEVERITY_MEDIUM,
            title="Device Offline",
            message=f"{label} hasn't reported data in over 30 minutes",
        ))

    return candidates


class AlertEvaluator:
    def __init__(self, repo, mailer=None, dashboard_url: str = "", sender: str | None = None):
        self._repo = repo
        self._mailer = mailer
        self._dashboard_url = dashboard_url
        self._sender = sender
        self._logger = get_logger(__name__)

    def run(self, now: datetime | None = None) -> AlertSummary:
        now = now or utc_now()
        summary = AlertSummary()

        for device in self._repo.list_active_devices():
            try:
                self._check_device(device, now, summary)
                summary.devices_checked += 1
            except Exception as exc:
                self._logger.exception("alert_check_failed", device_id=device["id"])
                summary.errors.append(f"Device {device['device_sn']}: {exc}")

        self._logger.info(
            "alert_check_complete",
            devices_checked=summary.devices_checked,
            alerts_created=summary.alerts_created,
            error_count=len(summary.errors),
        )
        return summary

    def _check_device(self, device: dict, now: datetime, summary: AlertSummary) -> None:
        reading = self._repo.get_latest_reading(device["id"])
        if not reading:
            return

        notification_settings = self._repo.get_notification_settings(device["user_id"])
        for candidate in evaluate_reading(device, reading, notification_settings, now):
            since = now - DEDUP_WINDOWS[candidate.type]
            if self._repo.find_recent_alert(device["id"], candidate.type, since):
                continue

            self._repo.insert_alert(
                device_id=device["id"],
                alert_type=candidate.type,
                severity=candidate.severity,
                title=candidate.title,
                message=candidate.message,
                created_at=now,
            )
            summary.alerts_created += 1
            self._logger.info(
                "alert_created",
                device_id=device["id"],
                alert_type=candidate.type,
                severity=candidate.severity,
            )
            self._notify(device, candidate, notification_settings, now)

    def _notify(self, device: dict, candidate: AlertCandidate, notification_settings: dict | None, now: datetime) -> None:
        if self._mailer is None or not notification_settings:
            return
        if not (notification_settings.get("email_notifications") and notification_settings.get("device_alerts")):
            return
        user = self._repo.get_user(device["user_id"])
        if not user or not user.get("email"):
            return

        subject, html = alert_email(
            candidate.type,
            device_name=_device_label(device),
            device_sn=device["device_sn"],
            value=candidate.value,
            threshold=candidate.threshold,
            time=now.strftime("%Y-%m-%d %H:%M:%S UTC"),
            dashboard_url=self._dashboard_url,
        )
        try:
            deliver(
                self._mailer,
                self._repo,
                user_id=user["id"],
                notification_type=ALERT_LOG_TYPES[candidate.type],
                to=user["email"],
                subject=subject,
                html=html,
                sender=self._sender,
                device_id=device["id"],
            )
        except Exception:
            # alert row stays even when the email is lost
            self._logger.exception("alert_email_failed", device_id=device["id"], alert_type=candidate.type)

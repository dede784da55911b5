import base64
import json
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ecoflow_worker.db.repository import READING_COLUMNS
from ecoflow_worker.errors import MailError
from ecoflow_worker.mail.sender import deliver
from ecoflow_worker.mail.templates import backup_email
from ecoflow_worker.utils.datetime import isoformat_utc, utc_now
from ecoflow_worker.utils.logger import get_logger


DEFAULT_BACKUP_INTERVAL_HOURS = 24
BACKUP_WINDOW = timedelta(days=7)


@dataclass
class BackupSummary:
    backups_sent: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


def backup_due(settings: dict, now: datetime) -> bool:
    if not settings.get("backup_enabled"):
        return False
    interval = settings.get("backup_interval_hours") or DEFAULT_BACKUP_INTERVAL_HOURS
    last = settings.get("last_backup_at")
    if last is None:
        return True
    return now - last >= timedelta(hours=float(interval))


def build_export(user: dict, devices: list[dict], readings: list[dict], now: datetime) -> dict:
    devices_by_id = {device["id"]: device for device in devices}
    exported_readings = []
    for reading in readings:
        device = devices_by_id[reading["device_id"]]
        row = {
            "deviceName": device.get("device_name"),
            "deviceSn": device["device_sn"],
            "recordedAt": isoformat_utc(reading["recorded_at"]),
        }
        for column in READING_COLUMNS:
            row[_camel(column)] = reading.get(column)
        exported_readings.append(row)

    return {
        "exportedAt": isoformat_utc(now),
        "user": {
            "email": user["email"],
            "firstName": user.get("first_name"),
            "lastName": user.get("last_name"),
        },
        "devices": [
            {
                "deviceName": device.get("device_name"),
                "deviceSn": device["device_sn"],
                "deviceType": device.get("device_type"),
                "isActive": bool(device["is_active"]),
                "registeredAt": isoformat_utc(device.get("created_at")),
            }
            for device in devices
        ],
        "readings": exported_readings,
    }


def _camel(column: str) -> str:
    head, *rest = column.split("_")
    return head + "".join(part.capitalize() for part in rest)


class BackupJob:
    def __init__(self, repo, mailer, dashboard_url: str = "", sender: str | None = None):
        self._repo = repo
        self._mailer = mailer
        self._dashboard_url = dashboard_url
        self._sender = sender
        self._logger = get_logger(__name__)

    def run(self, now: datetime | None = None) -> BackupSummary:
        now = now or utc_now()
        summary = BackupSummary()

        for settings in self._repo.list_retention_settings():
            if not backup_due(settings, now):
                continue

            user_id = settings["user_id"]
            try:
                if self._backup_user(user_id, now):
                    summary.backups_sent += 1
                else:
                    summary.skipped += 1
            except Exception as exc:
                self._logger.exception("backup_user_failed", user_id=user_id)
                summary.errors.append(f"User {user_id}: {exc}")

        self._logger.info(
            "backup_check_complete",
            backups_sent=summary.backups_sent,
            skipped=summary.skipped,
            error_count=len(summary.errors),
        )
        return summary

    def _backup_user(self, user_id: int, now: datetime) -> bool:
        user = self._repo.get_user(user_id)
        if not user or not user.get("email"):
            self._logger.info("backup_skipped", user_id=user_id, reason="no_email")
            return False

        devices = [device for device in self._repo.list_devices_by_user(user_id) if device["is_active"]]
        if not devices:
            self._logger.info("backup_skipped", user_id=user_id, reason="no_devices")
            return False

        readings = []
        for device in devices:
            readings.extend(self._repo.get_readings_in_range(device["id"], now - BACKUP_WINDOW, now))

        export = build_export(user, devices, readings, now)
        content = json.dumps(export, indent=2, ensure_ascii=False, default=str)
        date_str = now.strftime("%Y-%m-%d")

        if readings:
            oldest = min(reading["recorded_at"] for reading in readings).strftime("%Y-%m-%d")
            newest = max(reading["recorded_at"] for reading in readings).strftime("%Y-%m-%d")
            date_range = f"{oldest} – {newest}"
        else:
            date_range = "N/A"

        user_name = " ".join(part for part in (user.get("first_name"), user.get("last_name")) if part) or "there"
        html = backup_email(
            user_name=user_name,
            device_count=len(devices),
            reading_count=len(readings),
            date_range=date_range,
            generated_at=now.strftime("%Y-%m-%d %H:%M:%S UTC"),
            dashboard_url=self._dashboard_url,
        )

        result = deliver(
            self._mailer,
            self._repo,
            user_id=user_id,
            notification_type="data_backup",
            to=user["email"],
            subject=f"\U0001f4e6 EcoFlow Data Backup – {date_str}",
            html=html,
            attachments=[{
                "filename": f"ecoflow-backup-{date_str}.json",
                "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
                "content_type": "application/json",
            }],
            sender=self._sender,
        )
        if not result.ok:
            raise MailError(f"backup email failed: {result.error}")

        self._repo.update_last_backup(user_id, now)
        self._logger.info("backup_sent", user_id=user_id, devices=len(devices), readings=len(readings))
        return True

"""
Shared fixtures: in-memory stand-ins for the MySQL repository, the EcoFlow
cloud client and the mail provider.
"""

from datetime import datetime

import pytest

from ecoflow_worker.db.repository import READING_COLUMNS, RETENTION_DEFAULTS
from ecoflow_worker.errors import NetworkError, PersistenceError
from ecoflow_worker.mail.sender import MailResult


NOW = datetime(2026, 10, 17, 12, 0, 0)


class FakeRepository:
    def __init__(self):
        self.users = {}
        self.devices = {}
        self.readings = []
        self.retention = {}
        self.notification = {}
        self.alerts = []
        self.notification_logs = []
        self.failing_reading_devices = set()

    # seeding helpers

    def add_user(self, user_id, email="owner@example.com", first_name=None, last_name=None):
        self.users[user_id] = {"id": user_id, "email": email, "first_name": first_name, "last_name": last_name}

    def add_device(self, device_id, user_id, device_sn, device_name=None, is_active=True):
        self.devices[device_id] = {
            "id": device_id,
            "user_id": user_id,
            "device_sn": device_sn,
            "device_name": device_name,
            "device_type": "DELTA_2",
            "is_active": is_active,
            "created_at": datetime(2026, 1, 1),
        }

    def add_settings(self, user_id, **overrides):
        row = {
            "user_id": user_id,
            "backup_interval_hours": None,
            "last_backup_at": None,
            "last_cleanup": None,
            "last_collection_at": None,
        }
        row.update(RETENTION_DEFAULTS)
        row.update(overrides)
        self.retention[user_id] = row

    def add_notification_settings(self, user_id, **overrides):
        row = {
            "user_id": user_id,
            "device_alerts": True,
            "low_battery": True,
            "email_notifications": True,
            "low_battery_threshold": 20,
        }
        row.update(overrides)
        self.notification[user_id] = row

    def add_reading(self, device_id, recorded_at, **fields):
        row = {column: None for column in READING_COLUMNS}
        row.update(fields)
        row.update({"device_id": device_id, "recorded_at": recorded_at})
        self.readings.append(row)
        return row

    def alerts_of(self, alert_type):
        return [alert for alert in self.alerts if alert["type"] == alert_type]

    # repository interface

    def get_user(self, user_id):
        return self.users.get(user_id)

    def list_devices_by_user(self, user_id):
        return [dict(device) for device in self.devices.values() if device["user_id"] == user_id]

    def list_active_devices(self):
        return [dict(device) for device in self.devices.values() if device["is_active"]]

    def insert_reading(self, device_id, reading, recorded_at):
        if device_id in self.failing_reading_devices:
            raise PersistenceError("insert failed")
        row = {column: getattr(reading, column) for column in READING_COLUMNS}
        row.update({"device_id": device_id, "raw_data": reading.raw_data, "recorded_at": recorded_at})
        self.readings.append(row)

    def get_latest_reading(self, device_id):
        rows = [row for row in self.readings if row["device_id"] == device_id]
        if not rows:
            return None
        return dict(max(rows, key=lambda row: row["recorded_at"]))

    def get_readings_in_range(self, device_id, start, end):
        rows = [
            dict(row) for row in self.readings
            if row["device_id"] == device_id and start <= row["recorded_at"] <= end
        ]
        return sorted(rows, key=lambda row: row["recorded_at"])

    def delete_readings_before(self, device_id, cutoff):
        keep = [row for row in self.readings if not (row["device_id"] == device_id and row["recorded_at"] < cutoff)]
        deleted = len(self.readings) - len(keep)
        self.readings = keep
        return deleted

    def list_retention_settings(self):
        return [dict(row) for row in self.retention.values()]

    def _upsert(self, user_id, column, value):
        if user_id not in self.retention:
            self.add_settings(user_id)
        self.retention[user_id][column] = value

    def update_last_collection(self, user_id, timestamp):
        self._upsert(user_id, "last_collection_at", timestamp)

    def update_last_backup(self, user_id, timestamp):
        self._upsert(user_id, "last_backup_at", timestamp)

    def update_last_cleanup(self, user_id, timestamp):
        self._upsert(user_id, "last_cleanup", timestamp)

    def get_notification_settings(self, user_id):
        return self.notification.get(user_id)

    def find_recent_alert(self, device_id, alert_type, since):
        for alert in self.alerts:
            if alert["device_id"] == device_id and alert["type"] == alert_type and alert["created_at"] >= since:
                return alert
        return None

    def insert_alert(self, device_id, alert_type, severity, title, message, created_at):
        self.alerts.append({
            "device_id": device_id,
            "type": alert_type,
            "severity": severity,
            "title": title,
            "message": message,
            "is_read": False,
            "created_at": created_at,
        })

    def delete_alerts_before(self, device_id, cutoff):
        keep = [alert for alert in self.alerts if not (alert["device_id"] == device_id and alert["created_at"] < cutoff)]
        deleted = len(self.alerts) - len(keep)
        self.alerts = keep
        return deleted

    def insert_notification_log(self, user_id, notification_type, status, sent_at, email=None,
                                device_id=None, subject=None, message_id=None, error_message=None):
        self.notification_logs.append({
            "user_id": user_id,
            "type": notification_type,
            "status": status,
            "sent_at": sent_at,
            "email": email,
            "device_id": device_id,
            "subject": subject,
            "message_id": message_id,
            "error_message": error_message,
        })

    def delete_notification_logs_before(self, user_id, cutoff):
        keep = [log for log in self.notification_logs if not (log["user_id"] == user_id and log["sent_at"] < cutoff)]
        deleted = len(self.notification_logs) - len(keep)
        self.notification_logs = keep
        return deleted


class FakeCloudClient:
    def __init__(self, quotas=None, failures=None):
        self.quotas = quotas or {}
        self.failures = failures or {}
        self.calls = []

    def get_device_quota(self, serial):
        self.calls.append(serial)
        if serial in self.failures:
            raise self.failures[serial]
        return self.quotas.get(serial)


class FakeMailer:
    def __init__(self, error=None):
        self.error = error
        self.sent = []

    def send(self, to, subject, html, attachments=None, sender=None):
        self.sent.append({"to": to, "subject": subject, "html": html, "attachments": attachments, "sender": sender})
        if self.error:
            return MailResult(error=self.error)
        return MailResult(message_id=f"msg-{len(self.sent)}")


@pytest.fixture
def repo():
    return FakeRepository()


@pytest.fixture
def cloud():
    return FakeCloudClient()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def network_error():
    return NetworkError("EcoFlow API HTTP 502: Bad Gateway", status_code=502)

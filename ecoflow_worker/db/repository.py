import json
from datetime import datetime

from ecoflow_worker.db.connection import get_connection
from ecoflow_worker.processors.quota import Reading


READING_COLUMNS = (
    "battery_level",
    "input_watts",
    "ac_input_watts",
    "dc_input_watts",
    "charging_type",
    "output_watts",
    "ac_output_watts",
    "dc_output_watts",
    "usb_output_watts",
    "remaining_time",
    "temperature",
    "status",
)

RETENTION_DEFAULTS = {
    "retention_period_days": 90,
    "auto_cleanup_enabled": 1,
    "backup_enabled": 0,
    "collection_interval_minutes": 5,
}


class Repository:
    def __init__(self, db_config: dict | None = None):
        self._db_config = db_config

    def _fetchall(self, query: str, params: tuple = ()) -> list[dict]:
        with get_connection(self._db_config) as conn:
            with conn.cursor() as cursor:
                cursor.execute(query, params)
                return list(cursor.fetchall())

    def _fetchone(self, query: str, params: tuple = ()) -> dict | None:
        with get_connection(self._db_config) as conn:
            with conn.cursor() as cursor:
                cursor.execute(query, params)
                return cursor.fetchone()

    def _execute(self, query: str, params: tuple = ()) -> int:
        with get_connection(self._db_config) as conn:
            with conn.cursor() as cursor:
                cursor.execute(query, params)
                return cursor.rowcount

    # users / devices

    def get_user(self, user_id: int) -> dict | None:
        return self._fetchone(
            "SELECT id, email, first_name, last_name FROM users WHERE id = %s",
            (user_id,),
        )

    def list_devices_by_user(self, user_id: int) -> list[dict]:
        query = """
            SELECT id, user_id, device_sn, device_name, device_type, is_active, created_at
            FROM devices
            WHERE user_id = %s
        """
        return self._fetchall(query, (user_id,))

    def list_active_devices(self) -> list[dict]:
        query = """
            SELECT id, user_id, device_sn, device_name, device_type, is_active, created_at
            FROM devices
            WHERE is_active = 1
        """
        return self._fetchall(query)

    # readings

    def insert_reading(self, device_id: int, reading: Reading, recorded_at: datetime) -> None:
        columns = ("device_id",) + READING_COLUMNS + ("raw_data", "recorded_at")
        values = (
            (device_id,)
            + tuple(getattr(reading, column) for column in READING_COLUMNS)
            + (json.dumps(dict(reading.raw_data), ensure_ascii=False), recorded_at)
        )
        query = f"""
            INSERT INTO device_readings ({", ".join(columns)})
            VALUES ({", ".join(["%s"] * len(columns))})
        """
        self._execute(query, values)

    def get_latest_reading(self, device_id: int) -> dict | None:
        query = f"""
            SELECT id, device_id, {", ".join(READING_COLUMNS)}, recorded_at
            FROM device_readings
            WHERE device_id = %s
            ORDER BY recorded_at DESC
            LIMIT 1
        """
        return self._fetchone(query, (device_id,))

    def get_readings_in_range(self, device_id: int, start: datetime, end: datetime) -> list[dict]:
        query = f"""
            SELECT device_id, {", ".join(READING_COLUMNS)}, recorded_at
            FROM device_readings
            WHERE device_id = %s AND recorded_at >= %s AND recorded_at <= %s
            ORDER BY recorded_at ASC
        """
        return self._fetchall(query, (device_id, start, end))

    def delete_readings_before(self, device_id: int, cutoff: datetime) -> int:
        return self._execute(
            "DELETE FROM device_readings WHERE device_id = %s AND recorded_at < %s",
            (device_id, cutoff),
        )

    # settings

    def list_retention_settings(self) -> list[dict]:
        query = """
            SELECT id, user_id, retention_period_days, auto_cleanup_enabled,
                   backup_enabled, backup_interval_hours, last_backup_at,
                   collection_interval_minutes, last_cleanup, last_collection_at
            FROM data_retention_settings
        """
        return self._fetchall(query)

    def _upsert_retention_field(self, user_id: int, column: str, value: datetime) -> None:
        update_query = f"UPDATE data_retention_settings SET {column} = %s WHERE user_id = %s"
        insert_columns = ("user_id",) + tuple(RETENTION_DEFAULTS) + (column,)
        insert_query = f"""
            INSERT INTO data_retention_settings ({", ".join(insert_columns)})
            VALUES ({", ".join(["%s"] * len(insert_columns))})
        """
        with get_connection(self._db_config) as conn:
            with conn.cursor() as cursor:
                cursor.execute("SELECT id FROM data_retention_settings WHERE user_id = %s", (user_id,))
                if cursor.fetchone():
                    cursor.execute(update_query, (value, user_id))
                else:
                    cursor.execute(
                        insert_query,
                        (user_id,) + tuple(RETENTION_DEFAULTS.values()) + (value,),
                    )

    def update_last_collection(self, user_id: int, timestamp: datetime) -> None:
        self._upsert_retention_field(user_id, "last_collection_at", timestamp)

    def update_last_backup(self, user_id: int, timestamp: datetime) -> None:
        self._upsert_retention_field(user_id, "last_backup_at", timestamp)

    def update_last_cleanup(self, user_id: int, timestamp: datetime) -> None:
        self._upsert_retention_field(user_id, "last_cleanup", timestamp)

    def get_notification_settings(self, user_id: int) -> dict | None:
        query = """
            SELECT user_id, device_alerts, low_battery, email_notifications,
                   low_battery_threshold
            FROM notification_settings
            WHERE user_id = %s
            LIMIT 1
        """
        return self._fetchone(query, (user_id,))

    # alerts

    def find_recent_alert(self, device_id: int, alert_type: str, since: datetime) -> dict | None:
        query = """
            SELECT id, type, created_at
            FROM alerts
            WHERE device_id = %s AND type = %s AND created_at >= %s
            ORDER BY created_at DESC
            LIMIT 1
        """
        return self._fetchone(query, (device_id, alert_type, since))

    def insert_alert(
        self,
        device_id: int,
        alert_type: str,
        severity: str,
        title: str,
        message: str,
        created_at: datetime,
    ) -> None:
        query = """
            INSERT INTO alerts
                (device_id, type, title, message, severity, is_read, created_at)
            VALUES
                (%s, %s, %s, %s, %s, 0, %s)
        """
        self._execute(query, (device_id, alert_type, title, message, severity, created_at))

    def delete_alerts_before(self, device_id: int, cutoff: datetime) -> int:
        return self._execute(
            "DELETE FROM alerts WHERE device_id = %s AND created_at < %s",
            (device_id, cutoff),
        )

    # notification log

    def insert_notification_log(
        self,
        user_id: int,
        notification_type: str,
        status: str,
        sent_at: datetime,
        email: str | None = None,
        device_id: int | None = None,
        subject: str | None = None,
        message_id: str | None = None,
        error_message: str | None = None,
    ) -> None:
        query = """
            INSERT INTO notification_logs
                (user_id, type, email, device_id, subject, message_id, status, error_message, sent_at)
            VALUES
                (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        self._execute(
            query,
            (user_id, notification_type, email, device_id, subject, message_id, status, error_message, sent_at),
        )

    def delete_notification_logs_before(self, user_id: int, cutoff: datetime) -> int:
        return self._execute(
            "DELETE FROM notification_logs WHERE user_id = %s AND sent_at < %s",
            (user_id, cutoff),
        )

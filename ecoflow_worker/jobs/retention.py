from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ecoflow_worker.utils.datetime import utc_now
from ecoflow_worker.utils.logger import get_logger


DEFAULT_RETENTION_DAYS = 90


@dataclass
class CleanupSummary:
    users_cleaned: int = 0
    total_deleted: int = 0
    errors: list[str] = field(default_factory=list)


class RetentionJob:
    """Prunes readings, alerts and notification logs past each user's retention period."""

    def __init__(self, repo):
        self._repo = repo
        self._logger = get_logger(__name__)

    def run(self, now: datetime | None = None) -> CleanupSummary:
        now = now or utc_now()
        summary = CleanupSummary()

        for settings in self._repo.list_retention_settings():
            if not settings.get("auto_cleanup_enabled"):
                continue

            user_id = settings["user_id"]
            days = settings.get("retention_period_days") or DEFAULT_RETENTION_DAYS
            cutoff = now - timedelta(days=float(days))
            try:
                summary.total_deleted += self._cleanup_user(user_id, cutoff)
                self._repo.update_last_cleanup(user_id, now)
                summary.users_cleaned += 1
            except Exception as exc:
                self._logger.exception("cleanup_user_failed", user_id=user_id)
                summary.errors.append(f"User {user_id}: {exc}")

        self._logger.info(
            "cleanup_complete",
            users_cleaned=summary.users_cleaned,
            total_deleted=summary.total_deleted,
            error_count=len(summary.errors),
        )
        return summary

    def _cleanup_user(self, user_id: int, cutoff: datetime) -> int:
        deleted = 0
        for device in self._repo.list_devices_by_user(user_id):
            deleted += self._repo.delete_readings_before(device["id"], cutoff)
            deleted += self._repo.delete_alerts_before(device["id"], cutoff)
        deleted += self._repo.delete_notification_logs_before(user_id, cutoff)
        return deleted

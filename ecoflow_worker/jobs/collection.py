from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ecoflow_worker.errors import NormalizationError, PersistenceError
from ecoflow_worker.processors.quota import normalize_quota
from ecoflow_worker.utils.datetime import utc_now
from ecoflow_worker.utils.logger import get_logger


DEFAULT_COLLECTION_INTERVAL_MINUTES = 5


@dataclass
class CollectionSummary:
    users_collected: int = 0
    total_readings: int = 0
    errors: list[str] = field(default_factory=list)


def collection_due(settings: dict, now: datetime) -> bool:
    interval = settings.get("collection_interval_minutes") or DEFAULT_COLLECTION_INTERVAL_MINUTES
    last = settings.get("last_collection_at")
    if last is None:
        return True
    return now - last >= timedelta(minutes=float(interval))


class CollectionScheduler:
    """Pulls a quota for every active device of every due user.

    A user is due once ``collection_interval_minutes`` have passed since
    ``last_collection_at``. The watermark moves after the device loop even
    when some devices failed, so a flaky device cannot make the user's whole
    fleet hammer the cloud API every tick.
    """

    def __init__(self, repo, client):
        self._repo = repo
        self._client = client
        self._logger = get_logger(__name__)

    def run(self, now: datetime | None = None) -> CollectionSummary:
        now = now or utc_now()
        summary = CollectionSummary()

        for settings in self._repo.list_retention_settings():
            if not collection_due(settings, now):
                continue

            user_id = settings["user_id"]
            try:
                self._collect_user(user_id, now, summary)
                self._repo.update_last_collection(user_id, now)
                summary.users_collected += 1
            except Exception as exc:
                self._logger.exception("collection_user_failed", user_id=user_id)
                summary.errors.append(f"User {user_id}: {exc}")

        self._logger.info(
            "collection_complete",
            users_collected=summary.users_collected,
            total_readings=summary.total_readings,
            error_count=len(summary.errors),
        )
        return summary

    def _collect_user(self, user_id: int, now: datetime, summary: CollectionSummary) -> None:
        # readings are counted as they are written so a later failure keeps them in the total
        for device in self._repo.list_devices_by_user(user_id):
            if not device["is_active"]:
                continue
            try:
                if self._collect_device(device, now):
                    summary.total_readings += 1
            except PersistenceError:
                raise
            except Exception as exc:
                self._logger.warning(
                    "collection_device_failed",
                    user_id=user_id,
                    device_sn=device["device_sn"],
                    error=str(exc),
                )
                summary.errors.append(f"Device {device['device_sn']}: {exc}")

    def _collect_device(self, device: dict, now: datetime) -> bool:
        quota = self._client.get_device_quota(device["device_sn"])
        try:
            reading = normalize_quota(quota)
        except NormalizationError:
            self._logger.info("collection_quota_empty", device_sn=device["device_sn"])
            return False

        self._repo.insert_reading(device["id"], reading, now)
        return True

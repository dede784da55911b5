from datetime import datetime
from pydantic import BaseModel
from typing import Optional, List

class CollectionSummary(BaseModel):
    users_collected: int
    total_readings: int
    errors: List[str]

class AlertSummary(BaseModel):
    devices_checked: int
    alerts_created: int
    errors: List[str]

class BackupSummary(BaseModel):
    backups_sent: int
    skipped: int
    errors: List[str]

class CleanupSummary(BaseModel):
    users_cleaned: int
    total_deleted: int
    errors: List[str]

class UserScheduleStatus(BaseModel):
    user_id: int
    collection_interval_minutes: float
    last_collection_at: Optional[datetime] = None
    collection_due: bool
    backup_enabled: bool
    backup_interval_hours: Optional[float] = None
    last_backup_at: Optional[datetime] = None
    backup_due: bool
    last_cleanup: Optional[datetime] = None

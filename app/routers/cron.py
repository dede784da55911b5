from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from app.core.database import get_db
from app.core.deps import get_worker, verify_cron_secret
from app.models.settings import DataRetentionSettings
from app.schemas.cron import AlertSummary, BackupSummary, CleanupSummary, CollectionSummary, UserScheduleStatus
from app.schemas.response import ApiResponse
from ecoflow_worker.jobs.backup import backup_due
from ecoflow_worker.jobs.collection import DEFAULT_COLLECTION_INTERVAL_MINUTES, collection_due
from ecoflow_worker.main import Worker
from ecoflow_worker.utils.datetime import utc_now

router = APIRouter(
    prefix="/api/cron",
    tags=["Cron"],
    dependencies=[Depends(verify_cron_secret)]
)

@router.get("/collect-readings", response_model=ApiResponse[CollectionSummary])
def collect_readings(worker: Worker = Depends(get_worker)):
    return {
        "code": 200,
        "message": "Collection complete",
        "data": worker.collect_all_user_readings()
    }

@router.get("/check-alerts", response_model=ApiResponse[AlertSummary])
def check_alerts(worker: Worker = Depends(get_worker)):
    return {
        "code": 200,
        "message": "Alert check complete",
        "data": worker.check_device_alerts()
    }

@router.get("/run-backups", response_model=ApiResponse[BackupSummary])
def run_backups(worker: Worker = Depends(get_worker)):
    return {
        "code": 200,
        "message": "Backup check complete",
        "data": worker.check_and_run_backups()
    }

@router.get("/cleanup", response_model=ApiResponse[CleanupSummary])
def cleanup(worker: Worker = Depends(get_worker)):
    return {
        "code": 200,
        "message": "Cleanup complete",
        "data": worker.cleanup_old_readings()
    }

@router.get("/status", response_model=ApiResponse[List[UserScheduleStatus]])
def schedule_status(db: Session = Depends(get_db)):
    now = utc_now()
    rows = db.query(DataRetentionSettings).order_by(DataRetentionSettings.user_id).all()

    data = []
    for row in rows:
        settings = {
            "collection_interval_minutes": row.collection_interval_minutes,
            "last_collection_at": row.last_collection_at,
            "backup_enabled": row.backup_enabled,
            "backup_interval_hours": row.backup_interval_hours,
            "last_backup_at": row.last_backup_at,
        }
        data.append({
            "user_id": row.user_id,
            "collection_interval_minutes": row.collection_interval_minutes or DEFAULT_COLLECTION_INTERVAL_MINUTES,
            "last_collection_at": row.last_collection_at,
            "collection_due": collection_due(settings, now),
            "backup_enabled": bool(row.backup_enabled),
            "backup_interval_hours": row.backup_interval_hours,
            "last_backup_at": row.last_backup_at,
            "backup_due": backup_due(settings, now),
            "last_cleanup": row.last_cleanup,
        })

    return {
        "code": 200,
        "message": "Schedule status retrieved",
        "data": data
    }

import hmac
import os

from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer

from ecoflow_worker.config import WorkerConfig
from ecoflow_worker.main import Worker

security = HTTPBearer(auto_error=False)


def verify_cron_secret(token = Depends(security)):
    expected = os.getenv("CRON_SECRET")
    if not expected or token is None or not hmac.compare_digest(token.credentials, expected):
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_worker() -> Worker:
    return Worker(WorkerConfig.from_env())

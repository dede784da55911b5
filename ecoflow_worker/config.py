import os
from dataclasses import dataclass

from dotenv import load_dotenv

from ecoflow_worker.errors import ConfigError


load_dotenv()

DEFAULT_API_URL = "https://api-e.ecoflow.com"
DEFAULT_APP_URL = "https://my-ecoflow.vercel.app"


@dataclass(frozen=True)
class WorkerConfig:
    ecoflow_access_key: str | None = None
    ecoflow_secret_key: str | None = None
    ecoflow_api_url: str = DEFAULT_API_URL
    request_timeout: float = 30.0
    resend_api_key: str | None = None
    backup_sender: str = "EcoFlow Dashboard <backup@devrunor.com>"
    alert_sender: str = "EcoFlow Dashboard <alerts@devrunor.com>"
    app_url: str = DEFAULT_APP_URL

    @classmethod
    def from_env(cls) -> "WorkerConfig":
        return cls(
            ecoflow_access_key=os.getenv("ECOFLOW_ACCESS_KEY") or None,
            ecoflow_secret_key=os.getenv("ECOFLOW_SECRET_KEY") or None,
            ecoflow_api_url=os.getenv("ECOFLOW_API_URL", DEFAULT_API_URL).rstrip("/"),
            request_timeout=float(os.getenv("ECOFLOW_TIMEOUT_SECONDS", "30")),
            resend_api_key=os.getenv("RESEND_API_KEY") or None,
            backup_sender=os.getenv("BACKUP_SENDER", cls.backup_sender),
            alert_sender=os.getenv("ALERT_SENDER", cls.alert_sender),
            app_url=os.getenv("APP_URL", DEFAULT_APP_URL).rstrip("/"),
        )

    def require_device_cloud(self) -> tuple[str, str]:
        if not self.ecoflow_access_key or not self.ecoflow_secret_key:
            raise ConfigError("EcoFlow API credentials not configured")
        return self.ecoflow_access_key, self.ecoflow_secret_key

    def require_mail(self) -> str:
        if not self.resend_api_key:
            raise ConfigError("RESEND_API_KEY not set")
        return self.resend_api_key

from dataclasses import dataclass

import requests

from ecoflow_worker.config import WorkerConfig
from ecoflow_worker.utils.datetime import utc_now
from ecoflow_worker.utils.logger import get_logger


RESEND_URL = "https://api.resend.com/emails"


@dataclass(frozen=True)
class MailResult:
    message_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ResendMailer:
    def __init__(
        self,
        api_key: str,
        default_sender: str,
        timeout: float = 20.0,
        session: requests.Session | None = None,
    ):
        self._api_key = api_key
        self._default_sender = default_sender
        self._timeout = timeout
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config: WorkerConfig) -> "ResendMailer":
        return cls(config.require_mail(), config.alert_sender)

    def send(
        self,
        to: str,
        subject: str,
        html: str,
        attachments: list[dict] | None = None,
        sender: str | None = None,
    ) -> MailResult:
        body = {
            "from": sender or self._default_sender,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if attachments:
            body["attachments"] = attachments

        try:
            response = self._session.post(
                RESEND_URL,
                headers={"Authorization": f"Bearer {self._api_key}"},
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            return MailResult(error=str(exc))

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if not response.ok:
            return MailResult(error=payload.get("message") or f"HTTP {response.status_code}")
        return MailResult(message_id=payload.get("id"))


def deliver(
    mailer,
    repo,
    user_id: int,
    notification_type: str,
    to: str,
    subject: str,
    html: str,
    attachments: list[dict] | None = None,
    sender: str | None = None,
    device_id: int | None = None,
) -> MailResult:
    """Send one email and record the outcome in the notification log."""
    logger = get_logger(__name__)
    try:
        result = mailer.send(to, subject, html, attachments=attachments, sender=sender)
    except Exception as exc:
        logger.exception("mail_send_failed", user_id=user_id, notification_type=notification_type)
        result = MailResult(error=str(exc) or exc.__class__.__name__)

    repo.insert_notification_log(
        user_id=user_id,
        notification_type=notification_type,
        status="sent" if result.ok else "failed",
        sent_at=utc_now(),
        email=to,
        device_id=device_id,
        subject=subject,
        message_id=result.message_id,
        error_message=result.error,
    )
    if not result.ok:
        logger.warning("mail_rejected", user_id=user_id, notification_type=notification_type, error=result.error)
    return result

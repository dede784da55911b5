import argparse
import sys
import time
from dataclasses import asdict
from datetime import timedelta

from ecoflow_worker.cloud.client import DeviceCloudClient
from ecoflow_worker.config import WorkerConfig
from ecoflow_worker.db.repository import Repository
from ecoflow_worker.errors import ConfigError
from ecoflow_worker.jobs.alerts import AlertEvaluator
from ecoflow_worker.jobs.backup import BackupJob
from ecoflow_worker.jobs.collection import CollectionScheduler
from ecoflow_worker.jobs.retention import RetentionJob
from ecoflow_worker.mail.sender import ResendMailer
from ecoflow_worker.utils.datetime import utc_now
from ecoflow_worker.utils.logger import get_logger


# job name -> tick interval for the built-in loop
SCHEDULE = {
    "collect": timedelta(minutes=1),
    "alerts": timedelta(minutes=15),
    "backup": timedelta(hours=1),
    "cleanup": timedelta(hours=24),
}


class Worker:
    def __init__(self, config: WorkerConfig, repo=None, client=None, mailer=None):
        self._config = config
        self._repo = repo or Repository()
        self._client = client
        self._mailer = mailer
        self._logger = get_logger(__name__)

    def _cloud_client(self):
        if self._client is None:
            self._client = DeviceCloudClient.from_config(self._config)
        return self._client

    def _mail(self, required: bool):
        if self._mailer is None and (required or self._config.resend_api_key):
            self._mailer = ResendMailer.from_config(self._config)
        return self._mailer

    def collect_all_user_readings(self) -> dict:
        scheduler = CollectionScheduler(self._repo, self._cloud_client())
        return asdict(scheduler.run())

    def check_device_alerts(self) -> dict:
        evaluator = AlertEvaluator(
            self._repo,
            mailer=self._mail(required=False),
            dashboard_url=self._config.app_url,
            sender=self._config.alert_sender,
        )
        return asdict(evaluator.run())

    def check_and_run_backups(self) -> dict:
        job = BackupJob(
            self._repo,
            self._mail(required=True),
            dashboard_url=self._config.app_url,
            sender=self._config.backup_sender,
        )
        return asdict(job.run())

    def cleanup_old_readings(self) -> dict:
        return asdict(RetentionJob(self._repo).run())

    def run(self, job: str) -> dict:
        handlers = {
            "collect": self.collect_all_user_readings,
            "alerts": self.check_device_alerts,
            "backup": self.check_and_run_backups,
            "cleanup": self.cleanup_old_readings,
        }
        self._logger.info("job_starting", job=job)
        result = handlers[job]()
        self._logger.info("job_finished", job=job, result=result)
        return result

    def run_forever(self, poll_seconds: float = 5.0) -> None:
        self._logger.info("worker_loop_starting")
        next_run = {job: utc_now() for job in SCHEDULE}
        while True:
            now = utc_now()
            for job, interval in SCHEDULE.items():
                if now < next_run[job]:
                    continue
                next_run[job] = now + interval
                try:
                    self.run(job)
                except ConfigError as exc:
                    self._logger.error("job_config_missing", job=job, error=str(exc))
                except Exception:
                    self._logger.exception("job_failed", job=job)
            time.sleep(poll_seconds)


def collect_all_user_readings(config: WorkerConfig | None = None) -> dict:
    return Worker(config or WorkerConfig.from_env()).collect_all_user_readings()


def check_device_alerts(config: WorkerConfig | None = None) -> dict:
    return Worker(config or WorkerConfig.from_env()).check_device_alerts()


def check_and_run_backups(config: WorkerConfig | None = None) -> dict:
    return Worker(config or WorkerConfig.from_env()).check_and_run_backups()


def cleanup_old_readings(config: WorkerConfig | None = None) -> dict:
    return Worker(config or WorkerConfig.from_env()).cleanup_old_readings()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="ecoflow-worker", description="EcoFlow telemetry worker")
    parser.add_argument("job", choices=sorted(SCHEDULE) + ["loop"])
    args = parser.parse_args(argv)

    logger = get_logger(__name__)
    worker = Worker(WorkerConfig.from_env())
    try:
        if args.job == "loop":
            worker.run_forever()
        else:
            worker.run(args.job)
    except ConfigError as exc:
        logger.error("worker_config_missing", error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

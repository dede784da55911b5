import pytest

from conftest import FakeCloudClient, FakeMailer
from ecoflow_worker import main as worker_main
from ecoflow_worker.config import WorkerConfig
from ecoflow_worker.errors import ConfigError
from ecoflow_worker.main import Worker


def test_collection_without_credentials_is_a_config_error(repo):
    worker = Worker(WorkerConfig(), repo=repo)

    with pytest.raises(ConfigError, match="EcoFlow API credentials not configured"):
        worker.collect_all_user_readings()


def test_backup_without_mail_key_is_a_config_error(repo):
    with pytest.raises(ConfigError):
        Worker(WorkerConfig(), repo=repo).check_and_run_backups()


def test_alerts_run_without_a_mailer(repo):
    result = Worker(WorkerConfig(), repo=repo).check_device_alerts()

    assert result == {"devices_checked": 0, "alerts_created": 0, "errors": []}


def test_run_dispatches_to_jobs(repo):
    repo.add_user(1)
    repo.add_settings(1)
    repo.add_device(10, 1, "SN-10")
    cloud = FakeCloudClient({"SN-10": {"bms_bmsStatus.soc": 50}})
    worker = Worker(WorkerConfig(), repo=repo, client=cloud, mailer=FakeMailer())

    assert worker.run("collect")["total_readings"] == 1
    assert worker.run("cleanup")["users_cleaned"] == 1
    assert worker.run("backup") == {"backups_sent": 0, "skipped": 0, "errors": []}


def test_main_returns_nonzero_on_missing_config(monkeypatch, repo):
    monkeypatch.setattr(worker_main.WorkerConfig, "from_env", classmethod(lambda cls: WorkerConfig()))
    monkeypatch.setattr(worker_main, "Repository", lambda: repo)

    assert worker_main.main(["collect"]) == 1
    assert worker_main.main(["cleanup"]) == 0

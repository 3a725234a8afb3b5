import pytest


@pytest.fixture(autouse=True)
def _isolated_logs(tmp_path, monkeypatch):
    """Keep gate log files out of the working tree."""
    logs_dir = tmp_path / "gate-logs"
    monkeypatch.setenv("DEVGATE_LOGS_DIR", str(logs_dir))
    monkeypatch.delenv("DEVGATE_BASE_BRANCH", raising=False)
    return logs_dir

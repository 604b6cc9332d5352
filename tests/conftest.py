import pytest


@pytest.fixture(autouse=True)
def _isolated_job_settings(tmp_path, monkeypatch):
    # keep any job_settings.ini on the developer machine out of the tests
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("JOB_SETTINGS_INI", str(tmp_path / "missing_job_settings.ini"))

# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from roster_import.logging.init import reset_logging
from roster_import.services.api_client import ImportClient
from tests.helpers import ROSTER_HEADER, FakeBackend, make_excel


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        monkeypatch.delenv("ROSTER_BACKEND_URL", raising=False)
        monkeypatch.delenv("ROSTER_ACCESS_TOKEN", raising=False)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """backend_url: http://backend.test
page_size: 10
undo_window_seconds: 60
request_timeout: null
error_log_dir: ./logs
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def student_roster(temp_workdir: Path) -> Path:
    return make_excel(
        temp_workdir / "data" / "students.xlsx",
        [
            ROSTER_HEADER,
            ["นาย", "สมชาย", "ใจดี", "somchai@nu.ac.th", "student", "google", "12345678"],
            ["นางสาว", "สมหญิง", "รักเรียน", "somying@nu.ac.th", "student", "google", "23456789"],
            ["นาย", "มานะ", "ขยัน", "mana@nu.ac.th", "student", "google", "34567890"],
        ],
    )


@pytest.fixture()
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture()
def make_client(backend: FakeBackend) -> Callable[..., ImportClient]:
    def _factory(*_args, **_kwargs) -> ImportClient:
        return ImportClient("http://backend.test", transport=backend.transport)

    return _factory

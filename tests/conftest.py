import pathlib
import sys

import pytest
from pydantic import AnyHttpUrl, SecretStr

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
TESTS_DIR = PROJECT_ROOT / "tests"
for path in (SRC_DIR, TESTS_DIR):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from fakes import METADATA_LIST, TASK_LIST, FakeListStore  # noqa: E402
from task_manager.config import Settings  # noqa: E402
from task_manager.tasks.service import TaskService  # noqa: E402


def make_settings(**overrides) -> Settings:
    values = {
        "sharepoint_site_url": AnyHttpUrl("https://contoso.sharepoint.com/sites/Team"),
        "sharepoint_access_token": SecretStr("test-token"),
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(
        logging_settings_path=tmp_path / "logging.conf",
        log_dir=tmp_path / "logs",
    )


@pytest.fixture
def store() -> FakeListStore:
    store = FakeListStore()
    store.add_priority(1, "High")
    store.add_priority(2, "Medium")
    store.add_priority(3, "Low")
    return store


@pytest.fixture
def service(store: FakeListStore) -> TaskService:
    return TaskService(store, task_list=TASK_LIST, metadata_list=METADATA_LIST)  # type: ignore[arg-type]

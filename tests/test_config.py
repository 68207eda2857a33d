import pytest
from pydantic import ValidationError

from task_manager.config import Settings

SITE = "https://contoso.sharepoint.com/sites/Team/"


def _settings(**overrides) -> Settings:
    return Settings(
        sharepoint_site_url=SITE,
        sharepoint_access_token="test-token",
        **overrides,
    )


def test_defaults_and_site_url() -> None:
    settings = _settings()

    assert settings.site_url == "https://contoso.sharepoint.com/sites/Team"
    assert settings.task_list_name == "TaskManagerList"
    assert settings.metadata_list_name == "TaskManagerMetadata"
    assert settings.page_size == 5
    assert settings.display_timezone == "UTC"


def test_env_names_are_read(monkeypatch) -> None:
    monkeypatch.setenv("SHAREPOINT_SITE_URL", SITE)
    monkeypatch.setenv("SHAREPOINT_ACCESS_TOKEN", "env-token")
    monkeypatch.setenv("DISPLAY_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("LOCALE_DATE_FORMAT", "{day2}.{month2}.{year}")
    monkeypatch.setenv("TASK_PAGE_SIZE", "10")

    settings = Settings()

    assert settings.sharepoint_access_token.get_secret_value() == "env-token"
    assert settings.display_timezone == "Europe/Berlin"
    assert settings.locale_date_format == "{day2}.{month2}.{year}"
    assert settings.page_size == 10


@pytest.mark.parametrize("zone", ["Mars/Olympus", "../etc/passwd"])
def test_unknown_timezone_is_rejected(zone: str) -> None:
    with pytest.raises(ValidationError):
        _settings(display_timezone=zone)


@pytest.mark.parametrize("pattern", ["{mon}/{day}", "{0}/{1}", "{year"])
def test_bad_date_pattern_is_rejected(pattern: str) -> None:
    with pytest.raises(ValidationError):
        _settings(locale_date_format=pattern)

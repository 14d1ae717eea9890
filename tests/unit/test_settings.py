import pytest

from ess.utils.settings import DEFAULT_READ_CONCURRENCY, get_settings, refresh_settings_cache

_ENV_NAMES = [
    "DATABASE_URL",
    "POSTGRES_USER",
    "POSTGRES_PASSWORD",
    "POSTGRES_HOST",
    "POSTGRES_PORT",
    "POSTGRES_DB",
    "LOG_LEVEL",
    "ESS_READ_CONCURRENCY",
    "ESS_SEED_REFERENCE_DATA",
]


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    """Clear env + cached values for each test to avoid cross-contamination."""
    for env_name in _ENV_NAMES:
        monkeypatch.delenv(env_name, raising=False)
    refresh_settings_cache()
    yield
    refresh_settings_cache()


def test_defaults():
    settings = get_settings()
    assert settings.database_url is None
    assert settings.log_level == "INFO"
    assert settings.read_concurrency == DEFAULT_READ_CONCURRENCY == 10
    assert settings.seed_reference_data is True


def test_database_url_wins_over_parts(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///ess.db")
    monkeypatch.setenv("POSTGRES_USER", "ess")
    refresh_settings_cache()
    assert get_settings().database_url == "sqlite:///ess.db"


def test_database_url_from_parts(monkeypatch):
    for name, value in {
        "POSTGRES_USER": "ess",
        "POSTGRES_PASSWORD": "secret",
        "POSTGRES_HOST": "db",
        "POSTGRES_PORT": "5432",
        "POSTGRES_DB": "cases",
    }.items():
        monkeypatch.setenv(name, value)
    refresh_settings_cache()
    assert get_settings().database_url == "postgresql://ess:secret@db:5432/cases"


def test_incomplete_parts_give_no_url(monkeypatch):
    monkeypatch.setenv("POSTGRES_USER", "ess")
    monkeypatch.setenv("POSTGRES_HOST", "db")
    refresh_settings_cache()
    assert get_settings().database_url is None


@pytest.mark.parametrize("raw_value,expected", [("4", 4), ("0", 10), ("-3", 10), ("many", 10), ("", 10)])
def test_read_concurrency(monkeypatch, raw_value, expected):
    monkeypatch.setenv("ESS_READ_CONCURRENCY", raw_value)
    refresh_settings_cache()
    assert get_settings().read_concurrency == expected


@pytest.mark.parametrize("raw_value,expected", [("false", False), ("0", False), ("yes", True), ("junk", True)])
def test_seed_reference_data_flag(monkeypatch, raw_value, expected):
    monkeypatch.setenv("ESS_SEED_REFERENCE_DATA", raw_value)
    refresh_settings_cache()
    assert get_settings().seed_reference_data is expected


def test_log_level_is_upper_cased(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    refresh_settings_cache()
    assert get_settings().log_level == "DEBUG"

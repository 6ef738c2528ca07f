import pytest

import config.settings as settings

_KEYS = (
    "OPENAI_API_KEY", "ADVISOR_MODEL", "SNAPSHOT_STORE_PATH",
    "MAILCHIMP_API_KEY", "MAILCHIMP_AUDIENCE_ID", "MAILCHIMP_SERVER_PREFIX",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """No secrets, no inherited env vars, and a working dir without a .env file"""
    monkeypatch.setattr(settings, "_get_streamlit_secret", lambda key: "")
    for key in _KEYS:
        # setenv first so teardown also clears values loaded from .env
        monkeypatch.setenv(key, "unset")
        monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


def test_defaults():
    assert settings.get_openai_api_key() == ""
    assert settings.get_advisor_model() == "gpt-4o"
    assert not settings.get_mailchimp_settings().configured


def test_environment_wins_over_default(monkeypatch):
    monkeypatch.setenv("ADVISOR_MODEL", "gpt-4o-mini")
    assert settings.get_advisor_model() == "gpt-4o-mini"


def test_secret_wins_over_environment(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "from-env")
    monkeypatch.setattr(settings, "_get_streamlit_secret", lambda key: "from-secrets")
    assert settings.get_openai_api_key() == "from-secrets"


def test_dotenv_is_read(tmp_path):
    (tmp_path / ".env").write_text(
        "# mailchimp\n"
        "MAILCHIMP_API_KEY='abc-us21'\n"
        "MAILCHIMP_AUDIENCE_ID=aud\n"
        'MAILCHIMP_SERVER_PREFIX="us21"\n'
    )
    mc = settings.get_mailchimp_settings()
    assert mc == settings.MailchimpSettings("abc-us21", "aud", "us21")
    assert mc.configured


def test_store_path_is_anchored_at_project_root(tmp_path, monkeypatch):
    assert settings.get_store_path() == settings._PROJECT_ROOT / "data" / "snapshot.json"
    monkeypatch.setenv("SNAPSHOT_STORE_PATH", str(tmp_path / "s.json"))
    assert settings.get_store_path() == tmp_path / "s.json"

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path

__all__ = [
    "MailchimpSettings",
    "get_openai_api_key",
    "get_advisor_model",
    "get_mailchimp_settings",
    "get_store_path",
]

_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def _load_dotenv(dotenv_path: Path | str = ".env") -> None:
    path = Path(dotenv_path)
    if not path.is_file():
        return
    for line in path.read_text().splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key and value and key not in os.environ:
            os.environ[key] = value


def _get_streamlit_secret(key: str) -> str:
    """
    Try to read a value from st.secrets (Streamlit Community Cloud).
    Returns empty string if streamlit is not available or key not set.
    Safe to call outside a Streamlit context.

    Uses key-in-secrets check before access to avoid FileNotFoundError
    (no secrets file) and KeyError (key not present) both cleanly.
    """
    try:
        import streamlit as st
        if key in st.secrets:
            return str(st.secrets[key]).strip()
        return ""
    except Exception:
        return ""


def _resolve(key: str, default: str = "") -> str:
    """Priority: st.secrets → environment variable → .env file → default."""
    secret = _get_streamlit_secret(key)
    if secret:
        return secret
    _load_dotenv()
    return os.environ.get(key, default).strip() or default


def get_openai_api_key() -> str:
    """Return the OpenAI API key used by the advisor, or "" when unset."""
    return _resolve("OPENAI_API_KEY")


def get_advisor_model() -> str:
    return _resolve("ADVISOR_MODEL", "gpt-4o")


@dataclass(frozen=True)
class MailchimpSettings:
    api_key:       str
    audience_id:   str
    server_prefix: str   # e.g. "us21"

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.audience_id and self.server_prefix)


def get_mailchimp_settings() -> MailchimpSettings:
    """
    Return the waitlist credentials. Any missing value leaves the
    settings unconfigured; the caller decides how to surface that.
    """
    return MailchimpSettings(
        api_key       = _resolve("MAILCHIMP_API_KEY"),
        audience_id   = _resolve("MAILCHIMP_AUDIENCE_ID"),
        server_prefix = _resolve("MAILCHIMP_SERVER_PREFIX"),
    )


def get_store_path() -> Path:
    """
    Return the JSON file holding saved input snapshots.
    Relative paths are anchored at the project root.
    """
    path = Path(_resolve("SNAPSHOT_STORE_PATH", "data/snapshot.json"))
    return path if path.is_absolute() else _PROJECT_ROOT / path

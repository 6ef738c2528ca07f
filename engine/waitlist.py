"""
engine/waitlist.py
------------------
Mailchimp waitlist signup.

    subscribe(email, list_type) → Mailchimp member id

list_type "automation" tags the member "Automation Waitlist" (upsell form);
anything else tags "Beta Waitlist" (footer form).

Credentials come from config.settings.get_mailchimp_settings(); the API key
is sent as HTTP basic auth and never logged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import requests

from config.settings import MailchimpSettings, get_mailchimp_settings

logger = logging.getLogger(__name__)

_TIMEOUT = 10  # seconds
_MEMBERS_URL = "https://{prefix}.api.mailchimp.com/3.0/lists/{audience}/members"


class WaitlistError(Exception):
    """Signup failed; the message is safe to show the user."""


class InvalidEmail(WaitlistError):
    pass


class AlreadySubscribed(WaitlistError):
    pass


class WaitlistNotConfigured(WaitlistError):
    pass


def _is_plausible_email(email: str) -> bool:
    local, at, domain = email.partition("@")
    return bool(at and local and domain and " " not in email)


def _member_payload(email: str, list_type: str) -> dict:
    automation = list_type == "automation"
    return {
        "email_address": email,
        "status": "subscribed",
        "tags": ["Automation Waitlist" if automation else "Beta Waitlist"],
        "merge_fields": {
            "SOURCE": "Upsell Form" if automation else "Beta Footer Form",
            "SIGNUP_DATE": datetime.now(timezone.utc).isoformat(),
        },
    }


def subscribe(
    email: str,
    list_type: str = "beta",
    settings: MailchimpSettings | None = None,
) -> str:
    """
    Add `email` to the waitlist audience and return the member id.

    Raises:
        InvalidEmail          : email is empty or has no "@".
        WaitlistNotConfigured : Mailchimp credentials are missing.
        AlreadySubscribed     : Mailchimp reports "Member Exists".
        WaitlistError         : any other API or network failure.
    """
    email = (email or "").strip()
    if not _is_plausible_email(email):
        raise InvalidEmail("Invalid email address")

    settings = settings or get_mailchimp_settings()
    if not settings.configured:
        logger.error("Missing Mailchimp settings")
        raise WaitlistNotConfigured("Server configuration error")

    url = _MEMBERS_URL.format(prefix=settings.server_prefix, audience=settings.audience_id)
    try:
        resp = requests.post(
            url,
            auth=("anystring", settings.api_key),
            json=_member_payload(email, list_type),
            timeout=_TIMEOUT,
        )
    except requests.Timeout as exc:
        logger.error("Mailchimp request timed out")
        raise WaitlistError("Connection timed out") from exc
    except requests.RequestException as exc:
        logger.error(f"Mailchimp request failed: {type(exc).__name__}")
        raise WaitlistError("Cannot reach mailing list service") from exc

    try:
        body = resp.json()
    except ValueError:
        body = {}

    if not resp.ok:
        if body.get("title") == "Member Exists":
            raise AlreadySubscribed("This email is already subscribed!")
        logger.error(f"Mailchimp API error {resp.status_code}: {body.get('title', '')}")
        raise WaitlistError(body.get("detail") or "Failed to subscribe")

    logger.info(f"Waitlist signup recorded ({settings.audience_id}, {list_type})")
    return str(body.get("id", ""))

import pytest
import requests

import engine.waitlist as waitlist
from config.settings import MailchimpSettings

SETTINGS = MailchimpSettings(api_key="mc-key-us21", audience_id="aud123", server_prefix="us21")


class FakeResponse:
    def __init__(self, status_code, body):
        self.status_code = status_code
        self._body = body

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body


@pytest.fixture
def post(monkeypatch):
    calls = []

    def install(response=None, error=None):
        def fake_post(url, **kwargs):
            calls.append((url, kwargs))
            if error is not None:
                raise error
            return response
        monkeypatch.setattr(waitlist.requests, "post", fake_post)
        return calls

    return install


def test_successful_signup(post):
    calls = post(FakeResponse(200, {"id": "member-1"}))
    assert waitlist.subscribe("founder@brand.com", "beta", settings=SETTINGS) == "member-1"

    url, kwargs = calls[0]
    assert url == "https://us21.api.mailchimp.com/3.0/lists/aud123/members"
    assert kwargs["auth"] == ("anystring", "mc-key-us21")
    assert kwargs["json"]["tags"] == ["Beta Waitlist"]
    assert kwargs["json"]["merge_fields"]["SOURCE"] == "Beta Footer Form"
    assert kwargs["json"]["status"] == "subscribed"


def test_automation_list_is_tagged(post):
    calls = post(FakeResponse(200, {"id": "member-2"}))
    waitlist.subscribe("ops@brand.com", "automation", settings=SETTINGS)
    payload = calls[0][1]["json"]
    assert payload["tags"] == ["Automation Waitlist"]
    assert payload["merge_fields"]["SOURCE"] == "Upsell Form"


@pytest.mark.parametrize("email", ["", "   ", "no-at-sign", "@brand.com", "me@"])
def test_invalid_email_is_rejected_before_any_call(post, email):
    calls = post(FakeResponse(200, {}))
    with pytest.raises(waitlist.InvalidEmail):
        waitlist.subscribe(email, settings=SETTINGS)
    assert calls == []


def test_missing_settings(post):
    post(FakeResponse(200, {}))
    with pytest.raises(waitlist.WaitlistNotConfigured):
        waitlist.subscribe("a@b.com", settings=MailchimpSettings("", "aud", "us21"))


def test_member_exists(post):
    post(FakeResponse(400, {"title": "Member Exists", "detail": "already a list member"}))
    with pytest.raises(waitlist.AlreadySubscribed):
        waitlist.subscribe("a@b.com", settings=SETTINGS)


def test_other_api_error_carries_detail(post):
    post(FakeResponse(400, {"title": "Invalid Resource", "detail": "looks fake"}))
    with pytest.raises(waitlist.WaitlistError, match="looks fake"):
        waitlist.subscribe("a@b.com", settings=SETTINGS)


def test_unparseable_error_body(post):
    post(FakeResponse(502, ValueError("no json")))
    with pytest.raises(waitlist.WaitlistError, match="Failed to subscribe"):
        waitlist.subscribe("a@b.com", settings=SETTINGS)


def test_network_failure(post):
    post(error=requests.ConnectionError("down"))
    with pytest.raises(waitlist.WaitlistError):
        waitlist.subscribe("a@b.com", settings=SETTINGS)


def test_timeout(post):
    post(error=requests.Timeout("slow"))
    with pytest.raises(waitlist.WaitlistError, match="timed out"):
        waitlist.subscribe("a@b.com", settings=SETTINGS)

import pytest
from fastapi.testclient import TestClient

from site_api.config import Settings, get_settings
from site_api.llm.prompts import SystemPrompt
from site_api.main import app

TEST_PROMPT = SystemPrompt(
    text="You are the test assistant.\n\n# Catalog\n- Automation",
    available=True,
    source="tests",
)


def make_settings(**overrides) -> Settings:
    values = {
        "supabase_url": "https://example.supabase.co",
        "supabase_service_role": "service-role-key",
        "email_to": "team@example.com",
        "email_from": "Site <noreply@example.com>",
        "email_autoreply": True,
        "mail_transport": "resend",
        "resend_api_key": "re_test",
        "openai_api_key": "sk-test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class DummyResponse:
    def __init__(self, status_code=200, payload=None, text=""):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("no json body")
        return self._payload


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(settings):
    app.dependency_overrides[get_settings] = lambda: settings
    with TestClient(app) as test_client:
        app.state.system_prompt = TEST_PROMPT
        yield test_client
    app.dependency_overrides.clear()

import os

import pytest

# Must be set before contact_api.core.settings is imported
os.environ.setdefault("CORS_ORIGINS", "http://localhost:3000,https://my-portfolio-853e1.web.app")
os.environ.setdefault("GMAIL_USER", "owner@gmail.com")
os.environ.setdefault("GMAIL_APP_PASSWORD", "abcd efgh ijkl mnop")
os.environ.setdefault("APP_ENV", "development")

from contact_api.core.mailer import MailDispatcher
from contact_api.main import app

from fakes import make_settings


@pytest.fixture
def wire_app(monkeypatch):
    """Swap the process-wide settings and dispatcher on app.state for one test."""

    def _wire(transport, **overrides):
        cfg = make_settings(**overrides)
        monkeypatch.setattr(app.state, "settings", cfg)
        monkeypatch.setattr(app.state, "dispatcher", MailDispatcher(transport))
        return cfg

    return _wire

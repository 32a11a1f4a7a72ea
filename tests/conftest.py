import pathlib
import random
import sys
from datetime import datetime, timezone
from itertools import count

import pytest
from fastapi.testclient import TestClient

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))
from oilflow_assistant.core.config import Settings, get_settings
from oilflow_assistant.models.chat import Intent, Message, MessageMetadata, Role
from oilflow_assistant.services.pipeline import ChatPipeline, build_pipeline

ADMIN_KEY = "test-admin-key"
_ids = count(1)


def make_message(role, content, intent=None, confidence=None, **metadata):
    """Build a history message; assistant turns usually carry classification metadata."""
    return Message(
        id=f"{role.value}_{next(_ids)}",
        role=role,
        content=content,
        timestamp=datetime.now(timezone.utc),
        metadata=MessageMetadata(intent=intent, confidence=confidence, **metadata),
    )


def make_history(*turns):
    """turns: (user text, assistant intent, assistant confidence) tuples."""
    history = []
    for text, intent, confidence in turns:
        history.append(make_message(Role.USER, text))
        history.append(make_message(Role.ASSISTANT, "reply", intent=intent, confidence=confidence))
    return history


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def settings():
    return Settings(admin_api_key=ADMIN_KEY, mongo_url=None, escalation_webhook_url=None)


@pytest.fixture
def pipeline(settings) -> ChatPipeline:
    return build_pipeline(settings)


@pytest.fixture
def client(monkeypatch, settings, pipeline):
    from oilflow_assistant.main import app

    monkeypatch.setattr(app.state, "pipeline", pipeline)
    monkeypatch.setattr(app.state, "conversation_store", None)
    app.dependency_overrides[get_settings] = lambda: settings
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}


@pytest.fixture
def product_history():
    return make_history(("Tell me about your product", Intent.PRODUCT_INQUIRY, 0.85))

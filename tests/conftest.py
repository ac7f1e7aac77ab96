import json
import os
import tempfile

# keep the module-level app in aijudge.main out of the working tree
_scratch = tempfile.mkdtemp(prefix="aijudge-tests-")
os.environ.setdefault("DATA_DIR", os.path.join(_scratch, "data"))
os.environ.setdefault("UPLOAD_DIR", os.path.join(_scratch, "uploads"))

import pytest
from fastapi.testclient import TestClient

from aijudge import services
from aijudge.cases import CaseStore
from aijudge.config import Settings
from aijudge.main import create_app

VERDICT_REPLY = json.dumps({
    "decision": "favor_side_a",
    "reasoning": "The lease clearly required the deposit to be returned.",
    "keyFindings": ["Deposit was paid", "No damage was documented"],
    "legalPrinciples": ["Security deposit statutes"],
    "damages": "$1,200",
    "notes": None,
    "confidence": 0.8,
    "openToReconsideration": True,
})

ARGUMENT_REPLY = json.dumps({
    "response": "The photographs do not change the outcome.",
    "verdictChange": "none",
    "newReasoning": None,
    "addressedPoints": ["photographs"],
    "remainingConcerns": [],
    "legalCitations": [],
    "confidence": 0.7,
    "requestsClarification": None,
})


class FakeJudge:
    """Stands in for the chat completions call; picks a reply by prompt kind."""

    def __init__(self):
        self.prompts = []

    def __call__(self, messages, settings, max_tokens=None):
        prompt = messages[-1]["content"]
        self.prompts.append(prompt)
        if "NEW ARGUMENT FROM" in prompt:
            return ARGUMENT_REPLY
        if "concise legal summary" in prompt:
            return "A landlord withheld a deposit without documenting damage."
        return "Here is my ruling:\n```json\n" + VERDICT_REPLY + "\n```"


@pytest.fixture
def settings(tmp_path):
    return Settings(
        data_dir=tmp_path / "data",
        upload_dir=tmp_path / "uploads",
        ai_api_key="test-key",
    )


@pytest.fixture
def store(settings):
    return CaseStore(settings.cases_dir)


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def fake_judge(monkeypatch):
    judge = FakeJudge()
    monkeypatch.setattr(services, "_call_chat", judge)
    return judge

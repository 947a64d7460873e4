import os

# Keep the app-level store in memory and the model offline; must happen
# before budgetbuddy.deps is imported
os.environ["DB_PATH"] = ""
os.environ["OPENROUTER_API_KEY"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from budgetbuddy.chat.dispatcher import ActionDispatcher
from budgetbuddy.chat.insights import InsightGenerator
from budgetbuddy.chat.pipeline import ChatPipeline
from budgetbuddy.db.repository import RecordStore
from budgetbuddy.llm.parser import IntentParser


class FakeOracle:
    """Stands in for the language model: returns canned output or raises."""

    def __init__(self):
        self.response: dict = {"intent": "unclear", "response_text": "Sorry?"}
        self.text = ""
        self.error: Exception | None = None
        self.calls: list[str] = []

    def complete(self, system_prompt: str, user_message: str, output_schema: dict) -> dict:
        self.calls.append(user_message)
        if self.error is not None:
            raise self.error
        return self.response

    def complete_text(self, system_prompt: str, user_message: str) -> str:
        self.calls.append(user_message)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def store():
    return RecordStore("", default_budget=Decimal("10000"))


@pytest.fixture
def oracle():
    return FakeOracle()


@pytest.fixture
def insights(store, oracle):
    return InsightGenerator(store, oracle)


@pytest.fixture
def dispatcher(store, insights):
    return ActionDispatcher(store, insights)


@pytest.fixture
def pipeline(store, oracle, dispatcher):
    return ChatPipeline(store, IntentParser(oracle), dispatcher)


@pytest.fixture
def client(monkeypatch, store, pipeline):
    from budgetbuddy.api import routes
    from main import app

    monkeypatch.setattr(routes, "store", store)
    monkeypatch.setattr(routes, "pipeline", pipeline)
    return TestClient(app)

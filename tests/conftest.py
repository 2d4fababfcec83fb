"""
Shared fixtures: an in-memory store and a fake chat model.

No test talks to OpenAI or Firestore.
"""

import os

os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("OPENAI_API_KEY", "test-key")

import time
from datetime import date
from types import SimpleNamespace

import pytest

import ai_nodes
from schemas import SafetyResult
from services import WellnessService
from store import InMemoryStore

TODAY = date(2024, 10, 19)  # a Saturday


class FakeStructured:
    def __init__(self, llm, schema):
        self.llm = llm
        self.schema = schema

    def invoke(self, prompt):
        self.llm.calls.append((self.schema.__name__, prompt))
        if self.schema not in self.llm.structured:
            raise RuntimeError(f"no fake response for {self.schema.__name__}")
        result = self.llm.structured[self.schema]
        if isinstance(result, Exception):
            raise result
        return result


class FakeLLM:
    """
    Stands in for ChatOpenAI.

    structured: schema class -> object (or exception) returned by
    with_structured_output(schema).invoke(...). Plain invoke() returns `text`.
    """

    def __init__(self):
        self.structured = {SafetyResult: SafetyResult()}
        self.text = "Take a slow breath with me."
        self.error = None
        self.calls = []

    def with_structured_output(self, schema):
        return FakeStructured(self, schema)

    def invoke(self, prompt):
        self.calls.append(("text", prompt))
        if self.error is not None:
            raise self.error
        return SimpleNamespace(content=self.text)


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def store():
    return InMemoryStore()


class SlowStore(InMemoryStore):
    """Reads take a moment, like a network round trip."""

    def get(self, collection, doc_id):
        time.sleep(0.001)
        return super().get(collection, doc_id)


@pytest.fixture
def slow_store():
    return SlowStore()


@pytest.fixture
def fake_llm(monkeypatch):
    llm = FakeLLM()
    monkeypatch.setattr(ai_nodes, "_json_llm", lambda *args, **kwargs: llm)
    monkeypatch.setattr(ai_nodes, "_text_llm", lambda *args, **kwargs: llm)
    return llm


@pytest.fixture
def service(store, fake_llm):
    return WellnessService(store)

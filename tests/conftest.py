"""
Shared test fixtures for the Flora backend test suite.

Provides:
- In-memory key-value store and SQLite-backed store
- Repository instances wired to the test store
- A scripted fake generative backend (no network)
- Service factories for the logbook, chat and community services
- A Flask app / test client built on an in-memory database
- Sample assistant payloads in the backend's camelCase shape

Usage:
    def test_example(logbook_service, fake_backend, plant_payload, sample_image):
        fake_backend.queue(plant_payload)
        info = logbook_service.identify_plant(sample_image)
"""

from __future__ import annotations

import json
import logging
import random
from typing import Any, Iterator

import pytest

from app.services.ai.agronomy_advisor import AgronomyAdvisor
from app.services.ai.llm_backends import ChatTurn, ContentPart, LLMBackend, LLMResponse
from app.services.application.chat_service import ChatService
from app.services.application.community_service import CommunityService
from app.services.application.logbook_service import LogbookService
from app.utils.concurrency import RequestTracker
from infrastructure.database.kv_store import InMemoryKeyValueStore, SQLiteKeyValueStore
from infrastructure.database.migrations import LegacyStoreMigrator
from infrastructure.database.repositories.chat_sessions import ChatSessionRepository
from infrastructure.database.repositories.community import CommunityPostRepository
from infrastructure.database.repositories.logbook import LogbookRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler

# ---------------------------------------------------------------------------
# Logging: keep test output quiet
# ---------------------------------------------------------------------------
logging.getLogger("infrastructure").setLevel(logging.WARNING)
logging.getLogger("app").setLevel(logging.WARNING)


# ========================== Sample payloads ================================

SAMPLE_IMAGE = "data:image/png;base64,iVBORw0KGgo="
OTHER_IMAGE = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="
SAMPLE_VIDEO = "data:video/mp4;base64,AAAAGGZ0eXBtcDQy"

PLANT_PAYLOAD: dict[str, Any] = {
    "plantName": "Tomato",
    "scientificName": "Solanum lycopersicum",
    "variety": "Cherry tomato",
    "description": "A climbing annual grown for its fruit.",
    "isPoisonous": False,
    "careInstructions": {
        "watering": "Keep the soil evenly moist.",
        "sunlight": "Full sun, 6-8 hours.",
        "soil": "Loamy, pH 6.2-6.8.",
        "fertilizer": "Balanced feed every two weeks.",
        "pruning": "Remove suckers below the first truss.",
    },
}

DIAGNOSIS_PAYLOAD: dict[str, Any] = {
    "diagnoses": [
        {
            "issueType": "disease",
            "issueName": "Early blight",
            "description": "Concentric brown rings on the lower leaves.",
            "severity": {"level": "moderate", "percentage": 20},
            "possibleCauses": ["Warm humid weather", "Overhead watering"],
            "treatment": {
                "organic": ["Copper soap spray"],
                "chemical": [
                    {"name": "Mancozeb", "chemicalGroup": "M03", "instructions": "Spray every 7-10 days."}
                ],
                "resistanceManagementNote": "Rotate with a group 11 product.",
            },
            "prevention": ["Water at the base", "Mulch the soil"],
        }
    ],
    "overallHealthSummary": "The plant is moderately affected.",
}


# ========================== Fake backend ===================================


class FakeBackend(LLMBackend):
    """Scripted backend: ``generate`` pops queued answers, ``stream`` yields fixed chunks.

    Queued dicts/lists are returned as JSON text; queued exceptions are raised.
    """

    def __init__(self, *, available: bool = True) -> None:
        self._available = available
        self._queue: list[Any] = []
        self.default_text = "ok"
        self.stream_chunks: list[str] = ["Hello", " grower"]
        self.stream_error: Exception | None = None
        self.calls: list[dict[str, Any]] = []
        self.stream_calls: list[dict[str, Any]] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def is_available(self) -> bool:
        return self._available

    def initialize(self) -> bool:
        return self._available

    def queue(self, *answers: Any) -> None:
        self._queue.extend(answers)

    def generate(
        self,
        parts: list[ContentPart],
        *,
        response_schema: dict[str, Any] | None = None,
        system_instruction: str | None = None,
        model: str | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> LLMResponse:
        self.calls.append(
            {"parts": parts, "response_schema": response_schema, "model": model, "tools": tools}
        )
        answer = self._queue.pop(0) if self._queue else self.default_text
        if isinstance(answer, Exception):
            raise answer
        if isinstance(answer, (dict, list)):
            answer = json.dumps(answer)
        return LLMResponse(text=answer, model=model or "fake-model")

    def stream(
        self,
        turns: list[ChatTurn],
        *,
        system_instruction: str | None = None,
        model: str | None = None,
    ) -> Iterator[str]:
        self.stream_calls.append({"turns": turns, "system_instruction": system_instruction})
        yield from self.stream_chunks
        if self.stream_error is not None:
            raise self.stream_error


# ========================== Store Fixtures =================================


@pytest.fixture()
def store():
    """Fresh in-memory key-value store."""
    return InMemoryKeyValueStore()


@pytest.fixture()
def db_handler():
    """In-memory SQLite database with the kv_store table created."""
    handler = SQLiteDatabaseHandler(":memory:")
    handler.create_tables()
    yield handler
    handler.close_db()


@pytest.fixture()
def sqlite_store(db_handler):
    return SQLiteKeyValueStore(db_handler)


@pytest.fixture()
def migrator(store):
    return LegacyStoreMigrator(store)


# ========================== Repository Fixtures ============================


@pytest.fixture()
def logbook_repo(store, migrator):
    return LogbookRepository(store, migrator)


@pytest.fixture()
def chat_repo(store, migrator):
    return ChatSessionRepository(store, migrator)


@pytest.fixture()
def community_repo(store):
    return CommunityPostRepository(store)


# ========================== Service Fixtures ===============================


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def advisor(fake_backend):
    return AgronomyAdvisor(backend=fake_backend, language="English", video_model="video-model")


@pytest.fixture()
def request_tracker():
    return RequestTracker()


@pytest.fixture()
def logbook_service(logbook_repo, advisor, request_tracker):
    return LogbookService(logbook_repo, advisor, request_tracker=request_tracker)


@pytest.fixture()
def chat_service(chat_repo, advisor):
    """Chat service generating titles inline (no executor)."""
    return ChatService(chat_repo, advisor)


@pytest.fixture()
def community_service(community_repo):
    return CommunityService(community_repo, rng=random.Random(7))


# ========================== App Fixtures ===================================


@pytest.fixture()
def app(tmp_path, fake_backend):
    from app import create_app

    flask_app = create_app(
        {
            "storage_path": ":memory:",
            "audit_log_path": str(tmp_path / "audit.log"),
            "log_file": None,
            "seed_community": False,
            "title_worker_count": 1,
        },
        llm_backend=fake_backend,
    )
    flask_app.config["TESTING"] = True
    yield flask_app
    flask_app.extensions["flora_shutdown"]("test-teardown")


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def container(app):
    return app.config["CONTAINER"]


def wait_for_titles(container) -> None:
    """Block until queued title jobs finish (the test pool has a single worker)."""
    container.title_executor.submit(lambda: None).result(timeout=5)


@pytest.fixture()
def await_titles(container):
    """Callable that waits for background chat-title jobs."""
    return lambda: wait_for_titles(container)


# ========================== Payload Fixtures ===============================


@pytest.fixture()
def sample_image():
    return SAMPLE_IMAGE


@pytest.fixture()
def other_image():
    return OTHER_IMAGE


@pytest.fixture()
def sample_video():
    return SAMPLE_VIDEO


@pytest.fixture()
def plant_payload():
    return json.loads(json.dumps(PLANT_PAYLOAD))


@pytest.fixture()
def diagnosis_payload():
    return json.loads(json.dumps(DIAGNOSIS_PAYLOAD))

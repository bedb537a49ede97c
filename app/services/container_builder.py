"""
Container Builder
=================

Service container construction, split by layer.

Architecture:
- ContainerBuilder: Orchestrates the construction of all services
- Each build_*() method: Constructs a specific layer
- ServiceContainer.build(): Delegates to ContainerBuilder.build()
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any

from app.config import AppConfig
from app.services.ai.agronomy_advisor import AgronomyAdvisor
from app.services.ai.llm_backends import LLMBackend, create_backend
from app.services.application.chat_service import ChatService
from app.services.application.community_service import CommunityService
from app.services.application.logbook_service import LogbookService
from app.utils.concurrency import RequestTracker
from infrastructure.database.kv_store import KeyValueStore, SQLiteKeyValueStore
from infrastructure.database.migrations import LegacyStoreMigrator
from infrastructure.database.repositories.chat_sessions import ChatSessionRepository
from infrastructure.database.repositories.community import CommunityPostRepository
from infrastructure.database.repositories.logbook import LogbookRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class InfrastructureComponents:
    """Infrastructure layer components (database, store, repos, logging)."""

    database: SQLiteDatabaseHandler
    store: KeyValueStore
    migrator: LegacyStoreMigrator
    logbook_repo: LogbookRepository
    chat_repo: ChatSessionRepository
    community_repo: CommunityPostRepository
    audit_logger: AuditLogger


@dataclass
class AIComponents:
    """Generative backend and the advisor wrapping it."""

    llm_backend: LLMBackend | None
    advisor: AgronomyAdvisor


@dataclass
class ApplicationComponents:
    """Application-level services."""

    request_tracker: RequestTracker
    title_executor: ThreadPoolExecutor
    logbook_service: LogbookService
    chat_service: ChatService
    community_service: CommunityService


class ContainerBuilder:
    """
    Builder for constructing the service container.

    Each method constructs one layer from the layer below it.
    """

    def __init__(self, config: AppConfig, *, llm_backend: LLMBackend | None = None):
        """
        Initialize builder with configuration.

        Args:
            config: Application configuration
            llm_backend: Pre-built backend to use instead of the configured provider
        """
        self.config = config
        self._llm_backend_override = llm_backend

    def build_infrastructure(self) -> InfrastructureComponents:
        logger.info("Building infrastructure components...")

        audit_logger = AuditLogger(self.config.audit_log_path, self.config.log_level)
        database = SQLiteDatabaseHandler(self.config.storage_path)
        database.create_tables()

        store = SQLiteKeyValueStore(database)
        migrator = LegacyStoreMigrator(store)

        return InfrastructureComponents(
            database=database,
            store=store,
            migrator=migrator,
            logbook_repo=LogbookRepository(store, migrator),
            chat_repo=ChatSessionRepository(store, migrator),
            community_repo=CommunityPostRepository(store),
            audit_logger=audit_logger,
        )

    def build_ai(self) -> AIComponents:
        logger.info("Building AI components...")

        backend = self._llm_backend_override
        if backend is None:
            backend = create_backend(
                self.config.llm_provider,
                api_key=self.config.llm_api_key,
                model=self.config.llm_model,
                api_endpoint=self.config.llm_api_endpoint or None,
                timeout=self.config.llm_timeout,
                temperature=self.config.llm_temperature,
            )
        advisor = AgronomyAdvisor(
            backend=backend,
            language=self.config.response_language,
            video_model=self.config.llm_video_model,
        )
        logger.info("Assistant backend: %s (available=%s)", advisor.provider_name, advisor.is_available)
        return AIComponents(llm_backend=backend, advisor=advisor)

    def build_application(self, infra: InfrastructureComponents, ai: AIComponents) -> ApplicationComponents:
        logger.info("Building application services...")

        request_tracker = RequestTracker()
        title_executor = ThreadPoolExecutor(
            max_workers=self.config.title_worker_count,
            thread_name_prefix="chat-title",
        )
        community_service = CommunityService(infra.community_repo)
        if self.config.seed_community and community_service.seed_if_empty():
            logger.info("Seeded community feed with example posts")

        return ApplicationComponents(
            request_tracker=request_tracker,
            title_executor=title_executor,
            logbook_service=LogbookService(
                infra.logbook_repo,
                ai.advisor,
                request_tracker=request_tracker,
                audit_logger=infra.audit_logger,
            ),
            chat_service=ChatService(infra.chat_repo, ai.advisor, executor=title_executor),
            community_service=community_service,
        )

    def build(self) -> dict[str, Any]:
        """Build every layer and return the flattened container fields."""
        infra = self.build_infrastructure()
        ai = self.build_ai()
        application = self.build_application(infra, ai)

        components: dict[str, Any] = {"config": self.config}
        for layer in (infra, ai, application):
            components.update({name: getattr(layer, name) for name in layer.__dataclass_fields__})
        return components

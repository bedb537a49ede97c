from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from app.config import AppConfig
from app.services.ai.agronomy_advisor import AgronomyAdvisor
from app.services.ai.llm_backends import LLMBackend
from app.services.application.chat_service import ChatService
from app.services.application.community_service import CommunityService
from app.services.application.logbook_service import LogbookService
from app.services.container_builder import ContainerBuilder
from app.utils.concurrency import RequestTracker
from infrastructure.database.kv_store import KeyValueStore
from infrastructure.database.migrations import LegacyStoreMigrator
from infrastructure.database.repositories.chat_sessions import ChatSessionRepository
from infrastructure.database.repositories.community import CommunityPostRepository
from infrastructure.database.repositories.logbook import LogbookRepository
from infrastructure.database.sqlite_handler import SQLiteDatabaseHandler
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Aggregate and manage core backend services."""

    config: AppConfig
    database: SQLiteDatabaseHandler
    store: KeyValueStore
    migrator: LegacyStoreMigrator
    logbook_repo: LogbookRepository
    chat_repo: ChatSessionRepository
    community_repo: CommunityPostRepository
    audit_logger: AuditLogger
    # AI
    llm_backend: LLMBackend | None
    advisor: AgronomyAdvisor
    # Application services
    request_tracker: RequestTracker
    title_executor: ThreadPoolExecutor
    logbook_service: LogbookService
    chat_service: ChatService
    community_service: CommunityService

    @classmethod
    def build(cls, config: AppConfig, *, llm_backend: LLMBackend | None = None) -> "ServiceContainer":
        """Construct the service container with all dependencies.

        Args:
            config: Application configuration
            llm_backend: Optional pre-built backend (tests inject fakes here)
        """
        logger.info("Building ServiceContainer using ContainerBuilder...")
        components = ContainerBuilder(config, llm_backend=llm_backend).build()
        container = cls(**components)
        logger.info("ServiceContainer built successfully.")
        return container

    def shutdown(self) -> None:
        """Release external resources before process exit."""
        # Let pending title generations finish so their renames are persisted
        self.title_executor.shutdown(wait=True)
        self.database.close_db()
        logger.info("ServiceContainer shutdown complete.")

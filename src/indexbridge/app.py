"""Application wiring: settings -> database, index, adapters, scheduler.

Builds the default document indexer from `Settings`:
  - SQLAlchemy storage for `Document` rows
  - a Whoosh index (in memory, or on disk when configured)
  - archived documents are removed from the index on import
"""
from __future__ import annotations

import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from indexbridge.adapters.sqlalchemy_adapter import SQLAlchemyAdapter
from indexbridge.config import Settings, load_settings
from indexbridge.indexer import Indexer
from indexbridge.logging_config import setup_logging
from indexbridge.scheduler import ResyncScheduler
from indexbridge.search.whoosh_index import WhooshIndex
from indexbridge.storage.database import get_engine, init_db, make_session_factory
from indexbridge.storage.models import Document

logger = logging.getLogger(__name__)


class AppState:
    """Application state shared by import and search callers."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.session_factory: Optional[sessionmaker[Session]] = None
        self.documents: Optional[Indexer] = None
        self.scheduler = ResyncScheduler()

    def init_storage(self) -> None:
        """Create the engine, tables and session factory."""
        cfg = self.settings.database
        engine = get_engine(cfg.url, echo=cfg.echo)
        init_db(engine)
        self.session_factory = make_session_factory(engine)

    def init_indexers(self) -> None:
        """Build the document indexer from configuration."""
        if self.session_factory is None:
            self.init_storage()
        assert self.session_factory is not None
        adapter = SQLAlchemyAdapter(
            Document,
            self.session_factory,
            batch_size=self.settings.importer.batch_size,
            delete_if="archived",
        )
        index = WhooshIndex(path=self.settings.search.index_path)
        self.documents = Indexer(adapter, index)

    def start_resync(self) -> None:
        """Schedule the periodic document resync and start the scheduler."""
        if self.documents is None:
            self.init_indexers()
        assert self.documents is not None
        minutes = self.settings.importer.resync_minutes
        self.scheduler.schedule_resync(self.documents, interval=timedelta(minutes=minutes))
        self.scheduler.start()
        logger.info("Resync of %s scheduled every %d minutes", self.documents.name, minutes)


def bootstrap(settings: Optional[Settings] = None, *, configure_logging: bool = True) -> AppState:
    """Load settings, configure logging and build storage plus indexers."""
    settings = settings or load_settings()
    if configure_logging:
        setup_logging(settings.app.log_level, settings.app.log_format)
    state = AppState(settings)
    state.init_indexers()
    return state

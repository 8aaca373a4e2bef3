"""
Worker Initialization - Services Module.

Builds every indexer component explicitly from settings. Nothing here
is a module-level singleton; the entrypoint owns the returned bundle.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from carbonseal.config.database import create_engine, create_session_maker
from carbonseal.config.settings import Settings
from carbonseal.services.chain import ChainReader
from carbonseal.services.indexer import IndexerLifecycle, LiveListener, Reconciler
from carbonseal.services.mirror_store import MirrorStore


@dataclass
class IndexerComponents:
    engine: AsyncEngine
    store: MirrorStore
    reader: ChainReader
    reconciler: Reconciler
    listener: LiveListener
    lifecycle: IndexerLifecycle


def build_components(settings: Settings) -> IndexerComponents:
    """Construct and wire the indexer components."""
    engine = create_engine(settings)
    store = MirrorStore(create_session_maker(engine))
    reader = ChainReader.from_settings(settings)

    reconciler = Reconciler(
        reader,
        store,
        readings_limit=settings.recent_readings_limit,
        skip_missing_ids=settings.skip_missing_ids,
    )
    listener = LiveListener(reader, reconciler)
    lifecycle = IndexerLifecycle(
        reconciler,
        listener,
        interval_seconds=settings.reconcile_interval_seconds,
    )

    logger.info(
        f"Indexer components initialized "
        f"(skip_missing_ids={settings.skip_missing_ids}, "
        f"readings_limit={settings.recent_readings_limit})"
    )
    return IndexerComponents(
        engine=engine,
        store=store,
        reader=reader,
        reconciler=reconciler,
        listener=listener,
        lifecycle=lifecycle,
    )

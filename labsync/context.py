"""
Shared application state.

Everything the web routes and the background scheduler share is built once
into an AppContext and handed to them explicitly.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import AsyncIterator, Optional

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from .config import RosterConfig
from .database import Database
from .services.identity import IdentityResolver
from .services.portal_client import PortalClient
from .services.reconciler import Reconciler
from .services.scheduler import FatalHandler, SchedulerService
from .settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    roster: RosterConfig
    database: Database
    resolver: IdentityResolver
    portal: PortalClient
    reconciler: Reconciler
    scheduler: SchedulerService

    @classmethod
    def build(
        cls,
        settings: Settings,
        roster: RosterConfig,
        portal_transport: Optional[httpx.AsyncBaseTransport] = None,
        on_fatal: Optional[FatalHandler] = None,
    ) -> "AppContext":
        database = Database(
            settings.resolve_database_url(roster),
            echo=settings.debug,
            testing=settings.testing,
        )
        resolver = IdentityResolver(roster.people)
        portal = PortalClient(
            settings.portal_url,
            timeout=settings.portal_timeout,
            transport=portal_transport,
        )
        reconciler = Reconciler(database.session_maker, resolver, portal)
        scheduler = SchedulerService(
            reconciler,
            interval=timedelta(hours=settings.poll_interval_hours),
            on_fatal=on_fatal,
        )
        return cls(
            settings=settings,
            roster=roster,
            database=database,
            resolver=resolver,
            portal=portal,
            reconciler=reconciler,
            scheduler=scheduler,
        )

    async def startup(self):
        await self.database.init()
        if self.settings.scheduler_enabled:
            self.scheduler.start()
        else:
            logger.info("Results sync not scheduled - SCHEDULER_ENABLED is false")

    async def shutdown(self):
        self.scheduler.stop()
        await self.portal.close()
        await self.database.dispose()


def get_context(request: Request) -> AppContext:
    """Dependency to get the application context."""
    return request.app.state.context


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency to get database session."""
    context: AppContext = request.app.state.context
    async with context.database.session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise

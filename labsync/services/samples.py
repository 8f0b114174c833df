"""Registering and listing specimen records."""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import PENDING, Sample
from .identity import IdentityResolver

logger = logging.getLogger(__name__)


class SampleService:
    def __init__(self, db: AsyncSession, resolver: Optional[IdentityResolver] = None):
        self.db = db
        self.resolver = resolver

    async def list_samples(self, limit: int = 10) -> List[Sample]:
        """Most recently updated samples first."""
        result = await self.db.execute(
            select(Sample)
            .order_by(Sample.updated_time.desc(), Sample.id.desc())
            .limit(limit)
        )
        samples = list(result.scalars().all())
        logger.debug(f"Retrieved {len(samples)} samples")
        return samples

    async def add_sample(self, name: str, barcode: str) -> Sample:
        """Register a new pending sample."""
        name = (name or "").strip()
        barcode = (barcode or "").strip()
        if not name or not barcode:
            raise ValueError(f"Missing arguments, ({name!r}, {barcode!r})")

        if self.resolver is not None and not self.resolver.knows(name):
            logger.warning(f"Sample {barcode} registered for {name!r}, who is not on the roster")

        now = datetime.utcnow()
        sample = Sample(
            name=name,
            barcode=barcode,
            results=PENDING,
            created_time=now,
            updated_time=now,
            sample_date=None,
        )
        self.db.add(sample)
        await self.db.flush()
        logger.info(f"New sample {barcode} for {name}")
        return sample

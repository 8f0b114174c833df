"""
Reconciliation of pending specimens against the results portal.

One pass reads every pending sample, looks each one up on the portal, and
writes back any result the portal has published. Per-sample failures leave
the sample pending for the next pass. A result commit that touches anything
other than exactly one row raises IntegrityViolation, which is never handled
here.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..exceptions import IntegrityViolation, ScrapeError, SyncError
from ..models import PENDING, Sample, SyncRun, SyncStatus
from .identity import IdentityResolver
from .portal_client import PortalClient
from .result_parser import ParsedResult, ResultStatus, parse_result_cells
from .table_extractor import extract_cells

logger = logging.getLogger(__name__)


def _new_summary() -> Dict:
    return {
        "checked": 0,
        "resolved": 0,
        "not_ready": 0,
        "unrecognized": 0,
        "no_match": 0,
        "network_error": 0,
        "scrape_error": 0,
        "errors": [],
    }


class Reconciler:
    """Runs reconciliation passes over the pending samples in one store."""

    def __init__(
        self,
        session_maker: async_sessionmaker,
        resolver: IdentityResolver,
        portal: PortalClient,
    ):
        self.session_maker = session_maker
        self.resolver = resolver
        self.portal = portal

    async def fetch_pending(self, db: AsyncSession) -> List[Sample]:
        result = await db.execute(
            select(Sample).where(Sample.results.like(f"%{PENDING}%"))
        )
        return list(result.scalars().all())

    async def check_sample(self, sample: Sample) -> ParsedResult:
        """
        Look ``sample`` up on the portal and classify the answer.

        Raises NoMatchError, PortalError or ScrapeError.
        """
        dob = self.resolver.resolve(sample.name, sample.barcode)
        body = await self.portal.lookup(sample.barcode, dob)
        try:
            cells = extract_cells(body)
        except ScrapeError as e:
            e.barcode = sample.barcode
            raise
        logger.debug(f"data for {sample.barcode}: {cells}")
        return parse_result_cells(cells)

    async def commit_result(self, db: AsyncSession, barcode: str, parsed: ParsedResult) -> None:
        """
        Write a resolved result to the sample with ``barcode``.

        The update is rolled back and IntegrityViolation raised unless exactly
        one row was affected.
        """
        stmt = (
            update(Sample)
            .where(Sample.barcode == barcode)
            .values(
                results=parsed.text,
                updated_time=datetime.utcnow(),
                sample_date=parsed.sample_date,
            )
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        if result.rowcount != 1:
            await db.rollback()
            raise IntegrityViolation(barcode, result.rowcount)
        await db.commit()

    async def run_pass(self, trigger: str = "scheduled", dry_run: bool = False) -> Dict:
        """
        Run one full pass and return a summary of what happened.

        With ``dry_run`` nothing is written; each checked sample's
        classification is listed under ``"samples"`` instead.
        """
        started_at = datetime.utcnow()
        summary = _new_summary()
        if dry_run:
            summary["samples"] = []
        status = SyncStatus.FAILED

        try:
            async with self.session_maker() as db:
                pending = await self.fetch_pending(db)
                # Detached rows keep their loaded values across later rollbacks
                db.expunge_all()
                logger.info(f"Retrieved {len(pending)} pending samples")

                for sample in pending:
                    await self._process_sample(db, sample, summary, dry_run)

            status = SyncStatus.SUCCESS if not summary["errors"] else SyncStatus.PARTIAL
            logger.info(
                f"Pass finished: checked={summary['checked']} resolved={summary['resolved']} "
                f"not_ready={summary['not_ready']} errors={len(summary['errors'])}"
            )
            return summary

        except IntegrityViolation as e:
            summary["errors"].append(str(e))
            raise

        except SQLAlchemyError as e:
            summary["errors"].append(f"Polling error: {e}")
            logger.error(f"Polling error: {e}", exc_info=True)
            raise

        finally:
            if not dry_run:
                await self._record_run(trigger, started_at, status, summary)

    async def _process_sample(self, db: AsyncSession, sample: Sample, summary: Dict, dry_run: bool):
        summary["checked"] += 1
        barcode = sample.barcode

        try:
            parsed = await self.check_sample(sample)
        except SyncError as e:
            summary[e.kind] = summary.get(e.kind, 0) + 1
            summary["errors"].append(f"{barcode}: {e}")
            logger.warning(f"Skipping {barcode} ({sample.name}), {e.kind}: {e}")
            return

        if dry_run:
            summary["samples"].append({
                "barcode": barcode,
                "name": sample.name,
                "status": parsed.status.value,
                "cell_count": parsed.cell_count,
                "text": parsed.text,
                "sample_date": parsed.sample_date,
            })

        if parsed.status == ResultStatus.NOT_YET_AVAILABLE:
            summary["not_ready"] += 1
            logger.info(f"No data yet for {barcode}, skipping")
            return

        if parsed.status == ResultStatus.UNRECOGNIZED:
            summary["unrecognized"] += 1
            summary["errors"].append(f"{barcode}: unrecognized layout ({parsed.cell_count} cells)")
            logger.warning(
                f"Unrecognized result layout for {barcode} ({sample.name}): "
                f"{parsed.cell_count} cells"
            )
            return

        if dry_run:
            summary["resolved"] += 1
            return

        try:
            await self.commit_result(db, barcode, parsed)
        except SQLAlchemyError as e:
            await db.rollback()
            summary["errors"].append(f"{barcode}: error saving: {e}")
            logger.error(f"Error saving result for {barcode}: {e}")
            return

        summary["resolved"] += 1
        logger.info(f"Resolved {barcode} ({sample.name}): {parsed.text!r}, sampled {parsed.sample_date}")

    async def _record_run(self, trigger: str, started_at: datetime, status: SyncStatus, summary: Dict):
        """Store the pass outcome; failures here are logged and do not mask the pass result."""
        try:
            async with self.session_maker() as db:
                db.add(SyncRun(
                    trigger=trigger,
                    status=status,
                    samples_checked=summary["checked"],
                    samples_resolved=summary["resolved"],
                    errors={"messages": summary["errors"]} if summary["errors"] else None,
                    started_at=started_at,
                    completed_at=datetime.utcnow(),
                ))
                await db.commit()
        except SQLAlchemyError as e:
            logger.error(f"Could not record sync run: {e}")

    async def last_run(self) -> Optional[SyncRun]:
        async with self.session_maker() as db:
            result = await db.execute(
                select(SyncRun).order_by(SyncRun.started_at.desc(), SyncRun.id.desc()).limit(1)
            )
            return result.scalar_one_or_none()

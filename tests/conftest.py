from datetime import datetime
from typing import Dict, List, Optional, Union

import pytest
import pytest_asyncio
from sqlalchemy import select

from labsync.config import PersonConfig, RosterConfig
from labsync.database import Database
from labsync.models import PENDING, Sample


RESULT_PAGE_4 = b"""
<html><body>
<table><tr><td>a</td><td>H1</td><td>H2</td><td>2024-01-01</td></tr></table>
</body></html>
"""

RESULT_PAGE_7 = b"""
<html><body>
<table>
  <tr><td>Barcode 12345</td></tr>
  <tr><td><b>SARS-CoV-2</b></td><td>
      Not Detected
  </td></tr>
  <tr><td>Influenza A</td><td><span> </span>Not Detected</td></tr>
  <tr><td>03/02/2024</td><td>Final</td></tr>
</table>
</body></html>
"""

NO_RESULT_PAGE = b"<html><body><p>No results found for this barcode.</p></body></html>"


@pytest.fixture
def roster() -> RosterConfig:
    return RosterConfig(
        people=[
            PersonConfig(name="Jane Doe", date_of_birth="01/31/1980"),
            PersonConfig(name="John Doe", date_of_birth="07/04/1978"),
        ],
        database_path=None,
    )


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", testing=True)
    await db.init()
    yield db
    await db.dispose()


async def add_samples(database: Database, *rows) -> None:
    """Insert (name, barcode) or (name, barcode, results) rows."""
    now = datetime(2024, 1, 1, 12, 0, 0)
    async with database.session_maker() as session:
        for row in rows:
            name, barcode = row[0], row[1]
            results = row[2] if len(row) > 2 else PENDING
            session.add(Sample(
                name=name,
                barcode=barcode,
                results=results,
                created_time=now,
                updated_time=now,
            ))
        await session.commit()


async def all_samples(database: Database) -> List[Sample]:
    async with database.session_maker() as session:
        result = await session.execute(select(Sample).order_by(Sample.id))
        return list(result.scalars().all())


class BrokenBody:
    """A response body whose read fails part way."""

    def read(self, *args):
        raise OSError("connection reset while reading body")


class FakePortal:
    """Stands in for PortalClient: canned bodies or errors per barcode."""

    def __init__(self, responses: Optional[Dict[str, Union[bytes, object, Exception]]] = None):
        self.responses = responses or {}
        self.calls: List[tuple] = []

    async def lookup(self, barcode: str, dob: str):
        self.calls.append((barcode, dob))
        response = self.responses.get(barcode, b"")
        if isinstance(response, Exception):
            raise response
        return response

    async def close(self):
        pass

"""
Roster configuration: the people whose specimens are tracked.

The roster is read once at startup from a JSON file shaped like::

    {
      "people": [{"name": "Jane Doe", "date_of_birth": "01/31/1980"}],
      "database_path": "samples.db"
    }
"""
from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, field_validator

logger = logging.getLogger(__name__)

DOB_FORMAT = "%m/%d/%Y"


class PersonConfig(BaseModel):
    """One roster entry."""
    name: str
    date_of_birth: str  # MM/DD/YYYY, sent to the portal verbatim

    @field_validator("date_of_birth")
    @classmethod
    def validate_date_of_birth(cls, v):
        # strptime accepts "1/2/1980"; the portal wants zero padding
        parsed = datetime.strptime(v, DOB_FORMAT)
        if parsed.strftime(DOB_FORMAT) != v:
            raise ValueError(f"date_of_birth must be MM/DD/YYYY, got {v!r}")
        return v


class RosterConfig(BaseModel):
    people: List[PersonConfig] = []
    database_path: Optional[str] = None

    def names(self) -> List[str]:
        return [p.name for p in self.people]


def load_roster_config(path: Union[str, Path]) -> RosterConfig:
    """Read and validate the roster file. Errors here are startup failures."""
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    roster = RosterConfig.model_validate(raw)
    logger.info(
        f"Loaded roster from {path}: {len(roster.people)} people, "
        f"database_path={roster.database_path!r}"
    )
    return roster

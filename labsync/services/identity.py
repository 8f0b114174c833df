"""Roster lookup: holder name -> date of birth for portal queries."""
from __future__ import annotations

from typing import Iterable, Optional

from ..config import PersonConfig
from ..exceptions import NoMatchError


class IdentityResolver:
    def __init__(self, people: Iterable[PersonConfig]):
        # Order matters: first exact match wins
        self.people = list(people)

    def find(self, name: str) -> Optional[PersonConfig]:
        for person in self.people:
            if person.name == name:
                return person
        return None

    def resolve(self, name: str, barcode: Optional[str] = None) -> str:
        """Return the date of birth for ``name`` or raise NoMatchError."""
        person = self.find(name)
        if person is None:
            raise NoMatchError(name, barcode)
        return person.date_of_birth

    def knows(self, name: str) -> bool:
        return self.find(name) is not None

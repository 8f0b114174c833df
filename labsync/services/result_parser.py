"""
Positional parsing of extracted portal cells into a result string.

The portal shows one header/status pair at positions 1-2, zero or more
two-cell rows after it, and trailing cells whose second-to-last entry is the
sample date. Anything outside the accepted cell counts is reported as
unrecognized rather than guessed at.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Sequence


ROW_SEPARATOR = " | "


class ResultStatus(str, enum.Enum):
    NOT_YET_AVAILABLE = "not_yet_available"
    UNRECOGNIZED = "unrecognized"
    RESOLVED = "resolved"


@dataclass
class ParsedResult:
    """Classification of one lookup's cells."""
    status: ResultStatus
    cell_count: int
    text: Optional[str] = None
    sample_date: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.status == ResultStatus.RESOLVED


def is_recognized_layout(cell_count: int) -> bool:
    """Exactly four cells, or an odd count of five or more."""
    if cell_count < 4:
        return False
    return cell_count == 4 or cell_count % 2 == 1


def parse_result_cells(cells: Sequence[str]) -> ParsedResult:
    """Classify ``cells`` and, when the layout is recognized, render the result."""
    count = len(cells)
    if count == 0:
        return ParsedResult(ResultStatus.NOT_YET_AVAILABLE, cell_count=0)

    if not is_recognized_layout(count):
        return ParsedResult(ResultStatus.UNRECOGNIZED, cell_count=count)

    text = f"{cells[1]} {cells[2]}"
    # Additional rows; never entered when count == 4
    for i in range(3, count - 3, 2):
        text += f"{ROW_SEPARATOR}{cells[i]} {cells[i + 1]}"

    return ParsedResult(
        ResultStatus.RESOLVED,
        cell_count=count,
        text=text,
        sample_date=cells[count - 2],
    )

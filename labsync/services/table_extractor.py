"""
Table-cell text extraction from portal result pages.

The portal renders results as plain HTML tables, so the only stable signal is
the order in which cell texts appear. Cells often wrap their text in inline
markup (``<td><b>Negative</b></td>``) or leave whitespace-only fragments
before the value, so a cell stays "open" until a non-empty text node shows up.
"""
import logging
from typing import IO, Iterator, List, Union

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup
from bs4.element import NavigableString, PreformattedString, Tag

from ..exceptions import ScrapeError

logger = logging.getLogger(__name__)

CELL_TAG = "td"

Markup = Union[bytes, str, IO[bytes], IO[str]]


def iter_table_cells(markup: Markup) -> Iterator[str]:
    """
    Yield the trimmed, non-empty text of each table cell in document order.

    Each call walks a fresh parse of ``markup``; pass a new stream to re-run it.
    Raises ScrapeError if the markup cannot be read or parsed.
    """
    try:
        soup = BeautifulSoup(markup, "html.parser")
    except (ParserRejectedMarkup, OSError, UnicodeDecodeError) as e:
        raise ScrapeError(f"parsing error: {e}") from e

    capturing = False
    for node in soup.descendants:
        if isinstance(node, Tag):
            if node.name == CELL_TAG:
                capturing = True
            continue

        # Comments, doctypes and CDATA are not cell text
        if not capturing or not isinstance(node, NavigableString) or isinstance(node, PreformattedString):
            continue

        text = node.strip()
        if not text:
            logger.debug("skipping whitespace-only fragment")
            continue

        logger.debug(f"Found {text!r} in the html")
        capturing = False
        yield text


def extract_cells(markup: Markup) -> List[str]:
    """Materialize iter_table_cells into a list."""
    return list(iter_table_cells(markup))

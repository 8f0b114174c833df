"""
HTML rendering for the sample listing page.
"""
from html import escape
from typing import Iterable

from .config import PersonConfig
from .models import Sample


def _fmt_time(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def render_index(app_name: str, people: Iterable[PersonConfig], samples: Iterable[Sample]) -> str:
    """Render the listing of recent samples plus the registration form."""
    options = "\n".join(
        f'<option value="{escape(p.name)}">{escape(p.name)}</option>' for p in people
    )
    rows = "\n".join(
        "<tr>"
        f"<td>{escape(s.name)}</td>"
        f"<td>{escape(s.barcode)}</td>"
        f"<td>{escape(s.results or '')}</td>"
        f"<td>{escape(s.sample_date or '')}</td>"
        f"<td>{_fmt_time(s.created_time)}</td>"
        f"<td>{_fmt_time(s.updated_time)}</td>"
        "</tr>"
        for s in samples
    )
    return f"""<!DOCTYPE html>
<html>
<head><title>{escape(app_name)}</title></head>
<body>
    <h1>{escape(app_name)}</h1>
    <form method="post" action="/new">
        <select name="person">
{options}
        </select>
        <input type="text" name="barcode" placeholder="Barcode">
        <button type="submit">Add sample</button>
    </form>
    <table>
        <tr><th>Name</th><th>Barcode</th><th>Results</th><th>Sample date</th><th>Created</th><th>Updated</th></tr>
{rows}
    </table>
</body>
</html>
"""

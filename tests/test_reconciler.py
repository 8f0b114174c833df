import httpx
import pytest

from labsync.exceptions import IntegrityViolation, PortalError
from labsync.models import PENDING, SyncStatus
from labsync.services.identity import IdentityResolver
from labsync.services.portal_client import PortalClient
from labsync.services.reconciler import Reconciler
from labsync.services.result_parser import ParsedResult, ResultStatus

from .conftest import (
    BrokenBody,
    FakePortal,
    NO_RESULT_PAGE,
    RESULT_PAGE_4,
    RESULT_PAGE_7,
    add_samples,
    all_samples,
)


def make_reconciler(database, roster, portal):
    return Reconciler(database.session_maker, IdentityResolver(roster.people), portal)


@pytest.mark.asyncio
async def test_pass_resolves_published_results(database, roster):
    await add_samples(database, ("Jane Doe", "B4"), ("John Doe", "B7"))
    portal = FakePortal({"B4": RESULT_PAGE_4, "B7": RESULT_PAGE_7})

    summary = await make_reconciler(database, roster, portal).run_pass()

    assert summary["checked"] == 2
    assert summary["resolved"] == 2
    assert summary["errors"] == []
    assert sorted(portal.calls) == [("B4", "01/31/1980"), ("B7", "07/04/1978")]

    by_barcode = {s.barcode: s for s in await all_samples(database)}
    assert by_barcode["B4"].results == "H1 H2"
    assert by_barcode["B4"].sample_date == "H2"
    assert by_barcode["B7"].results == "SARS-CoV-2 Not Detected | Influenza A Not Detected"
    assert by_barcode["B7"].sample_date == "03/02/2024"
    assert by_barcode["B7"].updated_time > by_barcode["B7"].created_time


@pytest.mark.asyncio
async def test_no_result_yet_leaves_sample_untouched(database, roster):
    await add_samples(database, ("Jane Doe", "B1"), ("John Doe", "B2"))
    portal = FakePortal({"B1": b"", "B2": NO_RESULT_PAGE})
    before = {s.barcode: s.updated_time for s in await all_samples(database)}

    summary = await make_reconciler(database, roster, portal).run_pass()

    assert summary["not_ready"] == 2
    assert summary["errors"] == []
    for sample in await all_samples(database):
        assert sample.results == PENDING
        assert sample.sample_date is None
        assert sample.updated_time == before[sample.barcode]


@pytest.mark.asyncio
async def test_unrecognized_layout_stays_pending(database, roster):
    await add_samples(database, ("Jane Doe", "B6"))
    six_cells = b"<table><tr>" + b"".join(b"<td>c%d</td>" % i for i in range(6)) + b"</tr></table>"
    portal = FakePortal({"B6": six_cells})

    summary = await make_reconciler(database, roster, portal).run_pass()

    assert summary["unrecognized"] == 1
    assert "unrecognized layout (6 cells)" in summary["errors"][0]
    assert (await all_samples(database))[0].results == PENDING


@pytest.mark.asyncio
async def test_soft_failures_do_not_abort_the_pass(database, roster):
    await add_samples(
        database,
        ("Nobody Known", "B0"),
        ("Jane Doe", "NET"),
        ("Jane Doe", "BAD"),
        ("John Doe", "OK"),
    )
    portal = FakePortal({
        "NET": PortalError("Retrieve results error: timed out", "NET"),
        "BAD": BrokenBody(),
        "OK": RESULT_PAGE_4,
    })

    summary = await make_reconciler(database, roster, portal).run_pass()

    assert summary["checked"] == 4
    assert summary["no_match"] == 1
    assert summary["network_error"] == 1
    assert summary["scrape_error"] == 1
    assert summary["resolved"] == 1
    # Unknown holders never reach the portal
    assert "B0" not in [barcode for barcode, _ in portal.calls]

    results = {s.barcode: s.results for s in await all_samples(database)}
    assert results == {"B0": PENDING, "NET": PENDING, "BAD": PENDING, "OK": "H1 H2"}

    last = await make_reconciler(database, roster, portal).last_run()
    assert last.status == SyncStatus.PARTIAL
    assert last.samples_checked == 4
    assert last.samples_resolved == 1


@pytest.mark.asyncio
async def test_resolved_samples_are_not_polled_again(database, roster):
    await add_samples(database, ("Jane Doe", "B4"), ("John Doe", "DONE", "Negative 01/01/2024"))
    portal = FakePortal({"B4": RESULT_PAGE_4})
    reconciler = make_reconciler(database, roster, portal)

    await reconciler.run_pass()
    second = await reconciler.run_pass()

    assert portal.calls == [("B4", "01/31/1980")]
    assert second["checked"] == 0
    assert (await reconciler.last_run()).status == SyncStatus.SUCCESS


@pytest.mark.asyncio
async def test_duplicate_barcode_is_fatal_and_rolled_back(database, roster):
    await add_samples(database, ("Jane Doe", "DUP"), ("John Doe", "DUP"))
    portal = FakePortal({"DUP": RESULT_PAGE_4})
    reconciler = make_reconciler(database, roster, portal)

    with pytest.raises(IntegrityViolation) as info:
        await reconciler.run_pass()

    assert info.value.barcode == "DUP"
    assert info.value.rows_affected == 2
    assert [s.results for s in await all_samples(database)] == [PENDING, PENDING]
    assert (await reconciler.last_run()).status == SyncStatus.FAILED


@pytest.mark.asyncio
async def test_commit_for_vanished_barcode_is_fatal(database, roster):
    reconciler = make_reconciler(database, roster, FakePortal())
    parsed = ParsedResult(ResultStatus.RESOLVED, cell_count=4, text="H1 H2", sample_date="H2")

    async with database.session_maker() as session:
        with pytest.raises(IntegrityViolation) as info:
            await reconciler.commit_result(session, "GONE", parsed)

    assert info.value.rows_affected == 0


@pytest.mark.asyncio
async def test_dry_run_reports_without_writing(database, roster):
    await add_samples(database, ("Jane Doe", "B4"))
    reconciler = make_reconciler(database, roster, FakePortal({"B4": RESULT_PAGE_4}))

    summary = await reconciler.run_pass(dry_run=True)

    assert summary["resolved"] == 1
    assert summary["samples"] == [{
        "barcode": "B4",
        "name": "Jane Doe",
        "status": "resolved",
        "cell_count": 4,
        "text": "H1 H2",
        "sample_date": "H2",
    }]
    assert (await all_samples(database))[0].results == PENDING
    assert await reconciler.last_run() is None


@pytest.mark.asyncio
async def test_pass_against_mocked_portal(database, roster):
    await add_samples(database, ("John Doe", "B7"))

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=RESULT_PAGE_7)

    portal = PortalClient("https://portal.test/result", transport=httpx.MockTransport(handler))
    try:
        summary = await make_reconciler(database, roster, portal).run_pass()
    finally:
        await portal.close()

    assert summary["resolved"] == 1
    assert (await all_samples(database))[0].sample_date == "03/02/2024"

import pytest
from unittest.mock import AsyncMock, MagicMock

from boba_gallery.core.gallery import GallerySession
from boba_gallery.core.renderer import NO_SUBMISSIONS_MESSAGE, GalleryRenderer, HtmlGridRenderer
from boba_gallery.integrations.query_client import FetchError
from boba_gallery.models import GalleryFilter, StatusFilter, Submission


def many_submissions(count):
    return [
        Submission.model_validate({"id": f"rec{i}", "fields": {"Title": f"Project {i}"}})
        for i in range(count)
    ]


@pytest.fixture
def query_client():
    client = MagicMock()
    client.fetch_submissions = AsyncMock(return_value=[])
    return client


@pytest.fixture
def session(query_client):
    grid = HtmlGridRenderer(GalleryRenderer(cdn_host="cdn.hackclub.com"))
    return GallerySession(query_client, grid, batch_size=12, scroll_threshold=1000)


@pytest.mark.asyncio
async def test_apply_filter_renders_first_batch(session, query_client):
    query_client.fetch_submissions.return_value = many_submissions(30)
    gallery_filter = GalleryFilter(status=StatusFilter.APPROVED, event_code="BOBA24")

    first = await session.apply_filter(gallery_filter)

    assert len(first) == 12
    assert session.markup.count('class="grid-submission"') == 12
    query_client.fetch_submissions.assert_awaited_once_with(gallery_filter)


@pytest.mark.asyncio
async def test_scrolling_loads_remaining_batches(session, query_client):
    query_client.fetch_submissions.return_value = many_submissions(30)
    await session.apply_filter()

    assert len(session.on_scroll(scroll_top=2500, viewport_height=800, content_height=3000)) == 12
    assert len(session.on_scroll(scroll_top=5500, viewport_height=800, content_height=6000)) == 6
    assert session.on_scroll(scroll_top=9000, viewport_height=800, content_height=9000) == []
    assert session.markup.count('class="grid-submission"') == 30


@pytest.mark.asyncio
async def test_zero_records_shows_empty_state(session):
    first = await session.apply_filter()

    assert first == []
    assert NO_SUBMISSIONS_MESSAGE in session.markup


@pytest.mark.asyncio
async def test_fetch_error_shows_empty_state(session, query_client):
    query_client.fetch_submissions.side_effect = FetchError("HTTP error! status: 503", 503)

    first = await session.apply_filter()

    assert first == []
    assert NO_SUBMISSIONS_MESSAGE in session.markup
    assert not session.controller.has_more


@pytest.mark.asyncio
async def test_new_filter_replaces_previous_results(session, query_client):
    query_client.fetch_submissions.return_value = many_submissions(5)
    await session.apply_filter()

    query_client.fetch_submissions.return_value = many_submissions(2)
    await session.apply_filter(GalleryFilter(status=StatusFilter.PENDING))

    assert session.markup.count('class="grid-submission"') == 2
    assert session.gallery_filter.status is StatusFilter.PENDING


@pytest.mark.asyncio
async def test_search_event_code_keeps_status(session):
    await session.apply_filter(GalleryFilter(status=StatusFilter.APPROVED))

    assert session.search_event_code("  BOBA 24 ") == "?eventCode=BOBA+24&status=Approved"


@pytest.mark.asyncio
async def test_apply_query_params_parses_page_url(session, query_client):
    query_client.fetch_submissions.return_value = many_submissions(3)

    first = await session.apply_query_params({"status": "Rejected", "eventCode": " EV9 "})

    assert len(first) == 3
    query_client.fetch_submissions.assert_awaited_once_with(
        GalleryFilter(status=StatusFilter.REJECTED, event_code="EV9")
    )
    assert session.gallery_filter.event_code == "EV9"


@pytest.mark.asyncio
async def test_apply_query_params_unknown_status_means_all(session, query_client):
    await session.apply_query_params({"status": "bogus"})

    assert session.gallery_filter == GalleryFilter()


@pytest.mark.parametrize("batch_size", [0, -3])
def test_invalid_batch_size(query_client, batch_size):
    with pytest.raises(ValueError):
        GallerySession(query_client, HtmlGridRenderer(GalleryRenderer(cdn_host="cdn.hackclub.com")), batch_size=batch_size)

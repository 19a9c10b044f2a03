import pytest

from csfd_scraper.errors import ElementNotFoundError
from csfd_scraper.errors import InvalidIdError
from csfd_scraper.errors import InvalidUrlError
from csfd_scraper.errors import NotFoundError
from csfd_scraper.scraper import CsfdScraper

# Mark all tests in this file as async
pytestmark = pytest.mark.asyncio


async def test_search_builds_query_path(csfd, scraper, html):
    csfd.script("/hledat/", (200, html("search.html")))

    result = await scraper.search("  Teorie velkého třesku ")

    request = csfd.requests[0]
    assert request["path"] == "/hledat/"
    assert request["query"] == {"q": "Teorie velkého třesku"}
    assert len(result.items) == 4
    assert result.current_page == 1
    assert result.has_next_page is True


async def test_search_page_reports_requested_page(csfd, scraper, html):
    csfd.script("/hledat/", (200, html("search.html")))

    result = await scraper.search_page("teorie", 2)

    assert csfd.requests[0]["query"] == {"q": "teorie", "page": "2"}
    # the fixture marks page 1 as active, the requested page wins
    assert result.current_page == 2


async def test_search_escapes_reserved_characters(csfd, scraper, html):
    csfd.script("/hledat/", (200, html("search_empty.html")))

    result = await scraper.search("Dr. House & spol?")

    assert csfd.requests[0]["query"] == {"q": "Dr. House & spol?"}
    assert result.items == []


@pytest.mark.parametrize("query", ["", "   ", None])
async def test_search_rejects_empty_query(csfd, scraper, query):
    with pytest.raises(InvalidUrlError) as exc_info:
        await scraper.search(query)

    assert str(exc_info.value) == "Invalid URL: Search query cannot be empty"
    assert csfd.requests == []


@pytest.mark.parametrize("page", [0, -1, True, "2"])
async def test_search_page_rejects_bad_page(csfd, scraper, page):
    with pytest.raises(InvalidUrlError):
        await scraper.search_page("teorie", page)

    assert csfd.requests == []


async def test_get_series(csfd, scraper, html):
    csfd.script("/film/234260/prehled/", (200, html("series.html")))

    detail = await scraper.get_series(234260)

    assert detail.csfd_id == 234260
    assert detail.name == "Teorie velkého třesku"
    assert len(detail.seasons) == 3


async def test_get_series_not_found(csfd, scraper):
    with pytest.raises(NotFoundError):
        await scraper.get_series(999999)

    assert csfd.hits("/film/999999/prehled/") == 1


async def test_get_series_page_without_name(csfd, scraper):
    csfd.script("/film/5/prehled/", (200, "<html><body></body></html>"))

    with pytest.raises(ElementNotFoundError):
        await scraper.get_series(5)


@pytest.mark.parametrize("bad_id", [0, -5, True, "234260", 1.5, None])
async def test_get_series_rejects_invalid_id(csfd, scraper, bad_id):
    with pytest.raises(InvalidIdError):
        await scraper.get_series(bad_id)

    assert csfd.requests == []


async def test_get_episodes(csfd, scraper, html):
    csfd.script("/film/234260/epizody/", (200, html("episodes.html")))

    episodes = await scraper.get_episodes(234260)

    assert [e.episode_code for e in episodes] == ["S01E01", "S01E02", "S01E03"]


async def test_get_episodes_empty_page(csfd, scraper):
    csfd.script("/film/234260/epizody/", (200, "<html><body></body></html>"))

    assert await scraper.get_episodes(234260) == []


async def test_get_season_episodes(csfd, scraper, html):
    csfd.script("/film/100/200/epizody/", (200, html("episodes_table.html")))

    episodes = await scraper.get_season_episodes(100, 200)

    assert csfd.hits("/film/100/200/epizody/") == 1
    assert len(episodes) == 4


async def test_get_season_episodes_validates_both_ids(csfd, scraper):
    with pytest.raises(InvalidIdError) as exc_info:
        await scraper.get_season_episodes(100, 0)

    assert str(exc_info.value) == "Invalid CSFD ID: 0"
    assert csfd.requests == []


async def test_scraper_closes_its_client(make_settings):
    scraper = CsfdScraper(settings=make_settings("http://127.0.0.1:1"))
    session = scraper.client.session

    async with scraper:
        pass

    assert session.closed


@pytest.mark.parametrize("query", [5, ["teorie"], b"teorie"])
async def test_search_rejects_non_text_query(csfd, scraper, query):
    with pytest.raises(InvalidUrlError):
        await scraper.search(query)

    assert csfd.requests == []

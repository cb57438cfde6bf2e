import re

import pytest

from fakes import FakePage, make_drums, open_drums
from playdrums import (
    BrowserAlreadyOpenError,
    BrowserNotOpenError,
    PlayDrums,
    TargetNotFoundError,
    get_playdrums,
    set_playdrums,
)
from playdrums.session import ContextRecord, Session


async def _two_pages():
    drums, playwright = await open_drums()
    first = drums.page
    await drums.goto("https://a.test/")
    first._title = "Alpha"
    await drums.open_page(url="https://b.test/")
    second = drums.page
    second._title = "Beta"
    return drums, first, second


@pytest.mark.asyncio
async def test_open_browser_twice_is_rejected():
    drums, playwright = make_drums()
    await drums.open_browser()
    with pytest.raises(BrowserAlreadyOpenError):
        await drums.open_browser()
    assert len(playwright.chromium.launched) == 1


@pytest.mark.asyncio
async def test_open_browser_with_url_opens_context_and_page():
    drums, playwright = make_drums()
    await drums.open_browser(url="example.test")

    assert drums.page is not None
    assert drums.current_url() == "http://example.test"
    assert drums.session.context.name.startswith("default-")
    assert playwright.chromium.launched[0].launch_options == {"headless": True}


@pytest.mark.asyncio
async def test_unknown_browser_type_fails_before_launch():
    drums, playwright = make_drums()
    with pytest.raises(ValueError):
        await drums.open_browser(browser_type="opera")
    assert drums.browser is None


@pytest.mark.asyncio
async def test_operations_require_an_open_page():
    drums, _ = make_drums()
    with pytest.raises(BrowserNotOpenError):
        await drums.goto("https://a.test/")
    with pytest.raises(BrowserNotOpenError):
        drums.current_url()


@pytest.mark.asyncio
async def test_open_page_creates_a_context_when_missing():
    drums, _ = make_drums()
    await drums.open_browser()
    await drums.open_page()
    assert drums.context is not None
    assert drums.session.history[-1].event == "new"
    assert len(drums.session.page_id(drums.page)) == 36


@pytest.mark.asyncio
async def test_duplicate_context_names_are_rejected():
    drums, _ = await open_drums()
    with pytest.raises(ValueError):
        await drums.open_context(context_name="main")


@pytest.mark.asyncio
async def test_device_descriptor_is_applied_to_new_context():
    drums, _ = await open_drums()
    await drums.open_context(context_name="mobile", device="iPhone 13")

    options = drums.context.options
    assert options["viewport"] == {"width": 390, "height": 664}
    assert options["is_mobile"] is True
    assert "default_browser_type" not in options


@pytest.mark.asyncio
async def test_switch_page_by_exact_url_title_and_regex():
    drums, first, second = await _two_pages()

    await drums.switch_page("https://a.test/")
    assert drums.page is first
    await drums.switch_page("Beta")
    assert drums.page is second
    await drums.switch_page(re.compile(r"a\.test"))
    assert drums.page is first
    assert [entry.event for entry in drums.session.history][-1] == "switch"


@pytest.mark.asyncio
async def test_switch_page_errors():
    drums, _, _ = await _two_pages()
    with pytest.raises(TargetNotFoundError):
        await drums.switch_page("https://a.test")
    with pytest.raises(TypeError):
        await drums.switch_page(42)


@pytest.mark.asyncio
async def test_closing_current_page_restores_previous_one():
    drums, first, second = await _two_pages()

    await drums.close_page()

    assert second.closed
    assert drums.page is first
    assert drums.current_url() == "https://a.test/"
    assert all(entry.page is not second for entry in drums.session.history)


@pytest.mark.asyncio
async def test_closing_another_page_keeps_the_current_one():
    drums, first, second = await _two_pages()
    await drums.switch_page("Alpha")

    await drums.close_page("https://b.test/")

    assert second.closed
    assert drums.page is first


@pytest.mark.asyncio
async def test_close_page_without_match_raises():
    drums, _, _ = await _two_pages()
    with pytest.raises(TargetNotFoundError, match="Unable to find tab"):
        await drums.close_page(re.compile("nowhere"))


@pytest.mark.asyncio
async def test_close_page_by_context_name_closes_that_contexts_tab():
    drums, first, second = await _two_pages()
    await drums.open_context(context_name="second", url="https://c.test/")
    third = drums.page

    await drums.close_page(context_name="main")

    assert second.closed
    assert not first.closed
    assert drums.page is third
    assert all(entry.page is not second for entry in drums.session.history)

    await drums.close_page(context_name="second")

    assert third.closed
    assert drums.page is first


@pytest.mark.asyncio
async def test_close_page_by_context_name_without_tabs_does_nothing():
    drums, _, second = await _two_pages()
    await drums.open_context(context_name="empty", url="https://c.test/")
    await drums.close_page()
    assert drums.page is second
    history = list(drums.session.history)

    await drums.close_page(context_name="empty")

    assert drums.page is second
    assert drums.session.history == history


@pytest.mark.asyncio
async def test_page_closed_by_the_browser_is_forgotten():
    drums, first, second = await _two_pages()
    await second.close()
    assert drums.page is first


@pytest.mark.asyncio
async def test_popup_switched_to_is_forgotten_when_it_closes():
    drums, _, second = await _two_pages()
    context = drums.context
    popup = FakePage(context, url="https://popup.test/")
    context.pages.append(popup)

    await drums.switch_page("https://popup.test/")
    assert drums.page is popup
    assert drums.session.page_id(popup) is not None

    await popup.close()

    assert drums.page is second
    assert all(entry.page is not popup for entry in drums.session.history)
    assert drums.session.page_id(popup) is None


def test_forgetting_a_context_drops_its_page_ids():
    session = Session()
    kept = ContextRecord(context=object(), name="main")
    page, other = object(), object()
    closing = ContextRecord(context=type("Ctx", (), {"pages": [page]})(), name="second")
    session.contexts = [kept, closing]
    session.tag_page(other)
    session.tag_page(page)
    session.push("new", kept, other)
    session.push("new", closing, page)

    assert session.forget_context(closing) is True

    assert session.page_id(page) is None
    assert session.page_id(other) is not None
    assert [entry.page for entry in session.history] == [other]


@pytest.mark.asyncio
async def test_switch_context_and_close_context_restore():
    drums, first, _ = await _two_pages()
    await drums.open_context(context_name="second", url="https://c.test/")
    third = drums.page

    await drums.switch_context("https://a.test/")
    assert drums.page is first
    await drums.switch_context(re.compile("c.test"), name="second")
    assert drums.page is third

    await drums.close_context()

    assert drums.session.context.name == "main"
    assert drums.page is first
    assert third.closed
    with pytest.raises(TargetNotFoundError):
        await drums.close_context("second")


@pytest.mark.asyncio
async def test_closing_a_background_context_keeps_current_page():
    drums, first, _ = await _two_pages()
    await drums.open_context(context_name="second", url="https://c.test/")
    await drums.switch_context("Alpha")

    await drums.close_context("second")

    assert drums.page is first
    assert [record.name for record in drums.session.contexts] == ["main"]


@pytest.mark.asyncio
async def test_close_browser_is_idempotent():
    drums, playwright = await open_drums()
    browser = drums.browser

    await drums.close_browser()
    await drums.close_browser()

    assert browser.closed
    assert playwright.stopped
    assert drums.page is None
    assert drums.session.history == []


@pytest.mark.asyncio
async def test_async_context_manager_closes_browser():
    drums, playwright = make_drums()
    async with drums:
        await drums.open_browser()
    assert playwright.stopped
    assert drums.browser is None


def test_default_facade_can_be_replaced():
    custom = PlayDrums()
    set_playdrums(custom)
    try:
        assert get_playdrums() is custom
    finally:
        set_playdrums(None)
    assert isinstance(get_playdrums(), PlayDrums)
    set_playdrums(None)

import asyncio

import pytest

from fakes import FakeElement, FakeFrame, open_drums
from playdrums import ElementNotFoundError, Selector


@pytest.mark.asyncio
async def test_exists_is_false_when_nothing_matches_eagerly():
    drums, _ = await open_drums()
    selector = drums.select("#missing")
    assert await selector.exists() is False
    assert await selector.is_visible() is False


@pytest.mark.asyncio
async def test_actions_on_missing_element_raise_not_found():
    drums, _ = await open_drums()
    with pytest.raises(ElementNotFoundError, match="Unable to find #missing"):
        await drums.select("#missing").text()


@pytest.mark.asyncio
async def test_implicit_wait_raises_after_retry_timeout():
    drums, _ = await open_drums(implicit_wait=True, retry_interval=10, retry_timeout=80)
    selector = drums.select("#never")

    with pytest.raises(ElementNotFoundError):
        await selector.exists()
    # The lookup was attempted more than once before giving up.
    assert drums.page.main_frame.queries.count("#never") > 1


@pytest.mark.asyncio
async def test_implicit_wait_finds_element_that_appears_later():
    drums, _ = await open_drums(implicit_wait=True, retry_interval=10, retry_timeout=2000)
    element = FakeElement(text="ready")
    frame = drums.page.main_frame

    async def render_later():
        await asyncio.sleep(0.05)
        frame.elements["#status"] = [element]

    renderer = asyncio.ensure_future(render_later())
    assert await drums.select("#status").text() == "ready"
    await renderer


@pytest.mark.asyncio
async def test_falls_back_to_text_then_attribute_xpath():
    drums, _ = await open_drums()
    frame = drums.page.main_frame
    button = FakeElement(text="Sign in")
    field = FakeElement(value="")
    frame.elements['//*[text()="Sign in"]'] = [button]
    frame.elements['//*[@*="username"]'] = [field]

    sign_in = drums.select("Sign in")
    assert await sign_in.get_element_handle() is button
    assert sign_in.selector == '//*[text()="Sign in"]'

    username = drums.select("username")
    assert await username.get_element_handle() is field
    assert username.selector == '//*[@*="username"]'


@pytest.mark.asyncio
async def test_invalid_selector_counts_as_a_miss():
    drums, _ = await open_drums()
    drums.page.main_frame.invalid.add("[[bad")
    assert await drums.select("[[bad").exists() is False


@pytest.mark.asyncio
async def test_elements_in_child_frames_are_found():
    drums, _ = await open_drums()
    inner = FakeElement(text="inside the iframe")
    drums.page.frames.append(FakeFrame({"#deep": [inner]}))

    assert await drums.select("#deep").text() == "inside the iframe"


@pytest.mark.asyncio
async def test_first_frame_to_answer_wins():
    drums, _ = await open_drums()
    slow = FakeElement(text="slow")
    fast = FakeElement(text="fast")
    drums.page.main_frame.elements["#item"] = [slow]
    drums.page.main_frame.delay = 0.2
    drums.page.frames.append(FakeFrame({"#item": [fast]}))

    assert await drums.select("#item").get_element_handle() is fast


@pytest.mark.asyncio
async def test_hidden_elements_are_skipped_when_configured():
    drums, _ = await open_drums(match_hidden_element=False)
    hidden = FakeElement(text="hidden", visible=False)
    shown = FakeElement(text="shown")
    drums.page.main_frame.elements["button"] = [hidden, shown]

    assert await drums.select("button").text() == "shown"
    assert await drums.select("button").elements() == [shown]


@pytest.mark.asyncio
async def test_element_detached_during_visibility_check_counts_as_a_miss():
    drums, _ = await open_drums(match_hidden_element=False)
    gone = FakeElement(text="gone")
    gone.detached = True
    shown = FakeElement(text="shown")
    banner = FakeFrame(elements={"#item": [gone]})
    drums.page.frames.append(banner)
    drums.page.main_frame.elements["#item"] = [shown]

    assert await drums.select("#item").text() == "shown"
    assert await drums.select("#item").elements() == [shown]

    drums.page.main_frame.elements["#item"] = []
    assert await drums.select("#item").exists() is False


@pytest.mark.asyncio
async def test_child_selector_is_scoped_to_parent():
    drums, _ = await open_drums()
    label = FakeElement(text="Total")
    row = FakeElement(children={"span": [label]})
    drums.page.main_frame.elements["tr.summary"] = [row]
    drums.page.main_frame.elements["span"] = [FakeElement(text="somewhere else")]

    row_selector = drums.select("tr.summary")
    assert await row_selector.select_child("span").text() == "Total"
    assert await row_selector.S("span").text() == "Total"


@pytest.mark.asyncio
async def test_bound_handle_skips_lookup():
    drums, _ = await open_drums()
    element = FakeElement(value="abc")
    selector = drums.select(element)

    assert await selector.get_element_handle() is element
    assert await selector.value() == "abc"
    assert drums.page.main_frame.queries == []


@pytest.mark.asyncio
async def test_element_state_helpers():
    drums, _ = await open_drums()
    box = FakeElement()
    drums.page.main_frame.elements["#agree"] = [box]
    selector = drums.select("#agree")

    await selector.check()
    assert await selector.is_checked() is True
    await selector.uncheck()
    assert await selector.is_checked() is False
    assert await selector.select("blue") == ["blue"]


@pytest.mark.asyncio
async def test_patterns_are_resolved_again_on_every_use():
    drums, _ = await open_drums()
    frame = drums.page.main_frame
    before = FakeElement(text="before")
    after = FakeElement(text="after")
    frame.elements["#msg"] = [before]
    selector = drums.select("#msg")

    assert await selector.text() == "before"
    frame.elements["#msg"] = [after]
    assert await selector.text() == "after"


def test_selector_rejects_empty_patterns():
    with pytest.raises(ValueError):
        Selector(None, "   ")
    with pytest.raises(TypeError):
        Selector(None, None)

"""Tests for Element handles: identity, queries and pointer actions."""

import logging

import pytest

from cdpdriver.actor.element import Element
from cdpdriver.actor.locator import By

CENTER = "getClientRects()"
OBSCURED = "elementFromPoint"
DISPLAYED = "style.display"
ENABLED = "element.disabled"
SCROLL = "scrollIntoView"


def mouse_events(connection):
    return [
        (params["type"], params["x"], params["y"], params["button"], params["clickCount"])
        for params in connection.params_for("Input.dispatchMouseEvent")
    ]


@pytest.fixture()
def actionable_page(page):
    """A page where the element is visible, enabled and unobscured at (50, 20)."""
    page.when(OBSCURED, False)
    page.when(CENTER, {"x": 50, "y": 20})
    page.when(DISPLAYED, True)
    page.when(ENABLED, True)
    page.when(SCROLL, True)
    return page


class TestIdentity:
    """Tests for equality, hashing and string form."""

    def test_equal_by_reference_id(self, driver):
        """Handles with the same reference id are equal whatever their locator."""
        first = Element(driver, By.css("Link", "a"), "ref1")
        second = Element(driver, By.xpath("Anchor", "//a"), "ref1")
        other = Element(driver, By.css("Link", "a"), "ref2")

        assert first == second
        assert hash(first) == hash(second)
        assert first != other
        assert len({first, second, other}) == 2

    def test_str_chains_parents(self, driver):
        """A child's string shows the locator chain from the root."""
        table = Element(driver, By.id("Table", "orders"), "t1")
        row = Element(driver, By.css("Row[1]", "tr"), "r2", parent=table)

        assert str(table) == "{'name': 'Table', 'type': 'ID', 'locator': 'orders'}"
        assert str(row) == (
            "{'name': 'Table', 'type': 'ID', 'locator': 'orders'} --> "
            "{'name': 'Row[1]', 'type': 'CSS', 'locator': 'tr'}"
        )


class TestChildLookup:
    """Tests for finding elements under an element."""

    @pytest.mark.asyncio
    async def test_lookup_is_scoped_to_parent(self, driver, page):
        """The lookup script carries the parent's reference id."""
        page.when("var parentId", ["c1", "c2"])
        table = Element(driver, By.id("Table", "orders"), "t1")

        cells = await table.find_elements(By.css("Cell", "td"))

        (script,) = page.matching("var parentId")
        assert 'var parentId = "t1";' in script
        assert [cell.parent for cell in cells] == [table, table]
        assert [cell.by.name for cell in cells] == ["Cell[0]", "Cell[1]"]


class TestQueries:
    """Tests for element queries."""

    @pytest.mark.asyncio
    async def test_reference_id_and_arguments_are_json_literals(self, driver, page):
        """get_attribute passes the reference id and attribute name as JSON strings."""
        page.when("getAttribute", "https://example.com/")
        link = Element(driver, By.css("Link", "a"), "ref1")

        assert await link.get_attribute("href") == "https://example.com/"
        (script,) = page.matching("getAttribute")
        assert 'var referenceId = "ref1";' in script
        assert 'element.getAttribute("href")' in script

    @pytest.mark.asyncio
    async def test_get_rect(self, driver, page):
        """get_rect returns a Rect; location and size derive from it."""
        page.when("getBoundingClientRect", {"x": 1, "y": 2, "width": 30, "height": 40})
        box = Element(driver, By.css("Box", ".box"), "b1")

        rect = await box.get_rect()
        assert (rect.x, rect.y, rect.width, rect.height) == (1, 2, 30, 40)
        assert (await box.get_size()).width == 30
        assert (await box.get_location()).y == 2

    @pytest.mark.asyncio
    async def test_is_element_actionable_times_out(self, driver, page):
        """A hidden element is not actionable once the timeout passes."""
        page.when(DISPLAYED, False)
        box = Element(driver, By.css("Box", ".box"), "b1")
        assert await box.is_element_actionable(timeout=0.03) is False


class TestPointerActions:
    """Tests for click, double click and drag."""

    @pytest.mark.asyncio
    async def test_click_moves_then_presses_and_releases(self, driver, actionable_page, fake_connection):
        """A click is a move to the center then one press/release pair."""
        button = Element(driver, By.css("Submit", "button"), "b1")
        await button.click()

        assert mouse_events(fake_connection) == [
            ("mouseMoved", 50, 20, "none", 0),
            ("mousePressed", 50, 20, "left", 1),
            ("mouseReleased", 50, 20, "left", 1),
        ]
        assert actionable_page.matching(SCROLL)

    @pytest.mark.asyncio
    async def test_double_click_counts_up(self, driver, actionable_page, fake_connection):
        """A double click sends press/release with clickCount 1 then 2."""
        button = Element(driver, By.css("Item", "li"), "i1")
        await button.double_click()

        assert [event[0] + str(event[4]) for event in mouse_events(fake_connection)] == [
            "mouseMoved0",
            "mousePressed1",
            "mouseReleased1",
            "mousePressed2",
            "mouseReleased2",
        ]

    @pytest.mark.asyncio
    async def test_click_carries_held_modifiers(self, driver, actionable_page, fake_connection):
        """Mouse events carry the driver's held modifiers."""
        await driver.key_down("Control")
        await Element(driver, By.css("Link", "a"), "a1").click()
        assert {params["modifiers"] for params in fake_connection.params_for("Input.dispatchMouseEvent")} == {2}

    @pytest.mark.asyncio
    async def test_drag_drop(self, driver, actionable_page, fake_connection):
        """Drag presses at the center, moves by the offset with the button held and releases."""
        handle = Element(driver, By.css("Handle", ".handle"), "h1")
        await handle.drag_drop(100, 5)

        assert mouse_events(fake_connection) == [
            ("mouseMoved", 50, 20, "none", 0),
            ("mousePressed", 50, 20, "left", 1),
            ("mouseMoved", 150, 25, "left", 0),
            ("mouseReleased", 150, 25, "left", 1),
        ]

    @pytest.mark.asyncio
    async def test_obscured_element_is_clicked_with_warning(self, driver, page, fake_connection, caplog):
        """An element that never becomes actionable is still clicked, with a warning."""
        page.when(OBSCURED, True)
        page.when(CENTER, {"x": 5, "y": 5})
        page.when(DISPLAYED, True)
        page.when(ENABLED, True)
        driver.default_timeout = 0.03

        with caplog.at_level(logging.WARNING, logger="cdpdriver.actor.element"):
            await Element(driver, By.css("Covered", ".covered"), "c1").click()

        assert any("not actionable" in record.getMessage() for record in caplog.records)
        assert len(fake_connection.params_for("Input.dispatchMouseEvent")) == 3


class TestValueActions:
    """Tests for typing into and capturing elements."""

    @pytest.mark.asyncio
    async def test_send_keys_appends_value(self, driver, page):
        """send_keys appends the text to the element's value."""
        field = Element(driver, By.id("Query", "q"), "q1")
        await field.send_keys('say "hi"')
        (script,) = page.matching("element.value = element.value +")
        assert 'element.value + "say \\"hi\\""' in script

    @pytest.mark.asyncio
    async def test_capture_screenshot_clips_to_document_rect(self, driver, page, fake_connection):
        """The screenshot clip uses document coordinates."""
        page.when("window.scrollX", {"x": 10, "y": 1200, "width": 200, "height": 50})
        page.when(SCROLL, True)
        fake_connection.on("Page.captureScreenshot", {"data": "iVBORw0KGgo="})

        data = await Element(driver, By.css("Card", ".card"), "c1").capture_screenshot()

        assert data == "iVBORw0KGgo="
        (params,) = fake_connection.params_for("Page.captureScreenshot")
        assert params["clip"] == {"scale": 1, "x": 10, "y": 1200, "width": 200, "height": 50}

    @pytest.mark.asyncio
    async def test_capture_screenshot_of_empty_element_is_blank(self, driver, page, fake_connection):
        """An element without area yields an empty string and no capture command."""
        page.when("window.scrollX", {"x": 10, "y": 20, "width": 0, "height": 0})
        page.when(SCROLL, True)
        fake_connection.on("Page.captureScreenshot", {"data": "iVBORw0KGgo="})

        data = await Element(driver, By.css("Spacer", ".spacer"), "s1").capture_screenshot()

        assert data == ""
        assert fake_connection.params_for("Page.captureScreenshot") == []

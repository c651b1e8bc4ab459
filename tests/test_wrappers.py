"""Tests for the driver/element wrappers: logging and natural-language resolution."""

import logging
from unittest.mock import AsyncMock

import pytest

from cdpdriver.actor.element import Element
from cdpdriver.actor.locator import By, LocatorType
from cdpdriver.actor.wrappers import (
    LoggingDriver,
    LoggingElement,
    NaturalLanguageDriver,
    NaturalLanguageElement,
)
from cdpdriver.exceptions import NotFound
from cdpdriver.llm.base import LocatorResolver

FIND = "var parentId"
SOURCE = "<html><body><button id='go'>Go</button></body></html>"


class FakeResolver(LocatorResolver):
    """Resolver answering from a fixed selector."""

    def __init__(self, selector):
        self.resolve = AsyncMock(return_value=selector)

    @property
    def model(self):
        return "fake-model"

    async def resolve(self, html, description):  # replaced per instance in __init__
        raise NotImplementedError


@pytest.fixture()
def source_page(page):
    page.when("outerHTML", SOURCE)
    page.when(FIND, ["go1"])
    return page


# ===========================================================================
# LoggingDriver
# ===========================================================================


class TestLoggingDriver:
    """Tests for LoggingDriver and LoggingElement."""

    @pytest.mark.asyncio
    async def test_calls_are_logged_and_delegated(self, driver, page, caplog):
        """Each call is logged with its arguments and still returns the inner result."""
        page.when("document.title", "Example Domain")
        logged = LoggingDriver(driver)

        with caplog.at_level(logging.DEBUG, logger="cdpdriver.actor.wrappers"):
            title = await logged.get_title()

        assert title == "Example Domain"
        messages = [record.getMessage() for record in caplog.records]
        assert "driver.get_title()" in messages
        assert any(message.startswith("driver.get_title finished in") for message in messages)

    @pytest.mark.asyncio
    async def test_failures_are_logged_and_reraised(self, driver, page, caplog):
        """A failing call logs a warning and raises the original exception."""
        page.when(FIND, [])
        logged = LoggingDriver(driver)

        with caplog.at_level(logging.INFO, logger="cdpdriver.actor.wrappers"):
            with pytest.raises(NotFound):
                await logged.find_element(By.css("Missing", ".missing"), 0.02)

        warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "driver.find_element failed" in warnings[0].getMessage()
        assert "NotFound" in warnings[0].getMessage()

    @pytest.mark.asyncio
    async def test_found_elements_are_wrapped(self, driver, page, caplog):
        """Elements found through the wrapper log their own calls."""
        page.when(FIND, ["h1"])
        page.when("innerText", "Welcome")
        logged = LoggingDriver(driver)

        heading = await logged.find_element(By.css("Heading", "h1"))
        with caplog.at_level(logging.INFO, logger="cdpdriver.actor.wrappers"):
            text = await heading.get_text()

        assert isinstance(heading, LoggingElement)
        assert text == "Welcome"
        assert heading.reference_id == "h1"
        assert heading == Element(driver, By.css("Heading", "h1"), "h1")
        assert "element Heading.get_text()" in [record.getMessage() for record in caplog.records]

    def test_settings_pass_through(self, driver):
        """Settings read and write through to the wrapped driver."""
        logged = LoggingDriver(driver)
        logged.default_timeout = 4
        assert driver.default_timeout == 4
        assert logged.inner is driver


# ===========================================================================
# NaturalLanguageDriver
# ===========================================================================


class TestNaturalLanguageDriver:
    """Tests for resolving natural-language locators."""

    @pytest.mark.asyncio
    async def test_description_resolves_to_css(self, driver, source_page):
        """The page source and description go to the resolver; the result is a CSS lookup."""
        resolver = FakeResolver("#go")
        nl_driver = NaturalLanguageDriver(driver, resolver)

        button = await nl_driver.find_element(By.natural_language("Go button", "the go button"))

        resolver.resolve.assert_awaited_once_with(SOURCE, "the go button")
        assert isinstance(button, NaturalLanguageElement)
        assert button.reference_id == "go1"
        assert button.by.name == "Go button"
        assert button.by.type is LocatorType.CSS
        (script,) = source_page.matching(FIND)
        assert 'querySelectorAll("#go")' in script

    @pytest.mark.asyncio
    async def test_slash_selector_becomes_xpath(self, driver, source_page):
        """A selector starting with / is used as XPath."""
        nl_driver = NaturalLanguageDriver(driver, FakeResolver("//button[@id='go']"))

        button = await nl_driver.find_element(By.natural_language("Go", "the go button"))

        assert button.by.type is LocatorType.XPATH
        assert button.by.locator == "//button[@id='go']"

    @pytest.mark.asyncio
    async def test_structural_locators_skip_the_resolver(self, driver, source_page):
        """CSS, XPath and id locators are passed through untouched."""
        resolver = FakeResolver("#unused")
        nl_driver = NaturalLanguageDriver(driver, resolver)

        await nl_driver.find_element(By.css("Go", "#go"))

        resolver.resolve.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_child_lookup_resolves_too(self, driver, source_page):
        """Elements found through the wrapper resolve descriptions for their children."""
        resolver = FakeResolver("span")
        nl_driver = NaturalLanguageDriver(driver, resolver)
        form = await nl_driver.find_element(By.css("Form", "form"))

        await form.find_element(By.natural_language("Label", "the label inside"))

        resolver.resolve.assert_awaited_once_with(SOURCE, "the label inside")
        assert 'var parentId = "go1";' in source_page.matching(FIND)[-1]

    @pytest.mark.asyncio
    async def test_wrappers_stack(self, driver, source_page, caplog):
        """Logging around natural-language resolution logs the original locator and resolves it."""
        resolver = FakeResolver("#go")
        stacked = LoggingDriver(NaturalLanguageDriver(driver, resolver))

        with caplog.at_level(logging.INFO, logger="cdpdriver.actor.wrappers"):
            button = await stacked.find_element(By.natural_language("Go", "the go button"))

        assert isinstance(button, LoggingElement)
        assert isinstance(button.inner, NaturalLanguageElement)
        assert any(message.startswith("driver.find_element(") for message in (r.getMessage() for r in caplog.records))
        resolver.resolve.assert_awaited_once()

"""End-to-end tests against a real local browser.

Skipped when no Chromium-family browser is installed. Pages are served
from file:// URLs so no network access is needed.
"""

import base64

import pytest
import pytest_asyncio

from conftest import browser_available
from cdpdriver.actor.locator import By
from cdpdriver.browser.launcher import BrowserLauncher
from cdpdriver.browser.profile import LaunchProfile
from cdpdriver.exceptions import NotFound, StaleReference

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not browser_available(), reason="no Chromium-family browser found"),
]

PAGE = """<!doctype html>
<html>
<head><title>Orders</title></head>
<body>
  <h1 id="heading">Orders</h1>
  <input id="query" name="q" value="">
  <button id="go" onclick="document.getElementById('heading').textContent = 'Clicked'">Go</button>
  <ul id="list"><li>one</li><li>two</li><li>three</li></ul>
  <div id="doomed">soon gone</div>
</body>
</html>
"""


@pytest.fixture()
def page_url(tmp_path):
    path = tmp_path / "orders.html"
    path.write_text(PAGE)
    return path.as_uri()


@pytest_asyncio.fixture()
async def driver():
    async with await BrowserLauncher(LaunchProfile(headless=True)).launch() as browser:
        async with await browser.new_context() as context:
            yield await context.new_driver(default_timeout=2)


class TestRealBrowser:
    """Driver operations against a headless browser."""

    @pytest.mark.asyncio
    async def test_navigate_and_read(self, driver, page_url):
        await driver.navigate(page_url)
        assert await driver.get_title() == "Orders"
        assert await driver.get_current_url() == page_url
        heading = await driver.find_element(By.id("Heading", "heading"))
        assert await heading.get_text() == "Orders"

    @pytest.mark.asyncio
    async def test_find_many_and_missing(self, driver, page_url):
        await driver.navigate(page_url)
        items = await driver.find_elements(By.css("Item", "#list li"))
        assert [item.by.name for item in items] == ["Item[0]", "Item[1]", "Item[2]"]
        assert [await item.get_text() for item in items] == ["one", "two", "three"]

        again = await driver.find_elements(By.xpath("Item", "//ul[@id='list']/li"))
        assert again == items

        with pytest.raises(NotFound):
            await driver.find_element(By.css("Missing", ".missing"), timeout=0.2)

    @pytest.mark.asyncio
    async def test_click_and_type(self, driver, page_url):
        await driver.navigate(page_url)
        await (await driver.find_element(By.id("Go", "go"))).click()
        assert await (await driver.find_element(By.id("Heading", "heading"))).get_text() == "Clicked"

        query = await driver.find_element(By.id("Query", "query"))
        await query.click()
        await driver.send_keys("abc123")
        assert await query.get_attribute("name") == "q"
        assert await driver.evaluate("document.getElementById('query').value") == "abc123"

    @pytest.mark.asyncio
    async def test_detached_element_goes_stale(self, driver, page_url):
        await driver.navigate(page_url)
        doomed = await driver.find_element(By.id("Doomed", "doomed"))
        await driver.evaluate("document.getElementById('doomed').remove()")
        with pytest.raises(StaleReference):
            await doomed.get_text()

    @pytest.mark.asyncio
    async def test_navigation_invalidates_references(self, driver, page_url):
        await driver.navigate(page_url)
        heading = await driver.find_element(By.id("Heading", "heading"))
        await driver.refresh()
        with pytest.raises(StaleReference):
            await heading.get_text()

    @pytest.mark.asyncio
    async def test_screenshot_is_png(self, driver, page_url):
        await driver.navigate(page_url)
        data = base64.b64decode(await driver.capture_screenshot())
        assert data.startswith(b"\x89PNG")

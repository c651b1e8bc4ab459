"""Tests for the Ollama-backed locator resolver."""

from unittest.mock import AsyncMock

import httpx
import pytest
from ollama import ResponseError

from cdpdriver.exceptions import LocatorResolutionError
from cdpdriver.llm.ollama.resolver import OllamaLocatorResolver, clean_selector, sanitize_html


class TestSanitizeHtml:
    """Tests for HTML reduction before prompting."""

    def test_strips_scripts_styles_svg_and_comments(self):
        html = (
            "<html><head><style>body { color: red }</style>"
            "<script>var x = 1;</script></head>"
            "<body><!-- nav --><svg><path d='M0'/></svg>"
            "<noscript>enable js</noscript><button id='go'>Go</button></body></html>"
        )
        cleaned = sanitize_html(html)
        assert "color: red" not in cleaned
        assert "var x" not in cleaned
        assert "<svg" not in cleaned
        assert "nav" not in cleaned
        assert "enable js" not in cleaned
        assert "<button id='go'>Go</button>" in cleaned

    def test_collapses_whitespace(self):
        assert sanitize_html("<div>\n\n    <p>a</p>\n   </div>") == "<div> <p>a</p> </div>"

    def test_truncates_long_html(self):
        cleaned = sanitize_html("<p>" + "x" * 100 + "</p>", max_length=20)
        assert cleaned.endswith("<!-- HTML truncated -->")
        assert cleaned.startswith("<p>" + "x" * 17)


class TestCleanSelector:
    """Tests for normalising model answers."""

    @pytest.mark.parametrize(
        ("answer", "expected"),
        [
            ("#go", "#go"),
            ("  button.primary \n", "button.primary"),
            ("```css\n#go\n```", "#go"),
            ("\"//button[@id='go']\"", "//button[@id='go']"),
            ("`#go`", "#go"),
            ("#go\nThis selects the button.", "#go"),
            ("", ""),
        ],
    )
    def test_clean_selector(self, answer, expected):
        assert clean_selector(answer) == expected


class TestOllamaLocatorResolver:
    """Tests for OllamaLocatorResolver.resolve with a mocked client."""

    @pytest.mark.asyncio
    async def test_prompt_and_answer(self):
        """The prompt carries the cleaned HTML and description; the answer is cleaned."""
        client = AsyncMock()
        client.generate.return_value = {"response": " `#go` "}
        resolver = OllamaLocatorResolver(model="test-model", client=client)

        selector = await resolver.resolve("<script>x</script><button id='go'>Go</button>", "the go button")

        assert selector == "#go"
        assert resolver.model == "test-model"
        kwargs = client.generate.await_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["stream"] is False
        assert "<button id='go'>Go</button>" in kwargs["prompt"]
        assert "<script>" not in kwargs["prompt"]
        assert 'Find the element matching: "the go button"' in kwargs["prompt"]

    @pytest.mark.asyncio
    async def test_empty_answer_raises(self):
        client = AsyncMock()
        client.generate.return_value = {"response": "   "}
        resolver = OllamaLocatorResolver(model="test-model", client=client)

        with pytest.raises(LocatorResolutionError):
            await resolver.resolve("<p/>", "anything")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [ResponseError("model not found", 404), httpx.ConnectError("connection refused")],
    )
    async def test_client_errors_raise_resolution_error(self, error):
        """Server and transport errors surface as LocatorResolutionError."""
        client = AsyncMock()
        client.generate.side_effect = error
        resolver = OllamaLocatorResolver(model="test-model", client=client)

        with pytest.raises(LocatorResolutionError) as exc:
            await resolver.resolve("<p/>", "anything")
        assert exc.value.__cause__ is error

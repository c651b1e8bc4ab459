"""Selector resolution backed by a local Ollama model."""

from __future__ import annotations

import logging
import re

import httpx
from ollama import AsyncClient, ResponseError

from cdpdriver.config import CONFIG
from cdpdriver.exceptions import LocatorResolutionError
from cdpdriver.llm.base import LocatorResolver

logger = logging.getLogger(__name__)

MAX_HTML_LENGTH = 15000
TRUNCATION_NOTE = '\n<!-- HTML truncated -->'

_STRIPPED_BLOCKS = [
    re.compile(rf'<{tag}[^>]*>.*?</{tag}>', re.DOTALL | re.IGNORECASE)
    for tag in ('script', 'style', 'svg', 'noscript')
]
_COMMENT = re.compile(r'<!--.*?-->', re.DOTALL)
_WHITESPACE = re.compile(r'\s{2,}')
_CODE_FENCE = re.compile(r'^```[\w-]*\s*|\s*```$')

PROMPT_TEMPLATE = (
    'Given this HTML:\n{html}\n\n'
    'Find the element matching: "{description}"\n\n'
    'Return ONLY the CSS selector or XPath (starting with /) for the element. '
    'No explanation, no code blocks, just the selector string.'
)


def sanitize_html(html: str, max_length: int = MAX_HTML_LENGTH) -> str:
    """Drop scripts, styles, SVG, noscript blocks and comments, then collapse whitespace.

    Output longer than ``max_length`` is cut and marked as truncated.
    """
    cleaned = html
    for pattern in _STRIPPED_BLOCKS:
        cleaned = pattern.sub('', cleaned)
    cleaned = _COMMENT.sub('', cleaned)
    cleaned = _WHITESPACE.sub(' ', cleaned).strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length] + TRUNCATION_NOTE
    return cleaned


def clean_selector(answer: str) -> str:
    """Strip code fences, surrounding quotes and extra lines from a model answer."""
    selector = _CODE_FENCE.sub('', answer.strip()).strip()
    selector = selector.splitlines()[0].strip() if selector else ''
    if len(selector) >= 2 and selector[0] == selector[-1] and selector[0] in '"\'`':
        selector = selector[1:-1].strip()
    return selector


class OllamaLocatorResolver(LocatorResolver):
    """Ask a local Ollama model for the selector of a described element.

    Requires a running Ollama server with the model pulled
    (``ollama pull qwen2.5-coder:7b`` for the default).
    """

    def __init__(
        self,
        model: str | None = None,
        host: str | None = None,
        timeout: float | None = None,
        client: AsyncClient | None = None,
    ):
        self._model = model or CONFIG.OLLAMA_MODEL
        self._host = host or CONFIG.OLLAMA_HOST
        self._timeout = timeout or CONFIG.OLLAMA_TIMEOUT
        self._client = client or AsyncClient(host=self._host, timeout=self._timeout)

    @property
    def model(self) -> str:
        return self._model

    async def resolve(self, html: str, description: str) -> str:
        cleaned = sanitize_html(html)
        logger.info(f'Original HTML size: {len(html)} chars, cleaned HTML size: {len(cleaned)} chars')
        prompt = PROMPT_TEMPLATE.format(html=cleaned, description=description)

        try:
            response = await self._client.generate(model=self._model, prompt=prompt, stream=False)
        except (ResponseError, httpx.HTTPError) as e:
            raise LocatorResolutionError(f'Ollama request for {description!r} failed: {e}') from e

        selector = clean_selector(response['response'] or '')
        if not selector:
            raise LocatorResolutionError(f'Ollama returned no selector for {description!r}')
        logger.info(f'Got selector for {description!r}: {selector}')
        return selector

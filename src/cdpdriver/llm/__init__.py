"""Natural-language locator resolution."""

from cdpdriver.llm.base import LocatorResolver
from cdpdriver.llm.ollama import OllamaLocatorResolver

__all__ = ['LocatorResolver', 'OllamaLocatorResolver']

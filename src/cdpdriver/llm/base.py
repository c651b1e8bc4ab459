"""Interface for turning a plain-English element description into a selector."""

from abc import ABC, abstractmethod


class LocatorResolver(ABC):
    """Resolves natural-language element descriptions against page HTML."""

    @property
    @abstractmethod
    def model(self) -> str:
        """Return the model name."""
        pass

    @abstractmethod
    async def resolve(self, html: str, description: str) -> str:
        """Return a CSS selector, or an XPath expression starting with ``/``.

        Raises:
            LocatorResolutionError: No usable selector could be produced.
        """
        pass

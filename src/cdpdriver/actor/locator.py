"""Element locators."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict


class LocatorType(str, Enum):
    """Kind of locator.

    ID, CSS and XPATH are resolved by the page itself. NATURAL_LANGUAGE must be
    rewritten into CSS or XPATH before it reaches the page.
    """

    ID = 'ID'
    CSS = 'CSS'
    XPATH = 'XPATH'
    NATURAL_LANGUAGE = 'NATURAL_LANGUAGE'

    @property
    def is_structural(self) -> bool:
        return self is not LocatorType.NATURAL_LANGUAGE


class By(BaseModel):
    """A named locator.

    ``name`` is a human readable label used in logs and error messages;
    elements found through a locator that matched several nodes get ``[i]``
    appended to it.

    Example:
        >>> By.css('Search box', 'input[name=q]')
        By(name='Search box', type=<LocatorType.CSS: 'CSS'>, locator='input[name=q]')
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: LocatorType
    locator: str

    @classmethod
    def id(cls, name: str, element_id: str) -> By:
        return cls(name=name, type=LocatorType.ID, locator=element_id)

    @classmethod
    def css(cls, name: str, selector: str) -> By:
        return cls(name=name, type=LocatorType.CSS, locator=selector)

    @classmethod
    def xpath(cls, name: str, expression: str) -> By:
        return cls(name=name, type=LocatorType.XPATH, locator=expression)

    @classmethod
    def natural_language(cls, name: str, description: str) -> By:
        return cls(name=name, type=LocatorType.NATURAL_LANGUAGE, locator=description)

    @classmethod
    def from_selector(cls, name: str, selector: str) -> By:
        """Build an XPATH locator when ``selector`` starts with ``/``, CSS otherwise."""
        selector = selector.strip()
        if selector.startswith('/'):
            return cls.xpath(name, selector)
        return cls.css(name, selector)

    def with_name(self, name: str) -> By:
        return self.model_copy(update={'name': name})

    def __str__(self) -> str:
        return f"{{'name': '{self.name}', 'type': '{self.type.value}', 'locator': '{self.locator}'}}"

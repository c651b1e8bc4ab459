"""Actor module for page and element interactions."""

from cdpdriver.actor.driver import Driver
from cdpdriver.actor.element import Element
from cdpdriver.actor.keys import Key
from cdpdriver.actor.locator import By, LocatorType
from cdpdriver.actor.mouse import Mouse
from cdpdriver.actor.views import Dimension, Point, Rect
from cdpdriver.actor.wrappers import (
    DriverWrapper,
    ElementWrapper,
    LoggingDriver,
    LoggingElement,
    NaturalLanguageDriver,
    NaturalLanguageElement,
)

__all__ = [
    "By",
    "Dimension",
    "Driver",
    "DriverWrapper",
    "Element",
    "ElementWrapper",
    "Key",
    "LocatorType",
    "LoggingDriver",
    "LoggingElement",
    "Mouse",
    "NaturalLanguageDriver",
    "NaturalLanguageElement",
    "Point",
    "Rect",
]

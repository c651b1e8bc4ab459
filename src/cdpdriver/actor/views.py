"""Geometry value types returned by driver and element queries."""

from pydantic import BaseModel, ConfigDict


class Point(BaseModel):
    """A point in CSS pixels."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float


class Dimension(BaseModel):
    """A width/height pair in CSS pixels."""

    model_config = ConfigDict(frozen=True)

    width: float
    height: float


class Rect(BaseModel):
    """An axis-aligned rectangle: top-left corner plus size."""

    model_config = ConfigDict(frozen=True)

    x: float
    y: float
    width: float
    height: float

    @property
    def point(self) -> Point:
        return Point(x=self.x, y=self.y)

    @property
    def dimension(self) -> Dimension:
        return Dimension(width=self.width, height=self.height)

    @property
    def center(self) -> Point:
        return Point(x=self.x + self.width / 2, y=self.y + self.height / 2)

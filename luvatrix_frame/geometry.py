from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Interval:
    """Fixed pixel interval a scale maps onto."""

    start: float
    end: float

    @property
    def span(self) -> float:
        return self.end - self.start

    @property
    def min(self) -> float:
        return min(self.start, self.end)

    @property
    def max(self) -> float:
        return max(self.start, self.end)


@dataclass(frozen=True)
class BBox:
    """Screen rectangle in pixels, top-left origin (y grows downward)."""

    left: float = 0.0
    right: float = 0.0
    top: float = 0.0
    bottom: float = 0.0

    def __post_init__(self) -> None:
        if self.right < self.left:
            raise ValueError("bbox right must be >= left")
        if self.bottom < self.top:
            raise ValueError("bbox bottom must be >= top")

    @classmethod
    def from_rect(cls, x: float, y: float, width: float, height: float) -> "BBox":
        if width < 0 or height < 0:
            raise ValueError("width/height must be >= 0")
        return cls(left=float(x), right=float(x + width), top=float(y), bottom=float(y + height))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    def x_interval(self) -> Interval:
        return Interval(start=float(self.left), end=float(self.right))

    def y_interval(self) -> Interval:
        # Data y grows upward, so the lower data bound lands on the bottom edge.
        return Interval(start=float(self.bottom), end=float(self.top))


@dataclass(frozen=True)
class Extents:
    """Data-space bounding box reported by an auto-ranged renderer."""

    x0: float = float("inf")
    x1: float = float("-inf")
    y0: float = float("inf")
    y1: float = float("-inf")

    @property
    def is_empty(self) -> bool:
        return not (self.x0 <= self.x1 and self.y0 <= self.y1)

    def for_dimension(self, dimension: str) -> tuple[float, float]:
        if dimension == "x":
            return (self.x0, self.x1)
        if dimension == "y":
            return (self.y0, self.y1)
        raise ValueError("dimension must be 'x' or 'y'")

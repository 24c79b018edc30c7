from __future__ import annotations

from dataclasses import dataclass, field
import itertools
from typing import Any, Protocol, runtime_checkable

import numpy as np

from luvatrix_frame.geometry import Extents


_renderer_ids = itertools.count(1)


@dataclass(eq=False)
class Renderer:
    """Renderer model as seen by a frame: identity plus the range names it draws against."""

    name: str = ""
    visible: bool = True
    x_range_name: str = "default"
    y_range_name: str = "default"
    id: int = field(default_factory=lambda: next(_renderer_ids))


@runtime_checkable
class AutoRanged(Protocol):
    """Capability exposed by renderer views that can report their data extents."""

    def bounds(self) -> Extents:
        ...

    def log_bounds(self) -> Extents:
        ...


def is_auto_ranged(view: object) -> bool:
    return isinstance(view, AutoRanged)


class RendererView:
    def __init__(self, model: Renderer) -> None:
        self.model = model

    @property
    def visible(self) -> bool:
        return self.model.visible

    @property
    def x_range_name(self) -> str:
        return self.model.x_range_name

    @property
    def y_range_name(self) -> str:
        return self.model.y_range_name


class DataRendererView(RendererView):
    """View over finite x/y samples; reports extents for auto-ranging."""

    def __init__(self, model: Renderer, x: Any, y: Any) -> None:
        super().__init__(model)
        self.set_data(x, y)

    def set_data(self, x: Any, y: Any) -> None:
        x_arr = np.asarray(x, dtype=np.float64).reshape(-1)
        y_arr = np.asarray(y, dtype=np.float64).reshape(-1)
        if x_arr.shape != y_arr.shape:
            raise ValueError(f"x and y length mismatch: {x_arr.size} != {y_arr.size}")
        self.x = x_arr
        self.y = y_arr
        self.mask = np.isfinite(x_arr) & np.isfinite(y_arr)

    def bounds(self) -> Extents:
        if not np.any(self.mask):
            return Extents()
        vx = self.x[self.mask]
        vy = self.y[self.mask]
        return Extents(
            x0=float(np.min(vx)),
            x1=float(np.max(vx)),
            y0=float(np.min(vy)),
            y1=float(np.max(vy)),
        )

    def log_bounds(self) -> Extents:
        x0, x1 = _positive_extent(self.x[self.mask])
        y0, y1 = _positive_extent(self.y[self.mask])
        return Extents(x0=x0, x1=x1, y0=y0, y1=y1)


class RendererViewRegistry:
    """Resolves renderer models to their live views."""

    def __init__(self) -> None:
        self._views: dict[int, RendererView] = {}

    def register(self, view: RendererView) -> RendererView:
        self._views[view.model.id] = view
        return view

    def unregister(self, renderer: Renderer) -> None:
        self._views.pop(renderer.id, None)

    def __call__(self, renderer: Renderer) -> RendererView | None:
        return self._views.get(renderer.id)

    def __len__(self) -> int:
        return len(self._views)


def _positive_extent(values: np.ndarray) -> tuple[float, float]:
    positive = values[values > 0]
    if positive.size == 0:
        return (float("inf"), float("-inf"))
    return (float(np.min(positive)), float(np.max(positive)))

from __future__ import annotations

from dataclasses import dataclass
import itertools
import logging
from typing import Any, Callable, Literal, Mapping, Sequence

import numpy as np

from luvatrix_frame.errors import FrameConfigurationError, ScaleAlreadyBoundError
from luvatrix_frame.geometry import BBox, Interval
from luvatrix_frame.properties import HasProps, Property, Subscription
from luvatrix_frame.ranges import DataRange1d, Range
from luvatrix_frame.renderers import Renderer, RendererView, RendererViewRegistry, is_auto_ranged
from luvatrix_frame.scales import LinearScale, Scale, check_compatible


LOGGER = logging.getLogger(__name__)

DEFAULT_NAME = "default"
FRAME_FIELDS = (
    "x_range",
    "y_range",
    "x_scale",
    "y_scale",
    "extra_x_ranges",
    "extra_y_ranges",
    "extra_x_scales",
    "extra_y_scales",
)

Axis = Literal["x", "y"]
ViewResolver = Callable[[Renderer], "RendererView | None"]


def _require_range(name: str, value: Any) -> Range:
    if not isinstance(value, Range):
        raise TypeError(f"{name} must be a Range, got {type(value).__name__}")
    return value


def _require_scale(name: str, value: Any) -> Scale:
    if not isinstance(value, Scale):
        raise TypeError(f"{name} must be a Scale, got {type(value).__name__}")
    return value


def _range_mapping(name: str, value: Any) -> dict[str, Range]:
    return {str(k): _require_range(f"{name}[{k!r}]", v) for k, v in dict(value).items()}


def _scale_mapping(name: str, value: Any) -> dict[str, Scale]:
    return {str(k): _require_scale(f"{name}[{k!r}]", v) for k, v in dict(value).items()}


def _renderer_list(name: str, value: Any) -> list[Renderer]:
    return list(value)


def _aspect_scale(name: str, value: Any) -> float:
    out = float(value)
    if not out > 0:
        raise ValueError(f"{name} must be > 0")
    return out


class FrameModel(HasProps):
    """Configuration of a cartesian frame.

    Mappings and lists are copied on assignment; mutate them by assigning a new
    value so subscribers are notified.
    """

    renderers = Property(list, coerce=_renderer_list)

    x_range = Property(DataRange1d, coerce=_require_range)
    y_range = Property(DataRange1d, coerce=_require_range)

    x_scale = Property(LinearScale, coerce=_require_scale)
    y_scale = Property(LinearScale, coerce=_require_scale)

    extra_x_ranges = Property(dict, coerce=_range_mapping)
    extra_y_ranges = Property(dict, coerce=_range_mapping)

    extra_x_scales = Property(dict, coerce=_scale_mapping)
    extra_y_scales = Property(dict, coerce=_scale_mapping)

    # Read by auto ranges on update; changing them does not reconfigure scales.
    match_aspect = Property(lambda: False, coerce=lambda name, value: bool(value))
    aspect_scale = Property(lambda: 1.0, coerce=_aspect_scale)


@dataclass(frozen=True)
class _AxisBinding:
    target: Interval
    ranges: dict[str, Range]
    scales: dict[str, Scale]
    log_hinted: tuple[DataRange1d, ...]


_frame_ids = itertools.count(1)


class CartesianFrame:
    """Binds the named data ranges of both axes to one pixel rectangle.

    Every change to one of the eight range/scale fields of the model rebuilds
    the range and scale maps of both axes. A layout pass only moves the pixel
    targets. Ranges in use are told about this frame so auto-ranging ranges
    can reach the renderers that depend on them.
    """

    def __init__(
        self,
        model: FrameModel | None = None,
        *,
        resolve_view: ViewResolver | None = None,
        bbox: BBox | None = None,
    ) -> None:
        self.id = next(_frame_ids)
        self.model = model if model is not None else FrameModel()
        self._resolve_view: ViewResolver = resolve_view if resolve_view is not None else RendererViewRegistry()
        self._bbox = bbox if bbox is not None else BBox()

        self._x_target = self._bbox.x_interval()
        self._y_target = self._bbox.y_interval()
        self._x_ranges: dict[str, Range] = {}
        self._y_ranges: dict[str, Range] = {}
        self._x_scales: dict[str, Scale] = {}
        self._y_scales: dict[str, Scale] = {}

        self._configure_scales()
        self._subscription: Subscription | None = self.model.on_change(FRAME_FIELDS, self._on_model_change)

    def remove(self) -> None:
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        self._unregister_frame()

    @property
    def auto_ranged_renderers(self) -> list[RendererView]:
        views = []
        for renderer in self.model.renderers:
            view = self._resolve_view(renderer)
            if view is None:
                LOGGER.debug("renderer %r has no view; skipped for auto-ranging", renderer)
                continue
            if is_auto_ranged(view):
                views.append(view)
        return views

    def _on_model_change(self, name: str, old: Any, new: Any) -> None:
        LOGGER.debug("frame %d: %s changed; reconfiguring scales", self.id, name)
        self._configure_scales()

    def _get_ranges(self, axis: Axis, rng: Range, extra_ranges: Mapping[str, Range]) -> dict[str, Range]:
        shadowed = extra_ranges.get(DEFAULT_NAME)
        if shadowed is not None and shadowed is not rng:
            LOGGER.warning("extra_%s_ranges['default'] is overridden by %s_range", axis, axis)
        return {**extra_ranges, DEFAULT_NAME: rng}

    def _get_scales(
        self,
        axis: Axis,
        scale: Scale,
        extra_scales: Mapping[str, Scale],
        ranges: Mapping[str, Range],
        target: Interval,
    ) -> tuple[dict[str, Scale], tuple[DataRange1d, ...]]:
        templates = {**extra_scales, DEFAULT_NAME: scale}
        for name in sorted(templates.keys() - ranges.keys()):
            LOGGER.warning("extra_%s_scales[%r] has no matching range; ignored", axis, name)

        scales: dict[str, Scale] = {}
        log_hinted: list[DataRange1d] = []
        for name, rng in ranges.items():
            template = templates.get(name, scale)
            check_compatible(rng, template, name=f"{axis}:{name}")
            if template.kind == "log" and isinstance(rng, DataRange1d):
                log_hinted.append(rng)
            derived = template.clone()
            derived.bind(rng, target)
            scales[name] = derived
        return scales, tuple(log_hinted)

    def _bind_axis(
        self,
        axis: Axis,
        rng: Range,
        scale: Scale,
        extra_ranges: Mapping[str, Range],
        extra_scales: Mapping[str, Scale],
        target: Interval,
    ) -> _AxisBinding:
        if scale.is_bound:
            raise ScaleAlreadyBoundError(f"{axis}_scale must not be bound before the frame claims it")
        ranges = self._get_ranges(axis, rng, extra_ranges)
        scales, log_hinted = self._get_scales(axis, scale, extra_scales, ranges, target)
        return _AxisBinding(target=target, ranges=ranges, scales=scales, log_hinted=log_hinted)

    def _configure_scales(self) -> None:
        model = self.model
        x_binding = self._bind_axis(
            "x",
            model.x_range,
            model.x_scale,
            model.extra_x_ranges,
            model.extra_x_scales,
            self._bbox.x_interval(),
        )
        y_binding = self._bind_axis(
            "y",
            model.y_range,
            model.y_scale,
            model.extra_y_ranges,
            model.extra_y_scales,
            self._bbox.y_interval(),
        )

        # Both axes validated; nothing below can fail.
        self._x_target = x_binding.target
        self._y_target = y_binding.target

        self._unregister_frame()
        self._x_ranges = x_binding.ranges
        self._y_ranges = y_binding.ranges
        self._register_frame()

        for rng in x_binding.log_hinted + y_binding.log_hinted:
            rng.scale_hint = "log"

        self._x_scales = x_binding.scales
        self._y_scales = y_binding.scales
        LOGGER.debug(
            "frame %d configured: x=%s y=%s",
            self.id,
            sorted(self._x_scales),
            sorted(self._y_scales),
        )

    def _register_frame(self) -> None:
        for rng in self.ranges:
            rng.add_frame(self)

    def _unregister_frame(self) -> None:
        for rng in self.ranges:
            rng.remove_frame(self)

    def update_layout(self, bbox: BBox) -> None:
        """Move the pixel targets after a layout pass; ranges and bindings stay as they are."""
        self._bbox = bbox
        self._x_target = bbox.x_interval()
        self._y_target = bbox.y_interval()
        for scale in self._x_scales.values():
            scale.retarget(self._x_target)
        for scale in self._y_scales.values():
            scale.retarget(self._y_target)

    def update_data_ranges(self) -> None:
        for rng in self.ranges:
            if isinstance(rng, DataRange1d):
                rng.update()

    def map_to_screen(
        self,
        xs: Sequence[Any] | np.ndarray,
        ys: Sequence[Any] | np.ndarray,
        *,
        x_name: str = DEFAULT_NAME,
        y_name: str = DEFAULT_NAME,
    ) -> tuple[np.ndarray, np.ndarray]:
        return (self._scale("x", x_name).v_compute(xs), self._scale("y", y_name).v_compute(ys))

    def map_from_screen(
        self,
        screen_xs: Sequence[float] | np.ndarray,
        screen_ys: Sequence[float] | np.ndarray,
        *,
        x_name: str = DEFAULT_NAME,
        y_name: str = DEFAULT_NAME,
    ) -> tuple[np.ndarray, np.ndarray]:
        return (self._scale("x", x_name).v_invert(screen_xs), self._scale("y", y_name).v_invert(screen_ys))

    def _scale(self, axis: Axis, name: str) -> Scale:
        scales = self._x_scales if axis == "x" else self._y_scales
        try:
            return scales[name]
        except KeyError as exc:
            raise FrameConfigurationError(f"unknown {axis} range name: {name!r}") from exc

    @property
    def bbox(self) -> BBox:
        return self._bbox

    @property
    def x_range(self) -> Range:
        return self.model.x_range

    @property
    def y_range(self) -> Range:
        return self.model.y_range

    @property
    def x_target(self) -> Interval:
        return self._x_target

    @property
    def y_target(self) -> Interval:
        return self._y_target

    @property
    def x_ranges(self) -> dict[str, Range]:
        return self._x_ranges

    @property
    def y_ranges(self) -> dict[str, Range]:
        return self._y_ranges

    @property
    def ranges(self) -> set[Range]:
        return {*self._x_ranges.values(), *self._y_ranges.values()}

    @property
    def x_scales(self) -> dict[str, Scale]:
        return self._x_scales

    @property
    def y_scales(self) -> dict[str, Scale]:
        return self._y_scales

    @property
    def scales(self) -> set[Scale]:
        return {*self._x_scales.values(), *self._y_scales.values()}

    @property
    def x_scale(self) -> Scale:
        return self._x_scales[DEFAULT_NAME]

    @property
    def y_scale(self) -> Scale:
        return self._y_scales[DEFAULT_NAME]

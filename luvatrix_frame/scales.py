from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import math
from typing import Any, ClassVar, Literal, Sequence

import numpy as np

from luvatrix_frame.errors import FrameConfigurationError, ScaleBindingError
from luvatrix_frame.geometry import Interval
from luvatrix_frame.ranges import DEFAULT_LOG_BOUNDS, FactorRange, Range


LOGGER = logging.getLogger(__name__)

ScaleKind = Literal["linear", "log", "categorical"]


def check_compatible(rng: Range, scale: "Scale", *, name: str | None = None) -> None:
    """Categorical ranges pair only with categorical scales, and vice versa."""
    if rng.is_categorical == scale.is_categorical:
        return
    where = f" for `{name}`" if name else ""
    raise FrameConfigurationError(
        f"range {type(rng).__name__} ({rng.kind}) is incompatible with scale "
        f"{type(scale).__name__} ({scale.kind}){where}"
    )


def _affine(s0: float, s1: float, t0: float, t1: float) -> tuple[float, float]:
    if s1 == s0:
        # Degenerate source: every value lands on the target midpoint.
        return (0.0, (t0 + t1) / 2.0)
    factor = (t1 - t0) / (s1 - s0)
    return (factor, t0 - factor * s0)


def _clamp_infinite(x: np.ndarray, lo: float, hi: float) -> np.ndarray:
    return np.where(np.isposinf(x), hi, np.where(np.isneginf(x), lo, x))


class Scale(ABC):
    """Transform between a data range (source) and a pixel interval (target).

    A scale is created unbound and only becomes usable after `bind()`. Frames
    never bind the instance they were configured with; they bind a `clone()`.

    Infinite data values are clamped to the source bounds; NaN passes through
    as NaN so missing samples stay missing.
    """

    @property
    @abstractmethod
    def kind(self) -> ScaleKind:
        raise NotImplementedError

    def __init__(self) -> None:
        self._source: Range | None = None
        self._target: Interval | None = None

    @property
    def is_categorical(self) -> bool:
        return self.kind == "categorical"

    @property
    def source_range(self) -> Range | None:
        return self._source

    @property
    def target_range(self) -> Interval | None:
        return self._target

    @property
    def is_bound(self) -> bool:
        return self._source is not None or self._target is not None

    def clone(self) -> "Scale":
        return type(self)()

    def bind(self, source: Range, target: Interval) -> None:
        check_compatible(source, self)
        self._validate_source(source)
        self._source = source
        self._target = target

    def retarget(self, target: Interval) -> None:
        if self._source is None:
            raise ScaleBindingError(f"{type(self).__name__} has no source range to retarget")
        self._target = target

    def _validate_source(self, source: Range) -> None:
        return None

    def _ends(self) -> tuple[Range, Interval]:
        if self._source is None or self._target is None:
            raise ScaleBindingError(f"{type(self).__name__} is not bound to a source and target range")
        return self._source, self._target

    def _state(self) -> tuple[float, float]:
        source, target = self._ends()
        return _affine(source.start, source.end, target.start, target.end)

    def compute(self, value: Any) -> float:
        return float(self.v_compute([value])[0])

    def invert(self, screen: float) -> float:
        return float(self.v_invert([screen])[0])

    def v_compute(self, values: Sequence[Any] | np.ndarray) -> np.ndarray:
        factor, offset = self._state()
        source, _ = self._ends()
        x = _clamp_infinite(np.asarray(values, dtype=np.float64), source.min, source.max)
        return x * factor + offset

    def v_invert(self, screens: Sequence[float] | np.ndarray) -> np.ndarray:
        factor, offset = self._state()
        sx = np.asarray(screens, dtype=np.float64)
        if factor == 0:
            source, _ = self._ends()
            return np.full(sx.shape, (source.start + source.end) / 2.0, dtype=np.float64)
        return (sx - offset) / factor

    def __repr__(self) -> str:
        return f"{type(self).__name__}(source={self._source!r}, target={self._target!r})"


class LinearScale(Scale):
    kind: ClassVar[ScaleKind] = "linear"


class LogScale(Scale):
    """Affine map over log10 of the data.

    Non-positive data values (and -inf) are clamped to the lower positive
    source bound, +inf to the upper one. NaN stays NaN.
    """

    kind: ClassVar[ScaleKind] = "log"

    def __init__(self) -> None:
        super().__init__()
        self._fallback_warned = False

    def bind(self, source: Range, target: Interval) -> None:
        super().bind(source, target)
        self._fallback_warned = False

    def _validate_source(self, source: Range) -> None:
        if source.kind == "fixed" and (source.start <= 0 or source.end <= 0):
            raise FrameConfigurationError(
                f"LogScale requires a positive source range, got [{source.start}, {source.end}]"
            )

    def _log_source(self) -> tuple[float, float]:
        source, _ = self._ends()
        s0, s1 = source.start, source.end
        if s0 <= 0 or s1 <= 0:
            # Warn once per binding; a draw pass calls this for every glyph.
            log = LOGGER.debug if self._fallback_warned else LOGGER.warning
            log("LogScale source [%s, %s] is not positive; using %s", s0, s1, DEFAULT_LOG_BOUNDS)
            self._fallback_warned = True
            s0, s1 = DEFAULT_LOG_BOUNDS
        return s0, s1

    def _log_state(self) -> tuple[float, float, float, float]:
        _, target = self._ends()
        s0, s1 = self._log_source()
        factor, offset = _affine(math.log10(s0), math.log10(s1), target.start, target.end)
        return factor, offset, min(s0, s1), max(s0, s1)

    def v_compute(self, values: Sequence[Any] | np.ndarray) -> np.ndarray:
        factor, offset, floor, ceil = self._log_state()
        x = _clamp_infinite(np.asarray(values, dtype=np.float64), floor, ceil)
        x = np.where(np.isnan(x) | (x > 0), x, floor)
        return np.log10(x) * factor + offset

    def v_invert(self, screens: Sequence[float] | np.ndarray) -> np.ndarray:
        factor, offset, _, _ = self._log_state()
        sx = np.asarray(screens, dtype=np.float64)
        if factor == 0:
            s0, s1 = self._log_source()
            return np.full(sx.shape, math.sqrt(s0 * s1), dtype=np.float64)
        return np.power(10.0, (sx - offset) / factor)


class CategoricalScale(Scale):
    """Linear map over the synthetic coordinates of a `FactorRange`."""

    kind: ClassVar[ScaleKind] = "categorical"

    def _factor_range(self) -> FactorRange:
        source, _ = self._ends()
        assert isinstance(source, FactorRange)
        return source

    def v_compute(self, values: Sequence[Any] | np.ndarray) -> np.ndarray:
        synthetic = self._factor_range().v_synthetic(list(values))
        return super().v_compute(synthetic)

    def invert_factor(self, screen: float) -> str | None:
        return self._factor_range().factor_at(self.invert(screen))

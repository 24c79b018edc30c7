from __future__ import annotations

from abc import ABC, abstractmethod
import logging
import math
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Literal, Sequence
import weakref

import numpy as np

from luvatrix_frame.errors import FrameConfigurationError, UnknownFactorError

if TYPE_CHECKING:
    from luvatrix_frame.frame import CartesianFrame


LOGGER = logging.getLogger(__name__)

RangeKind = Literal["fixed", "auto", "categorical"]
ScaleHint = Literal["auto", "log"]
Factor = str

DEFAULT_BOUNDS = (0.0, 1.0)
DEFAULT_LOG_BOUNDS = (1.0, 10.0)


class Range(ABC):
    """One-dimensional data domain shared by any number of frames.

    A range never owns the frames that reference it: registrations are kept
    by frame id in a weak mapping, so a range can list its dependents without
    keeping them alive.
    """

    @property
    @abstractmethod
    def kind(self) -> RangeKind:
        raise NotImplementedError

    def __init__(self) -> None:
        self._frames: weakref.WeakValueDictionary[int, CartesianFrame] = weakref.WeakValueDictionary()

    @property
    def is_categorical(self) -> bool:
        return self.kind == "categorical"

    @property
    @abstractmethod
    def start(self) -> float:
        raise NotImplementedError

    @property
    @abstractmethod
    def end(self) -> float:
        raise NotImplementedError

    @property
    def min(self) -> float:
        return min(self.start, self.end)

    @property
    def max(self) -> float:
        return max(self.start, self.end)

    @property
    def span(self) -> float:
        return abs(self.end - self.start)

    @property
    def frames(self) -> frozenset[int]:
        return frozenset(self._frames.keys())

    def add_frame(self, frame: "CartesianFrame") -> None:
        self._frames[frame.id] = frame

    def remove_frame(self, frame: "CartesianFrame") -> None:
        self._frames.pop(frame.id, None)

    def dependent_frames(self) -> list["CartesianFrame"]:
        return [frame for _, frame in sorted(self._frames.items())]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(start={self.start!r}, end={self.end!r})"


class Range1d(Range):
    kind: ClassVar[RangeKind] = "fixed"

    def __init__(self, start: float = 0.0, end: float = 1.0) -> None:
        super().__init__()
        self._start = float(start)
        self._end = float(end)
        self._initial = (self._start, self._end)

    @property
    def start(self) -> float:
        return self._start

    @start.setter
    def start(self, value: float) -> None:
        self._start = float(value)

    @property
    def end(self) -> float:
        return self._end

    @end.setter
    def end(self, value: float) -> None:
        self._end = float(value)

    def set_bounds(self, start: float, end: float) -> None:
        self._start = float(start)
        self._end = float(end)

    def reset(self) -> None:
        self._start, self._end = self._initial


class DataRange1d(Range):
    """Interval computed from the data of the auto-ranged renderers that use it.

    `range_padding` is the fraction of the data span added in total (half on
    each side). With `scale_hint == "log"` padding is applied in log10 space and
    non-positive extents are ignored so the lower bound stays positive.
    """

    kind: ClassVar[RangeKind] = "auto"

    def __init__(
        self,
        *,
        start: float | None = None,
        end: float | None = None,
        range_padding: float = 0.1,
        default_span: float = 2.0,
        only_visible: bool = False,
    ) -> None:
        super().__init__()
        if range_padding < 0:
            raise ValueError("range_padding must be >= 0")
        if default_span <= 0:
            raise ValueError("default_span must be > 0")
        self.manual_start = None if start is None else float(start)
        self.manual_end = None if end is None else float(end)
        self.range_padding = float(range_padding)
        self.default_span = float(default_span)
        self.only_visible = bool(only_visible)
        self.scale_hint: ScaleHint = "auto"
        self._computed: tuple[float, float] | None = None

    @property
    def start(self) -> float:
        if self.manual_start is not None:
            return self.manual_start
        return self._bounds()[0]

    @property
    def end(self) -> float:
        if self.manual_end is not None:
            return self.manual_end
        return self._bounds()[1]

    @property
    def has_data(self) -> bool:
        return self._computed is not None

    def _bounds(self) -> tuple[float, float]:
        if self._computed is not None:
            return self._computed
        return DEFAULT_LOG_BOUNDS if self.scale_hint == "log" else DEFAULT_BOUNDS

    def update(self) -> tuple[float, float]:
        """Recompute bounds from every registered frame's auto-ranged renderers.

        When a frame has `match_aspect` set and this range is its primary x or
        y range (with an auto range on the other axis too), the raw data extent
        is widened before padding so the x/y span ratio equals the pixel
        width/height ratio divided by the frame's `aspect_scale`.
        """
        log = self.scale_hint == "log"
        lows: list[float] = []
        highs: list[float] = []
        for frame in self.dependent_frames():
            for dimension, names in _dimensions_in(frame, self).items():
                extent = self._frame_extent(frame, dimension, names, log)
                if extent is None:
                    continue
                if not log:
                    extent = self._match_aspect(frame, dimension, extent)
                lows.append(extent[0])
                highs.append(extent[1])

        if not lows:
            LOGGER.debug("DataRange1d has no data extents; keeping %s", self._bounds())
            return (self.start, self.end)

        lo = float(np.min(lows))
        hi = float(np.max(highs))
        self._computed = self._pad_log(lo, hi) if log else self._pad_linear(lo, hi)
        return (self.start, self.end)

    def _frame_extent(
        self, frame: "CartesianFrame", dimension: str, names: set[str], log: bool
    ) -> tuple[float, float] | None:
        lows: list[float] = []
        highs: list[float] = []
        for view in frame.auto_ranged_renderers:
            if self.only_visible and not getattr(view, "visible", True):
                continue
            if getattr(view, f"{dimension}_range_name", "default") not in names:
                continue
            extents = view.log_bounds() if log else view.bounds()
            lo, hi = extents.for_dimension(dimension)
            if math.isfinite(lo) and math.isfinite(hi) and lo <= hi:
                lows.append(lo)
                highs.append(hi)
        if not lows:
            return None
        lo = min(lows)
        hi = max(highs)
        if log and lo <= 0:
            # A renderer reported linear extents through log_bounds(); drop them.
            LOGGER.warning("ignoring non-positive log extents (%s, %s)", lo, hi)
            if hi <= 0:
                return None
            lo = min([v for v in lows if v > 0] or [hi])
        return (lo, hi)

    def _match_aspect(
        self, frame: "CartesianFrame", dimension: str, extent: tuple[float, float]
    ) -> tuple[float, float]:
        model = getattr(frame, "model", None)
        if model is None or not model.match_aspect:
            return extent
        if getattr(frame, f"{dimension}_range") is not self:
            return extent
        other_dim = "y" if dimension == "x" else "x"
        other = getattr(frame, f"{other_dim}_range")
        if not isinstance(other, DataRange1d) or other.scale_hint == "log":
            return extent
        bbox = frame.bbox
        if bbox.width <= 0 or bbox.height <= 0:
            return extent
        other_names = {name for name, rng in getattr(frame, f"{other_dim}_ranges").items() if rng is other}
        other_extent = other._frame_extent(frame, other_dim, other_names, False)
        if other_extent is None:
            return extent

        # Target x span / y span.
        ratio = (bbox.width / bbox.height) / model.aspect_scale
        lo, hi = extent
        other_span = other_extent[1] - other_extent[0]
        wanted = other_span * ratio if dimension == "x" else other_span / ratio
        if wanted <= hi - lo:
            return extent
        center = (lo + hi) / 2.0
        return (center - wanted / 2.0, center + wanted / 2.0)

    def _pad_linear(self, lo: float, hi: float) -> tuple[float, float]:
        span = hi - lo
        if span == 0:
            half = self.default_span / 2.0
            return (lo - half, hi + half)
        pad = span * self.range_padding / 2.0
        return (lo - pad, hi + pad)

    def _pad_log(self, lo: float, hi: float) -> tuple[float, float]:
        l0 = math.log10(lo)
        l1 = math.log10(hi)
        if l1 == l0:
            half = self.default_span / 2.0
        else:
            half = (l1 - l0) * self.range_padding / 2.0
        return (10 ** (l0 - half), 10 ** (l1 + half))

    def reset(self) -> None:
        self._computed = None


class FactorRange(Range):
    """Ordered list of categorical factors mapped onto synthetic coordinates.

    Factor `i` occupies the unit band `[i, i + 1)` (shifted by any
    `factor_padding` between bands) and its center sits at `i + 0.5`.
    """

    kind: ClassVar[RangeKind] = "categorical"

    def __init__(
        self,
        factors: Iterable[Factor] = (),
        *,
        factor_padding: float = 0.0,
        range_padding: float = 0.0,
    ) -> None:
        super().__init__()
        if factor_padding < 0 or range_padding < 0:
            raise ValueError("factor_padding/range_padding must be >= 0")
        self.factor_padding = float(factor_padding)
        self.range_padding = float(range_padding)
        self._factors: tuple[Factor, ...] = ()
        self._lookup: dict[Factor, float] = {}
        self.factors = factors  # type: ignore[assignment]

    @property
    def factors(self) -> tuple[Factor, ...]:
        return self._factors

    @factors.setter
    def factors(self, values: Iterable[Factor]) -> None:
        factors = tuple(str(v) for v in values)
        if len(set(factors)) != len(factors):
            raise FrameConfigurationError("FactorRange factors must be unique")
        self._factors = factors
        step = 1.0 + self.factor_padding
        self._lookup = {factor: i * step + 0.5 for i, factor in enumerate(factors)}

    @property
    def start(self) -> float:
        return -self.range_padding

    @property
    def end(self) -> float:
        n = len(self._factors)
        return n + max(0, n - 1) * self.factor_padding + self.range_padding

    def synthetic(self, value: Any) -> float:
        """Resolve a factor, `(factor, offset)` pair or plain number to a synthetic coordinate."""
        if isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(value, bool):
            return float(value)
        offset = 0.0
        if isinstance(value, tuple):
            if len(value) != 2:
                raise UnknownFactorError(f"expected (factor, offset), got {value!r}")
            value, offset = value
        try:
            return self._lookup[str(value)] + float(offset)
        except KeyError as exc:
            raise UnknownFactorError(f"unknown factor: {value!r}") from exc

    def v_synthetic(self, values: Sequence[Any]) -> np.ndarray:
        return np.asarray([self.synthetic(v) for v in values], dtype=np.float64)

    def factor_at(self, synthetic: float) -> Factor | None:
        step = 1.0 + self.factor_padding
        idx = int(math.floor(synthetic / step))
        if idx < 0 or idx >= len(self._factors):
            return None
        if synthetic - idx * step >= 1.0:
            # Inside the padding gap between two bands.
            return None
        return self._factors[idx]

    def __repr__(self) -> str:
        return f"FactorRange(factors={list(self._factors)!r})"


def _dimensions_in(frame: "CartesianFrame", rng: Range) -> dict[str, set[str]]:
    out: dict[str, set[str]] = {}
    for dimension, mapping in (("x", frame.x_ranges), ("y", frame.y_ranges)):
        names = {name for name, candidate in mapping.items() if candidate is rng}
        if names:
            out[dimension] = names
    return out

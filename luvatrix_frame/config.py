from __future__ import annotations

from pathlib import Path
import tomllib
from typing import Any, Mapping

from luvatrix_frame.frame import FrameModel
from luvatrix_frame.ranges import DataRange1d, FactorRange, Range, Range1d
from luvatrix_frame.scales import CategoricalScale, LinearScale, LogScale, Scale


_RANGE_TYPES = {
    "fixed": "fixed",
    "range1d": "fixed",
    "auto": "auto",
    "data": "auto",
    "datarange1d": "auto",
    "categorical": "categorical",
    "factor": "categorical",
    "factorrange": "categorical",
}

_SCALE_TYPES: dict[str, type[Scale]] = {
    "linear": LinearScale,
    "log": LogScale,
    "categorical": CategoricalScale,
}


def load_frame_config(path: str | Path) -> FrameModel:
    """Build a `FrameModel` from a TOML file.

    ```toml
    y_scale = "linear"

    [x_range]
    type = "fixed"
    start = 0
    end = 100

    [extra_y_ranges.secondary]
    type = "auto"

    [extra_y_scales]
    secondary = "log"
    ```
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(f"frame config not found: {config_path}")
    with config_path.open("rb") as f:
        raw = tomllib.load(f)
    return frame_model_from_mapping(raw)


def frame_model_from_mapping(raw: Mapping[str, Any]) -> FrameModel:
    known = {
        "x_range",
        "y_range",
        "x_scale",
        "y_scale",
        "extra_x_ranges",
        "extra_y_ranges",
        "extra_x_scales",
        "extra_y_scales",
        "match_aspect",
        "aspect_scale",
    }
    unknown = set(raw) - known
    if unknown:
        raise ValueError(f"unknown frame config fields: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {}
    if "match_aspect" in raw:
        if not isinstance(raw["match_aspect"], bool):
            raise ValueError("match_aspect must be a boolean")
        kwargs["match_aspect"] = raw["match_aspect"]
    if "aspect_scale" in raw:
        kwargs["aspect_scale"] = _coerce_optional_float(raw["aspect_scale"], "aspect_scale")
    for axis in ("x", "y"):
        if f"{axis}_range" in raw:
            kwargs[f"{axis}_range"] = range_from_mapping(raw[f"{axis}_range"], f"{axis}_range")
        if f"{axis}_scale" in raw:
            kwargs[f"{axis}_scale"] = scale_from_config(raw[f"{axis}_scale"], f"{axis}_scale")
        extra_ranges = _coerce_table(raw.get(f"extra_{axis}_ranges", {}), f"extra_{axis}_ranges")
        extra_scales = _coerce_table(raw.get(f"extra_{axis}_scales", {}), f"extra_{axis}_scales")
        kwargs[f"extra_{axis}_ranges"] = {
            name: range_from_mapping(value, f"extra_{axis}_ranges.{name}") for name, value in extra_ranges.items()
        }
        kwargs[f"extra_{axis}_scales"] = {
            name: scale_from_config(value, f"extra_{axis}_scales.{name}") for name, value in extra_scales.items()
        }
    return FrameModel(**kwargs)


def range_from_mapping(raw: Any, label: str) -> Range:
    table = _coerce_table(raw, label)
    kind = _RANGE_TYPES.get(str(table.get("type", "auto")).lower())
    if kind is None:
        raise ValueError(f"{label}: unsupported range type {table.get('type')!r}")
    try:
        if kind == "fixed":
            return Range1d(start=float(table["start"]), end=float(table["end"]))
        if kind == "categorical":
            factors = table["factors"]
            if not isinstance(factors, list):
                raise ValueError(f"{label}.factors must be a list")
            return FactorRange(
                factors,
                factor_padding=float(table.get("factor_padding", 0.0)),
                range_padding=float(table.get("range_padding", 0.0)),
            )
    except KeyError as exc:
        raise ValueError(f"{label}: missing required field: {exc.args[0]}") from exc
    return DataRange1d(
        start=_coerce_optional_float(table.get("start"), f"{label}.start"),
        end=_coerce_optional_float(table.get("end"), f"{label}.end"),
        range_padding=float(table.get("range_padding", 0.1)),
        default_span=float(table.get("default_span", 2.0)),
        only_visible=bool(table.get("only_visible", False)),
    )


def scale_from_config(raw: Any, label: str) -> Scale:
    if isinstance(raw, str):
        name = raw
    else:
        name = str(_coerce_table(raw, label).get("type", "linear"))
    scale_type = _SCALE_TYPES.get(name.lower())
    if scale_type is None:
        raise ValueError(f"{label}: unsupported scale type {name!r}")
    return scale_type()


def _coerce_table(raw: Any, label: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise ValueError(f"{label} must be a table")
    return raw


def _coerce_optional_float(raw: Any, label: str) -> float | None:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise ValueError(f"{label} must be a number")
    return float(raw)

from luvatrix_frame.config import frame_model_from_mapping, load_frame_config
from luvatrix_frame.errors import (
    FrameConfigurationError,
    ScaleAlreadyBoundError,
    ScaleBindingError,
    UnknownFactorError,
)
from luvatrix_frame.frame import DEFAULT_NAME, CartesianFrame, FrameModel
from luvatrix_frame.geometry import BBox, Extents, Interval
from luvatrix_frame.properties import HasProps, Property, Subscription
from luvatrix_frame.ranges import DataRange1d, FactorRange, Range, Range1d
from luvatrix_frame.renderers import (
    AutoRanged,
    DataRendererView,
    Renderer,
    RendererView,
    RendererViewRegistry,
    is_auto_ranged,
)
from luvatrix_frame.scales import CategoricalScale, LinearScale, LogScale, Scale, check_compatible

__all__ = [
    "AutoRanged",
    "BBox",
    "CartesianFrame",
    "CategoricalScale",
    "DEFAULT_NAME",
    "DataRange1d",
    "DataRendererView",
    "Extents",
    "FactorRange",
    "FrameConfigurationError",
    "FrameModel",
    "HasProps",
    "Interval",
    "LinearScale",
    "LogScale",
    "Property",
    "Range",
    "Range1d",
    "Renderer",
    "RendererView",
    "RendererViewRegistry",
    "Scale",
    "ScaleAlreadyBoundError",
    "ScaleBindingError",
    "Subscription",
    "UnknownFactorError",
    "check_compatible",
    "frame_model_from_mapping",
    "is_auto_ranged",
    "load_frame_config",
]

from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from luvatrix_frame import (
    CartesianFrame,
    CategoricalScale,
    DataRange1d,
    FactorRange,
    LinearScale,
    LogScale,
    Range1d,
    frame_model_from_mapping,
    load_frame_config,
)


class FrameConfigTests(unittest.TestCase):
    def test_load_toml(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "frame.toml"
            path.write_text(
                "\n".join(
                    [
                        'y_scale = "linear"',
                        "",
                        "[x_range]",
                        'type = "fixed"',
                        "start = 0",
                        "end = 100",
                        "",
                        "[extra_y_ranges.secondary]",
                        'type = "auto"',
                        "range_padding = 0.2",
                        "",
                        "[extra_y_scales]",
                        'secondary = "log"',
                    ]
                ),
                encoding="utf-8",
            )
            model = load_frame_config(path)

        self.assertIsInstance(model.x_range, Range1d)
        self.assertEqual((model.x_range.start, model.x_range.end), (0.0, 100.0))
        self.assertIsInstance(model.y_range, DataRange1d)
        self.assertIsInstance(model.y_scale, LinearScale)
        secondary = model.extra_y_ranges["secondary"]
        self.assertIsInstance(secondary, DataRange1d)
        self.assertEqual(secondary.range_padding, 0.2)
        self.assertIsInstance(model.extra_y_scales["secondary"], LogScale)

        frame = CartesianFrame(model)
        self.assertEqual(set(frame.y_scales), {"default", "secondary"})
        self.assertEqual(secondary.scale_hint, "log")

    def test_categorical_axis(self) -> None:
        model = frame_model_from_mapping(
            {
                "x_range": {"type": "factor", "factors": ["q1", "q2"], "range_padding": 0.5},
                "x_scale": {"type": "categorical"},
            }
        )
        self.assertIsInstance(model.x_range, FactorRange)
        self.assertEqual(model.x_range.factors, ("q1", "q2"))
        self.assertIsInstance(model.x_scale, CategoricalScale)

    def test_aspect_fields(self) -> None:
        model = frame_model_from_mapping({"match_aspect": True, "aspect_scale": 2})
        self.assertTrue(model.match_aspect)
        self.assertEqual(model.aspect_scale, 2.0)
        with self.assertRaisesRegex(ValueError, "match_aspect must be a boolean"):
            frame_model_from_mapping({"match_aspect": "yes"})
        with self.assertRaisesRegex(ValueError, "aspect_scale must be > 0"):
            frame_model_from_mapping({"aspect_scale": -1})

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_frame_config("/nonexistent/frame.toml")

    def test_invalid_entries(self) -> None:
        with self.assertRaisesRegex(ValueError, "unknown frame config fields"):
            frame_model_from_mapping({"z_range": {}})
        with self.assertRaisesRegex(ValueError, "missing required field: end"):
            frame_model_from_mapping({"x_range": {"type": "fixed", "start": 0}})
        with self.assertRaisesRegex(ValueError, "unsupported scale type"):
            frame_model_from_mapping({"y_scale": "sqrt"})
        with self.assertRaisesRegex(ValueError, "unsupported range type"):
            frame_model_from_mapping({"y_range": {"type": "polar"}})
        with self.assertRaisesRegex(ValueError, "must be a table"):
            frame_model_from_mapping({"extra_x_ranges": ["a"]})
        with self.assertRaisesRegex(ValueError, "must be a number"):
            frame_model_from_mapping({"x_range": {"type": "auto", "start": "low"}})


if __name__ == "__main__":
    unittest.main()

from __future__ import annotations

import math
import unittest

import numpy as np

from luvatrix_frame import (
    BBox,
    CartesianFrame,
    DataRange1d,
    DataRendererView,
    Extents,
    FrameModel,
    LogScale,
    Range1d,
    Renderer,
    RendererViewRegistry,
)


def _frame(
    views: RendererViewRegistry,
    model: FrameModel,
    *renderers: tuple[Renderer, list, list],
    bbox: BBox | None = None,
) -> CartesianFrame:
    for renderer, x, y in renderers:
        views.register(DataRendererView(renderer, x, y))
    model.renderers = [r for r, _, _ in renderers]
    return CartesianFrame(model, resolve_view=views, bbox=bbox)


class DataRendererViewTests(unittest.TestCase):
    def test_bounds_skip_non_finite_points(self) -> None:
        view = DataRendererView(Renderer(), [0.0, np.nan, 4.0, 2.0], [1.0, 9.0, np.inf, -3.0])
        self.assertEqual(view.bounds(), Extents(x0=0.0, x1=2.0, y0=-3.0, y1=1.0))

    def test_log_bounds_only_use_positive_values(self) -> None:
        view = DataRendererView(Renderer(), [-1.0, 0.0, 2.0, 8.0], [0.5, -2.0, 4.0, 0.0])
        self.assertEqual(view.log_bounds(), Extents(x0=2.0, x1=8.0, y0=0.5, y1=4.0))

    def test_empty_data_reports_empty_extents(self) -> None:
        view = DataRendererView(Renderer(), [np.nan], [1.0])
        self.assertTrue(view.bounds().is_empty)

    def test_length_mismatch(self) -> None:
        with self.assertRaises(ValueError):
            DataRendererView(Renderer(), [1.0, 2.0], [1.0])


class DataRangeUpdateTests(unittest.TestCase):
    def test_padded_bounds_from_frame_renderers(self) -> None:
        views = RendererViewRegistry()
        frame = _frame(views, FrameModel(), (Renderer(), [0.0, 10.0], [2.0, 4.0]))
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.start, -0.5)
        self.assertAlmostEqual(frame.x_range.end, 10.5)
        self.assertAlmostEqual(frame.y_range.start, 1.9)
        self.assertAlmostEqual(frame.y_range.end, 4.1)

    def test_collapsed_data_uses_default_span(self) -> None:
        views = RendererViewRegistry()
        frame = _frame(views, FrameModel(), (Renderer(), [1.0, 2.0], [3.0, 3.0]))
        frame.update_data_ranges()
        self.assertEqual((frame.y_range.start, frame.y_range.end), (2.0, 4.0))

    def test_secondary_log_range_uses_only_its_renderers(self) -> None:
        secondary = DataRange1d()
        model = FrameModel(
            extra_y_ranges={"secondary": secondary},
            extra_y_scales={"secondary": LogScale()},
        )
        views = RendererViewRegistry()
        frame = _frame(
            views,
            model,
            (Renderer(), [0.0, 10.0], [0.0, 10.0]),
            (Renderer(y_range_name="secondary"), [0.0, 10.0], [1.0, 1000.0]),
        )
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.y_range.start, -0.5)
        self.assertAlmostEqual(frame.y_range.end, 10.5)
        self.assertAlmostEqual(math.log10(secondary.start), -0.15)
        self.assertAlmostEqual(math.log10(secondary.end), 3.15)

    def test_range_shared_across_frames_covers_all_data(self) -> None:
        shared = DataRange1d()
        views = RendererViewRegistry()
        first = _frame(views, FrameModel(x_range=shared), (Renderer(), [0.0, 10.0], [0.0, 1.0]))
        second = _frame(views, FrameModel(x_range=shared), (Renderer(), [20.0, 30.0], [0.0, 1.0]))
        self.assertEqual(shared.frames, frozenset({first.id, second.id}))
        start, end = shared.update()
        self.assertAlmostEqual(start, -1.5)
        self.assertAlmostEqual(end, 31.5)

    def test_only_visible_skips_hidden_renderers(self) -> None:
        rng = DataRange1d(only_visible=True)
        views = RendererViewRegistry()
        frame = _frame(
            views,
            FrameModel(x_range=rng),
            (Renderer(), [0.0, 10.0], [0.0, 1.0]),
            (Renderer(visible=False), [100.0, 200.0], [0.0, 1.0]),
        )
        self.assertIn(frame.id, rng.frames)
        start, end = rng.update()
        self.assertAlmostEqual(start, -0.5)
        self.assertAlmostEqual(end, 10.5)

    def test_no_data_keeps_previous_bounds(self) -> None:
        rng = DataRange1d()
        views = RendererViewRegistry()
        frame = _frame(views, FrameModel(x_range=rng), (Renderer(), [np.nan], [np.nan]))
        self.assertIn(frame.id, rng.frames)
        self.assertEqual(rng.update(), (0.0, 1.0))
        self.assertFalse(rng.has_data)

    def test_unregistered_range_stops_seeing_frame_data(self) -> None:
        rng = DataRange1d()
        views = RendererViewRegistry()
        model = FrameModel(x_range=rng)
        frame = _frame(views, model, (Renderer(), [5.0, 15.0], [0.0, 1.0]))
        model.x_range = DataRange1d()
        self.assertNotIn(frame.id, rng.frames)
        self.assertEqual(rng.update(), (0.0, 1.0))


class MatchAspectTests(unittest.TestCase):
    def _square_data_frame(self, model: FrameModel, width: float, height: float) -> CartesianFrame:
        return _frame(
            RendererViewRegistry(),
            model,
            (Renderer(), [0.0, 10.0], [0.0, 10.0]),
            bbox=BBox.from_rect(0.0, 0.0, width, height),
        )

    def test_wide_frame_widens_x(self) -> None:
        frame = self._square_data_frame(FrameModel(match_aspect=True), 200.0, 100.0)
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.start, -6.0)
        self.assertAlmostEqual(frame.x_range.end, 16.0)
        self.assertAlmostEqual(frame.y_range.start, -0.5)
        self.assertAlmostEqual(frame.y_range.end, 10.5)
        # Same data units per pixel on both axes.
        self.assertAlmostEqual(frame.x_range.span / 200.0, frame.y_range.span / 100.0)

    def test_tall_frame_widens_y(self) -> None:
        frame = self._square_data_frame(FrameModel(match_aspect=True), 100.0, 200.0)
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.start, -0.5)
        self.assertAlmostEqual(frame.x_range.end, 10.5)
        self.assertAlmostEqual(frame.y_range.start, -6.0)
        self.assertAlmostEqual(frame.y_range.end, 16.0)

    def test_aspect_scale_divides_pixel_ratio(self) -> None:
        model = FrameModel(match_aspect=True, aspect_scale=2.0)
        frame = self._square_data_frame(model, 200.0, 100.0)
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.start, -0.5)
        self.assertAlmostEqual(frame.x_range.end, 10.5)
        self.assertAlmostEqual(frame.y_range.start, -0.5)
        self.assertAlmostEqual(frame.y_range.end, 10.5)

    def test_disabled_by_default(self) -> None:
        frame = self._square_data_frame(FrameModel(), 200.0, 100.0)
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.start, -0.5)
        self.assertAlmostEqual(frame.x_range.end, 10.5)

    def test_fixed_partner_range_disables_matching(self) -> None:
        model = FrameModel(match_aspect=True, y_range=Range1d(0.0, 10.0))
        frame = self._square_data_frame(model, 200.0, 100.0)
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.start, -0.5)
        self.assertAlmostEqual(frame.x_range.end, 10.5)

    def test_toggling_does_not_rebind_scales(self) -> None:
        model = FrameModel()
        frame = self._square_data_frame(model, 200.0, 100.0)
        x_scale = frame.x_scale
        model.match_aspect = True
        model.aspect_scale = 1.0
        self.assertIs(frame.x_scale, x_scale)
        frame.update_data_ranges()
        self.assertAlmostEqual(frame.x_range.end, 16.0)

    def test_aspect_scale_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            FrameModel(aspect_scale=0.0)


if __name__ == "__main__":
    unittest.main()

"""Tests for indexed styles and renderer implementations."""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from vegtools.rendering import (
    MatplotlibRenderer,
    NullRenderer,
    RecordingRenderer,
    Renderer,
    line_style,
    palette_color,
    point_marker,
)


class TestIndexedStyles:
    def test_palette_starts_black(self):
        assert palette_color(1) == "black"
        assert palette_color(2) == "#DF536B"

    def test_palette_recycles(self):
        assert palette_color(9) == palette_color(1)
        assert palette_color(10) == palette_color(2)

    def test_line_style_first_is_solid(self):
        assert line_style(1) == "solid"
        assert line_style(2) != "solid"
        assert line_style(7) == line_style(1)

    def test_point_marker(self):
        assert point_marker(1) == "o"
        assert point_marker(2) == "^"
        assert point_marker(11) == point_marker(1)

    @pytest.mark.parametrize("func", [palette_color, line_style, point_marker])
    def test_rejects_zero(self, func):
        with pytest.raises(ValueError, match=">= 1"):
            func(0)


class TestProtocol:
    @pytest.mark.parametrize(
        "impl", [MatplotlibRenderer, NullRenderer, RecordingRenderer]
    )
    def test_implementations_conform(self, impl):
        assert isinstance(impl(), Renderer)


class TestRecordingRenderer:
    def test_records_in_order(self):
        r = RecordingRenderer()
        r.draw_axes((0, 1), (0, 1), main="t")
        r.draw_line([0, 1], [0, 1], color="red")
        r.draw_hline(0.5)
        assert [c.name for c in r.calls] == ["draw_axes", "draw_line", "draw_hline"]
        assert r.named("draw_line")[0].kwargs["color"] == "red"

    def test_arrays_are_copied(self):
        r = RecordingRenderer()
        y = np.array([0.1, 0.2])
        r.draw_points([1, 2], y)
        y[0] = 9.0
        np.testing.assert_array_equal(r.calls[0].args[1], [0.1, 0.2])


class TestMatplotlibRenderer:
    def test_draws_onto_given_axes(self):
        fig, ax = plt.subplots()
        try:
            r = MatplotlibRenderer(ax)
            r.draw_axes((0, 10), (0, 1), main="Title", xlab="x", ylab="y")
            r.draw_line([0, 10], [0, 1], color="#DF536B", linestyle=line_style(2))
            r.draw_points([1, 2], [0, 1], marker="+", alpha=0.2)
            r.draw_points([1, 2], [0, 1], marker="o", color="red", alpha=0.2)
            r.draw_hline(0.5, color="red", linestyle="dashed")
            r.draw_band([0, 10], [0.1, 0.2], [0.3, 0.4])
            r.draw_text(1.0, 0.5, "Poa")
            r.draw_legend(["a", "b"], colors=["black", "red"], markers=["o", None])

            assert ax.get_title() == "Title"
            assert ax.get_xlim() == (0.0, 10.0)
            assert len(ax.lines) == 2  # curve + hline
            assert len(ax.collections) == 3  # two scatters + band
            assert [t.get_text() for t in ax.get_legend().get_texts()] == ["a", "b"]
        finally:
            plt.close(fig)

    def test_creates_figure_lazily(self):
        r = MatplotlibRenderer()
        assert r.ax is None
        r.draw_axes((0, 1), (0.1, 1), ylog=True)
        try:
            assert r.ax.get_yscale() == "log"
        finally:
            plt.close(r.ax.figure)

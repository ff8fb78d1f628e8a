"""
Integration tests for MixVisualizer

Reflectance plots, swatches and file output.
"""

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np
import pytest

from pigment_mixer.core.combination_search import MixResult
from pigment_mixer.core.mix_simulator import simulate
from pigment_mixer.core.spectral_model import curve_to_hex, curve_to_lab
from pigment_mixer.visualizer import MixVisualizer, VisualizationError, VisualizerConfig


def _result(paints, weights, error):
    curve = simulate(paints, weights)
    return MixResult(
        paint_ids=tuple(p.id for p in paints),
        weights=tuple(weights),
        curve=curve,
        lab=tuple(float(v) for v in curve_to_lab(curve)),
        hex=curve_to_hex(curve),
        error=error,
        hex_colors=tuple(p.hex for p in paints),
    )


@pytest.fixture
def results(paint_by_id):
    white, black = paint_by_id["titanium_white"], paint_by_id["ivory_black"]
    red, yellow = paint_by_id["cadmium_red"], paint_by_id["cadmium_yellow"]
    return [
        _result([white, black, red, yellow], [0.4, 0.1, 0.3, 0.2], 1.5),
        _result([white, black, red, yellow], [0.5, 0.05, 0.25, 0.2], 3.2),
        _result([white, red, yellow], [0.3, 0.4, 0.3], 6.0),
    ]


@pytest.fixture
def target_curve(paint_by_id):
    return simulate([paint_by_id["cadmium_red"], paint_by_id["titanium_white"]], [0.6, 0.4])


class TestPlotMixtures:
    def test_returns_figure(self, target_curve, results):
        fig = MixVisualizer().plot_mixtures(target_curve, results, title="Test")

        assert isinstance(fig, plt.Figure)
        curves_ax, swatch_ax = fig.axes
        # target + one line per result
        assert len(curves_ax.get_lines()) == 1 + len(results)
        assert len(swatch_ax.patches) == 1 + len(results) + sum(r.n_paints for r in results)
        plt.close(fig)

    def test_max_results(self, target_curve, results):
        visualizer = MixVisualizer(VisualizerConfig(max_results=1, show_paint_swatches=False))
        fig = visualizer.plot_mixtures(target_curve, results)

        curves_ax, swatch_ax = fig.axes
        assert len(curves_ax.get_lines()) == 2
        assert len(swatch_ax.patches) == 2
        plt.close(fig)

    def test_no_results(self, target_curve):
        fig = MixVisualizer().plot_mixtures(target_curve, [])
        assert len(fig.axes[0].get_lines()) == 1
        plt.close(fig)

    def test_invalid_target_curve(self, results):
        with pytest.raises(ValueError):
            MixVisualizer().plot_mixtures(np.ones(10), results)


class TestOutput:
    def test_save_png(self, target_curve, results, tmp_path: Path):
        visualizer = MixVisualizer()
        output = tmp_path / "plots" / "mix.png"

        visualizer.save_visualization(visualizer.plot_mixtures(target_curve, results), output)

        assert output.exists()
        assert output.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"

    def test_save_explicit_format(self, target_curve, results, tmp_path: Path):
        visualizer = MixVisualizer()
        output = tmp_path / "mix.out"

        visualizer.save_visualization(visualizer.plot_mixtures(target_curve, results), output, format="pdf")

        assert output.read_bytes()[:4] == b"%PDF"

    def test_save_rejects_non_figure(self, tmp_path: Path):
        with pytest.raises(VisualizationError):
            MixVisualizer().save_visualization(np.zeros((10, 10, 3)), tmp_path / "x.png")

    def test_figure_to_array(self, target_curve, results):
        config = VisualizerConfig(figure_size=(4, 2), dpi=50)
        visualizer = MixVisualizer(config)

        image = visualizer.figure_to_array(visualizer.plot_mixtures(target_curve, results))

        assert image.shape == (100, 200, 3)
        assert image.dtype == np.uint8

"""
Mixture Visualizer

Plots the target reflectance curve against the curves of ranked mixtures,
with color swatches for the target, each mixture and the paints it uses.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.patches import Rectangle

from pigment_mixer.core.combination_search import MixResult
from pigment_mixer.core.spectral_model import WAVELENGTHS, as_curve, curve_to_hex


@dataclass
class VisualizerConfig:
    """Visualizer configuration"""

    figure_size: Tuple[int, int] = (12, 6)
    dpi: int = 100
    max_results: int = 5
    show_paint_swatches: bool = True
    output_format: str = "png"  # "png", "pdf", "svg"


class VisualizationError(Exception):
    """Base exception for visualization errors"""

    pass


class MixVisualizer:
    def __init__(self, config: Optional[VisualizerConfig] = None):
        self.config = config or VisualizerConfig()

    def plot_mixtures(
        self, target_curve: Sequence[float], results: List[MixResult], title: Optional[str] = None
    ) -> plt.Figure:
        """
        Reflectance curves (left) and color swatches (right).

        Args:
            target_curve: resolved target reflectance
            results: ranked mixtures, best first
            title: figure title

        Returns:
            matplotlib Figure
        """
        target_curve = as_curve(target_curve)
        target_hex = curve_to_hex(target_curve)
        shown = results[: self.config.max_results]

        fig, axes = plt.subplots(
            1, 2, figsize=self.config.figure_size, dpi=self.config.dpi, gridspec_kw={"width_ratios": [3, 2]}
        )

        # Plot 1: reflectance curves
        ax = axes[0]
        ax.plot(WAVELENGTHS, target_curve, "k-", linewidth=2.5, label=f"Target {target_hex}")
        for rank, result in enumerate(shown, start=1):
            ax.plot(
                WAVELENGTHS,
                result.curve,
                "--",
                color=result.hex,
                linewidth=1.5,
                label=f"#{rank} ΔE {result.error:.2f}",
            )
        ax.set_xlabel("Wavelength (nm)")
        ax.set_ylabel("Reflectance")
        ax.set_xlim(WAVELENGTHS[0], WAVELENGTHS[-1])
        ax.set_ylim(0.0, 1.05)
        ax.set_title("Spectral Reflectance")
        ax.legend(loc="upper right", fontsize=8)
        ax.grid(True, alpha=0.3)

        # Plot 2: swatches
        ax = axes[1]
        self._draw_swatches(ax, target_hex, shown)

        if title:
            fig.suptitle(title)
        plt.tight_layout()
        return fig

    def _draw_swatches(self, ax, target_hex: str, results: List[MixResult]):
        rows = len(results) + 1
        ax.set_xlim(0, 10)
        ax.set_ylim(0, rows)
        ax.invert_yaxis()
        ax.axis("off")
        ax.set_title("Mixtures")

        ax.add_patch(Rectangle((0, 0.1), 2, 0.8, facecolor=target_hex, edgecolor="black"))
        ax.text(2.3, 0.5, f"Target {target_hex}", va="center", fontsize=9)

        for row, result in enumerate(results, start=1):
            ax.add_patch(Rectangle((0, row + 0.1), 2, 0.8, facecolor=result.hex, edgecolor="black"))
            label = ", ".join(f"{pid} {w:.0%}" for pid, w in zip(result.paint_ids, result.weights))
            ax.text(2.3, row + 0.35, f"#{row}  ΔE {result.error:.2f}", va="center", fontsize=9)
            ax.text(2.3, row + 0.7, label, va="center", fontsize=7)

            if self.config.show_paint_swatches:
                for i, color in enumerate(result.hex_colors):
                    x = 9.6 - i * 0.45
                    ax.add_patch(Rectangle((x, row + 0.55), 0.4, 0.35, facecolor=color, edgecolor="gray"))

    def save_visualization(self, fig: plt.Figure, output_path: Path, format: Optional[str] = None):
        """
        Save a figure to file and close it.

        Args:
            fig: Figure to save
            output_path: Output file path
            format: Output format (None = from suffix)
        """
        if not isinstance(fig, plt.Figure):
            raise VisualizationError(f"Unsupported image type: {type(fig)}")

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        if format is None:
            format = output_path.suffix[1:] if output_path.suffix else self.config.output_format

        fig.savefig(output_path, format=format, dpi=self.config.dpi, bbox_inches="tight")
        plt.close(fig)

    def figure_to_array(self, fig: plt.Figure) -> np.ndarray:
        """Render a figure to an RGB array and close it."""
        canvas = FigureCanvasAgg(fig)
        canvas.draw()
        image = np.asarray(canvas.buffer_rgba())[..., :3].copy()

        plt.close(fig)
        return image

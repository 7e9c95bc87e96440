"""PNG rendering of a PlotGeometry (matplotlib, non-interactive backend)."""

import logging
from pathlib import Path
from typing import Union

from services.plot_geometry import PlotGeometry

logger = logging.getLogger(__name__)

DPI = 100

BOUNDARY_FILL = "#dbeafe"
BOUNDARY_EDGE = "#2563eb"
LABEL_COLOR = "#1e40af"
GRID_COLOR = "#cbd5e1"
COMPASS_EDGE = "#6b7280"
NEEDLE_COLOR = "#ef4444"


def render_plot_preview(geometry: PlotGeometry, output_path: Union[str, Path]) -> str:
    """
    Draw *geometry* at its viewport size and save it as a PNG.

    Returns the absolute path to the saved file.
    """
    import matplotlib
    matplotlib.use("Agg")  # non-interactive backend
    import matplotlib.pyplot as plt
    from matplotlib.patches import Circle, Polygon as MplPolygon

    vp = geometry.viewport
    fig = plt.figure(figsize=(vp.width / DPI, vp.height / DPI), dpi=DPI)
    ax = fig.add_axes([0, 0, 1, 1])
    ax.set_xlim(0, vp.width)
    ax.set_ylim(vp.height, 0)  # canvas coordinates: y grows downward
    ax.set_aspect("equal")
    ax.axis("off")

    # --- plot boundary ---
    ax.add_patch(MplPolygon(geometry.boundary, closed=True, facecolor=BOUNDARY_FILL,
                            edgecolor=BOUNDARY_EDGE, linewidth=2, alpha=0.6))

    # --- grid ---
    for line in geometry.grid_lines:
        ax.plot([line.start[0], line.end[0]], [line.start[1], line.end[1]],
                color=GRID_COLOR, linewidth=0.5, alpha=0.5)

    # --- dimension and area labels ---
    for label, weight in ((geometry.width_label, "normal"),
                          (geometry.length_label, "normal"),
                          (geometry.area_label, "bold")):
        ax.text(label.position[0], label.position[1], label.text,
                rotation=-label.rotation if label.rotation else 0,
                color=LABEL_COLOR, fontsize=10, fontweight=weight,
                ha="center", va="center")

    # --- compass ---
    compass = geometry.compass
    ax.add_patch(Circle(compass.center, compass.radius, facecolor="white",
                        edgecolor=COMPASS_EDGE, linewidth=1, alpha=0.8))
    for letter, (x, y) in compass.labels.items():
        ax.text(x, y, letter, fontsize=7, fontweight="bold", ha="center", va="center")
    ax.add_patch(MplPolygon(compass.needle, closed=True, facecolor=NEEDLE_COLOR))

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        fig.savefig(str(output_path), dpi=DPI)
    finally:
        plt.close(fig)

    logger.info(f"Plot preview saved: {output_path}")
    return str(output_path.resolve())

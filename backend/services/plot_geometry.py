"""
Plot geometry for the 2D land-plot drawing.

Maps a plot description (width, length, shape) onto a fixed-size viewport:
  1. Uniform scale so the longer side fits inside the padded viewport
  2. Boundary outline per shape (axis-aligned box or fixed 6-vertex outline)
  3. Centering inside the viewport
  4. Annotations: dimension labels, grid, compass, area label

Screen coordinates follow canvas conventions (origin top-left, y downward).
All polygon work uses Shapely.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from shapely import affinity
from shapely.geometry import Polygon

from models import PlotShape
from services.units import format_number

logger = logging.getLogger(__name__)

Coord = Tuple[float, float]

# ===========================================================================
# CONSTANTS
# ===========================================================================

PLOT_PADDING = 40           # px kept free on every side of the viewport
GRID_DIVISIONS = 10         # grid step = longest side / 10
LABEL_OFFSET = 25           # px between an edge and its dimension label
COMPASS_RADIUS = 20
COMPASS_MARGIN = 10         # px between compass rim and bounding-box corner
COMPASS_LABEL_INSET = 8     # px from rim to N/S/E/W letters
COMPASS_NEEDLE_TIP = 10     # px from rim to needle tip
COMPASS_NEEDLE_HALF_WIDTH = 4
COMPASS_NEEDLE_TAIL = 5

# (x, y) fractions of (width, length), clockwise from the upper-left chamfer
IRREGULAR_FRACTIONS: Tuple[Coord, ...] = (
    (0.0, 0.3),
    (0.2, 0.0),
    (0.8, 0.0),
    (1.0, 0.3),
    (0.7, 1.0),
    (0.3, 1.0),
)

RECTANGLE_FRACTIONS: Tuple[Coord, ...] = (
    (0.0, 0.0),
    (1.0, 0.0),
    (1.0, 1.0),
    (0.0, 1.0),
)


# ===========================================================================
# TYPES
# ===========================================================================

@dataclass(frozen=True)
class Viewport:
    """Fixed output surface the plot is fitted into."""

    width: float
    height: float
    padding: float = PLOT_PADDING

    def __post_init__(self):
        if self.drawable_extent <= 0:
            raise ValueError(
                f"Viewport {self.width}x{self.height} leaves no drawable area "
                f"with padding {self.padding}"
            )

    @property
    def min_dimension(self) -> float:
        return min(self.width, self.height)

    @property
    def drawable_extent(self) -> float:
        return self.min_dimension - 2 * self.padding


@dataclass(frozen=True)
class TextLabel:
    text: str
    position: Coord
    rotation: float = 0.0   # degrees in canvas convention (y down): negative turns counter-clockwise

    def to_dict(self) -> dict:
        return {
            "text": self.text,
            "position": {"x": round(self.position[0], 4), "y": round(self.position[1], 4)},
            "rotation": self.rotation,
        }


@dataclass(frozen=True)
class GridLine:
    start: Coord
    end: Coord
    orientation: str        # "vertical" | "horizontal"

    def to_dict(self) -> dict:
        return {
            "start": [round(self.start[0], 4), round(self.start[1], 4)],
            "end": [round(self.end[0], 4), round(self.end[1], 4)],
            "orientation": self.orientation,
        }


@dataclass(frozen=True)
class CompassMarker:
    """Orientation marker: circle, cardinal letters and a needle pointing north."""

    center: Coord
    radius: float
    labels: Dict[str, Coord]
    needle: Tuple[Coord, ...]

    def to_dict(self) -> dict:
        return {
            "center": [round(self.center[0], 4), round(self.center[1], 4)],
            "radius": self.radius,
            "labels": {k: [round(x, 4), round(y, 4)] for k, (x, y) in self.labels.items()},
            "needle": [[round(x, 4), round(y, 4)] for x, y in self.needle],
        }


@dataclass
class PlotGeometry:
    """Drawable plot: scaled boundary plus annotations, in viewport coordinates."""

    shape: PlotShape
    width: float
    length: float
    viewport: Viewport
    scale: float
    origin: Coord
    boundary: List[Coord]
    width_label: TextLabel
    length_label: TextLabel
    area_label: TextLabel
    compass: CompassMarker
    grid_lines: List[GridLine] = field(default_factory=list)

    @property
    def scaled_size(self) -> Coord:
        return self.width * self.scale, self.length * self.scale

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Bounding box ``(minx, miny, maxx, maxy)`` of the boundary."""
        return self.polygon.bounds

    @property
    def polygon(self) -> Polygon:
        return Polygon(self.boundary)

    def to_dict(self) -> dict:
        minx, miny, maxx, maxy = self.bounds
        return {
            "shape": self.shape.value,
            "width": self.width,
            "length": self.length,
            "viewport": {
                "width": self.viewport.width,
                "height": self.viewport.height,
                "padding": self.viewport.padding,
            },
            "scale": round(self.scale, 6),
            "origin": {"x": round(self.origin[0], 4), "y": round(self.origin[1], 4)},
            "boundary": [[round(x, 4), round(y, 4)] for x, y in self.boundary],
            "bounds": [round(v, 4) for v in (minx, miny, maxx, maxy)],
            "labels": {
                "width": self.width_label.to_dict(),
                "length": self.length_label.to_dict(),
                "area": self.area_label.to_dict(),
            },
            "grid_lines": [g.to_dict() for g in self.grid_lines],
            "compass": self.compass.to_dict(),
        }


# ===========================================================================
# GEOMETRY HELPERS
# ===========================================================================

def compute_scale(width: float, length: float, viewport: Viewport) -> float:
    """Uniform px-per-meter factor fitting the longer side into the padded viewport."""
    return viewport.drawable_extent / max(width, length)


def plot_outline(width: float, length: float, shape) -> Polygon:
    """Boundary polygon in plot units (meters), upper-left corner at (0, 0)."""
    shape = PlotShape(shape)
    if shape == PlotShape.IRREGULAR:
        fractions = IRREGULAR_FRACTIONS
    else:
        fractions = RECTANGLE_FRACTIONS
    return Polygon([(fx * width, fy * length) for fx, fy in fractions])


def _grid_lines(origin: Coord, width: float, length: float, scale: float) -> List[GridLine]:
    """Grid every longest-side/10 meters, limited to the bounding box."""
    ox, oy = origin
    sw, sl = width * scale, length * scale
    step = max(width, length) / GRID_DIVISIONS

    lines: List[GridLine] = []
    for i in range(1, GRID_DIVISIONS):
        x = ox + step * i * scale
        if x < ox + sw:
            lines.append(GridLine((x, oy), (x, oy + sl), "vertical"))
    for i in range(1, GRID_DIVISIONS):
        y = oy + step * i * scale
        if y < oy + sl:
            lines.append(GridLine((ox, y), (ox + sw, y), "horizontal"))
    return lines


def _compass(origin: Coord, scaled_width: float) -> CompassMarker:
    """Compass anchored inside the upper-right corner of the bounding box."""
    r = COMPASS_RADIUS
    cx = origin[0] + scaled_width - r - COMPASS_MARGIN
    cy = origin[1] + r + COMPASS_MARGIN
    inset = r - COMPASS_LABEL_INSET
    labels = {
        "N": (cx, cy - inset),
        "S": (cx, cy + inset),
        "E": (cx + inset, cy),
        "W": (cx - inset, cy),
    }
    needle = (
        (cx, cy - r + COMPASS_NEEDLE_TIP),
        (cx - COMPASS_NEEDLE_HALF_WIDTH, cy),
        (cx, cy + COMPASS_NEEDLE_TAIL),
        (cx + COMPASS_NEEDLE_HALF_WIDTH, cy),
    )
    return CompassMarker(center=(cx, cy), radius=r, labels=labels, needle=needle)


# ===========================================================================
# PUBLIC API
# ===========================================================================

def build_plot_geometry(
    width: float,
    length: float,
    shape=PlotShape.RECTANGULAR,
    viewport: Optional[Viewport] = None,
) -> Optional[PlotGeometry]:
    """
    Build the drawable geometry for a plot.

    Returns ``None`` (nothing to render) when either dimension is not
    positive, so partially entered input never yields a degenerate shape.
    An unknown *shape* raises ``ValueError``.
    """
    shape = PlotShape(shape)
    if viewport is None:
        viewport = Viewport(500, 300)

    if width <= 0 or length <= 0:
        logger.debug(f"Plot {width}x{length} not renderable, staying idle")
        return None

    scale = compute_scale(width, length, viewport)
    sw, sl = width * scale, length * scale
    origin = ((viewport.width - sw) / 2, (viewport.height - sl) / 2)

    outline = plot_outline(width, length, shape)
    outline = affinity.scale(outline, xfact=scale, yfact=scale, origin=(0, 0))
    outline = affinity.translate(outline, xoff=origin[0], yoff=origin[1])
    boundary = [(x, y) for x, y in list(outline.exterior.coords)[:-1]]

    ox, oy = origin
    width_label = TextLabel(f"{format_number(width)}m", (ox + sw / 2, oy + sl + LABEL_OFFSET))
    length_label = TextLabel(
        f"{format_number(length)}m", (ox - LABEL_OFFSET, oy + sl / 2), rotation=-90.0
    )
    area_label = TextLabel(
        f"Area: {format_number(width * length)}m²", (ox + sw / 2, oy + sl / 2)
    )

    geometry = PlotGeometry(
        shape=shape,
        width=width,
        length=length,
        viewport=viewport,
        scale=scale,
        origin=origin,
        boundary=boundary,
        width_label=width_label,
        length_label=length_label,
        area_label=area_label,
        compass=_compass(origin, sw),
        grid_lines=_grid_lines(origin, width, length, scale),
    )
    logger.debug(
        f"Plot geometry: {shape.value} {width}x{length}m, scale {scale:.3f}, "
        f"{len(boundary)} vertices, {len(geometry.grid_lines)} grid lines"
    )
    return geometry

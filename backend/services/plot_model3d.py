"""
3D plot scene with a placed house model.

Builds a trimesh scene (Y-up, glTF convention) containing:
  - The plot boundary extruded into a thin ground slab lying in the XZ plane
  - An externally supplied house model, scaled and centred on the footprint

and an interactive viewer around it:
  - OrbitControls: orbit / pan / zoom camera state
  - PlotViewer: continuous render loop owned as a scoped resource
    (``async with`` or start()/close()); closing cancels the loop and
    releases the scene geometry
  - ViewerSlot: the single visible viewer, closed when replaced

Exports as GLB for Three.js rendering.
"""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import numpy as np
import trimesh
from shapely import affinity

from config import HOUSE_MODEL_PATH
from models import PlotShape
from services.plot_geometry import Viewport, compute_scale, plot_outline

logger = logging.getLogger(__name__)

# ===========================================================================
# CONSTANTS
# ===========================================================================

GROUND_THICKNESS = 0.1      # scene units
HOUSE_MODEL_SCALE = 0.5     # fixed visual scale applied to the loaded model
RENDER_FPS = 30

# 3D container: the plot's longer side spans 10 scene units
CONTAINER = Viewport(width=12.0, height=12.0, padding=1.0)

MIN_DISTANCE = 2.0
MAX_DISTANCE = 50.0
MIN_ELEVATION = math.radians(5)
MAX_ELEVATION = math.radians(85)

COLORS = {
    'grass': [120, 165, 90, 255],
    'house_default': [235, 225, 215, 255],
}

HouseLoader = Callable[[str], Optional[trimesh.Trimesh]]
FrameCallback = Callable[[trimesh.Scene, int], None]


# ===========================================================================
# GEOMETRY HELPERS
# ===========================================================================

def _is_valid_mesh(mesh):
    """Check if a mesh has valid geometry."""
    return (mesh is not None and hasattr(mesh, 'vertices')
            and mesh.vertices.shape[0] > 0)


def _color_mesh(mesh, color_key):
    """Apply a solid color to a mesh."""
    c = COLORS.get(color_key, [200, 200, 200, 255])
    mesh.visual = trimesh.visual.ColorVisuals(mesh=mesh, face_colors=c)
    return mesh


def load_house_model(path: str) -> Optional[trimesh.Trimesh]:
    """
    Load the house asset as a single mesh.

    Returns ``None`` when the file is missing or unreadable; the plot is
    still rendered without a house in that case.
    """
    try:
        mesh = trimesh.load(str(path), force="mesh")
    except Exception as e:
        logger.warning(f"House model could not be loaded from {path}: {e}")
        return None
    if not _is_valid_mesh(mesh):
        logger.warning(f"House model at {path} contains no geometry")
        return None
    return mesh


def _ground_slab(width, length, shape, scale):
    """Extrude the scaled plot outline into a slab whose top face sits at y=0."""
    outline = plot_outline(width, length, shape)
    outline = affinity.scale(outline, xfact=scale, yfact=scale, origin=(0, 0))
    outline = affinity.translate(outline, xoff=-width * scale / 2, yoff=-length * scale / 2)

    slab = trimesh.creation.extrude_polygon(outline, GROUND_THICKNESS)
    # +90 deg about X: extrusion axis z -> -y, plot y -> z (far edge of the
    # 2D drawing becomes -z, the direction the default camera looks)
    slab.apply_transform(trimesh.transformations.rotation_matrix(math.pi / 2, [1, 0, 0]))
    return _color_mesh(slab, 'grass')


def _place_house(mesh):
    """Scale the house and centre it on the footprint, base on the ground."""
    house = mesh.copy()
    house.apply_scale(HOUSE_MODEL_SCALE)
    (x0, y0, z0), (x1, _, z1) = house.bounds
    house.apply_translation([-(x0 + x1) / 2, -y0, -(z0 + z1) / 2])
    return house


# ===========================================================================
# SCENE
# ===========================================================================

@dataclass
class PlotScene:
    """Ground slab plus optional house, ready for viewing or export."""

    scene: trimesh.Scene
    ground: trimesh.Trimesh
    scale: float
    size: tuple
    house: Optional[trimesh.Trimesh] = None
    released: bool = False

    @property
    def has_house(self) -> bool:
        return self.house is not None

    def release(self):
        """Drop every geometry held by the scene."""
        if self.released:
            return
        self.scene.delete_geometry(list(self.scene.geometry.keys()))
        self.house = None
        self.released = True


def build_plot_scene(
    width: float,
    length: float,
    shape=PlotShape.RECTANGULAR,
    house_model: Optional[str] = None,
    container: Optional[Viewport] = None,
    loader: HouseLoader = load_house_model,
) -> Optional[PlotScene]:
    """
    Build the 3D scene for a plot.

    Returns ``None`` when either dimension is not positive. A house model
    that fails to load leaves the scene with the ground only.
    """
    shape = PlotShape(shape)
    container = container or CONTAINER
    if width <= 0 or length <= 0:
        logger.debug(f"Plot {width}x{length} not renderable, staying idle")
        return None

    scale = compute_scale(width, length, container)
    ground = _ground_slab(width, length, shape, scale)

    scene = trimesh.Scene()
    scene.add_geometry(ground, node_name="ground", geom_name="ground")

    house = None
    if house_model:
        try:
            loaded = loader(house_model)
        except Exception as e:
            logger.warning(f"House model could not be loaded from {house_model}: {e}")
            loaded = None
        if _is_valid_mesh(loaded):
            house = _place_house(loaded)
            scene.add_geometry(house, node_name="house", geom_name="house")

    logger.info(f"Plot scene: {shape.value} {width}x{length}m, scale {scale:.3f}, "
                f"house {'placed' if house is not None else 'absent'}")
    return PlotScene(
        scene=scene,
        ground=ground,
        scale=scale,
        size=(width * scale, length * scale),
        house=house,
    )


def export_scene(scene: trimesh.Scene, file_type: str = "glb") -> bytes:
    """Serialize *scene* to bytes (``glb`` by default)."""
    data = scene.export(file_type=file_type)
    if isinstance(data, str):
        data = data.encode("utf-8")
    return data


# ===========================================================================
# CAMERA CONTROLS
# ===========================================================================

@dataclass
class OrbitControls:
    """Spherical camera around a target point (angles in radians)."""

    target: np.ndarray = field(default_factory=lambda: np.zeros(3))
    distance: float = 15.0
    azimuth: float = math.radians(45)
    elevation: float = math.radians(35)

    @classmethod
    def framing(cls, plot_scene: PlotScene) -> "OrbitControls":
        """Controls whose distance frames the whole plot."""
        extent = max(plot_scene.size)
        distance = min(max(extent * 1.5, MIN_DISTANCE), MAX_DISTANCE)
        return cls(distance=distance)

    def orbit(self, d_azimuth: float, d_elevation: float = 0.0):
        self.azimuth = (self.azimuth + d_azimuth) % (2 * math.pi)
        self.elevation = min(max(self.elevation + d_elevation, MIN_ELEVATION), MAX_ELEVATION)

    def pan(self, dx: float, dy: float):
        """Move the target in the camera's screen plane, proportional to distance."""
        transform = self.camera_transform()
        right, up = transform[:3, 0], transform[:3, 1]
        self.target = self.target + (right * dx + up * dy) * self.distance

    def zoom(self, factor: float):
        """``factor > 1`` moves closer, ``< 1`` moves away."""
        if factor <= 0:
            raise ValueError("Zoom factor must be positive.")
        self.distance = min(max(self.distance / factor, MIN_DISTANCE), MAX_DISTANCE)

    def eye(self) -> np.ndarray:
        ce = math.cos(self.elevation)
        offset = np.array([
            ce * math.sin(self.azimuth),
            math.sin(self.elevation),
            ce * math.cos(self.azimuth),
        ])
        return self.target + offset * self.distance

    def camera_transform(self) -> np.ndarray:
        """Camera-to-world matrix; the camera looks down its local -Z axis."""
        eye = self.eye()
        back = eye - self.target
        back = back / np.linalg.norm(back)
        right = np.cross([0.0, 1.0, 0.0], back)
        right = right / np.linalg.norm(right)
        up = np.cross(back, right)

        transform = np.eye(4)
        transform[:3, 0] = right
        transform[:3, 1] = up
        transform[:3, 2] = back
        transform[:3, 3] = eye
        return transform


# ===========================================================================
# VIEWER (RENDER LOOP)
# ===========================================================================

class PlotViewer:
    """
    Continuous render loop over a PlotScene.

    Every frame applies the orbit controls to the scene camera and hands the
    scene to *on_frame* (the display surface). The loop runs from start()
    until close(); close() also releases the scene. A closed viewer cannot
    be restarted.

    Typical workflow::

        async with PlotViewer(plot_scene) as viewer:
            viewer.controls.orbit(0.1)
    """

    def __init__(
        self,
        plot_scene: PlotScene,
        controls: Optional[OrbitControls] = None,
        fps: float = RENDER_FPS,
        on_frame: Optional[FrameCallback] = None,
    ):
        if fps <= 0:
            raise ValueError("Render loop fps must be positive.")
        self.plot_scene = plot_scene
        self.controls = controls or OrbitControls.framing(plot_scene)
        self.fps = fps
        self.on_frame = on_frame
        self.frame_count = 0
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self):
        """Start the render loop on the running event loop."""
        if self._closed:
            raise RuntimeError("Viewer has been closed and cannot be restarted.")
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._render_loop())
        logger.debug(f"Render loop started at {self.fps} fps")

    def render_frame(self):
        scene = self.plot_scene.scene
        scene.camera_transform = self.controls.camera_transform()
        self.frame_count += 1
        if self.on_frame is not None:
            self.on_frame(scene, self.frame_count)

    async def _render_loop(self):
        interval = 1.0 / self.fps
        while True:
            self.render_frame()
            await asyncio.sleep(interval)

    async def close(self):
        """Cancel the render loop and release the scene. Safe to call twice."""
        if self._closed:
            return
        self._closed = True
        task, self._task = self._task, None
        try:
            if task is not None:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        finally:
            self.plot_scene.release()
            logger.debug(f"Render loop closed after {self.frame_count} frames")

    async def __aenter__(self) -> "PlotViewer":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()


class ViewerSlot:
    """The single visible viewer; showing a new one closes the previous."""

    def __init__(self):
        self._viewer: Optional[PlotViewer] = None

    @property
    def current(self) -> Optional[PlotViewer]:
        return self._viewer

    async def show(self, viewer: PlotViewer) -> PlotViewer:
        previous, self._viewer = self._viewer, viewer
        if previous is not None and previous is not viewer:
            await previous.close()
        viewer.start()
        return viewer

    async def clear(self):
        previous, self._viewer = self._viewer, None
        if previous is not None:
            await previous.close()


def default_house_model() -> Optional[str]:
    """Configured house asset path, if the file exists."""
    path = Path(HOUSE_MODEL_PATH)
    return str(path) if path.exists() else None

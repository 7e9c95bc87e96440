"""
Plot visualization routes.

Endpoints:
  POST /api/plot/geometry — 2D drawing instructions for the plot
  POST /api/plot/preview  — PNG rendering of the 2D drawing
  POST /api/plot/model    — GLB scene: ground slab with the house model

Non-positive dimensions are not an error: geometry reports
``rendered: false`` and the preview/model endpoints answer 204.
"""

import logging
import os
import uuid

from fastapi import APIRouter, BackgroundTasks, HTTPException, Response
from fastapi.responses import FileResponse

from config import EXPORT_DIR, VIEWPORT_HEIGHT, VIEWPORT_PADDING, VIEWPORT_WIDTH
from schemas import PlotGeometryResponse, PlotRequest
from services.plot_geometry import Viewport, build_plot_geometry
from services.plot_model3d import build_plot_scene, default_house_model, export_scene
from services.plot_preview import render_plot_preview

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/plot", tags=["plot"])


def _viewport(req: PlotRequest) -> Viewport:
    if req.viewport is None:
        return Viewport(VIEWPORT_WIDTH, VIEWPORT_HEIGHT, VIEWPORT_PADDING)
    return Viewport(req.viewport.width, req.viewport.height, req.viewport.padding)


def _build_geometry(req: PlotRequest):
    try:
        return build_plot_geometry(req.width, req.length, req.shape, _viewport(req))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/geometry", response_model=PlotGeometryResponse)
async def plot_geometry(req: PlotRequest):
    geometry = _build_geometry(req)
    if geometry is None:
        return PlotGeometryResponse(rendered=False)
    return PlotGeometryResponse(rendered=True, geometry=geometry.to_dict())


@router.post("/preview")
async def plot_preview(req: PlotRequest):
    geometry = _build_geometry(req)
    if geometry is None:
        return Response(status_code=204)
    output = EXPORT_DIR / "previews" / f"plot_{uuid.uuid4().hex}.png"
    path = render_plot_preview(geometry, output)
    # the PNG is only needed until it has been streamed
    cleanup = BackgroundTasks()
    cleanup.add_task(os.unlink, path)
    return FileResponse(path, media_type="image/png", filename="plot_preview.png",
                        background=cleanup)


@router.post("/model")
async def plot_model(req: PlotRequest):
    plot_scene = build_plot_scene(req.width, req.length, req.shape,
                                  house_model=default_house_model())
    if plot_scene is None:
        return Response(status_code=204)
    try:
        data = export_scene(plot_scene.scene, file_type="glb")
    finally:
        plot_scene.release()
    return Response(
        content=data,
        media_type="model/gltf-binary",
        headers={"Content-Disposition": 'attachment; filename="plot.glb"'},
    )

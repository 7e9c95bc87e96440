"""
Design generation, history and JSON export routes.

Endpoints:
  POST   /api/designs/generate            — Generate a batch of designs
  POST   /api/designs/export              — Download a design as JSON
  GET    /api/history                     — Session history, most recent first
  GET    /api/history/{item_id}           — One history item
  GET    /api/history/{item_id}/export    — Download a history item as JSON
  DELETE /api/history                     — Clear the session history
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response

from config import RANDOM_SEED, SYNTHESIS_DELAY_SECONDS
from schemas import GenerateDesignsRequest, GenerateDesignsResponse, HistoryItem, HouseDesign
from services.design_synthesis import UnsupportedOptionError
from services.export import design_filename, history_filename, to_json
from services.history import DesignSession, GenerationInProgressError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["designs"])

_session = DesignSession(seed=RANDOM_SEED, delay=SYNTHESIS_DELAY_SECONDS)


def get_session() -> DesignSession:
    """Process-wide design session (history lives only as long as the process)."""
    return _session


def _json_attachment(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/designs/generate", response_model=GenerateDesignsResponse)
async def generate(req: GenerateDesignsRequest, session: DesignSession = Depends(get_session)):
    """Generate candidate designs for a plot and record them in the history."""
    try:
        item = await session.generate(req.land_measurement, req.preferences)
    except GenerationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except UnsupportedOptionError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return GenerateDesignsResponse(history_id=item.id, designs=item.designs)


@router.post("/designs/export")
async def export_design(design: HouseDesign):
    """Return a design as a downloadable JSON document."""
    return _json_attachment(to_json(design), design_filename(design))


@router.get("/history", response_model=List[HistoryItem])
async def list_history(session: DesignSession = Depends(get_session)):
    return session.history.items()


@router.get("/history/{item_id}", response_model=HistoryItem)
async def get_history_item(item_id: str, session: DesignSession = Depends(get_session)):
    item = session.history.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="History item not found")
    return item


@router.get("/history/{item_id}/export")
async def export_history_item(item_id: str, session: DesignSession = Depends(get_session)):
    """Return a history item as a downloadable JSON document."""
    item = session.history.get(item_id)
    if not item:
        raise HTTPException(status_code=404, detail="History item not found")
    return _json_attachment(to_json(item), history_filename(item))


@router.delete("/history", status_code=204)
async def clear_history(session: DesignSession = Depends(get_session)):
    session.history.clear()
    logger.info("History cleared")
    return Response(status_code=204)

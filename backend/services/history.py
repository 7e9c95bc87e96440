"""
In-memory design history for the running process.

Generation requests run through DesignSession, which keeps overlapping
requests for the same plot/preferences pair from both landing in the
history. Items are prepended, so the list reads most-recent-first.
"""

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Set, Tuple

from schemas import HistoryItem, HousePreferences, LandMeasurement
from services.design_synthesis import generate_designs_async

logger = logging.getLogger(__name__)


class GenerationInProgressError(RuntimeError):
    """A generation for the same land/preferences pair is still pending."""


class DesignHistory:
    """Ephemeral, most-recent-first list of history items."""

    def __init__(self):
        self._items: List[HistoryItem] = []

    def add(self, item: HistoryItem) -> HistoryItem:
        self._items.insert(0, item)
        return item

    def items(self) -> List[HistoryItem]:
        return list(self._items)

    def get(self, item_id: str) -> Optional[HistoryItem]:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def clear(self):
        self._items.clear()

    def __len__(self) -> int:
        return len(self._items)


class DesignSession:
    """Runs design generation and records each batch in the history."""

    def __init__(
        self,
        history: Optional[DesignHistory] = None,
        seed: Optional[int] = None,
        delay: Optional[float] = None,
    ):
        self.history = history if history is not None else DesignHistory()
        self.rng = random.Random(seed)
        self.delay = delay
        self._pending: Set[Tuple[str, str]] = set()

    @staticmethod
    def _request_key(land: LandMeasurement, prefs: HousePreferences) -> Tuple[str, str]:
        return land.model_dump_json(), prefs.model_dump_json()

    def is_pending(self, land: LandMeasurement, prefs: HousePreferences) -> bool:
        return self._request_key(land, prefs) in self._pending

    async def generate(self, land: LandMeasurement, prefs: HousePreferences) -> HistoryItem:
        """
        Generate a batch and prepend it to the history.

        Raises GenerationInProgressError if the same pair is already being
        generated.
        """
        key = self._request_key(land, prefs)
        if key in self._pending:
            raise GenerationInProgressError(
                "A design generation for this plot and these preferences is already running."
            )

        self._pending.add(key)
        try:
            designs = await generate_designs_async(land, prefs, rng=self.rng, delay=self.delay)
        finally:
            self._pending.discard(key)

        item = HistoryItem(
            id=str(uuid.uuid4()),
            land_measurement=land,
            preferences=prefs,
            designs=tuple(designs),
            created_at=datetime.now(timezone.utc),
        )
        self.history.add(item)
        logger.info(f"History item {item.id} recorded ({len(self.history)} total)")
        return item

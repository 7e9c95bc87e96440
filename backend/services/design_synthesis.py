"""
Design Synthesis Engine.

Derives a batch of candidate house designs from one land measurement and
one set of house preferences:
  1. Footprint sizing (40% of plot area, two bounded random factors)
  2. Feature list (style + budget + outdoor sets, then conditional extras)
  3. Cost estimate (budget rate x style multiplier x floor premium)
  4. Title (random style token + size and level descriptors)
  5. Description (style, plot area, plot shape, style sentence)

Randomness comes from an injected ``random.Random`` so batches can be
replayed with a seed; without one a fresh unseeded generator is used.
"""

import asyncio
import logging
import math
import random
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from config import SYNTHESIS_DELAY_SECONDS
from models import BudgetTier, HouseStyle, OutdoorSpace
from schemas import HouseDesign, HousePreferences, LandMeasurement
from services.units import format_number

logger = logging.getLogger(__name__)

# ===========================================================================
# CONSTANTS
# ===========================================================================

DESIGN_BATCH_SIZE = 3
MAX_FOOTPRINT_RATIO = 0.4           # share of the plot a footprint may cover
BASE_FACTOR_RANGE = (0.7, 1.0)
VARIATION_RANGE = (0.9, 1.1)
FLOOR_COST_PREMIUM = 0.15           # per floor above the first
LARGE_PLOT_AREA = 500               # m², above this a large backyard is offered

DESIGN_IMAGES = [
    "https://images.pexels.com/photos/106399/pexels-photo-106399.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2",
    "https://images.pexels.com/photos/1396122/pexels-photo-1396122.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2",
    "https://images.pexels.com/photos/323780/pexels-photo-323780.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2",
    "https://images.pexels.com/photos/1029599/pexels-photo-1029599.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2",
    "https://images.pexels.com/photos/2102587/pexels-photo-2102587.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2",
    "https://images.pexels.com/photos/53610/large-home-residential-house-architecture-53610.jpeg?auto=compress&cs=tinysrgb&w=1260&h=750&dpr=2",
]

STYLE_DESCRIPTIONS: Dict[HouseStyle, str] = {
    HouseStyle.MODERN: "Clean lines, minimalist aesthetics, open floor plans, and integration with natural surroundings.",
    HouseStyle.TRADITIONAL: "Classic design elements, symmetrical facades, and formal room layouts that create a timeless appeal.",
    HouseStyle.MINIMALIST: "Simplified forms, monochromatic color schemes, and elimination of excess elements for serene living spaces.",
    HouseStyle.COLONIAL: "Symmetrical design, decorative crown moldings, grand entrances, and traditional room arrangements.",
    HouseStyle.CRAFTSMAN: "Hand-crafted details, natural materials, wide eaves, and cozy interior spaces with built-in features.",
}

STYLE_FEATURES: Dict[HouseStyle, List[str]] = {
    HouseStyle.MODERN: [
        "Floor-to-ceiling windows",
        "Open concept living areas",
        "Smart home technology integration",
        "Sustainable building materials",
    ],
    HouseStyle.TRADITIONAL: [
        "Formal dining room",
        "Traditional fireplace",
        "Crown molding",
        "Wainscoting details",
    ],
    HouseStyle.MINIMALIST: [
        "Hidden storage solutions",
        "Neutral color palette",
        "Multi-functional spaces",
        "Streamlined fixtures",
    ],
    HouseStyle.COLONIAL: [
        "Grand entrance foyer",
        "Symmetrical window placement",
        "Decorative columns",
        "Central staircase",
    ],
    HouseStyle.CRAFTSMAN: [
        "Exposed wooden beams",
        "Built-in cabinetry",
        "Stone fireplaces",
        "Covered front porch",
    ],
}

BUDGET_FEATURES: Dict[BudgetTier, List[str]] = {
    BudgetTier.LOW: [
        "Energy-efficient appliances",
        "Standard finishes",
        "Practical layout",
    ],
    BudgetTier.MEDIUM: [
        "Granite countertops",
        "Hardwood floors in main areas",
        "Walk-in closets",
    ],
    BudgetTier.HIGH: [
        "Custom cabinetry",
        "Premium finishes throughout",
        "Large master suite with spa bath",
    ],
    BudgetTier.LUXURY: [
        "Home theater room",
        "Wine cellar",
        "Custom architectural details",
        "Heated floors",
    ],
}

OUTDOOR_FEATURES: Dict[OutdoorSpace, List[str]] = {
    OutdoorSpace.SMALL: [
        "Cozy patio space",
        "Low-maintenance landscaping",
    ],
    OutdoorSpace.MEDIUM: [
        "Outdoor dining area",
        "Garden spaces",
        "Landscaped yard",
    ],
    OutdoorSpace.LARGE: [
        "Swimming pool",
        "Outdoor kitchen",
        "Extensive gardens",
        "Multiple entertainment zones",
    ],
}

# Currency units per square meter
BASE_COST_PER_SQM: Dict[BudgetTier, int] = {
    BudgetTier.LOW: 1200,
    BudgetTier.MEDIUM: 1800,
    BudgetTier.HIGH: 2500,
    BudgetTier.LUXURY: 3500,
}

STYLE_COST_MULTIPLIER: Dict[HouseStyle, float] = {
    HouseStyle.MODERN: 1.10,
    HouseStyle.TRADITIONAL: 1.00,
    HouseStyle.MINIMALIST: 0.95,
    HouseStyle.COLONIAL: 1.15,
    HouseStyle.CRAFTSMAN: 1.20,
}

STYLE_TITLE_TOKENS: Dict[HouseStyle, List[str]] = {
    HouseStyle.MODERN: ["Contemporary", "Urban", "Sleek", "Modernist"],
    HouseStyle.TRADITIONAL: ["Heritage", "Classic", "Timeless", "Elegant"],
    HouseStyle.MINIMALIST: ["Essential", "Pure", "Simple", "Zen"],
    HouseStyle.COLONIAL: ["Grand Colonial", "Heritage", "Stately", "Traditional"],
    HouseStyle.CRAFTSMAN: ["Artisan", "Handcrafted", "Rustic", "Naturalist"],
}


class UnsupportedOptionError(ValueError):
    """Raised when a preference value is outside its closed option set."""


def _check_tables():
    """Every lookup table must cover its whole option set."""
    tables = (
        (STYLE_DESCRIPTIONS, HouseStyle),
        (STYLE_FEATURES, HouseStyle),
        (STYLE_COST_MULTIPLIER, HouseStyle),
        (STYLE_TITLE_TOKENS, HouseStyle),
        (BUDGET_FEATURES, BudgetTier),
        (BASE_COST_PER_SQM, BudgetTier),
        (OUTDOOR_FEATURES, OutdoorSpace),
    )
    for table, options in tables:
        missing = set(options) - set(table)
        if missing:
            raise RuntimeError(
                f"Lookup table for {options.__name__} is missing "
                f"{sorted(m.value for m in missing)}"
            )


_check_tables()


def _lookup(table: dict, options, value, label: str):
    try:
        return table[options(value)]
    except (ValueError, KeyError):
        raise UnsupportedOptionError(f"Unsupported {label}: {value!r}") from None


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# ===========================================================================
# FEATURES / COST / TEXT
# ===========================================================================

def get_features(prefs: HousePreferences, land_area: float) -> List[str]:
    """Ordered feature list; the first three are shown as key features."""
    features = [
        *_lookup(STYLE_FEATURES, HouseStyle, prefs.style, "style"),
        *_lookup(BUDGET_FEATURES, BudgetTier, prefs.budget, "budget"),
        *_lookup(OUTDOOR_FEATURES, OutdoorSpace, prefs.outdoor_space, "outdoor space"),
    ]

    multi_level = prefs.floors > 1
    if prefs.garage:
        features.append(f"{'Attached' if multi_level else 'Integrated'} garage")

    if land_area > LARGE_PLOT_AREA:
        features.append("Large backyard")

    if multi_level:
        features.append("Primary bedroom suite on second floor")
    else:
        features.append("Single-level living for convenience")

    return features


def estimate_cost(prefs: HousePreferences, square_footage: float) -> float:
    """Unformatted cost: rate x style multiplier x floor premium x area."""
    rate = _lookup(BASE_COST_PER_SQM, BudgetTier, prefs.budget, "budget")
    style_multiplier = _lookup(STYLE_COST_MULTIPLIER, HouseStyle, prefs.style, "style")
    floor_multiplier = 1 + (prefs.floors - 1) * FLOOR_COST_PREMIUM
    return rate * style_multiplier * floor_multiplier * square_footage


def format_currency(amount: float) -> str:
    """US-dollar string without fraction digits, e.g. ``$475,200``."""
    return f"${_round_half_up(amount):,}"


def design_title(prefs: HousePreferences, rng: random.Random) -> str:
    """Random style token plus size and level descriptors (titles may repeat)."""
    tokens = _lookup(STYLE_TITLE_TOKENS, HouseStyle, prefs.style, "style")
    style_name = rng.choice(tokens)

    if prefs.bedrooms <= 2:
        size_name = "Compact"
    elif prefs.bedrooms >= 4:
        size_name = "Spacious"
    else:
        size_name = "Balanced"

    level_name = "Multi-Level" if prefs.floors > 1 else "Single-Story"
    return f"{style_name} {size_name} {level_name} Home"


def design_description(land: LandMeasurement, prefs: HousePreferences) -> str:
    sentence = _lookup(STYLE_DESCRIPTIONS, HouseStyle, prefs.style, "style")
    style = HouseStyle(prefs.style)
    return (
        f"This {style.value} home is designed to maximize your "
        f"{format_number(land.area)}m² {land.shape.value} plot. {sentence}"
    )


def compute_square_footage(land_area: float, floors: int, rng: random.Random) -> int:
    """
    Total living area for one candidate.

    The footprint is a random 70-100% of the maximum footprint, shrunk by
    sqrt(floors) and stacked over the floors, then varied by +-10%.
    """
    max_footprint = land_area * MAX_FOOTPRINT_RATIO
    lo, hi = BASE_FACTOR_RANGE
    base_footprint = max_footprint * (lo + rng.random() * (hi - lo))

    footprint = base_footprint / math.sqrt(floors)
    total = footprint * floors

    lo, hi = VARIATION_RANGE
    variation = lo + rng.random() * (hi - lo)
    # tiny plots would otherwise round down to an empty house
    return max(1, _round_half_up(total * variation))


# ===========================================================================
# PUBLIC API
# ===========================================================================

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_designs(
    land: LandMeasurement,
    prefs: HousePreferences,
    rng: Optional[random.Random] = None,
    now: Callable[[], datetime] = _utcnow,
) -> List[HouseDesign]:
    """
    Generate the batch of candidate designs, in generation order.

    Parameters
    ----------
    land : LandMeasurement
        Plot to build on; its area drives footprint and features.
    prefs : HousePreferences
        Style, room counts, floors, garage, outdoor space, budget.
    rng : random.Random, optional
        Source of the size and title randomness.
    now : callable, optional
        Clock for the ``created_at`` stamp shared by the batch.
    """
    rng = rng or random.Random()
    created_at = now()
    designs: List[HouseDesign] = []

    for i in range(DESIGN_BATCH_SIZE):
        square_footage = compute_square_footage(land.area, prefs.floors, rng)
        design = HouseDesign(
            id=str(uuid.uuid4()),
            title=design_title(prefs, rng),
            description=design_description(land, prefs),
            image_url=DESIGN_IMAGES[i % len(DESIGN_IMAGES)],
            square_footage=square_footage,
            bedrooms=prefs.bedrooms,
            bathrooms=prefs.bathrooms,
            floors=prefs.floors,
            features=tuple(get_features(prefs, land.area)),
            estimated_cost=format_currency(estimate_cost(prefs, square_footage)),
            created_at=created_at,
        )
        designs.append(design)

    logger.info(
        f"Generated {len(designs)} designs for {land.area}m² plot: "
        + ", ".join(f"{d.square_footage}m² {d.estimated_cost}" for d in designs)
    )
    return designs


async def generate_designs_async(
    land: LandMeasurement,
    prefs: HousePreferences,
    rng: Optional[random.Random] = None,
    delay: Optional[float] = None,
) -> List[HouseDesign]:
    """generate_designs() behind the simulated service latency."""
    delay = SYNTHESIS_DELAY_SECONDS if delay is None else delay
    if delay > 0:
        await asyncio.sleep(delay)
    return generate_designs(land, prefs, rng=rng)

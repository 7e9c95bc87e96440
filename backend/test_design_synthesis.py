"""Design synthesis: sizing, features, cost, titles, descriptions and input validation."""

import asyncio
import random
import re
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from models import BudgetTier, HouseStyle, OutdoorSpace
from schemas import HousePreferences, LandMeasurement
from services.design_synthesis import (
    DESIGN_BATCH_SIZE,
    DESIGN_IMAGES,
    STYLE_TITLE_TOKENS,
    UnsupportedOptionError,
    compute_square_footage,
    design_description,
    design_title,
    estimate_cost,
    format_currency,
    generate_designs,
    generate_designs_async,
    get_features,
)


@pytest.fixture
def land():
    """20m x 25m flat rectangular plot (500 m²)."""
    return LandMeasurement(width=20, length=25, shape="rectangular", slope="flat")


@pytest.fixture
def prefs():
    return HousePreferences(
        style="modern", bedrooms=3, bathrooms=2, floors=1,
        garage=True, outdoor_space="medium", budget="medium",
    )


class TestScenario:
    def test_batch_of_three_copies_room_counts(self, land, prefs):
        designs = generate_designs(land, prefs, rng=random.Random(1))
        assert len(designs) == DESIGN_BATCH_SIZE == 3
        for d in designs:
            assert d.square_footage > 0
            assert d.bedrooms == prefs.bedrooms
            assert d.bathrooms == prefs.bathrooms
            assert d.floors == prefs.floors

    @pytest.mark.parametrize("seed", range(50))
    def test_square_footage_within_plot_bounds(self, land, prefs, seed):
        # max footprint 200 m² -> [200*0.7*0.9, 200*1.0*1.1]
        for d in generate_designs(land, prefs, rng=random.Random(seed)):
            assert 126 <= d.square_footage <= 220

    def test_cost_follows_square_footage(self, land, prefs):
        for d in generate_designs(land, prefs, rng=random.Random(7)):
            expected = 1800 * 1.1 * 1.0 * d.square_footage
            assert d.estimated_cost == format_currency(expected)

    def test_ids_unique_and_images_rotate(self, land, prefs):
        designs = generate_designs(land, prefs, rng=random.Random(3))
        assert len({d.id for d in designs}) == 3
        assert [d.image_url for d in designs] == DESIGN_IMAGES[:3]

    def test_seeded_batches_repeat(self, land, prefs):
        first = generate_designs(land, prefs, rng=random.Random(42))
        second = generate_designs(land, prefs, rng=random.Random(42))
        assert [d.square_footage for d in first] == [d.square_footage for d in second]
        assert [d.title for d in first] == [d.title for d in second]

    def test_injected_clock(self, land, prefs):
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        designs = generate_designs(land, prefs, rng=random.Random(0), now=lambda: stamp)
        assert all(d.created_at == stamp for d in designs)

    def test_async_wrapper(self, land, prefs):
        designs = asyncio.run(generate_designs_async(land, prefs, rng=random.Random(0), delay=0))
        assert len(designs) == 3


class TestSquareFootage:
    def test_multi_floor_spreads_footprint(self):
        # 2 floors: footprint / sqrt(2) * 2 = sqrt(2) * single-floor total
        one = compute_square_footage(500, 1, random.Random(9))
        two = compute_square_footage(500, 2, random.Random(9))
        assert two == pytest.approx(one * 2 ** 0.5, abs=1.5)

    @pytest.mark.parametrize("width,length", [(1, 1), (0.5, 0.5), (0.01, 2)])
    def test_tiny_plot_still_gets_a_house(self, prefs, width, length):
        land = LandMeasurement(width=width, length=length)
        for seed in range(10):
            designs = generate_designs(land, prefs, rng=random.Random(seed))
            assert all(d.square_footage >= 1 for d in designs)

    @pytest.mark.parametrize("floors", [1, 2, 3])
    def test_bounds_scale_with_floors(self, floors):
        lo = 200 * 0.7 * 0.9 * floors ** 0.5
        hi = 200 * 1.0 * 1.1 * floors ** 0.5
        for seed in range(30):
            sf = compute_square_footage(500, floors, random.Random(seed))
            assert round(lo) <= sf <= round(hi)


class TestFeatures:
    def test_order_and_contents(self, prefs):
        features = get_features(prefs, 500)
        assert features[:4] == [
            "Floor-to-ceiling windows",
            "Open concept living areas",
            "Smart home technology integration",
            "Sustainable building materials",
        ]
        assert features[4:7] == ["Granite countertops", "Hardwood floors in main areas", "Walk-in closets"]
        assert features[7:10] == ["Outdoor dining area", "Garden spaces", "Landscaped yard"]
        assert features[10:] == ["Integrated garage", "Single-level living for convenience"]

    @pytest.mark.parametrize("style", list(HouseStyle))
    @pytest.mark.parametrize("budget", list(BudgetTier))
    @pytest.mark.parametrize("outdoor", list(OutdoorSpace))
    def test_minimum_size(self, style, budget, outdoor):
        p = HousePreferences(style=style, budget=budget, outdoor_space=outdoor,
                             garage=False, floors=1)
        assert len(get_features(p, 100)) >= 9 + 1

    @pytest.mark.parametrize("garage,floors,expected", [
        (True, 1, ["Integrated garage"]),
        (True, 2, ["Attached garage"]),
        (False, 1, []),
        (False, 3, []),
    ])
    def test_garage_feature_matches_preference(self, prefs, garage, floors, expected):
        p = prefs.model_copy(update={"garage": garage, "floors": floors})
        features = get_features(p, 300)
        assert [f for f in features if f.endswith("garage")] == expected

    def test_large_backyard_above_500(self, prefs):
        assert "Large backyard" not in get_features(prefs, 500)
        assert "Large backyard" in get_features(prefs, 500.5)

    def test_exactly_one_floor_layout_feature(self, prefs):
        layouts = {"Primary bedroom suite on second floor", "Single-level living for convenience"}
        for floors in (1, 2):
            p = prefs.model_copy(update={"floors": floors})
            assert len([f for f in get_features(p, 400) if f in layouts]) == 1
        multi = get_features(prefs.model_copy(update={"floors": 2}), 400)
        assert multi[-1] == "Primary bedroom suite on second floor"

    def test_luxury_tier_carries_four_features(self, prefs):
        p = prefs.model_copy(update={"budget": BudgetTier.LUXURY})
        assert get_features(p, 100)[4:8] == [
            "Home theater room", "Wine cellar", "Custom architectural details", "Heated floors",
        ]


class TestCost:
    def test_budget_tiers_strictly_increase(self, prefs):
        costs = [
            estimate_cost(prefs.model_copy(update={"budget": tier}), 150)
            for tier in (BudgetTier.LOW, BudgetTier.MEDIUM, BudgetTier.HIGH, BudgetTier.LUXURY)
        ]
        assert costs == sorted(costs)
        assert len(set(costs)) == 4

    @pytest.mark.parametrize("style", list(HouseStyle))
    def test_second_floor_premium(self, prefs, style):
        one = estimate_cost(prefs.model_copy(update={"style": style, "floors": 1}), 180)
        two = estimate_cost(prefs.model_copy(update={"style": style, "floors": 2}), 180)
        assert two == pytest.approx(one * 1.15)

    @pytest.mark.parametrize("style,multiplier", [
        ("modern", 1.10), ("traditional", 1.00), ("minimalist", 0.95),
        ("colonial", 1.15), ("craftsman", 1.20),
    ])
    def test_style_multiplier(self, prefs, style, multiplier):
        p = prefs.model_copy(update={"style": HouseStyle(style), "budget": BudgetTier.LOW})
        assert estimate_cost(p, 100) == pytest.approx(1200 * multiplier * 100)

    @pytest.mark.parametrize("amount,text", [
        (0.4, "$0"),
        (999.5, "$1,000"),
        (396000, "$396,000"),
        (1234567.49, "$1,234,567"),
    ])
    def test_currency_format(self, amount, text):
        assert format_currency(amount) == text


class TestText:
    @pytest.mark.parametrize("bedrooms,size", [(1, "Compact"), (2, "Compact"), (3, "Balanced"),
                                               (4, "Spacious"), (6, "Spacious")])
    def test_size_descriptor(self, prefs, bedrooms, size):
        title = design_title(prefs.model_copy(update={"bedrooms": bedrooms}), random.Random(0))
        assert f" {size} " in title

    def test_title_structure(self, prefs):
        rng = random.Random(5)
        for floors, level in ((1, "Single-Story"), (2, "Multi-Level")):
            title = design_title(prefs.model_copy(update={"floors": floors}), rng)
            match = re.fullmatch(r"(.+) (Compact|Balanced|Spacious) (Single-Story|Multi-Level) Home", title)
            assert match
            assert match.group(1) in STYLE_TITLE_TOKENS[HouseStyle.MODERN]
            assert match.group(3) == level

    def test_colonial_two_word_token(self, prefs):
        p = prefs.model_copy(update={"style": HouseStyle.COLONIAL})
        tokens = {design_title(p, random.Random(seed)).rsplit(" ", 3)[0] for seed in range(40)}
        assert tokens <= set(STYLE_TITLE_TOKENS[HouseStyle.COLONIAL])
        assert "Grand Colonial" in tokens

    def test_description(self, land, prefs):
        assert design_description(land, prefs) == (
            "This modern home is designed to maximize your 500m² rectangular plot. "
            "Clean lines, minimalist aesthetics, open floor plans, and integration "
            "with natural surroundings."
        )


class TestValidation:
    def test_unknown_style_rejected_at_construction(self):
        with pytest.raises(ValidationError):
            HousePreferences(style="gothic")

    def test_unknown_budget_rejected_at_construction(self):
        with pytest.raises(ValidationError):
            HousePreferences(budget="unlimited")

    def test_unknown_option_rejected_by_engine(self):
        p = HousePreferences.model_construct(style="gothic")
        with pytest.raises(UnsupportedOptionError):
            get_features(p, 100)
        with pytest.raises(UnsupportedOptionError):
            estimate_cost(p, 100)

    def test_camel_case_input(self):
        p = HousePreferences(outdoorSpace="large", budget="luxury")
        assert p.outdoor_space == OutdoorSpace.LARGE

    def test_preferences_are_immutable(self, prefs):
        with pytest.raises(ValidationError):
            prefs.bedrooms = 5

    @pytest.mark.parametrize("field", ["bedrooms", "bathrooms", "floors"])
    def test_counts_at_least_one(self, field):
        with pytest.raises(ValidationError):
            HousePreferences(**{field: 0})

    def test_area_derived(self):
        land = LandMeasurement(width=12.5, length=8)
        assert land.area == pytest.approx(100)

    def test_area_must_match_product(self):
        assert LandMeasurement(width=20, length=25, area=500.0000001).area
        with pytest.raises(ValidationError):
            LandMeasurement(width=20, length=25, area=480)

    @pytest.mark.parametrize("width,length", [(0, 10), (10, -2)])
    def test_dimensions_must_be_positive(self, width, length):
        with pytest.raises(ValidationError):
            LandMeasurement(width=width, length=length)

"""Closed option sets shared by the plot and design engines."""

import enum


class PlotShape(str, enum.Enum):
    RECTANGULAR = "rectangular"
    SQUARE = "square"
    IRREGULAR = "irregular"


class Slope(str, enum.Enum):
    FLAT = "flat"
    GENTLE = "gentle"
    STEEP = "steep"


class HouseStyle(str, enum.Enum):
    MODERN = "modern"
    TRADITIONAL = "traditional"
    MINIMALIST = "minimalist"
    COLONIAL = "colonial"
    CRAFTSMAN = "craftsman"


class OutdoorSpace(str, enum.Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class BudgetTier(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    LUXURY = "luxury"

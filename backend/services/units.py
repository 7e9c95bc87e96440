"""Number formatting shared by labels and design descriptions."""

SIGNIFICANT_DIGITS = 12


def format_number(value: float) -> str:
    """Render a measurement as entered, without trailing zeros (``20.0 -> "20"``, ``12.345 -> "12.345"``)."""
    text = f"{float(value):.{SIGNIFICANT_DIGITS}g}"
    if text == "-0":
        text = "0"
    return text

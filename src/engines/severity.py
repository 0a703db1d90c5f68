"""Keyword heuristic that assigns a severity level to free text.

Used by sources that carry no authoritative severity of their own.
"""

# Checked in order; the first tier with a matching keyword wins.
SEVERITY_TIERS: tuple[tuple[int, tuple[str, ...]], ...] = (
    (5, ("bomb", "explosion", "blast", "airstrike")),
    (4, ("terror", "shooting", "kidnap", "abduction", "riot", "violent protest", "unrest")),
)

DEFAULT_LEVEL = 3


def classify(text: str | None) -> int:
    """Classify text into a severity level of 3, 4 or 5.

    Matching is a case-insensitive substring test, so "terrorism" hits
    "terror" and "kidnapping" hits "kidnap". False negatives are expected.

    Args:
        text: Text to inspect, or None

    Returns:
        5 for explosive violence, 4 for other violence or unrest, else 3.

    Example:
        >>> classify("A bomb exploded near the station")
        5
        >>> classify("Violent protest erupts")
        4
        >>> classify("Routine embassy update")
        3
    """
    if not text:
        return DEFAULT_LEVEL

    text_to_search = text.lower()

    for level, keywords in SEVERITY_TIERS:
        for keyword in keywords:
            if keyword in text_to_search:
                return level

    return DEFAULT_LEVEL

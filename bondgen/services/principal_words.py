from __future__ import annotations

"""Principal amount to legal certificate words.

``principal_to_words(5000000) -> "FIVE MILLION DOLLARS"``. Uppercase, 21-99
hyphenated, no "AND", scales up to TRILLION.
"""

__all__ = [
    "MAX_AMOUNT",
    "principal_to_words",
]

MAX_AMOUNT = 999_999_999_999_999

ONES = (
    "", "ONE", "TWO", "THREE", "FOUR", "FIVE", "SIX", "SEVEN", "EIGHT", "NINE",
    "TEN", "ELEVEN", "TWELVE", "THIRTEEN", "FOURTEEN", "FIFTEEN", "SIXTEEN",
    "SEVENTEEN", "EIGHTEEN", "NINETEEN",
)
TENS = ("", "", "TWENTY", "THIRTY", "FORTY", "FIFTY", "SIXTY", "SEVENTY", "EIGHTY", "NINETY")
SCALES = ("", "THOUSAND", "MILLION", "BILLION", "TRILLION")


def _hundreds(num: int) -> str:
    """Words for 0..999 (empty string for 0)."""
    words: list[str] = []
    hundreds, remainder = divmod(num, 100)
    if hundreds:
        words.append(f"{ONES[hundreds]} HUNDRED")
    if remainder >= 20:
        tens, ones = divmod(remainder, 10)
        words.append(f"{TENS[tens]}-{ONES[ones]}" if ones else TENS[tens])
    elif remainder:
        words.append(ONES[remainder])
    return " ".join(words)


def principal_to_words(amount: int) -> str:
    """Convert a whole-dollar amount to uppercase words ending in DOLLARS.

    Args:
        amount: Integer between 0 and 999,999,999,999,999

    Returns:
        e.g. "TWENTY-ONE DOLLARS"; zero is "ZERO DOLLARS"

    Raises:
        ValueError: non-integer (floats and bools included), negative or too large
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ValueError(f"Principal amount must be a whole number (no decimals): {amount!r}")
    if amount < 0:
        raise ValueError(f"Principal amount must be positive: {amount}")
    if amount > MAX_AMOUNT:
        raise ValueError(f"Principal amount exceeds maximum supported value: {amount}")

    if amount == 0:
        return "ZERO DOLLARS"

    groups: list[str] = []
    scale = 0
    while amount:
        amount, chunk = divmod(amount, 1000)
        if chunk:
            words = _hundreds(chunk)
            groups.append(f"{words} {SCALES[scale]}" if SCALES[scale] else words)
        scale += 1

    return " ".join(reversed(groups)) + " DOLLARS"

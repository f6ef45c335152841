"""WHO ATC (Anatomical Therapeutic Chemical) code helpers."""

import re

# ATC code format patterns by hierarchy level
ATC_LEVEL_PATTERNS = (
    (1, re.compile(r"^[A-Z]$")),  # Example: N
    (2, re.compile(r"^[A-Z]\d{2}$")),  # Example: N02
    (3, re.compile(r"^[A-Z]\d{2}[A-Z]$")),  # Example: N02B
    (4, re.compile(r"^[A-Z]\d{2}[A-Z]{2}$")),  # Example: N02BA
    (5, re.compile(r"^[A-Z]\d{2}[A-Z]{2}\d{2}$")),  # Example: N02BA01
)

ATC_LEVEL_NAMES = {
    1: "Anatomical main group",
    2: "Therapeutic subgroup",
    3: "Pharmacological subgroup",
    4: "Chemical subgroup",
    5: "Chemical substance",
}


def get_atc_level(atc_code: str | None) -> int:
    """Hierarchy level (1-5) of an ATC code, or 0 if the code is not well formed."""
    if not atc_code:
        return 0
    code = atc_code.strip().upper()
    for level, pattern in ATC_LEVEL_PATTERNS:
        if pattern.match(code):
            return level
    return 0


def get_atc_level_name(level: int) -> str:
    """Descriptive name of an ATC level."""
    return ATC_LEVEL_NAMES.get(level, "Unknown level")

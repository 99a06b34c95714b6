"""
Closed value sets stored as free-form strings in the database
"""
import enum
from typing import Optional, Tuple


class Difficulty(str, enum.Enum):
    """Question difficulty; unknown covers unrecognized stored labels"""

    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "Difficulty":
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN


# Display order for charts and summaries
DIFFICULTY_ORDER = (Difficulty.BEGINNER, Difficulty.INTERMEDIATE, Difficulty.ADVANCED)


def difficulty_label(value: Optional[str]) -> str:
    """
    Canonical label for a stored difficulty

    Known levels map to their enum value regardless of case or padding;
    other labels are kept, lower-cased, so they still group together.
    """
    difficulty = Difficulty.from_value(value)
    if difficulty is not Difficulty.UNKNOWN:
        return difficulty.value
    label = (value or "").strip().lower()
    return label or Difficulty.UNKNOWN.value


def difficulty_sort_key(label: str) -> Tuple[int, str]:
    """Sort key: beginner, intermediate, advanced, then other labels alphabetically"""
    difficulty = Difficulty.from_value(label)
    if difficulty in DIFFICULTY_ORDER:
        return DIFFICULTY_ORDER.index(difficulty), ""
    return len(DIFFICULTY_ORDER), label


class QuestionStatus(str, enum.Enum):
    """Lifecycle of an authored question"""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "QuestionStatus":
        if value is None:
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN

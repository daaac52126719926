"""Comment category values."""

from enum import StrEnum


class Category(StrEnum):
    """Closed set of categories a comment can be assigned."""

    QUESTION = "question"
    MISSED_FUNCTIONALITY = "missed_functionality"
    NICE_TO_HAVE = "nice_to_have"
    IMPROVEMENT = "improvement"
    OTHER = "other"

    @classmethod
    def empty_counts(cls) -> dict["Category", int]:
        """Return a tally with every category at zero, in declaration order."""
        return {category: 0 for category in cls}

    @classmethod
    def coerce(cls, value: "str | Category | None") -> "Category":
        """Map a stored or user value onto the enum, falling back to OTHER."""
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER

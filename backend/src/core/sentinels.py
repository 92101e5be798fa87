from typing import Any


class MissingType:
    """
    Marker for an omitted keyword argument in partial updates.

    Lets update services tell "field not sent" (MISSING) apart from
    "field explicitly cleared" (None).
    """
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(MissingType, cls).__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo: Any):
        return self


MISSING = MissingType()


def is_provided(value: Any) -> bool:
    """True when a keyword argument was actually passed."""
    return value is not MISSING

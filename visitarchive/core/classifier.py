"""
Referrer Type Classification

Maps the raw ``referer_type`` value of a log row onto the closed set of
referrer types the archivers know how to bucket.
"""

from enum import Enum
from typing import Any


class RefererType(int, Enum):
    """Referrer type codes as stored in the visit log"""
    DIRECT_ENTRY = 1
    SEARCH_ENGINE = 2
    WEBSITE = 3
    CAMPAIGN = 6
    UNRECOGNIZED = -1

    @property
    def is_recognized(self) -> bool:
        return self is not RefererType.UNRECOGNIZED


_EMPTY_VALUES = (None, "", 0, "0")


def classify_referer_type(raw: Any) -> RefererType:
    """
    Classify a raw referrer type value.
    
    Empty values count as direct entries. Integral codes, as ints, floats
    or their string forms ("2", "2.0"), map to the matching type; everything
    else is UNRECOGNIZED.
    """
    if isinstance(raw, RefererType):
        return raw
    if raw in _EMPTY_VALUES:
        return RefererType.DIRECT_ENTRY
    try:
        value = float(str(raw).strip())
        return RefererType(int(value)) if value.is_integer() else RefererType.UNRECOGNIZED
    except ValueError:
        return RefererType.UNRECOGNIZED

# app/schemas/common.py
from decimal import Decimal
from typing import Annotated, Any

from pydantic import Field, StringConstraints

NameStr = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=100),
]

Str255 = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=255),
]

Str500 = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=1, max_length=500),
]

OptStr50 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=50),
    ]
    | None
)

OptStr100 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=100),
    ]
    | None
)

OptStr255 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=255),
    ]
    | None
)

OptStr500 = (
    Annotated[
        str,
        StringConstraints(strip_whitespace=True, max_length=500),
    ]
    | None
)

# Positive amount with at most two decimal places (fits Numeric(10, 2))
Money = Annotated[Decimal, Field(gt=0, max_digits=10, decimal_places=2)]


def blank_to_none(v: Any) -> Any:
    """Normalize empty strings coming from forms to None."""
    if isinstance(v, str) and not v.strip():
        return None
    return v

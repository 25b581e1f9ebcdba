"""
Shared field validators for partial-update schemas.

Update schemas mark every field Optional so clients can send any subset.
Columns that are NOT NULL may be omitted but never explicitly cleared.
"""

from pydantic import ValidationInfo


def reject_null(value, info: ValidationInfo):
    if value is None:
        raise ValueError(f"{info.field_name} cannot be null")
    return value

"""Shared schema base classes and field types."""

import re
from typing import Annotated, Literal

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

Difficulty = Literal["beginner", "intermediate", "advanced"]
TimeUnit = Literal["hours", "days", "weeks", "months"]

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


class CamelModel(BaseModel):
    """Base for API payloads: snake_case in Python, camelCase on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _check_password_strength(value: str) -> str:
    if len(value) < 6:
        raise ValueError("Password must be at least 6 characters long")
    if not _PASSWORD_RULE.match(value):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, and one number"
        )
    return value


Username = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=3, max_length=30, pattern=USERNAME_PATTERN),
]
PersonName = Annotated[str, StringConstraints(strip_whitespace=True, max_length=50)]
StrongPassword = Annotated[str, AfterValidator(_check_password_strength)]

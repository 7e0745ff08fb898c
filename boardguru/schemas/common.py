"""
Field types shared by the request schemas and route parameters.
"""

import re
from typing import Annotated, Any

from pydantic import StringConstraints

UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"

UuidStr = Annotated[str, StringConstraints(pattern=UUID_PATTERN)]


def is_uuid(value: Any) -> bool:
    return isinstance(value, str) and re.match(UUID_PATTERN, value) is not None

"""
Shared type definitions for the debug-capture package.

Centralizes common type annotations used across multiple modules.
"""

from datetime import datetime
from typing import Annotated, TypeAlias

import pydantic

# Pydantic-enhanced datetime for JSON serialization (allows string→datetime conversion)
JsonDatetime = Annotated[datetime, pydantic.Field(strict=False)]

PathStr: TypeAlias = str
"""A filesystem path as a string."""

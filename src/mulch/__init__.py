from __future__ import annotations

__version__ = "0.3.0"
__author__ = "mulch Contributors"

from mulch.expertise import (
    Classification,
    ExpertiseRecord,
    ExpertiseType,
    MulchError,
)

__all__ = [
    "Classification",
    "ExpertiseRecord",
    "ExpertiseType",
    "MulchError",
]

"""Configuration management."""
from mulch.config.settings import MulchConfig, ShelfLife
from mulch.config.path_resolver import PathResolver
from mulch.config.constants import *

__all__ = [
    "MulchConfig",
    "ShelfLife",
    "PathResolver",
]

"""Per-vendor firmware extraction workflows."""

from . import dell, hp, oracle
from .base import ExtractContext, Extractor

__all__ = ["ExtractContext", "Extractor", "dell", "hp", "oracle"]

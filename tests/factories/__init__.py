"""Test factories for CourseMap engine models."""

from .base import DataclassFactory
from .points import GeoPointFactory, CourseRecordFactory

__all__ = [
    "DataclassFactory",
    "GeoPointFactory",
    "CourseRecordFactory",
]

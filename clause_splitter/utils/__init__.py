"""Utility modules for data validation and statistics."""

from .statistics import DatasetStatistics
from .validators import TrainingExampleValidator

__all__ = ["DatasetStatistics", "TrainingExampleValidator"]

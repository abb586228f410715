"""
Calculators Package

Provides all calculation components for royalty processing.
"""

from .formats import FormatRoyaltyCalculator
from .recoupment import AdvanceRecoupmentEngine
from .split import OwnershipSplitEngine
from .tiers import TieredRateApplicator
from .title import TitleRoyaltyAggregator

__all__ = [
    "TieredRateApplicator",
    "FormatRoyaltyCalculator",
    "TitleRoyaltyAggregator",
    "OwnershipSplitEngine",
    "AdvanceRecoupmentEngine",
]

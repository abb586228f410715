"""
ROYALTY CALCULATION ENGINE
Tiered per-format royalties, co-author splits and advance recoupment
"""

from .errors import RoyaltyCalculationError
from .models import CalculationInput, RoyaltyCalculation
from .processor import RoyaltyProcessor, calculate_royalty_for_period

__all__ = [
    'RoyaltyProcessor',
    'CalculationInput',
    'RoyaltyCalculation',
    'RoyaltyCalculationError',
    'calculate_royalty_for_period',
]

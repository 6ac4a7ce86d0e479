"""
Calculators Package

Provides one calculator per tier of the distribution pipeline.
"""

from .indicator import IndicatorCalculator
from .individual import IndividualShareAllocator
from .institutional import InstitutionalCalculator
from .money import quantize_money, split_evenly, split_with_remainder
from .permanent import PermanentBeneficiaryCalculator
from .pools import PoolCalculator

__all__ = [
    "IndicatorCalculator",
    "InstitutionalCalculator",
    "PermanentBeneficiaryCalculator",
    "PoolCalculator",
    "IndividualShareAllocator",
    "quantize_money",
    "split_with_remainder",
    "split_evenly",
]

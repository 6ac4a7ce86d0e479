"""
REPARTITION ENGINE
Distribution of validated payments across funds and case participants
"""

from .engine import DistributionEngine, distribute
from .models import Payment, RepartitionResult, RoleAssignment
from .rules import DistributionRuleSet, load_rule_set

__all__ = [
    "DistributionEngine",
    "distribute",
    "Payment",
    "RoleAssignment",
    "RepartitionResult",
    "DistributionRuleSet",
    "load_rule_set",
]

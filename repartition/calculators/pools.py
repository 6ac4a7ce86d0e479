"""
Role Pool Calculator

Splits the remaining pool between chiefs, seizers, the mutual fund, the
common pool and the incentive pool.
"""

from ..models import DistributionContext, PoolSplit
from .money import split_with_remainder


class PoolCalculator:
    """Calculates the five role-dependent pools."""

    def calculate(self, ctx: DistributionContext) -> PoolSplit:
        """
        Chefs, Saisissants, Mutuelle and Masse commune are rounded shares of
        pool restant. Interessement is whatever is left, never a rounded
        percentage of its own, so the five pools sum exactly to the pool.
        """
        rule_set = ctx.rule_set
        (chefs, saisissants, mutuelle, masse_commune), interessement = split_with_remainder(
            ctx.permanent.pool_restant,
            [
                rule_set.chefs_rate,
                rule_set.saisissants_rate,
                rule_set.mutuelle_rate,
                rule_set.masse_commune_rate,
            ],
            ctx.quantum,
        )
        return PoolSplit(
            part_chefs=chefs,
            part_saisissants=saisissants,
            part_mutuelle=mutuelle,
            part_masse_commune=masse_commune,
            part_interessement=interessement,
        )

"""
Institutional Split Calculator

Splits produit net between the oversight fund (FLCF) and the Treasury.
"""

from ..models import DistributionContext, InstitutionalSplit
from .money import split_with_remainder


class InstitutionalCalculator:
    """Calculates part FLCF, part Tresor and produit net ayants droits."""

    def calculate(self, ctx: DistributionContext) -> InstitutionalSplit:
        rule_set = ctx.rule_set
        (flcf, tresor), ayants_droits = split_with_remainder(
            ctx.indicator.produit_net,
            [rule_set.flcf_rate, rule_set.tresor_rate],
            ctx.quantum,
        )
        return InstitutionalSplit(part_flcf=flcf, part_tresor=tresor, produit_net_ayants_droits=ayants_droits)

"""
Indicator Tier Calculator

Deducts the indicator's share from the payment amount to obtain produit net.
"""

from decimal import Decimal

from ..models import DistributionContext, IndicatorShare, Role
from .money import quantize_money


class IndicatorCalculator:
    """Calculates part indicateur and produit net."""

    def calculate(self, ctx: DistributionContext) -> IndicatorShare:
        """
        Part indicateur = indicateur_rate x amount.

        When the rule set requires a real indicator and the case has none,
        the coefficient is treated as 0 and produit net equals the amount.
        """
        amount = ctx.payment.amount
        rule_set = ctx.rule_set
        has_indicator = bool(ctx.roles.agents_for(Role.INDICATEUR))

        if rule_set.indicateur_requires_agent and not has_indicator:
            return IndicatorShare(part_indicateur=Decimal("0"), produit_net=amount, indicator_applied=False)

        part = quantize_money(amount * rule_set.indicateur_rate, ctx.quantum)
        return IndicatorShare(part_indicateur=part, produit_net=amount - part, indicator_applied=True)

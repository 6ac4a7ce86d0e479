"""
Distribution Engine - Main Orchestrator

Coordinates the distribution pipeline through discrete, testable steps.
Pure and synchronous: identical inputs always produce identical results.
"""

import logging
from typing import Any, Dict

from .builder import RepartitionBuilder
from .calculators import (
    IndicatorCalculator,
    IndividualShareAllocator,
    InstitutionalCalculator,
    PermanentBeneficiaryCalculator,
    PoolCalculator,
)
from .equilibrium import EquilibriumChecker
from .exceptions import InvalidRuleSet
from .models import DistributionContext, Payment, RepartitionResult, RoleAssignment
from .output import OutputBuilder
from .rules import DistributionRuleSet
from .validators import InputValidator

logger = logging.getLogger(__name__)


class DistributionEngine:
    """
    Main orchestrator for payment distribution.

    Each tier's base is the previous tier's remainder:
    1. Validate Input
    2. Build Context
    3. Indicator tier (produit disponible -> produit net)
    4. FLCF / Treasury (produit net -> produit net ayants droits)
    5. DD / DG (produit net ayants droits -> pool restant)
    6. Role pools (pool restant -> chefs, saisissants, mutuelle,
       masse commune, interessement)
    7. Individual and generic beneficiary lines
    8. Freeze result and self-check
    """

    def __init__(self):
        self.validator = InputValidator()
        self.indicator_calculator = IndicatorCalculator()
        self.institutional_calculator = InstitutionalCalculator()
        self.permanent_calculator = PermanentBeneficiaryCalculator()
        self.pool_calculator = PoolCalculator()
        self.share_allocator = IndividualShareAllocator()
        self.checker = EquilibriumChecker()
        self.output_builder = OutputBuilder()

    def distribute(
        self, payment: Payment, roles: RoleAssignment, rule_set: DistributionRuleSet
    ) -> RepartitionResult:
        """
        Distribute a validated payment across funds and case participants.

        Args:
            payment: Validated payment to distribute
            roles: Agents holding each role on the payment's case
            rule_set: Coefficients to apply (already validated at load time)

        Returns:
            Immutable RepartitionResult. A result that does not balance is
            returned with equilibre=False rather than raised.
        """
        # Step 1: Validate
        self.validator.validate(payment, roles, rule_set)

        # Step 2: Build context
        ctx = DistributionContext(payment=payment, roles=roles, rule_set=rule_set)
        logger.debug(f"Distributing payment {payment.payment_id} ({payment.amount}) with rules {rule_set.label}")

        # Step 3: Indicator
        ctx.indicator = self.indicator_calculator.calculate(ctx)
        logger.debug(f"  part indicateur: {ctx.indicator.part_indicateur}, produit net: {ctx.indicator.produit_net}")

        # Step 4: FLCF / Treasury
        ctx.institutional = self.institutional_calculator.calculate(ctx)
        logger.debug(
            f"  FLCF: {ctx.institutional.part_flcf}, Tresor: {ctx.institutional.part_tresor}, "
            f"ayants droits: {ctx.institutional.produit_net_ayants_droits}"
        )

        # Step 5: Permanent beneficiaries
        ctx.permanent = self.permanent_calculator.calculate(ctx)
        logger.debug(
            f"  DD: {ctx.permanent.part_dd}, DG: {ctx.permanent.part_dg}, pool: {ctx.permanent.pool_restant}"
        )

        # Step 6: Role pools
        ctx.pools = self.pool_calculator.calculate(ctx)
        logger.debug(f"  pools: {ctx.pools}")

        # Step 7: Beneficiary lines
        ctx.lines = self.share_allocator.allocate(ctx)

        # Step 8: Freeze
        result = self._build_result(ctx)

        if result.equilibre:
            logger.info(
                f"Payment {payment.payment_id} (case {payment.case_id}) distributed: "
                f"{result.total_reparti} over {len(result.lines)} lines"
            )
        else:
            logger.warning(
                f"Payment {payment.payment_id} (case {payment.case_id}) does not balance: "
                f"amount {payment.amount}, total {result.total_reparti}, ecart {result.ecart}"
            )
        return result

    def process_from_dict(
        self, data: Dict[str, Any], default_rule_set: DistributionRuleSet | None = None
    ) -> Dict[str, Any]:
        """
        Distribute a payment from raw dictionary input.

        Convenience method for API usage. A "rules" entry in the payload
        overrides the default rule set.
        """
        payment = Payment.from_dict(data["payment"])

        roles_data = dict(data.get("roles", {}))
        roles_data.setdefault("case_id", payment.case_id)
        roles = RoleAssignment.from_dict(roles_data)

        if "rules" in data:
            rule_set = DistributionRuleSet.from_dict(data["rules"])
        elif default_rule_set is not None:
            rule_set = default_rule_set
        else:
            raise InvalidRuleSet("No rule set supplied and no default rule set configured")

        result = self.distribute(payment, roles, rule_set)
        report = self.checker.check(result)
        return self.output_builder.build(result, rule_set, report)

    def _build_result(self, ctx: DistributionContext) -> RepartitionResult:
        builder = RepartitionBuilder(ctx.payment, ctx.rule_set)
        builder.set(
            part_indicateur=ctx.indicator.part_indicateur,
            produit_net=ctx.indicator.produit_net,
            part_flcf=ctx.institutional.part_flcf,
            part_tresor=ctx.institutional.part_tresor,
            produit_net_ayants_droits=ctx.institutional.produit_net_ayants_droits,
            part_dd=ctx.permanent.part_dd,
            part_dg=ctx.permanent.part_dg,
            pool_restant=ctx.permanent.pool_restant,
            part_chefs=ctx.pools.part_chefs,
            part_saisissants=ctx.pools.part_saisissants,
            part_mutuelle=ctx.pools.part_mutuelle,
            part_masse_commune=ctx.pools.part_masse_commune,
            part_interessement=ctx.pools.part_interessement,
        )
        builder.add_lines(ctx.lines)
        return builder.build()


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def distribute(payment: Payment, roles: RoleAssignment, rule_set: DistributionRuleSet) -> RepartitionResult:
    """Distribute a payment with a fresh engine."""
    return DistributionEngine().distribute(payment, roles, rule_set)

"""
Individual Share Allocator

Turns the line-backed tiers (indicator, DD, DG, chiefs, seizers) into
beneficiary lines. Every unit of those tiers ends up on exactly one line.
"""

from decimal import Decimal

from ..models import (
    AgentLine,
    BeneficiaryLine,
    DistributionContext,
    PermanentRole,
    PlaceholderLine,
    Role,
    Tier,
)
from .money import split_evenly

ROLE_POOLS = (
    (Tier.CHEFS, Role.CHEF, "Chef"),
    (Tier.SAISISSANTS, Role.SAISISSANT, "Saisissant"),
)

PLACEHOLDER_LABELS = {
    Tier.INDICATEUR: "Fonds indicateur",
    Tier.CHEFS: "Chefs (non affectés)",
    Tier.SAISISSANTS: "Saisissants (non affectés)",
}


def _fmt(value: Decimal) -> str:
    return f"{value:,}"


class IndividualShareAllocator:
    """Builds the ordered list of beneficiary lines."""

    def allocate(self, ctx: DistributionContext) -> list[BeneficiaryLine]:
        lines: list[BeneficiaryLine] = []
        lines.extend(self._indicator_lines(ctx))
        lines.extend(self._permanent_line(ctx, PermanentRole.DD, ctx.permanent.part_dd))
        lines.extend(self._permanent_line(ctx, PermanentRole.DG, ctx.permanent.part_dg))
        for tier, role, label in ROLE_POOLS:
            amount = ctx.pools.part_chefs if tier is Tier.CHEFS else ctx.pools.part_saisissants
            lines.extend(self._pool_lines(ctx, tier, role, label, amount))
        return lines

    def _indicator_lines(self, ctx: DistributionContext) -> list[BeneficiaryLine]:
        share = ctx.indicator
        if not share.indicator_applied or share.part_indicateur == 0:
            return []
        return self._pool_lines(ctx, Tier.INDICATEUR, Role.INDICATEUR, "Indicateur", share.part_indicateur)

    def _permanent_line(
        self, ctx: DistributionContext, permanent_role: PermanentRole, amount: Decimal
    ) -> list[BeneficiaryLine]:
        """DD/DG always get one line: their holder if known, a generic beneficiary otherwise."""
        tier = Tier(permanent_role.value)
        holder = ctx.roles.holder_of(permanent_role)
        if holder is not None:
            return [
                AgentLine(
                    agent_id=holder,
                    amount=amount,
                    tier=tier,
                    description=f"{permanent_role.label} ({permanent_role.value})",
                )
            ]
        return [
            PlaceholderLine(
                label=permanent_role.value,
                amount=amount,
                tier=tier,
                description=f"{permanent_role.value} (Bénéficiaire permanent)",
            )
        ]

    def _pool_lines(
        self, ctx: DistributionContext, tier: Tier, role: Role, label: str, amount: Decimal
    ) -> list[BeneficiaryLine]:
        agent_ids = list(ctx.roles.agents_for(role))

        if not agent_ids:
            if amount == 0:
                return []
            # nobody holds the role: keep the money visible under a generic beneficiary
            return [
                PlaceholderLine(
                    label=PLACEHOLDER_LABELS[tier],
                    amount=amount,
                    tier=tier,
                    description=f"Aucun agent {label.lower()} sur l'affaire {ctx.payment.case_id}",
                )
            ]

        shares = split_evenly(amount, agent_ids, ctx.quantum)
        count = len(shares)
        return [
            AgentLine(
                agent_id=agent_id,
                amount=share,
                tier=tier,
                description=f"{label} {position}/{count} - {_fmt(amount)} / {count}",
            )
            for position, (agent_id, share) in enumerate(shares, start=1)
        ]

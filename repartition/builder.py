"""
Repartition Builder

Accumulates tier amounts and beneficiary lines, then freezes them into an
immutable RepartitionResult. No other component creates results.
"""

from decimal import Decimal

from .equilibrium import EquilibriumChecker
from .models import BeneficiaryLine, Payment, RepartitionResult
from .rules import DistributionRuleSet

REQUIRED_AMOUNTS = (
    "part_indicateur",
    "produit_net",
    "part_flcf",
    "part_tresor",
    "produit_net_ayants_droits",
    "part_dd",
    "part_dg",
    "pool_restant",
    "part_chefs",
    "part_saisissants",
    "part_mutuelle",
    "part_masse_commune",
    "part_interessement",
)


class RepartitionBuilder:
    """Mutable accumulator for a single payment's distribution."""

    def __init__(self, payment: Payment, rule_set: DistributionRuleSet):
        self._payment = payment
        self._rule_set = rule_set
        self._amounts: dict[str, Decimal] = {}
        self._lines: list[BeneficiaryLine] = []

    def set(self, **amounts: Decimal) -> "RepartitionBuilder":
        for name, value in amounts.items():
            if name not in REQUIRED_AMOUNTS:
                raise KeyError(f"Unknown repartition amount: {name}")
            self._amounts[name] = value
        return self

    def add_line(self, line: BeneficiaryLine) -> "RepartitionBuilder":
        self._lines.append(line)
        return self

    def add_lines(self, lines: list[BeneficiaryLine]) -> "RepartitionBuilder":
        self._lines.extend(lines)
        return self

    def build(self) -> RepartitionResult:
        missing = [name for name in REQUIRED_AMOUNTS if name not in self._amounts]
        if missing:
            raise ValueError(f"Cannot build repartition, missing amounts: {', '.join(missing)}")

        amounts = self._amounts
        institutional = [
            amounts["part_flcf"],
            amounts["part_tresor"],
            amounts["part_mutuelle"],
            amounts["part_masse_commune"],
            amounts["part_interessement"],
        ]
        total = EquilibriumChecker.total_for(institutional, self._lines)
        ecart = self._payment.amount - total
        tolerance = self._rule_set.tolerance

        return RepartitionResult(
            payment_id=self._payment.payment_id,
            case_id=self._payment.case_id,
            rule_set_name=self._rule_set.name,
            rule_set_version=self._rule_set.version,
            produit_disponible=self._payment.amount,
            lines=tuple(self._lines),
            total_reparti=total,
            ecart=ecart,
            tolerance=tolerance,
            equilibre=abs(ecart) <= tolerance,
            **amounts,
        )


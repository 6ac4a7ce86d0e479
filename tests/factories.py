"""Builders for test inputs."""

from decimal import Decimal

from repartition.models import Payment, PermanentRole, Role, RoleAssignment
from repartition.rules import DistributionRuleSet


def make_rule_set(**overrides) -> DistributionRuleSet:
    """Rule set of the reference scenario, with optional overrides."""
    values = {
        "name": "test",
        "version": "1",
        "indicateur_rate": Decimal("0.10"),
        "flcf_rate": Decimal("0.05"),
        "tresor_rate": Decimal("0.15"),
        "dd_rate": Decimal("0.05"),
        "dg_rate": Decimal("0.05"),
        "chefs_rate": Decimal("0.20"),
        "saisissants_rate": Decimal("0.20"),
        "mutuelle_rate": Decimal("0.10"),
        "masse_commune_rate": Decimal("0.10"),
        "interessement_rate": Decimal("0.40"),
        "indicateur_requires_agent": False,
    }
    values.update(overrides)
    return DistributionRuleSet(**values)


def make_roles(case_id=1, chefs=(), saisissants=(), verificateurs=(), indicateurs=(), dd=None, dg=None):
    return RoleAssignment(
        case_id=case_id,
        roles={
            Role.CHEF: tuple(chefs),
            Role.SAISISSANT: tuple(saisissants),
            Role.VERIFICATEUR: tuple(verificateurs),
            Role.INDICATEUR: tuple(indicateurs),
        },
        permanent={PermanentRole.DD: dd, PermanentRole.DG: dg},
    )


def make_payment(amount="1000000", payment_id=10, case_id=1, **kwargs) -> Payment:
    return Payment(payment_id=payment_id, case_id=case_id, amount=Decimal(amount), **kwargs)

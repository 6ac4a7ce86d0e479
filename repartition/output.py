"""
Output Builder

Constructs the API response from a distribution result.
"""

from decimal import Decimal

from .equilibrium import EquilibriumReport
from .models import AgentLine, RepartitionResult
from .rules import DistributionRuleSet


def to_money(value: Decimal, quantum: Decimal) -> str:
    """Exact decimal string at the currency unit (amounts are always whole units)."""
    return format(value.quantize(quantum), "f")


def _fmt(value) -> str:
    """Format a number as currency string for descriptions."""
    return f"{value:,.0f} FCFA" if value == int(value) else f"{value:,.2f} FCFA"


def _pct(rate: Decimal) -> str:
    return f"{float(rate) * 100:g}%"


class OutputBuilder:
    """Builds the final output response."""

    def build(self, result: RepartitionResult, rule_set: DistributionRuleSet, report: EquilibriumReport) -> dict:
        return {
            "repartition_summary": self._build_summary(result, rule_set),
            "tiers": self._build_tiers(result, rule_set),
            "lines": self._build_lines(result, rule_set),
            "equilibrium": self._build_equilibrium(result, rule_set, report),
        }

    def _build_summary(self, result: RepartitionResult, rule_set: DistributionRuleSet) -> dict:
        q = rule_set.quantum
        return {
            "payment_id": result.payment_id,
            "case_id": result.case_id,
            "rule_set": result.rule_set_name,
            "rule_set_version": result.rule_set_version,
            "produit_disponible": to_money(result.produit_disponible, q),
            "individual_lines": len(result.individual_lines),
            "generic_lines": len(result.generic_lines),
        }

    def _build_tiers(self, result: RepartitionResult, rule_set: DistributionRuleSet) -> dict:
        """Build tiers section with value and dynamic description for each field."""
        r = result
        q = rule_set.quantum
        pool_shares = r.part_chefs + r.part_saisissants + r.part_mutuelle + r.part_masse_commune

        return {
            "part_indicateur": {
                "value": to_money(r.part_indicateur, q),
                "description": (
                    f"{_pct(rule_set.indicateur_rate)} × {_fmt(r.produit_disponible)} = {_fmt(r.part_indicateur)}"
                    if r.part_indicateur
                    else "No indicator share for this payment"
                ),
            },
            "produit_net": {
                "value": to_money(r.produit_net, q),
                "description": f"{_fmt(r.produit_disponible)} - {_fmt(r.part_indicateur)} = {_fmt(r.produit_net)}",
            },
            "part_flcf": {
                "value": to_money(r.part_flcf, q),
                "description": f"{_pct(rule_set.flcf_rate)} × {_fmt(r.produit_net)} = {_fmt(r.part_flcf)}",
            },
            "part_tresor": {
                "value": to_money(r.part_tresor, q),
                "description": f"{_pct(rule_set.tresor_rate)} × {_fmt(r.produit_net)} = {_fmt(r.part_tresor)}",
            },
            "produit_net_ayants_droits": {
                "value": to_money(r.produit_net_ayants_droits, q),
                "description": (
                    f"{_fmt(r.produit_net)} - FLCF ({_fmt(r.part_flcf)}) - Tresor ({_fmt(r.part_tresor)}) "
                    f"= {_fmt(r.produit_net_ayants_droits)}"
                ),
            },
            "part_dd": {
                "value": to_money(r.part_dd, q),
                "description": f"{_pct(rule_set.dd_rate)} × {_fmt(r.produit_net_ayants_droits)} = {_fmt(r.part_dd)}",
            },
            "part_dg": {
                "value": to_money(r.part_dg, q),
                "description": f"{_pct(rule_set.dg_rate)} × {_fmt(r.produit_net_ayants_droits)} = {_fmt(r.part_dg)}",
            },
            "pool_restant": {
                "value": to_money(r.pool_restant, q),
                "description": (
                    f"{_fmt(r.produit_net_ayants_droits)} - DD ({_fmt(r.part_dd)}) - DG ({_fmt(r.part_dg)}) "
                    f"= {_fmt(r.pool_restant)}"
                ),
            },
            "part_chefs": {
                "value": to_money(r.part_chefs, q),
                "description": f"{_pct(rule_set.chefs_rate)} × {_fmt(r.pool_restant)} = {_fmt(r.part_chefs)}",
            },
            "part_saisissants": {
                "value": to_money(r.part_saisissants, q),
                "description": (
                    f"{_pct(rule_set.saisissants_rate)} × {_fmt(r.pool_restant)} = {_fmt(r.part_saisissants)}"
                ),
            },
            "part_mutuelle": {
                "value": to_money(r.part_mutuelle, q),
                "description": f"{_pct(rule_set.mutuelle_rate)} × {_fmt(r.pool_restant)} = {_fmt(r.part_mutuelle)}",
            },
            "part_masse_commune": {
                "value": to_money(r.part_masse_commune, q),
                "description": (
                    f"{_pct(rule_set.masse_commune_rate)} × {_fmt(r.pool_restant)} = {_fmt(r.part_masse_commune)}"
                ),
            },
            "part_interessement": {
                "value": to_money(r.part_interessement, q),
                "description": (
                    f"Remainder of the pool: {_fmt(r.pool_restant)} - {_fmt(pool_shares)} "
                    f"= {_fmt(r.part_interessement)} (nominal {_pct(rule_set.interessement_rate)})"
                ),
            },
        }

    def _build_lines(self, result: RepartitionResult, rule_set: DistributionRuleSet) -> list:
        q = rule_set.quantum
        lines = []
        for line in result.lines:
            entry = {
                "kind": line.kind,
                "tier": line.tier.value,
                "amount": to_money(line.amount, q),
                "description": line.description,
            }
            if isinstance(line, AgentLine):
                entry["agent_id"] = line.agent_id
            else:
                entry["label"] = line.label
            lines.append(entry)
        return lines

    def _build_equilibrium(
        self, result: RepartitionResult, rule_set: DistributionRuleSet, report: EquilibriumReport
    ) -> dict:
        q = rule_set.quantum
        return {
            "equilibre": result.equilibre,
            "total_reparti": to_money(result.total_reparti, q),
            "ecart": to_money(result.ecart, q),
            "tolerance": to_money(result.tolerance, q),
            "issues": report.issues,
        }

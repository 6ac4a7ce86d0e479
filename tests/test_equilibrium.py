"""
Unit Tests for the Equilibrium Check
"""

import dataclasses
from decimal import Decimal

import pytest

from factories import make_payment, make_roles, make_rule_set
from repartition import DistributionEngine
from repartition.builder import RepartitionBuilder
from repartition.equilibrium import EquilibriumChecker
from repartition.exceptions import EquilibriumMismatch
from repartition.models import AgentLine, PlaceholderLine, Tier


@pytest.fixture
def result():
    return DistributionEngine().distribute(
        make_payment("1000000"),
        make_roles(chefs=[1, 2], saisissants=[3]),
        make_rule_set(),
    )


class TestEquilibriumChecker:

    def test_engine_result_is_coherent(self, result):
        report = EquilibriumChecker().check(result)

        assert report.is_coherent
        assert report.total_reparti == Decimal("1000000")
        assert report.ecart == Decimal("0")

    def test_total_counts_line_backed_tiers_once(self):
        lines = [
            AgentLine(1, Decimal("30"), Tier.CHEFS),
            PlaceholderLine("DD", Decimal("5"), Tier.DD),
        ]

        assert EquilibriumChecker.total_for([Decimal("10"), Decimal("20")], lines) == Decimal("65")

    def test_tampered_interessement_detected(self, result):
        tampered = dataclasses.replace(result, part_interessement=result.part_interessement + 500)

        report = EquilibriumChecker().check(tampered)

        assert report.equilibre is False
        assert report.ecart == Decimal("-500")
        assert any("pools" in issue for issue in report.issues)
        assert any("total_reparti" in issue for issue in report.issues)

    def test_small_gap_within_tolerance(self, result):
        tampered = dataclasses.replace(result, part_mutuelle=result.part_mutuelle - 3)

        report = EquilibriumChecker().check(tampered)

        assert report.equilibre is True
        assert report.ecart == Decimal("3")
        assert not report.is_coherent

    def test_line_sum_mismatch_detected(self, result):
        lines = tuple(
            dataclasses.replace(line, amount=line.amount - 1) if line.tier is Tier.SAISISSANTS else line
            for line in result.lines
        )
        tampered = dataclasses.replace(result, lines=lines)

        report = EquilibriumChecker().check(tampered)

        assert any(issue.startswith("SAISISSANTS lines sum") for issue in report.issues)


class TestRaiseForEquilibrium:

    def test_balanced_result_does_not_raise(self, result):
        result.raise_for_equilibrium()

    def test_unbalanced_result_raises_with_context(self):
        builder = RepartitionBuilder(make_payment("1000"), make_rule_set())
        builder.set(
            part_indicateur=Decimal("0"),
            produit_net=Decimal("1000"),
            part_flcf=Decimal("0"),
            part_tresor=Decimal("0"),
            produit_net_ayants_droits=Decimal("1000"),
            part_dd=Decimal("0"),
            part_dg=Decimal("0"),
            pool_restant=Decimal("1000"),
            part_chefs=Decimal("0"),
            part_saisissants=Decimal("0"),
            part_mutuelle=Decimal("0"),
            part_masse_commune=Decimal("0"),
            part_interessement=Decimal("900"),
        )
        unbalanced = builder.build()

        assert unbalanced.equilibre is False

        with pytest.raises(EquilibriumMismatch) as exc_info:
            unbalanced.raise_for_equilibrium()

        assert exc_info.value.ecart == Decimal("100")
        assert exc_info.value.to_dict()["ecart"] == "100"
        assert exc_info.value.payment_id == 10


class TestRepartitionBuilder:

    def test_missing_amounts_refused(self):
        builder = RepartitionBuilder(make_payment(), make_rule_set())

        with pytest.raises(ValueError, match="missing amounts"):
            builder.build()

    def test_unknown_amount_refused(self):
        builder = RepartitionBuilder(make_payment(), make_rule_set())

        with pytest.raises(KeyError):
            builder.set(part_bonus=Decimal("1"))

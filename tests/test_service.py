"""
Tests for the Repartition Service
"""

from decimal import Decimal

import pytest

from factories import make_payment, make_rule_set
from repartition.directory import AgentRecord, InMemoryRoleDirectory
from repartition.exceptions import CaseNotFound, ConcurrentRepartitionError, PaymentNotValidated
from repartition.models import CaseActorAssignment, PaymentStatus, PermanentRole, Role
from repartition.service import RepartitionService
from repartition.store import MemoryRepartitionStore


@pytest.fixture
def directory():
    agents = [
        AgentRecord(1),
        AgentRecord(2),
        AgentRecord(3),
        AgentRecord(40, role_special=PermanentRole.DD),
        AgentRecord(50, role_special=PermanentRole.DG),
    ]
    assignments = [
        CaseActorAssignment(1, 1, Role.CHEF),
        CaseActorAssignment(1, 2, Role.CHEF),
        CaseActorAssignment(1, 3, Role.SAISISSANT),
    ]
    return InMemoryRoleDirectory({1}, agents, assignments)


@pytest.fixture
def store():
    return MemoryRepartitionStore()


@pytest.fixture
def service(directory, store):
    return RepartitionService(directory, store, make_rule_set())


class TestRepartitionService:

    def test_compute_uses_directory_roles(self, service):
        result = service.compute(make_payment())

        assert result.amount_by_agent() == {
            40: Decimal("36000"),
            50: Decimal("36000"),
            1: Decimal("64800"),
            2: Decimal("64800"),
            3: Decimal("129600"),
        }
        assert result.generic_lines[0].tier.value == "INDICATEUR"

    def test_compute_does_not_persist(self, service, store):
        service.compute(make_payment())

        assert store.latest_id(10) is None

    def test_compute_and_save(self, service):
        stored_id, result = service.compute_and_save(make_payment(), calculated_by="comptable")

        assert stored_id == 1
        assert service.latest(10) == result

    def test_recompute_becomes_latest(self, service, store):
        service.compute_and_save(make_payment())
        stored_id, _ = service.compute_and_save(make_payment())

        assert store.latest_id(10) == stored_id
        assert len(store.history(10)) == 2

    def test_unknown_case(self, service):
        with pytest.raises(CaseNotFound):
            service.compute(make_payment(case_id=7))

    def test_unvalidated_payment_not_saved(self, service, store):
        with pytest.raises(PaymentNotValidated):
            service.compute_and_save(make_payment(status=PaymentStatus.EN_ATTENTE))

        assert store.history(10) == []

    def test_concurrent_save_detected(self, service, store):
        class RacingStore(MemoryRepartitionStore):
            """Saves a competing result between the read and the write."""

            def save(self, result, expected_latest_id=None, calculated_by=None):
                super().save(result)
                return super().save(result, expected_latest_id=expected_latest_id)

        racing = RepartitionService(service.directory, RacingStore(), service.rule_set)

        with pytest.raises(ConcurrentRepartitionError):
            racing.compute_and_save(make_payment())

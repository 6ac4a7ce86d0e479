"""
Repartition Service

Glue between the role directory, the engine and the store:
resolve roles -> distribute -> persist.
"""

import logging

from .directory import RoleDirectory
from .engine import DistributionEngine
from .models import Payment, RepartitionResult
from .rules import DistributionRuleSet
from .store import RepartitionStore

logger = logging.getLogger(__name__)


class RepartitionService:
    """Computes and records distributions for payments."""

    def __init__(
        self,
        directory: RoleDirectory,
        store: RepartitionStore,
        rule_set: DistributionRuleSet,
        engine: DistributionEngine | None = None,
    ):
        self.directory = directory
        self.store = store
        self.rule_set = rule_set
        self.engine = engine or DistributionEngine()

    def compute(self, payment: Payment) -> RepartitionResult:
        """Distribute a payment without persisting it."""
        roles = self.directory.resolve_roles(payment.case_id)
        return self.engine.distribute(payment, roles, self.rule_set)

    def compute_and_save(self, payment: Payment, calculated_by: str | None = None) -> tuple[int, RepartitionResult]:
        """
        Distribute a payment and persist the result as its current distribution.

        The latest stored id is read before computing and checked again at
        write time. Of two concurrent requests for the same payment, the one
        that writes second gets ConcurrentRepartitionError (the SQL store
        enforces this with a unique constraint). Store failures propagate;
        retry policy belongs to the caller.
        """
        expected_latest_id = self.store.latest_id(payment.payment_id)
        result = self.compute(payment)
        stored_id = self.store.save(
            result,
            expected_latest_id=expected_latest_id,
            calculated_by=calculated_by,
        )
        logger.info(
            f"Payment {payment.payment_id} distributed with {self.rule_set.label} "
            f"(repartition {stored_id}, equilibre={result.equilibre})"
        )
        return stored_id, result

    def latest(self, payment_id: int) -> RepartitionResult | None:
        return self.store.find_latest_by_payment_id(payment_id)

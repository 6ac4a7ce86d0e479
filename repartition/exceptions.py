"""
Error Taxonomy for the Repartition Engine

Every domain error is a ValueError so the HTTP layers can keep treating
validation failures uniformly. Each error carries enough context (case,
payment, amount, tier) to reproduce the failing computation.
"""

from decimal import Decimal


class RepartitionError(ValueError):
    """Base class for all repartition errors."""

    def __init__(
        self,
        message: str,
        *,
        case_id: int | None = None,
        payment_id: int | None = None,
        amount: Decimal | None = None,
        tier: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.case_id = case_id
        self.payment_id = payment_id
        self.amount = amount
        self.tier = tier

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "type": type(self).__name__,
            "case_id": self.case_id,
            "payment_id": self.payment_id,
            "amount": str(self.amount) if self.amount is not None else None,
            "tier": self.tier,
        }


class InvalidAmount(RepartitionError):
    """Payment amount is non-positive, not a decimal, or finer than the currency unit."""


class PaymentNotValidated(RepartitionError):
    """Only validated payments can be distributed."""


class InvalidRuleSet(RepartitionError):
    """Rule set coefficients violate their constraints (raised at load time)."""


class InvalidRoleAssignment(RepartitionError):
    """An agent holds more than one role on the same case."""


class StaleRoleAssignment(RepartitionError):
    """A role assignment references an agent (or case) that no longer matches."""


class CaseNotFound(RepartitionError):
    """The requested case does not exist."""


class EquilibriumMismatch(RepartitionError):
    """
    A computed distribution does not balance within tolerance.

    Never raised by the engine itself; see RepartitionResult.raise_for_equilibrium().
    """

    def __init__(self, message: str, *, ecart: Decimal, **kwargs):
        super().__init__(message, **kwargs)
        self.ecart = ecart

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["ecart"] = str(self.ecart)
        return data


# =============================================================================
# STORE ERRORS
# =============================================================================


class StoreError(Exception):
    """Base exception for repartition store failures."""


class StoreReadError(StoreError):
    """Reading a stored repartition failed."""


class StoreWriteError(StoreError):
    """Persisting a repartition failed; nothing was written."""


class ConcurrentRepartitionError(StoreError):
    """Another repartition for the same payment was saved in the meantime."""

    def __init__(self, payment_id: int, expected_latest_id: int | None, actual_latest_id: int | None):
        super().__init__(
            f"Repartition for payment {payment_id} changed concurrently: "
            f"expected latest id {expected_latest_id}, found {actual_latest_id}"
        )
        self.payment_id = payment_id
        self.expected_latest_id = expected_latest_id
        self.actual_latest_id = actual_latest_id

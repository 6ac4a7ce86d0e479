"""
Input Validation for the Repartition Engine

Validates all input data before any tier is computed.
Raises RepartitionError subclasses with clear messages for any violation.
"""

from decimal import Decimal, InvalidOperation

from .exceptions import InvalidAmount, PaymentNotValidated, StaleRoleAssignment
from .models import Payment, RoleAssignment
from .rules import DistributionRuleSet


class InputValidator:
    """Validates a distribution request according to business rules."""

    def validate(self, payment: Payment, roles: RoleAssignment, rule_set: DistributionRuleSet) -> None:
        """
        Run all validations. Raises a RepartitionError if any check fails.
        """
        self._validate_amount(payment, rule_set)
        self._validate_status(payment)
        self._validate_roles(payment, roles)

    def _validate_amount(self, payment: Payment, rule_set: DistributionRuleSet) -> None:
        amount = payment.amount
        context = {"case_id": payment.case_id, "payment_id": payment.payment_id, "tier": "produit_disponible"}

        if not isinstance(amount, Decimal) or not amount.is_finite():
            raise InvalidAmount(f"amount must be a finite Decimal, got: {amount!r}", **context)

        context["amount"] = amount
        if amount <= 0:
            raise InvalidAmount(f"amount must be positive, got: {amount}", **context)

        try:
            remainder = amount % rule_set.quantum
        except InvalidOperation:
            # more quantum units than the decimal context can hold
            raise InvalidAmount(
                f"amount {amount} is too large to distribute in units of {rule_set.quantum}",
                **context,
            ) from None

        if remainder != 0:
            raise InvalidAmount(
                f"amount {amount} is not a whole number of currency units ({rule_set.quantum})",
                **context,
            )

    def _validate_status(self, payment: Payment) -> None:
        if not payment.status.is_distributable:
            raise PaymentNotValidated(
                f"Payment {payment.payment_id} is {payment.status.value}; only VALIDE payments can be distributed",
                case_id=payment.case_id,
                payment_id=payment.payment_id,
                amount=payment.amount,
            )

    def _validate_roles(self, payment: Payment, roles: RoleAssignment) -> None:
        if roles.case_id != payment.case_id:
            raise StaleRoleAssignment(
                f"Role assignment is for case {roles.case_id}, payment {payment.payment_id} "
                f"belongs to case {payment.case_id}",
                case_id=payment.case_id,
                payment_id=payment.payment_id,
                amount=payment.amount,
                tier="roles",
            )

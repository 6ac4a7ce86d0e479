"""
Distribution Rule Sets

A rule set is a named, versioned table of coefficients for every tier of
a distribution. It is validated once, when it is built or loaded, so the
engine never has to second-guess its coefficients while distributing.
"""

import json
import logging
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from pathlib import Path

from .exceptions import InvalidRuleSet

logger = logging.getLogger(__name__)

RATE_FIELDS = (
    "indicateur_rate",
    "flcf_rate",
    "tresor_rate",
    "dd_rate",
    "dg_rate",
    "chefs_rate",
    "saisissants_rate",
    "mutuelle_rate",
    "masse_commune_rate",
    "interessement_rate",
)

# Coefficients applied to the same base must not exceed 100% together
SAME_BASE_GROUPS = {
    "produit_net": ("flcf_rate", "tresor_rate"),
    "produit_net_ayants_droits": ("dd_rate", "dg_rate"),
    "pool_restant": (
        "chefs_rate",
        "saisissants_rate",
        "mutuelle_rate",
        "masse_commune_rate",
        "interessement_rate",
    ),
}


@dataclass(frozen=True)
class DistributionRuleSet:
    """Coefficients and rounding policy for one version of the distribution rules."""

    name: str
    version: str
    indicateur_rate: Decimal
    flcf_rate: Decimal
    tresor_rate: Decimal
    dd_rate: Decimal
    dg_rate: Decimal
    chefs_rate: Decimal
    saisissants_rate: Decimal
    mutuelle_rate: Decimal
    masse_commune_rate: Decimal
    interessement_rate: Decimal
    indicateur_requires_agent: bool = True
    quantum: Decimal = Decimal("1")  # smallest currency unit (1 FCFA)
    tolerance_units: int = 10

    def __post_init__(self):
        self._validate()

    @property
    def tolerance(self) -> Decimal:
        """Maximum accepted gap between the amount and the distributed total."""
        return self.quantum * self.tolerance_units

    @property
    def label(self) -> str:
        return f"{self.name} v{self.version}"

    def _fail(self, message: str, tier: str | None = None) -> None:
        raise InvalidRuleSet(f"Rule set {self.name!r} v{self.version}: {message}", tier=tier)

    def _validate(self) -> None:
        if not self.name or not self.version:
            self._fail("name and version are required")

        for name in RATE_FIELDS:
            rate = getattr(self, name)
            if not isinstance(rate, Decimal) or not rate.is_finite():
                self._fail(f"{name} must be a finite Decimal, got: {rate!r}", tier=name)
            if not (0 <= rate <= 1):
                self._fail(f"{name} must be between 0 and 1, got: {rate}", tier=name)

        for base, group in SAME_BASE_GROUPS.items():
            total = sum((getattr(self, name) for name in group), Decimal("0"))
            if total > 1:
                self._fail(
                    f"coefficients applied to {base} sum to {total} (> 1): {', '.join(group)}",
                    tier=base,
                )

        if not isinstance(self.quantum, Decimal) or not self.quantum.is_finite() or self.quantum <= 0:
            self._fail(f"quantum must be a positive Decimal, got: {self.quantum!r}")

        if not isinstance(self.indicateur_requires_agent, bool):
            self._fail(
                f"indicateur_requires_agent must be true or false, got: {self.indicateur_requires_agent!r}"
            )

        if not isinstance(self.tolerance_units, int) or isinstance(self.tolerance_units, bool):
            self._fail(f"tolerance_units must be an integer, got: {self.tolerance_units!r}")
        if self.tolerance_units < 0:
            self._fail(f"tolerance_units cannot be negative, got: {self.tolerance_units}")

    @classmethod
    def from_dict(cls, data: dict) -> "DistributionRuleSet":
        try:
            rates = {name: Decimal(str(data[name])) for name in RATE_FIELDS}
            quantum = Decimal(str(data.get("quantum", "1")))
        except KeyError as e:
            raise InvalidRuleSet(f"Missing coefficient in rule set: {e.args[0]}", tier=e.args[0]) from None
        except InvalidOperation:
            raise InvalidRuleSet(f"Rule set {data.get('name')!r} contains a non-decimal coefficient") from None

        return cls(
            name=str(data.get("name", "")),
            version=str(data.get("version", "")),
            indicateur_requires_agent=data.get("indicateur_requires_agent", True),
            quantum=quantum,
            tolerance_units=data.get("tolerance_units", 10),
            **rates,
        )

    def to_dict(self) -> dict:
        data = {}
        for f in fields(self):
            value = getattr(self, f.name)
            data[f.name] = str(value) if isinstance(value, Decimal) else value
        return data


def load_rule_set(path: str | Path) -> DistributionRuleSet:
    """Load and validate a rule set from a JSON file."""
    path = Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    rule_set = DistributionRuleSet.from_dict(data)
    logger.info(f"Loaded rule set {rule_set.label} from {path}")
    return rule_set

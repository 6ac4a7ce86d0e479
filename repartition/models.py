"""
Domain Models for the Repartition Engine

These dataclasses provide type-safe representations of payments, case
role assignments and distribution results.
All monetary values use Decimal for precision.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum

from .exceptions import EquilibriumMismatch, InvalidAmount, InvalidRoleAssignment
from .rules import DistributionRuleSet

# =============================================================================
# ENUMERATIONS
# =============================================================================


class Role(str, Enum):
    """Role an agent holds on a given case."""

    CHEF = "CHEF"
    SAISISSANT = "SAISISSANT"
    VERIFICATEUR = "VERIFICATEUR"
    INDICATEUR = "INDICATEUR"


class PermanentRole(str, Enum):
    """Institutional beneficiaries entitled to a share of every distribution."""

    DD = "DD"
    DG = "DG"

    @property
    def label(self) -> str:
        return {
            PermanentRole.DD: "Directeur Départemental",
            PermanentRole.DG: "Directeur Général",
        }[self]


class Tier(str, Enum):
    """A share tier of a distribution."""

    INDICATEUR = "INDICATEUR"
    FLCF = "FLCF"
    TRESOR = "TRESOR"
    DD = "DD"
    DG = "DG"
    CHEFS = "CHEFS"
    SAISISSANTS = "SAISISSANTS"
    MUTUELLE = "MUTUELLE"
    MASSE_COMMUNE = "MASSE_COMMUNE"
    INTERESSEMENT = "INTERESSEMENT"


# Tiers whose money is carried entirely by beneficiary lines
LINE_BACKED_TIERS = (Tier.INDICATEUR, Tier.DD, Tier.DG, Tier.CHEFS, Tier.SAISISSANTS)

# Tiers that are paid to an institution and counted directly
INSTITUTIONAL_TIERS = (Tier.FLCF, Tier.TRESOR, Tier.MUTUELLE, Tier.MASSE_COMMUNE, Tier.INTERESSEMENT)


class PaymentStatus(str, Enum):
    """Lifecycle of a payment (encaissement)."""

    EN_ATTENTE = "EN_ATTENTE"
    VALIDE = "VALIDE"
    REJETE = "REJETE"
    ANNULE = "ANNULE"
    REMBOURSE = "REMBOURSE"

    @property
    def is_distributable(self) -> bool:
        return self is PaymentStatus.VALIDE


def to_decimal(value, field_name: str = "amount") -> Decimal:
    """Convert raw input to Decimal, going through str() to avoid float artefacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"{field_name} must be a decimal number, got: {value!r}")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmount(f"{field_name} must be a decimal number, got: {value!r}") from None


# =============================================================================
# INPUT MODELS
# =============================================================================


@dataclass(frozen=True)
class Payment:
    """A payment (encaissement) recorded against a case."""

    payment_id: int
    case_id: int
    amount: Decimal
    status: PaymentStatus = PaymentStatus.VALIDE
    reference: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Payment":
        return cls(
            payment_id=int(data["payment_id"]),
            case_id=int(data["case_id"]),
            amount=to_decimal(data["amount"]),
            status=PaymentStatus(data.get("status", PaymentStatus.VALIDE.value)),
            reference=data.get("reference", ""),
        )


@dataclass(frozen=True)
class CaseActorAssignment:
    """One row of the case/agent/role relation (affaire_acteurs)."""

    case_id: int
    agent_id: int
    role: Role


@dataclass(frozen=True)
class RoleAssignment:
    """
    Agents holding each role on one case, plus the permanent DD/DG holders.

    Agents of every role are kept in ascending id order so that individual
    shares come out in the same order on every run.
    """

    case_id: int
    roles: dict[Role, tuple[int, ...]] = field(default_factory=dict)
    permanent: dict[PermanentRole, int | None] = field(default_factory=dict)

    def __post_init__(self):
        normalized = {role: tuple(sorted(set(self.roles.get(role, ())))) for role in Role}
        seen: dict[int, Role] = {}
        for role, agent_ids in normalized.items():
            for agent_id in agent_ids:
                if agent_id in seen:
                    raise InvalidRoleAssignment(
                        f"Agent {agent_id} holds both {seen[agent_id].value} and {role.value} "
                        f"on case {self.case_id}",
                        case_id=self.case_id,
                    )
                seen[agent_id] = role
        # frozen dataclass: normalise through object.__setattr__
        object.__setattr__(self, "roles", normalized)
        object.__setattr__(
            self, "permanent", {p: self.permanent.get(p) for p in PermanentRole}
        )

    def agents_for(self, role: Role) -> tuple[int, ...]:
        return self.roles[role]

    def holder_of(self, permanent_role: PermanentRole) -> int | None:
        return self.permanent[permanent_role]

    @property
    def agent_ids(self) -> set[int]:
        """Every agent referenced by this assignment, permanent holders included."""
        ids = {agent_id for agent_ids in self.roles.values() for agent_id in agent_ids}
        ids.update(agent_id for agent_id in self.permanent.values() if agent_id is not None)
        return ids

    @classmethod
    def from_assignments(
        cls,
        case_id: int,
        assignments: list[CaseActorAssignment],
        permanent: dict[PermanentRole, int | None] | None = None,
    ) -> "RoleAssignment":
        roles: dict[Role, list[int]] = {role: [] for role in Role}
        for assignment in assignments:
            if assignment.case_id != case_id:
                continue
            roles[assignment.role].append(assignment.agent_id)
        return cls(
            case_id=case_id,
            roles={role: tuple(ids) for role, ids in roles.items()},
            permanent=dict(permanent or {}),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "RoleAssignment":
        case_id = int(data["case_id"])
        assignments = [
            CaseActorAssignment(case_id=case_id, agent_id=int(a["agent_id"]), role=Role(a["role"]))
            for a in data.get("assignments", [])
        ]
        permanent = {
            PermanentRole(key): int(value) if value is not None else None
            for key, value in data.get("permanent", {}).items()
        }
        return cls.from_assignments(case_id, assignments, permanent)


# =============================================================================
# OUTPUT / RESULT MODELS
# =============================================================================


@dataclass(frozen=True)
class AgentLine:
    """A share paid to an identified agent."""

    agent_id: int
    amount: Decimal
    tier: Tier
    description: str = ""

    kind = "AGENT"


@dataclass(frozen=True)
class PlaceholderLine:
    """A share held for a generic beneficiary when no agent can receive it."""

    label: str
    amount: Decimal
    tier: Tier
    description: str = ""

    kind = "GENERIQUE"


BeneficiaryLine = AgentLine | PlaceholderLine


@dataclass(frozen=True)
class RepartitionResult:
    """Immutable breakdown of one payment's distribution."""

    payment_id: int
    case_id: int
    rule_set_name: str
    rule_set_version: str

    produit_disponible: Decimal
    part_indicateur: Decimal
    produit_net: Decimal

    part_flcf: Decimal
    part_tresor: Decimal
    produit_net_ayants_droits: Decimal

    part_dd: Decimal
    part_dg: Decimal
    pool_restant: Decimal

    part_chefs: Decimal
    part_saisissants: Decimal
    part_mutuelle: Decimal
    part_masse_commune: Decimal
    part_interessement: Decimal

    lines: tuple[BeneficiaryLine, ...]

    total_reparti: Decimal
    ecart: Decimal
    tolerance: Decimal
    equilibre: bool

    @property
    def individual_lines(self) -> tuple[AgentLine, ...]:
        return tuple(line for line in self.lines if isinstance(line, AgentLine))

    @property
    def generic_lines(self) -> tuple[PlaceholderLine, ...]:
        return tuple(line for line in self.lines if isinstance(line, PlaceholderLine))

    def tier_amount(self, tier: Tier) -> Decimal:
        return getattr(self, f"part_{tier.value.lower()}")

    def lines_for(self, tier: Tier) -> tuple[BeneficiaryLine, ...]:
        return tuple(line for line in self.lines if line.tier is tier)

    def amount_by_agent(self) -> dict[int, Decimal]:
        """Total received by each agent across all tiers, in first-seen order."""
        totals: dict[int, Decimal] = {}
        for line in self.individual_lines:
            totals[line.agent_id] = totals.get(line.agent_id, Decimal("0")) + line.amount
        return totals

    def raise_for_equilibrium(self) -> None:
        """Raise EquilibriumMismatch if the distribution is not balanced."""
        if not self.equilibre:
            raise EquilibriumMismatch(
                f"Distribution of {self.produit_disponible} does not balance: "
                f"total {self.total_reparti}, ecart {self.ecart} (tolerance {self.tolerance})",
                ecart=self.ecart,
                case_id=self.case_id,
                payment_id=self.payment_id,
                amount=self.produit_disponible,
            )


# =============================================================================
# STEP RESULTS / PROCESSING CONTEXT
# =============================================================================


@dataclass
class IndicatorShare:
    """Results of the indicator tier."""

    part_indicateur: Decimal = Decimal("0")
    produit_net: Decimal = Decimal("0")
    indicator_applied: bool = False


@dataclass
class InstitutionalSplit:
    """Results of the FLCF / Treasury split of produit net."""

    part_flcf: Decimal = Decimal("0")
    part_tresor: Decimal = Decimal("0")
    produit_net_ayants_droits: Decimal = Decimal("0")


@dataclass
class PermanentSplit:
    """Results of the DD / DG split of produit net ayants droits."""

    part_dd: Decimal = Decimal("0")
    part_dg: Decimal = Decimal("0")
    pool_restant: Decimal = Decimal("0")


@dataclass
class PoolSplit:
    """Results of the role-dependent pools."""

    part_chefs: Decimal = Decimal("0")
    part_saisissants: Decimal = Decimal("0")
    part_mutuelle: Decimal = Decimal("0")
    part_masse_commune: Decimal = Decimal("0")
    part_interessement: Decimal = Decimal("0")


@dataclass
class DistributionContext:
    """
    Holds all intermediate state while a payment is being distributed.
    This is the "bag" that flows through the pipeline.
    """

    # Input (immutable during processing)
    payment: Payment
    roles: RoleAssignment
    rule_set: DistributionRuleSet

    # Step results (populated as we go)
    indicator: IndicatorShare = field(default_factory=IndicatorShare)
    institutional: InstitutionalSplit = field(default_factory=InstitutionalSplit)
    permanent: PermanentSplit = field(default_factory=PermanentSplit)
    pools: PoolSplit = field(default_factory=PoolSplit)
    lines: list[BeneficiaryLine] = field(default_factory=list)

    @property
    def quantum(self) -> Decimal:
        return self.rule_set.quantum

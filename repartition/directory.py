"""
Role Directory

Resolves which agents hold which role on a case, plus the current DD / DG
holders. Resolution is deterministic: agents always come back in
ascending id order.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from .exceptions import CaseNotFound, StaleRoleAssignment, StoreReadError
from .models import CaseActorAssignment, PermanentRole, Role, RoleAssignment
from .tables import AffaireActeurRow, AffaireRow, AgentRow

logger = logging.getLogger(__name__)


class RoleDirectory(ABC):
    """Source of case role assignments."""

    @abstractmethod
    def resolve_roles(self, case_id: int) -> RoleAssignment:
        """
        Return the role assignment of a case.

        Raises:
            CaseNotFound: if the case does not exist
            StaleRoleAssignment: if an assignment references a missing agent
        """


@dataclass(frozen=True)
class AgentRecord:
    """Minimal agent reference data used by the in-memory directory."""

    agent_id: int
    actif: bool = True
    role_special: PermanentRole | None = None


class InMemoryRoleDirectory(RoleDirectory):
    """
    Directory backed by plain Python collections.

    Useful for tests and for requests that carry their own assignments.
    """

    def __init__(
        self,
        case_ids: set[int],
        agents: list[AgentRecord],
        assignments: list[CaseActorAssignment],
    ):
        self._case_ids = set(case_ids)
        self._agents = {agent.agent_id: agent for agent in agents}
        self._assignments = list(assignments)

    def resolve_roles(self, case_id: int) -> RoleAssignment:
        if case_id not in self._case_ids:
            raise CaseNotFound(f"Case {case_id} not found", case_id=case_id)

        case_assignments = [a for a in self._assignments if a.case_id == case_id]
        for assignment in case_assignments:
            agent = self._agents.get(assignment.agent_id)
            if agent is None or not agent.actif:
                raise StaleRoleAssignment(
                    f"Case {case_id} assigns {assignment.role.value} to agent {assignment.agent_id}, "
                    f"which no longer exists",
                    case_id=case_id,
                    tier=assignment.role.value,
                )

        return RoleAssignment.from_assignments(case_id, case_assignments, self._permanent_holders())

    def _permanent_holders(self) -> dict[PermanentRole, int | None]:
        holders: dict[PermanentRole, int | None] = {}
        for permanent_role in PermanentRole:
            candidates = sorted(
                agent.agent_id
                for agent in self._agents.values()
                if agent.actif and agent.role_special is permanent_role
            )
            holders[permanent_role] = candidates[0] if candidates else None
        return holders


class SQLRoleDirectory(RoleDirectory):
    """Directory backed by the agents / affaires / affaire_acteurs tables."""

    def __init__(self, engine):
        self.engine = engine

    def resolve_roles(self, case_id: int) -> RoleAssignment:
        try:
            with Session(self.engine) as session:
                if session.get(AffaireRow, case_id) is None:
                    raise CaseNotFound(f"Case {case_id} not found", case_id=case_id)

                rows = session.exec(
                    select(AffaireActeurRow)
                    .where(AffaireActeurRow.affaire_id == case_id)
                    .order_by(AffaireActeurRow.agent_id)
                ).all()

                agent_ids = [row.agent_id for row in rows]
                active_ids = set()
                if agent_ids:
                    active_ids = set(
                        session.exec(
                            select(AgentRow.id).where(col(AgentRow.id).in_(agent_ids), AgentRow.actif == True)  # noqa: E712
                        ).all()
                    )

                permanent = {p: self._holder(session, p) for p in PermanentRole}
        except SQLAlchemyError as e:
            logger.error(f"Could not resolve roles for case {case_id}: {e}")
            raise StoreReadError(f"Could not resolve roles for case {case_id}") from e

        assignments = []
        for row in rows:
            if row.agent_id not in active_ids:
                raise StaleRoleAssignment(
                    f"Case {case_id} assigns {row.role_sur_affaire} to agent {row.agent_id}, "
                    f"which no longer exists",
                    case_id=case_id,
                    tier=row.role_sur_affaire,
                )
            assignments.append(
                CaseActorAssignment(case_id=case_id, agent_id=row.agent_id, role=Role(row.role_sur_affaire))
            )

        logger.debug(f"Resolved {len(assignments)} role assignments for case {case_id}")
        return RoleAssignment.from_assignments(case_id, assignments, permanent)

    @staticmethod
    def _holder(session: Session, permanent_role: PermanentRole) -> int | None:
        return session.exec(
            select(AgentRow.id)
            .where(AgentRow.role_special == permanent_role.value, AgentRow.actif == True)  # noqa: E712
            .order_by(AgentRow.id)
        ).first()

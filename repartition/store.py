"""
Repartition Store

Persists distribution results and retrieves the most recent one for a
payment. A result and all of its lines are written as one unit: readers
never observe a header without its lines.

Results are never updated. Recomputing a payment saves a new result that
supersedes the previous one; history stays available.
"""

import logging
import threading
from abc import ABC, abstractmethod
from decimal import Decimal

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from .exceptions import ConcurrentRepartitionError, StoreReadError, StoreWriteError
from .models import AgentLine, BeneficiaryLine, PlaceholderLine, RepartitionResult, Tier
from .tables import RepartitionLineRow, RepartitionRow

logger = logging.getLogger(__name__)

# default for expected_latest_id: write without checking the latest id
UNCHECKED = object()

AMOUNT_FIELDS = (
    "produit_disponible",
    "part_indicateur",
    "produit_net",
    "part_flcf",
    "part_tresor",
    "produit_net_ayants_droits",
    "part_dd",
    "part_dg",
    "pool_restant",
    "part_chefs",
    "part_saisissants",
    "part_mutuelle",
    "part_masse_commune",
    "part_interessement",
    "total_reparti",
    "ecart",
    "tolerance",
)


class RepartitionStore(ABC):
    """
    Abstract base class for repartition persistence.

    Implementations must make `save` atomic and, unless `expected_latest_id`
    is UNCHECKED, refuse to write if another result was saved for the same
    payment in the meantime. The refusal must hold across processes: the SQL
    store enforces it with a unique (payment, previous result) constraint.
    """

    @abstractmethod
    def save(
        self,
        result: RepartitionResult,
        expected_latest_id: int | None | object = UNCHECKED,
        calculated_by: str | None = None,
    ) -> int:
        """
        Persist a result and its lines.

        Args:
            result: Distribution to persist
            expected_latest_id: Id of the latest stored result the caller
                based its computation on, None when there was none
                (UNCHECKED skips the check)
            calculated_by: Free-form author of the computation

        Returns:
            Stored id of the result

        Raises:
            ConcurrentRepartitionError: if the latest id changed, or another
                writer saved a successor of the same result first
            StoreWriteError: if writing fails
        """

    @abstractmethod
    def find_latest_by_payment_id(self, payment_id: int) -> RepartitionResult | None:
        """Return the most recent result for a payment, or None."""

    @abstractmethod
    def latest_id(self, payment_id: int) -> int | None:
        """Return the stored id of the most recent result for a payment."""

    @abstractmethod
    def history(self, payment_id: int) -> list[RepartitionResult]:
        """Return every stored result for a payment, oldest first."""


class MemoryRepartitionStore(RepartitionStore):
    """
    In-memory store.

    All data is lost when the process exits. Thread-safe operations.
    """

    def __init__(self):
        self._results: dict[int, RepartitionResult] = {}
        self._by_payment: dict[int, list[int]] = {}
        self._next_id = 1
        self._lock = threading.RLock()

    def save(
        self,
        result: RepartitionResult,
        expected_latest_id: int | None | object = UNCHECKED,
        calculated_by: str | None = None,
    ) -> int:
        with self._lock:
            if expected_latest_id is not UNCHECKED:
                current = self.latest_id(result.payment_id)
                if current != expected_latest_id:
                    raise ConcurrentRepartitionError(result.payment_id, expected_latest_id, current)

            stored_id = self._next_id
            self._next_id += 1
            # results are frozen, storing the object itself is safe
            self._results[stored_id] = result
            self._by_payment.setdefault(result.payment_id, []).append(stored_id)

        logger.info(f"Repartition {stored_id} saved for payment {result.payment_id}")
        return stored_id

    def find_latest_by_payment_id(self, payment_id: int) -> RepartitionResult | None:
        with self._lock:
            stored_id = self.latest_id(payment_id)
            return self._results[stored_id] if stored_id is not None else None

    def latest_id(self, payment_id: int) -> int | None:
        with self._lock:
            ids = self._by_payment.get(payment_id)
            return ids[-1] if ids else None

    def history(self, payment_id: int) -> list[RepartitionResult]:
        with self._lock:
            return [self._results[i] for i in self._by_payment.get(payment_id, [])]


class SQLRepartitionStore(RepartitionStore):
    """Store backed by the repartition_resultats / repartition_lignes tables."""

    def __init__(self, engine):
        self.engine = engine

    def save(
        self,
        result: RepartitionResult,
        expected_latest_id: int | None | object = UNCHECKED,
        calculated_by: str | None = None,
    ) -> int:
        try:
            with Session(self.engine) as session:
                current = self._latest_id(session, result.payment_id)
                if expected_latest_id is not UNCHECKED and current != expected_latest_id:
                    raise ConcurrentRepartitionError(result.payment_id, expected_latest_id, current)

                header = self._to_row(result, calculated_by, previous_id=current or 0)
                session.add(header)
                try:
                    session.flush()
                except IntegrityError as e:
                    # another session saved a successor of `current` after our read
                    session.rollback()
                    actual = self._latest_id(session, result.payment_id)
                    logger.warning(f"Concurrent repartition for payment {result.payment_id}: latest is now {actual}")
                    raise ConcurrentRepartitionError(result.payment_id, current, actual) from e

                for position, line in enumerate(result.lines):
                    session.add(self._line_to_row(header.id, position, line))

                # header and lines become visible together, or not at all
                session.commit()
                stored_id = header.id
        except SQLAlchemyError as e:
            logger.error(f"Could not save repartition for payment {result.payment_id}: {e}")
            raise StoreWriteError(f"Could not save repartition for payment {result.payment_id}") from e

        logger.info(f"Repartition {stored_id} saved for payment {result.payment_id} ({len(result.lines)} lines)")
        return stored_id

    def find_latest_by_payment_id(self, payment_id: int) -> RepartitionResult | None:
        try:
            with Session(self.engine) as session:
                header = session.exec(
                    select(RepartitionRow)
                    .where(RepartitionRow.encaissement_id == payment_id)
                    .order_by(col(RepartitionRow.id).desc())
                ).first()
                if header is None:
                    return None
                return self._from_rows(header, self._lines(session, header.id))
        except SQLAlchemyError as e:
            raise StoreReadError(f"Could not read repartition for payment {payment_id}") from e

    def latest_id(self, payment_id: int) -> int | None:
        try:
            with Session(self.engine) as session:
                return self._latest_id(session, payment_id)
        except SQLAlchemyError as e:
            raise StoreReadError(f"Could not read repartition for payment {payment_id}") from e

    def history(self, payment_id: int) -> list[RepartitionResult]:
        try:
            with Session(self.engine) as session:
                headers = session.exec(
                    select(RepartitionRow)
                    .where(RepartitionRow.encaissement_id == payment_id)
                    .order_by(col(RepartitionRow.id))
                ).all()
                return [self._from_rows(h, self._lines(session, h.id)) for h in headers]
        except SQLAlchemyError as e:
            raise StoreReadError(f"Could not read repartition history for payment {payment_id}") from e

    @staticmethod
    def _latest_id(session: Session, payment_id: int) -> int | None:
        return session.exec(
            select(RepartitionRow.id)
            .where(RepartitionRow.encaissement_id == payment_id)
            .order_by(col(RepartitionRow.id).desc())
        ).first()

    @staticmethod
    def _lines(session: Session, repartition_id: int) -> list[RepartitionLineRow]:
        return list(
            session.exec(
                select(RepartitionLineRow)
                .where(RepartitionLineRow.repartition_id == repartition_id)
                .order_by(col(RepartitionLineRow.position))
            ).all()
        )

    @staticmethod
    def _to_row(result: RepartitionResult, calculated_by: str | None, previous_id: int = 0) -> RepartitionRow:
        return RepartitionRow(
            encaissement_id=result.payment_id,
            affaire_id=result.case_id,
            rule_set_name=result.rule_set_name,
            rule_set_version=result.rule_set_version,
            previous_id=previous_id,
            equilibre=result.equilibre,
            calculated_by=calculated_by,
            **{name: str(getattr(result, name)) for name in AMOUNT_FIELDS},
        )

    @staticmethod
    def _line_to_row(repartition_id: int, position: int, line: BeneficiaryLine) -> RepartitionLineRow:
        return RepartitionLineRow(
            repartition_id=repartition_id,
            position=position,
            kind=line.kind,
            tier=line.tier.value,
            agent_id=line.agent_id if isinstance(line, AgentLine) else None,
            label=line.label if isinstance(line, PlaceholderLine) else None,
            montant=str(line.amount),
            description=line.description,
        )

    @staticmethod
    def _from_rows(header: RepartitionRow, line_rows: list[RepartitionLineRow]) -> RepartitionResult:
        lines: list[BeneficiaryLine] = []
        for row in line_rows:
            if row.kind == AgentLine.kind:
                lines.append(AgentLine(row.agent_id, Decimal(row.montant), Tier(row.tier), row.description))
            else:
                lines.append(PlaceholderLine(row.label, Decimal(row.montant), Tier(row.tier), row.description))

        return RepartitionResult(
            payment_id=header.encaissement_id,
            case_id=header.affaire_id,
            rule_set_name=header.rule_set_name,
            rule_set_version=header.rule_set_version,
            lines=tuple(lines),
            equilibre=header.equilibre,
            **{name: Decimal(getattr(header, name)) for name in AMOUNT_FIELDS},
        )

"""
Tests for Repartition Stores

Both stores share one contract: append-only results, latest wins,
optimistic check on the latest id.
"""

import pytest
from sqlmodel import Session, select

from factories import make_payment, make_roles, make_rule_set
from repartition import DistributionEngine
from repartition.exceptions import ConcurrentRepartitionError, StoreWriteError
from repartition.store import MemoryRepartitionStore, SQLRepartitionStore
from repartition.tables import RepartitionRow, make_engine


def _result(amount="1000000", payment_id=10, chefs=(1, 2)):
    return DistributionEngine().distribute(
        make_payment(amount, payment_id=payment_id),
        make_roles(chefs=chefs, saisissants=[3], dd=40),
        make_rule_set(),
    )


@pytest.fixture(params=["memory", "sql"])
def store(request):
    if request.param == "memory":
        return MemoryRepartitionStore()
    return SQLRepartitionStore(make_engine("sqlite://"))


class TestSaveAndFind:

    def test_nothing_stored(self, store):
        assert store.find_latest_by_payment_id(10) is None
        assert store.latest_id(10) is None
        assert store.history(10) == []

    def test_round_trip(self, store):
        result = _result()

        stored_id = store.save(result)

        assert store.latest_id(10) == stored_id
        assert store.find_latest_by_payment_id(10) == result

    def test_lines_keep_their_order_and_kind(self, store):
        result = _result()
        store.save(result)

        loaded = store.find_latest_by_payment_id(10)

        assert [line.kind for line in loaded.lines] == [line.kind for line in result.lines]
        assert loaded.lines == result.lines

    def test_recomputation_supersedes(self, store):
        first = _result(chefs=(1, 2))
        second = _result(chefs=(1,))

        first_id = store.save(first)
        second_id = store.save(second)

        assert second_id > first_id
        assert store.find_latest_by_payment_id(10) == second
        assert store.history(10) == [first, second]

    def test_payments_are_isolated(self, store):
        store.save(_result(payment_id=10))
        other = _result(amount="5000", payment_id=11)
        store.save(other)

        assert store.find_latest_by_payment_id(11) == other
        assert len(store.history(10)) == 1


class TestConcurrency:

    def test_expected_none_on_first_save(self, store):
        store.save(_result(), expected_latest_id=None)

        assert store.latest_id(10) is not None

    def test_stale_expectation_rejected(self, store):
        first_id = store.save(_result())
        store.save(_result(chefs=(1,)), expected_latest_id=first_id)

        with pytest.raises(ConcurrentRepartitionError) as exc_info:
            store.save(_result(chefs=(2,)), expected_latest_id=first_id)

        assert exc_info.value.expected_latest_id == first_id
        assert exc_info.value.payment_id == 10
        assert len(store.history(10)) == 2

    def test_expected_none_after_save_rejected(self, store):
        store.save(_result())

        with pytest.raises(ConcurrentRepartitionError):
            store.save(_result(), expected_latest_id=None)


class TestSQLRepartitionStore:

    def test_author_recorded(self):
        engine = make_engine("sqlite://")
        store = SQLRepartitionStore(engine)

        stored_id = store.save(_result(), calculated_by="comptable")

        with Session(engine) as session:
            row = session.exec(select(RepartitionRow).where(RepartitionRow.id == stored_id)).one()
        assert row.calculated_by == "comptable"
        assert row.calculated_at is not None
        assert row.total_reparti == "1000000"

    def test_failed_line_insert_leaves_nothing_behind(self, monkeypatch):
        store = SQLRepartitionStore(make_engine("sqlite://"))
        line_to_row = SQLRepartitionStore._line_to_row
        # every line claims position 0: the second one breaks the unique constraint
        monkeypatch.setattr(
            SQLRepartitionStore,
            "_line_to_row",
            staticmethod(lambda repartition_id, position, line: line_to_row(repartition_id, 0, line)),
        )

        with pytest.raises(StoreWriteError):
            store.save(_result())

        assert store.latest_id(10) is None
        assert store.find_latest_by_payment_id(10) is None
        assert store.history(10) == []

    def test_lost_race_detected_at_write(self, monkeypatch):
        store = SQLRepartitionStore(make_engine("sqlite://"))
        first_id = store.save(_result())
        store.save(_result(chefs=(1,)), expected_latest_id=first_id)

        # a writer that read the latest id before the second save landed
        monkeypatch.setattr(SQLRepartitionStore, "_latest_id", staticmethod(lambda session, payment_id: first_id))
        with pytest.raises(ConcurrentRepartitionError):
            store.save(_result(chefs=(2,)), expected_latest_id=first_id)
        monkeypatch.undo()

        assert len(store.history(10)) == 2

    def test_unchecked_saves_chain_onto_latest(self):
        engine = make_engine("sqlite://")
        store = SQLRepartitionStore(engine)

        first_id = store.save(_result())
        second_id = store.save(_result())

        with Session(engine) as session:
            rows = session.exec(select(RepartitionRow).order_by(RepartitionRow.id)).all()
        assert [(row.id, row.previous_id) for row in rows] == [(first_id, 0), (second_id, first_id)]

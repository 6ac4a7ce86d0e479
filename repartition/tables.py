"""
SQLModel tables backing the SQL role directory and repartition store.

Amounts are stored as text so Decimal values round-trip exactly on every
backend (SQLite has no exact numeric type).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlalchemy.pool import StaticPool
from sqlmodel import Field, SQLModel, create_engine


class AgentRow(SQLModel, table=True):
    """Agent (reference data, read-only here)."""

    __tablename__ = "agents"

    id: Optional[int] = Field(default=None, primary_key=True)
    code_agent: str = Field(index=True)
    nom: str
    prenom: str = ""
    # DD / DG for permanent beneficiaries
    role_special: Optional[str] = Field(default=None, index=True)
    actif: bool = Field(default=True)


class AffaireRow(SQLModel, table=True):
    """Litigation case (affaire)."""

    __tablename__ = "affaires"

    id: Optional[int] = Field(default=None, primary_key=True)
    numero_affaire: str = Field(index=True)


class AffaireActeurRow(SQLModel, table=True):
    """Case/agent/role relation."""

    __tablename__ = "affaire_acteurs"

    affaire_id: int = Field(primary_key=True, index=True)
    agent_id: int = Field(primary_key=True)
    role_sur_affaire: str


class RepartitionRow(SQLModel, table=True):
    """Header of a stored distribution."""

    __tablename__ = "repartition_resultats"
    # at most one result may follow a given result of the same payment
    __table_args__ = (UniqueConstraint("encaissement_id", "previous_id"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    encaissement_id: int = Field(index=True)
    affaire_id: int
    rule_set_name: str
    rule_set_version: str
    # id of the result this one supersedes, 0 for the first of a payment
    previous_id: int = Field(default=0)

    produit_disponible: str
    part_indicateur: str
    produit_net: str
    part_flcf: str
    part_tresor: str
    produit_net_ayants_droits: str
    part_dd: str
    part_dg: str
    pool_restant: str
    part_chefs: str
    part_saisissants: str
    part_mutuelle: str
    part_masse_commune: str
    part_interessement: str

    total_reparti: str
    ecart: str
    tolerance: str
    equilibre: bool

    calculated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    calculated_by: Optional[str] = None


class RepartitionLineRow(SQLModel, table=True):
    """One beneficiary line of a stored distribution."""

    __tablename__ = "repartition_lignes"
    __table_args__ = (UniqueConstraint("repartition_id", "position"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    repartition_id: int = Field(foreign_key="repartition_resultats.id", index=True)
    position: int
    kind: str  # AGENT / GENERIQUE
    tier: str
    agent_id: Optional[int] = None
    label: Optional[str] = None
    montant: str
    description: str = ""


def make_engine(database_url: str = "sqlite://", echo: bool = False):
    """Create an engine and make sure every table exists."""
    kwargs = {}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            # one shared connection, otherwise every session sees an empty database
            kwargs["poolclass"] = StaticPool
    engine = create_engine(database_url, echo=echo, **kwargs)
    SQLModel.metadata.create_all(engine)
    return engine

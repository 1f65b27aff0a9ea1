"""SQLAlchemy-backed storage for widget instance settings."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import Column, DateTime, Integer, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .models import SettingsRecord, default_settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class WidgetInstanceModel(Base):
    """One placed widget and its settings record."""

    __tablename__ = "widget_instances"

    number = Column(Integer, primary_key=True, autoincrement=True)
    id_base = Column(String, nullable=False, index=True)
    settings = Column(Text, nullable=False, default="{}")
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))


def init_engine(connection_string: Optional[str]) -> Optional[Engine]:
    """Initialize the database engine."""
    if not connection_string:
        return None

    logger.info("Initializing database connection: %s", connection_string)
    engine = create_engine(connection_string)
    Base.metadata.create_all(engine)
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return a session factory for the given engine."""
    return sessionmaker(bind=engine)


def _commit(session: Session) -> None:
    try:
        session.commit()
    except Exception:
        session.rollback()
        raise


def create_instance(session: Session, id_base: str) -> Tuple[int, SettingsRecord]:
    """Place a new widget instance with default settings."""
    record = default_settings().to_record()
    instance = WidgetInstanceModel(
        id_base=id_base,
        settings=json.dumps(record),
        updated_at=datetime.now(timezone.utc),
    )
    session.add(instance)
    _commit(session)
    logger.info("Created %s instance #%d", id_base, instance.number)
    return instance.number, record


def _load(session: Session, number: int) -> Optional[WidgetInstanceModel]:
    stmt = select(WidgetInstanceModel).where(WidgetInstanceModel.number == number)
    return session.execute(stmt).scalar_one_or_none()


def get_instance(session: Session, number: int) -> Optional[SettingsRecord]:
    """Return the settings record of an instance, or None if it does not exist."""
    instance = _load(session, number)
    if instance is None:
        return None
    return json.loads(instance.settings)


def save_instance(session: Session, number: int, record: SettingsRecord) -> None:
    """Persist a settings record for an existing instance."""
    instance = _load(session, number)
    if instance is None:
        raise KeyError(f"Widget instance #{number} does not exist")
    instance.settings = json.dumps(record)
    instance.updated_at = datetime.now(timezone.utc)
    _commit(session)
    logger.debug("Saved settings for instance #%d", number)


def list_instances(
    session: Session, id_base: Optional[str] = None
) -> List[Tuple[int, str, SettingsRecord]]:
    """Return (number, id_base, record) for stored instances in placement order."""
    stmt = select(WidgetInstanceModel).order_by(WidgetInstanceModel.number)
    if id_base:
        stmt = stmt.where(WidgetInstanceModel.id_base == id_base)
    return [
        (row.number, row.id_base, json.loads(row.settings))
        for row in session.execute(stmt).scalars().all()
    ]


def delete_instance(session: Session, number: int) -> bool:
    """Remove an instance; returns False if it did not exist."""
    instance = _load(session, number)
    if instance is None:
        return False
    session.delete(instance)
    _commit(session)
    logger.info("Deleted widget instance #%d", number)
    return True

"""Relational persistence: models, engine and repositories."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from fooddash.errors import PersistenceError
from fooddash.models.address import Address

logger = logging.getLogger(__name__)

Base = declarative_base()


# ========== MODELS ==========


class AddressRow(Base):
    """A delivery address owned by one user."""

    __tablename__ = "addresses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)
    address_text = Column(Text, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    user_id = Column(String(64), nullable=False, index=True)


class ProfileRow(Base):
    """Per-user profile; ``id`` is the auth provider user ID."""

    __tablename__ = "profiles"

    id = Column(String(64), primary_key=True)
    selected_address_id = Column(
        Integer, ForeignKey("addresses.id", ondelete="SET NULL"), nullable=True
    )


class MenuRow(Base):
    """A menu item; ``genre`` matches a place's primary type."""

    __tablename__ = "menus"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_menus_price_non_negative"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False, index=True)
    price = Column(Integer, nullable=False, default=0)
    image_path = Column(Text, nullable=False, default="")
    genre = Column(String(100), nullable=False, index=True)
    category = Column(String(100), nullable=False)
    is_featured = Column(Boolean, nullable=False, default=False)


# ========== CONNECTION ==========


class Database:
    """Engine and session factory for one database URL."""

    def __init__(self, url: str) -> None:
        kwargs = {}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url == "sqlite://":
                kwargs["poolclass"] = StaticPool
        self.engine = create_engine(url, **kwargs)
        self.session_factory = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

    def init_db(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info("Database tables ensured")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Transactional session; store errors surface as ``PersistenceError``."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            logger.exception("Database operation failed")
            raise PersistenceError(f"Database operation failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database instance
_database: Database | None = None


def get_database() -> Database:
    """Get or create the global database from config."""
    global _database
    if _database is None:
        from fooddash.config import get_config

        _database = Database(get_config().database_url)
    return _database


# ========== REPOSITORIES ==========


class MenuRepository:
    """Read access to the ``menus`` table."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def find_by_genre(
        self, genre: str, name_contains: str | None = None
    ) -> list[MenuRow]:
        """Menus for ``genre`` in primary-key order, optionally filtered by name.

        The name filter is a case-insensitive substring match; ``%`` and ``_``
        in the filter are matched literally.
        """
        query = select(MenuRow).where(MenuRow.genre == genre)
        if name_contains:
            query = query.where(MenuRow.name.icontains(name_contains, autoescape=True))
        query = query.order_by(MenuRow.id)

        with self.database.session() as session:
            return list(session.scalars(query).all())

    def add(self, **values) -> int:
        """Insert a menu row and return its ID."""
        with self.database.session() as session:
            row = MenuRow(**values)
            session.add(row)
            session.flush()
            return row.id


class AddressRepository:
    """Access to ``addresses`` and the profile's selected address."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def list_for_user(self, user_id: str) -> list[Address]:
        query = (
            select(AddressRow).where(AddressRow.user_id == user_id).order_by(AddressRow.id)
        )
        with self.database.session() as session:
            return [Address.model_validate(row) for row in session.scalars(query)]

    def get_for_user(self, user_id: str, address_id: int) -> Address | None:
        query = select(AddressRow).where(
            AddressRow.id == address_id, AddressRow.user_id == user_id
        )
        with self.database.session() as session:
            row = session.scalars(query).one_or_none()
            return Address.model_validate(row) if row else None

    def get_selected(self, user_id: str) -> Address | None:
        """The profile's selected address, or ``None`` when nothing is selected."""
        query = (
            select(AddressRow)
            .join(ProfileRow, ProfileRow.selected_address_id == AddressRow.id)
            .where(ProfileRow.id == user_id)
        )
        with self.database.session() as session:
            row = session.scalars(query).one_or_none()
            return Address.model_validate(row) if row else None

    def insert(
        self,
        user_id: str,
        name: str,
        address_text: str,
        latitude: float,
        longitude: float,
    ) -> int:
        """Insert an address and return its ID."""
        with self.database.session() as session:
            row = AddressRow(
                user_id=user_id,
                name=name,
                address_text=address_text,
                latitude=latitude,
                longitude=longitude,
            )
            session.add(row)
            session.flush()
            return row.id

    def set_selected(self, user_id: str, address_id: int | None) -> None:
        """Upsert the profile so it points at ``address_id``."""
        with self.database.session() as session:
            profile = session.get(ProfileRow, user_id)
            if profile is None:
                session.add(ProfileRow(id=user_id, selected_address_id=address_id))
            else:
                profile.selected_address_id = address_id

    def delete(self, user_id: str, address_id: int) -> bool:
        """Delete the user's address; clears the selection if it pointed there.

        Returns:
            True if a row was deleted
        """
        with self.database.session() as session:
            profile = session.get(ProfileRow, user_id)
            if profile is not None and profile.selected_address_id == address_id:
                profile.selected_address_id = None
                session.flush()

            result = session.execute(
                delete(AddressRow).where(
                    AddressRow.id == address_id, AddressRow.user_id == user_id
                )
            )
            return result.rowcount > 0

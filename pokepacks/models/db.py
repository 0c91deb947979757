"""
SQLAlchemy ORM models for persistent storage.

Two tables: users with their coin balance, and the cards each user has pulled.
"""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from pokepacks.config import settings


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class UserDB(Base):
    """
    A registered player.

    Created on first registration of an unseen username. The balance is
    only ever changed through the ledger service.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    poke_coins: Mapped[int] = mapped_column(Integer, default=lambda: settings.starting_coins)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    # Pulled cards; removed with the user
    collection: Mapped[list["CollectionEntryDB"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<UserDB(id={self.id}, username={self.username}, coins={self.poke_coins})>"


class CollectionEntryDB(Base):
    """
    One pulled card in a user's collection.

    Rows are immutable once written. Duplicates are expected: every pull
    is its own row, and descending id is pull order.
    """

    __tablename__ = "user_collections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True
    )
    card_id: Mapped[str] = mapped_column(String(255))
    card_image_url: Mapped[str] = mapped_column(Text, default="")
    card_rarity: Mapped[str] = mapped_column(String(100), default="Unknown")
    set_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    set_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    user: Mapped["UserDB"] = relationship(back_populates="collection")

    def __repr__(self) -> str:
        return f"<CollectionEntryDB(card={self.card_id}, rarity={self.card_rarity})>"

from datetime import datetime

from sqlalchemy import Integer, String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from cattery.database.base import Base


class Cat(Base):
    """
    SQLAlchemy model for Cat.

    `name` is set once on creation; `color` is the only attribute the update
    action may change.
    """
    __tablename__ = "cats"

    # Primary key assigned by the database on insert
    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    color: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    # Refreshed on every UPDATE statement
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    def __repr__(self) -> str:
        return f"<Cat(id={self.id!r}, name={self.name!r}, color={self.color!r})>"

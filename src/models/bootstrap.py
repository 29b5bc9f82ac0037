"""
BootstrapState model for the one-time admin bootstrap.

The first administrator is created from BOOTSTRAP_ADMIN_* settings at
startup. The row written here marks that step as done so it never runs again,
even if that administrator is later demoted or deleted.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from src.models.base import Base
from src.models.mixins import utcnow


class BootstrapState(Base):
    """
    Record of a completed admin bootstrap.

    Attributes:
        id: Integer primary key
        completed: Always True when the row exists
        completed_at: When the first administrator was created
        admin_user_id: The administrator created by the bootstrap (NULL once
            that user is deleted)
    """

    __tablename__ = "bootstrap_state"

    completed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
    )

    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    admin_user_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )

    __table_args__ = (CheckConstraint("completed = TRUE", name="completed"),)

    def __repr__(self) -> str:
        """String representation of BootstrapState."""
        return (
            f"BootstrapState(id={self.id}, completed_at={self.completed_at}, "
            f"admin_user_id={self.admin_user_id})"
        )

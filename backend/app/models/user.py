"""User account model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import BaseModel


class User(BaseModel):
    """A registered user.

    Only the Argon2 hash of the password is stored. ``role`` is the single
    role field carried into authentication tokens.
    """

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str | None] = mapped_column(String(32), nullable=True, default="member")

    def __repr__(self) -> str:
        return f"<User {self.id} {self.email}>"

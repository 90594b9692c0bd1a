"""SQLAlchemy table definitions.

Rows map to the frozen dataclasses in app/models/; repos convert between
the two.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.engine import Base


class AuthSessionRow(Base):
    __tablename__ = "auth_sessions"
    __table_args__ = (
        CheckConstraint(
            "code_challenge_method IN ('S256', 'plain')",
            name="ck_auth_sessions_code_challenge_method",
        ),
    )

    code: Mapped[str] = mapped_column(String(128), primary_key=True)
    # Everything a client sends to /authorize is stored unbounded; only the
    # minted code and the checked challenge method have a known size.
    client_id: Mapped[str] = mapped_column(Text, nullable=False)
    redirect_uri: Mapped[str] = mapped_column(Text, nullable=False)
    scope: Mapped[str | None] = mapped_column(Text, nullable=True)
    subject: Mapped[str | None] = mapped_column(Text, nullable=True)
    code_challenge: Mapped[str | None] = mapped_column(Text, nullable=True)
    code_challenge_method: Mapped[str | None] = mapped_column(String(8), nullable=True)

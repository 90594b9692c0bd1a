"""PostgreSQL implementation of AuthSessionRepo."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.tables import AuthSessionRow
from app.models.authorization_session import AuthorizationSession


class PgAuthSessionRepo:
    """Satisfies the AuthSessionRepo Protocol using PostgreSQL.

    Writes commit immediately instead of waiting for the request-scoped
    session to finish: a consumed code must stay deleted even when a later
    validation step raises and the request session rolls back.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def insert(self, record: AuthorizationSession) -> None:
        self._session.add(
            AuthSessionRow(
                code=record.code,
                client_id=record.client_id,
                redirect_uri=record.redirect_uri,
                scope=record.scope,
                subject=record.subject,
                code_challenge=record.code_challenge,
                code_challenge_method=record.code_challenge_method,
            )
        )
        await self._session.commit()

    async def get(self, code: str) -> AuthorizationSession | None:
        stmt = select(AuthSessionRow).where(AuthSessionRow.code == code)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_session(row)

    async def delete(self, code: str) -> None:
        await self._session.execute(
            delete(AuthSessionRow).where(AuthSessionRow.code == code)
        )
        await self._session.commit()

    async def take(self, code: str) -> AuthorizationSession | None:
        # DELETE ... RETURNING: of two concurrent transactions only the one
        # that actually removes the row gets it back.
        stmt = (
            delete(AuthSessionRow)
            .where(AuthSessionRow.code == code)
            .returning(AuthSessionRow)
        )
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        record = _row_to_session(row) if row is not None else None
        await self._session.commit()
        return record


def _row_to_session(row: AuthSessionRow) -> AuthorizationSession:
    return AuthorizationSession(
        code=row.code,
        client_id=row.client_id,
        redirect_uri=row.redirect_uri,
        scope=row.scope,
        subject=row.subject,
        code_challenge=row.code_challenge,
        code_challenge_method=row.code_challenge_method,  # type: ignore[arg-type]
    )

"""Idempotency service for safe newsletter publication retries."""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Response
from sqlalchemy import select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from newsletter.domain import IdempotencyKey
from newsletter.errors import UnexpectedError
from newsletter.models.idempotency import IdempotencyRecord

logger = logging.getLogger(__name__)


class MissingSavedResponseError(UnexpectedError):
    """A reservation exists for the key but holds no saved response."""


@dataclass(frozen=True)
class StartProcessing:
    """The key is reserved; all side effects must go through ``transaction``."""

    transaction: AsyncSession


@dataclass(frozen=True)
class ReturnSavedResponse:
    """The request was already processed; replay ``response`` as is."""

    response: Response


NextAction = StartProcessing | ReturnSavedResponse


class IdempotencyService:
    """
    Reserve idempotency keys and cache the response of completed requests.

    The (user_id, idempotency_key) primary key is the only mutual exclusion:
    a concurrent request for the same key blocks on the uncommitted
    reservation row until the first transaction commits, then reads its
    saved response.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def try_processing(self, user_id: UUID, key: IdempotencyKey) -> NextAction:
        """
        Attempt to reserve ``key`` for ``user_id``.

        Returns:
            StartProcessing - Reservation inserted, caller owns the open transaction
            ReturnSavedResponse - Request already completed, replay cached response

        Raises:
            MissingSavedResponseError - Key reserved but no response stored
        """
        result = await self.db.execute(
            insert(IdempotencyRecord)
            .values(user_id=user_id, idempotency_key=key.value)
            .on_conflict_do_nothing()
            .returning(IdempotencyRecord.user_id)
        )
        if result.first() is not None:
            return StartProcessing(self.db)

        saved = await self.get_saved_response(user_id, key)
        if saved is None:
            raise MissingSavedResponseError(
                f"Expected a saved response for idempotency key {key.value!r}"
            )
        logger.info("Replaying saved response for idempotency key %r", key.value)
        return ReturnSavedResponse(saved)

    async def get_saved_response(self, user_id: UUID, key: IdempotencyKey) -> Response | None:
        result = await self.db.execute(
            select(
                IdempotencyRecord.response_status_code,
                IdempotencyRecord.response_headers,
                IdempotencyRecord.response_body,
            )
            .where(IdempotencyRecord.user_id == user_id)
            .where(IdempotencyRecord.idempotency_key == key.value)
        )
        row = result.one_or_none()
        if row is None or row.response_status_code is None:
            return None

        response = Response(
            content=row.response_body or b"",
            status_code=row.response_status_code,
        )
        # Replace the defaults Starlette computed with the stored header list.
        response.raw_headers = [
            (header["name"].encode("latin-1"), header["value"].encode("latin-1"))
            for header in row.response_headers or []
        ]
        return response

    async def save_response(
        self,
        transaction: AsyncSession,
        user_id: UUID,
        key: IdempotencyKey,
        response: Response,
    ) -> Response:
        """
        Store ``response`` against the reservation and commit.

        This commit is the only point where the side effects performed through
        ``transaction`` become durable.
        """
        headers = [
            {"name": name.decode("latin-1"), "value": value.decode("latin-1")}
            for name, value in response.raw_headers
        ]
        await transaction.execute(
            update(IdempotencyRecord)
            .where(IdempotencyRecord.user_id == user_id)
            .where(IdempotencyRecord.idempotency_key == key.value)
            .values(
                response_status_code=response.status_code,
                response_headers=headers,
                response_body=bytes(response.body),
            )
        )
        await transaction.commit()
        return response

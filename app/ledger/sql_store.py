import logging
from contextlib import asynccontextmanager
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import StoreError
from app.db.models import LedgerState
from app.ledger.keys import composite_key_prefix

logger = logging.getLogger(__name__)

# UTF-8 never produces 0xFF, so prefix + 0xFF bounds every key under prefix
_RANGE_END = b"\xff"


class SQLStateStore:
    """
    Ledger store over the ``ledger_state`` table.

    The store never begins or commits a transaction itself: the caller hands
    in a session that is already inside the invocation's transaction
    (``async with db.begin()``) and decides whether it commits.

    Args:
        session (AsyncSession): The session of the current invocation.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_state(self, key: str) -> Optional[bytes]:
        try:
            result = await self.session.execute(
                select(LedgerState.value).where(LedgerState.key == key.encode("utf-8"))
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.warning(f"get_state failed: {e}")
            raise StoreError(str(e)) from e

    async def put_state(self, key: str, value: bytes) -> None:
        try:
            await self.session.merge(LedgerState(key=key.encode("utf-8"), value=bytes(value)))
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.warning(f"put_state failed: {e}")
            raise StoreError(str(e)) from e

    @asynccontextmanager
    async def scan_prefix(self, type_tag: str):
        start = composite_key_prefix(type_tag).encode("utf-8")
        stmt = (
            select(LedgerState.key, LedgerState.value)
            .where(LedgerState.key >= start, LedgerState.key < start + _RANGE_END)
            .order_by(LedgerState.key)
        )
        try:
            result = await self.session.stream(stmt)
        except SQLAlchemyError as e:
            logger.warning(f"scan_prefix({type_tag}) failed: {e}")
            raise StoreError(str(e)) from e

        async def entries():
            try:
                async for row in result:
                    yield row.key.decode("utf-8"), row.value
            except SQLAlchemyError as e:
                logger.warning(f"scan_prefix({type_tag}) failed: {e}")
                raise StoreError(str(e)) from e

        iterator = entries()
        try:
            yield iterator
        finally:
            await iterator.aclose()
            await result.close()

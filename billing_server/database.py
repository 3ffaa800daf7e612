import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

from pydantic import ValidationError
from sqlalchemy import (
    CheckConstraint, Column, DateTime, Index, Integer, MetaData,
    Numeric, String, Table, Text, bindparam, text,
)
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from .config import Settings
from .errors import (
    InvoiceDecodeError, InvoiceNotFoundError, QueryTimeoutError, StorageError,
)
from .models import CreateInvoiceRequest, Invoice, InvoiceStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Returned as float on every backend.
AMOUNT_TYPE = Numeric(12, 2, asdecimal=False)

metadata = MetaData()

invoices_table = Table(
    "invoices",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", Integer, nullable=False),
    Column("amount", AMOUNT_TYPE, nullable=False),
    Column("description", Text, nullable=False),
    Column("status", String(16), nullable=False, server_default=InvoiceStatus.PENDING.value),
    Column("payment_method", Text, nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("amount > 0", name="ck_invoices_amount_positive"),
    CheckConstraint(
        "status IN ('pending', 'paid', 'cancelled')", name="ck_invoices_status",
    ),
    Index("ix_invoices_user_id", "user_id"),
)

INVOICE_COLUMNS = (
    "id, user_id, amount, description, status, payment_method, created_at, updated_at"
)

# Typed result columns so every backend hands back the same Python types.
RESULT_TYPES = dict(
    id=Integer,
    user_id=Integer,
    amount=AMOUNT_TYPE,
    description=Text,
    status=String,
    payment_method=Text,
    created_at=DateTime(timezone=True),
    updated_at=DateTime(timezone=True),
)

SELECT_BY_ID = text(
    f"SELECT {INVOICE_COLUMNS} FROM invoices WHERE id = :id"
).columns(**RESULT_TYPES)

SELECT_BY_USER_ID = text(
    f"SELECT {INVOICE_COLUMNS} FROM invoices WHERE user_id = :user_id"
).columns(**RESULT_TYPES)

INSERT_INVOICE = text(
    "INSERT INTO invoices "
    "(user_id, amount, description, status, payment_method, created_at, updated_at) "
    "VALUES (:user_id, :amount, :description, 'pending', :payment_method, :now, :now) "
    f"RETURNING {INVOICE_COLUMNS}"
).bindparams(
    bindparam("amount", type_=AMOUNT_TYPE),
    bindparam("now", type_=DateTime(timezone=True)),
).columns(**RESULT_TYPES)


def create_engine_from_settings(settings: Settings) -> AsyncEngine:
    """Build the shared, internally pooled engine. No connection is opened here."""
    return create_async_engine(
        settings.sqlalchemy_url(),
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )


async def create_schema(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


async def ping(engine: AsyncEngine) -> bool:
    """Check database connectivity (for readiness probes)."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"DB health check failed: {e}")
        return False


class InvoiceRepository:
    """Parameterized queries against the invoices table.

    Every operation is a single statement bounded by a deadline. A timeout
    raises QueryTimeoutError; task cancellation propagates unchanged.
    """

    def __init__(self, engine: AsyncEngine, timeout: Optional[float] = None):
        self.engine = engine
        self.timeout = timeout

    async def get_by_id(self, invoice_id: int) -> Invoice:
        async def query(conn: AsyncConnection) -> Invoice:
            result = await conn.execute(SELECT_BY_ID, {"id": invoice_id})
            row = result.mappings().one_or_none()
            if row is None:
                raise InvoiceNotFoundError(invoice_id)
            return self._convert_to_invoice(row)

        return await self._run(query)

    async def get_by_user_id(self, user_id: int) -> List[Invoice]:
        async def query(conn: AsyncConnection) -> List[Invoice]:
            result = await conn.execute(SELECT_BY_USER_ID, {"user_id": user_id})
            return [self._convert_to_invoice(row) for row in result.mappings()]

        return await self._run(query)

    async def create(self, request: CreateInvoiceRequest) -> Invoice:
        now = datetime.now(timezone.utc)

        async def query(conn: AsyncConnection) -> Invoice:
            result = await conn.execute(INSERT_INVOICE, {
                "user_id": request.user_id,
                "amount": request.amount,
                "description": request.description,
                "payment_method": request.payment_method,
                "now": now,
            })
            return self._convert_to_invoice(result.mappings().one())

        return await self._run(query, write=True)

    async def _run(
        self,
        query: Callable[[AsyncConnection], Awaitable[T]],
        write: bool = False,
    ) -> T:
        deadline = self.timeout

        async def execute() -> T:
            if write:
                async with self.engine.begin() as conn:
                    return await query(conn)
            async with self.engine.connect() as conn:
                return await query(conn)

        try:
            if deadline is None:
                return await execute()
            return await asyncio.wait_for(execute(), timeout=deadline)
        except asyncio.TimeoutError:
            logger.warning(f"Query timed out after {deadline}s")
            raise QueryTimeoutError(deadline)
        except (SQLAlchemyError, OSError) as e:
            # Unreachable servers surface as raw OSError from the driver.
            logger.error(f"DB error: {e}")
            raise StorageError(str(e)) from e

    def _convert_to_invoice(self, row: Any) -> Invoice:
        """Convert database row to Invoice model"""
        try:
            return Invoice.model_validate(dict(row))
        except (ValidationError, TypeError, ValueError) as e:
            logger.error(f"Error decoding invoice row: {e}")
            raise InvoiceDecodeError(f"Invalid invoice row: {e}") from e

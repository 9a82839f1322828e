from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Iterable, Mapping

import asyncpg

from sharetab.db.models import Payment, Trip
from sharetab.logging import get_logger, sql_logger
from sharetab.services.expenses import EqualExpense, Expense, Item, ItemizedExpense, SplitType
from sharetab.services.names import normalize_name, unique_names
from sharetab.services.payments import PaymentDraft
from sharetab.services.trips import generate_code, generate_id, normalize_code


class NotFoundError(LookupError):
    pass


class Database:
    def __init__(self, dsn: str) -> None:
        self._dsn = dsn
        self._pool: asyncpg.Pool | None = None
        self._log = get_logger(__name__)

    async def connect(self) -> None:
        if self._pool is None:
            # asyncpg wants a plain postgresql:// scheme, without "+asyncpg"
            dsn = self._dsn.replace("+asyncpg", "")
            self._pool = await asyncpg.create_pool(dsn)
            self._log.info("db.pool.created")

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None
            self._log.info("db.pool.closed")

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetch", query=query, args=args)
        return await self._pool.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchrow", query=query, args=args)
        return await self._pool.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.fetchval", query=query, args=args)
        return await self._pool.fetchval(query, *args)

    async def execute(self, query: str, *args: Any) -> str:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.execute", query=query, args=args)
        return await self._pool.execute(query, *args)

    async def executemany(self, command: str, args: Iterable[Iterable[Any]]) -> None:
        await self._ensure_pool()
        assert self._pool
        sql_logger.info("sql.executemany", query=command)
        await self._pool.executemany(command, args)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        await self._ensure_pool()
        assert self._pool
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                sql_logger.info("sql.transaction.begin")
                yield conn
        sql_logger.info("sql.transaction.commit")

    async def _ensure_pool(self) -> None:
        if self._pool is None:
            await self.connect()


def _trip_from_row(row: Mapping[str, Any], participants: Iterable[str]) -> Trip:
    return Trip(
        id=row["id"],
        code=row["code"],
        name=row["name"],
        creation_time=row["creation_time"],
        participants=list(participants),
    )


def _payment_from_row(row: Mapping[str, Any]) -> Payment:
    return Payment(
        id=row["id"],
        trip_id=row["trip_id"],
        from_person=row["from_person"],
        to_person=row["to_person"],
        amount=row["amount"],
        description=row["description"],
        payment_date=row["payment_date"],
        created_at=row["created_at"],
    )


def _item_from_row(row: Mapping[str, Any]) -> Item:
    return Item(
        description=row["description"],
        unit_price=row["unit_price"],
        quantity=row["quantity"],
        paid_by=row["paid_by"],
        consumers=list(row["consumers"] or []),
        item_discount=row["item_discount"],
        amount=row["amount"],
    )


def expense_from_row(
    row: Mapping[str, Any],
    participants: list[str],
    items: list[Item],
) -> Expense:
    if SplitType(row["split_type"]) is SplitType.EQUAL:
        return EqualExpense(
            id=row["id"],
            description=row["description"],
            subtotal=row["subtotal"],
            paid_by=row["paid_by"],
            split_among=participants,
            tax=row["tax"],
            service_charge=row["service_charge"],
            total_discount=row["total_discount"],
            creation_time=row["creation_time"],
        )
    return ItemizedExpense(
        id=row["id"],
        description=row["description"],
        items=items,
        paid_by=row["paid_by"],
        subtotal=row["subtotal"],
        tax=row["tax"],
        service_charge=row["service_charge"],
        total_discount=row["total_discount"],
        creation_time=row["creation_time"],
    )


class ShareTabRepository:
    def __init__(self, db: Database) -> None:
        self.db = db

    async def create_trip(self, name: str, participant: str) -> Trip:
        trip = Trip(
            id=generate_id(),
            code=generate_code(),
            name=name.strip(),
            creation_time=int(datetime.now(timezone.utc).timestamp() * 1000),
            participants=[normalize_name(participant)],
        )
        async with self.db.transaction() as conn:
            await conn.execute(
                "INSERT INTO trips (id, code, name, creation_time) VALUES ($1, $2, $3, $4)",
                trip.id,
                trip.code,
                trip.name,
                trip.creation_time,
            )
            await conn.execute(
                "INSERT INTO trip_participants (trip_id, participant) VALUES ($1, $2)",
                trip.id,
                trip.participants[0],
            )
        return trip

    async def get_trip_by_code(self, code: str) -> Trip:
        row = await self.db.fetchrow("SELECT * FROM trips WHERE code = $1", normalize_code(code))
        if row is None:
            raise NotFoundError("Trip not found")
        participants = await self.get_participants(row["id"])
        return _trip_from_row(row, participants)

    async def get_participants(self, trip_id: str) -> list[str]:
        rows = await self.db.fetch(
            "SELECT participant FROM trip_participants WHERE trip_id = $1 ORDER BY participant",
            trip_id,
        )
        return [row["participant"] for row in rows]

    async def add_participants(self, trip_id: str, names: Iterable[str]) -> None:
        participants = unique_names(names)
        if not participants:
            return
        await self.db.executemany(
            """
            INSERT INTO trip_participants (trip_id, participant)
            VALUES ($1, $2)
            ON CONFLICT DO NOTHING
            """,
            ((trip_id, name) for name in participants),
        )

    async def store_expense(self, trip_id: str, expense: Expense) -> Expense:
        expense.id = expense.id or generate_id()
        async with self.db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO expenses
                    (id, trip_id, description, amount, subtotal, tax, service_charge, total_discount,
                     paid_by, split_type, creation_time)
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11)
                """,
                expense.id,
                trip_id,
                expense.description,
                expense.amount,
                expense.subtotal,
                expense.tax,
                expense.service_charge,
                expense.total_discount,
                expense.paid_by,
                expense.split_type.value,
                expense.creation_time,
            )
            if isinstance(expense, EqualExpense):
                await conn.executemany(
                    """
                    INSERT INTO expense_participants (expense_id, participant, position)
                    VALUES ($1, $2, $3)
                    """,
                    [(expense.id, name, pos) for pos, name in enumerate(expense.split_among)],
                )
            else:
                for item in expense.items:
                    item_id = await conn.fetchval(
                        """
                        INSERT INTO expenses_items
                            (expense_id, description, unit_price, quantity, amount, item_discount, paid_by)
                        VALUES ($1, $2, $3, $4, $5, $6, $7)
                        RETURNING id
                        """,
                        expense.id,
                        item.description,
                        item.unit_price,
                        item.quantity,
                        item.amount,
                        item.item_discount,
                        item.paid_by,
                    )
                    await conn.executemany(
                        "INSERT INTO item_consumers (item_id, consumer, position) VALUES ($1, $2, $3)",
                        [(item_id, name, pos) for pos, name in enumerate(item.consumers)],
                    )
        return expense

    async def get_expenses_for_trip(self, trip_id: str) -> list[Expense]:
        rows = await self.db.fetch(
            """
            SELECT * FROM expenses
            WHERE trip_id = $1
            ORDER BY creation_time ASC
            """,
            trip_id,
        )
        if not rows:
            return []

        participant_rows = await self.db.fetch(
            """
            SELECT ep.expense_id, ep.participant
            FROM expense_participants ep
            JOIN expenses e ON e.id = ep.expense_id
            WHERE e.trip_id = $1
            ORDER BY ep.expense_id, ep.position
            """,
            trip_id,
        )
        item_rows = await self.db.fetch(
            """
            SELECT ei.*,
                   array_agg(ic.consumer ORDER BY ic.position) FILTER (WHERE ic.consumer IS NOT NULL) AS consumers
            FROM expenses_items ei
            JOIN expenses e ON e.id = ei.expense_id
            LEFT JOIN item_consumers ic ON ic.item_id = ei.id
            WHERE e.trip_id = $1
            GROUP BY ei.id
            ORDER BY ei.id
            """,
            trip_id,
        )

        participants: dict[str, list[str]] = {}
        for row in participant_rows:
            participants.setdefault(row["expense_id"], []).append(row["participant"])

        items: dict[str, list[Item]] = {}
        for row in item_rows:
            items.setdefault(row["expense_id"], []).append(_item_from_row(row))

        return [
            expense_from_row(row, participants.get(row["id"], []), items.get(row["id"], []))
            for row in rows
        ]

    async def remove_expense(self, trip_id: str, expense_id: str) -> None:
        status = await self.db.execute(
            "DELETE FROM expenses WHERE id = $1 AND trip_id = $2",
            expense_id,
            trip_id,
        )
        if status.endswith(" 0"):
            raise NotFoundError("Expense not found")

    async def create_payment(self, trip_id: str, draft: PaymentDraft) -> Payment:
        row = await self.db.fetchrow(
            """
            INSERT INTO payments (trip_id, from_person, to_person, amount, description)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *
            """,
            trip_id,
            draft.from_person,
            draft.to_person,
            draft.amount,
            draft.description,
        )
        assert row is not None
        return _payment_from_row(row)

    async def get_payments_for_trip(self, trip_id: str) -> list[Payment]:
        rows = await self.db.fetch(
            "SELECT * FROM payments WHERE trip_id = $1 ORDER BY payment_date DESC",
            trip_id,
        )
        return [_payment_from_row(row) for row in rows]

    async def delete_payment(self, trip_id: str, payment_id: int) -> None:
        row = await self.db.fetchrow(
            "SELECT id FROM payments WHERE id = $1 AND trip_id = $2",
            payment_id,
            trip_id,
        )
        if row is None:
            raise NotFoundError("Payment not found")
        await self.db.execute("DELETE FROM payments WHERE id = $1", payment_id)

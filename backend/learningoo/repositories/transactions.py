from __future__ import annotations

from typing import Sequence

from ..db import get_store
from .store import Row

TransactionRow = Row


async def record_transaction(
    *,
    user_id: str,
    type: str,
    category: str,
    amount: int,
    related_id: str | None = None,
    counterpart_id: str | None = None,
    description: str | None = None,
) -> TransactionRow:
    if amount <= 0:
        raise ValueError("transaction amount must be positive")
    return await get_store().insert(
        "transactions",
        {
            "user_id": user_id,
            "type": type,
            "category": category,
            "amount": int(amount),
            "related_id": related_id,
            "counterpart_id": counterpart_id,
            "description": description,
        },
    )


async def list_user_transactions(user_id: str) -> Sequence[TransactionRow]:
    return await get_store().find(
        "transactions", {"user_id": user_id}, order_by=("-created_at",)
    )


async def list_all_transactions() -> Sequence[TransactionRow]:
    return await get_store().find("transactions", order_by=("-created_at",))


async def count_transactions() -> int:
    return await get_store().count("transactions")


__all__ = [
    "TransactionRow",
    "count_transactions",
    "list_all_transactions",
    "list_user_transactions",
    "record_transaction",
]

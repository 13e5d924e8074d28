"""
lingala_api.services.reorder

Batch re-ordering of modules and lessons.

Responsibilities:
- Validate the `{updates: [{id, orderIndex}]}` payload up front.
- Apply updates one row at a time, committing each; report how many rows changed.

Rows are not updated atomically as a batch: a missing id is skipped, and a failure
part-way leaves earlier rows committed. Concurrent reorders of the same rows resolve
last-writer-wins per row.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from lingala_api.errors import InvalidInput
from lingala_api.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class OrderUpdate:
    id: int
    order_index: int


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_updates(body: Any) -> list[OrderUpdate]:
    updates = body.get("updates") if isinstance(body, dict) else None
    if not isinstance(updates, list):
        raise InvalidInput("Updates must be provided as an array", code="INVALID_FORMAT")
    if not updates:
        raise InvalidInput("Updates array cannot be empty", code="EMPTY_ARRAY")

    parsed: list[OrderUpdate] = []
    for item in updates:
        if not isinstance(item, dict) or not _is_int(item.get("id")) or item["id"] <= 0:
            raise InvalidInput("Each update must have a valid numeric id", code="INVALID_ID")
        order_index = item.get("orderIndex")
        if not _is_int(order_index) or order_index < 0:
            raise InvalidInput(
                "Each update must have a valid numeric orderIndex", code="INVALID_ORDER_INDEX"
            )
        parsed.append(OrderUpdate(id=item["id"], order_index=order_index))
    return parsed


async def apply_reorder(
    session: AsyncSession,
    updates: list[OrderUpdate],
    set_order_index: Callable[[int, int], Awaitable[bool]],
    *,
    entity: str,
) -> int:
    updated = 0
    for update in updates:
        if await set_order_index(update.id, update.order_index):
            await session.commit()
            updated += 1
        else:
            log.info("reorder_row_missing", entity=entity, row_id=update.id)
    log.info("reorder_applied", entity=entity, requested=len(updates), updated=updated)
    return updated

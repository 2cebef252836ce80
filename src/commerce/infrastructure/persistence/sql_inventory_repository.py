"""SQLAlchemy implementation of the append-only inventory ledger."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from commerce.domain.model.inventory import InventoryLog, InventoryLogType
from commerce.domain.repository.inventory_repository import InventoryLogRepository
from commerce.domain.repository.queries import InventoryLogQuery, Page
from commerce.infrastructure.persistence.models import InventoryLogModel


def _to_domain(row: InventoryLogModel) -> InventoryLog:
    return InventoryLog(
        id=row.id,
        product_id=row.product_id,
        type=InventoryLogType(row.type),
        quantity=row.quantity,
        reason=row.reason,
        created_at=row.created_at,
    )


class SqlInventoryLogRepository(InventoryLogRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def append(self, entry: InventoryLog) -> InventoryLog:
        row = InventoryLogModel(
            product_id=entry.product_id,
            type=entry.type.value,
            quantity=entry.quantity,
            reason=entry.reason,
            created_at=entry.created_at,
        )
        self._session.add(row)
        self._session.flush()
        return _to_domain(row)

    def list_for_product(self, product_id: str) -> list[InventoryLog]:
        stmt = (
            select(InventoryLogModel)
            .where(InventoryLogModel.product_id == product_id)
            .order_by(InventoryLogModel.id)
        )
        return [_to_domain(row) for row in self._session.scalars(stmt)]

    def search(self, query: InventoryLogQuery) -> Page[InventoryLog]:
        conditions = []
        if query.product_id is not None:
            conditions.append(InventoryLogModel.product_id == query.product_id)
        if query.type is not None:
            conditions.append(InventoryLogModel.type == query.type.value)
        if query.start is not None:
            conditions.append(InventoryLogModel.created_at >= query.start)
        if query.end is not None:
            conditions.append(InventoryLogModel.created_at <= query.end)

        total = self._session.scalar(
            select(func.count()).select_from(InventoryLogModel).where(*conditions)
        )
        stmt = (
            select(InventoryLogModel)
            .where(*conditions)
            .order_by(InventoryLogModel.created_at.desc(), InventoryLogModel.id.desc())
            .offset(query.offset)
            .limit(query.limit)
        )
        return Page(
            items=[_to_domain(row) for row in self._session.scalars(stmt)],
            total=total or 0,
            page=query.page,
            limit=query.limit,
        )

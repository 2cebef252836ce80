"""SQLAlchemy implementation of ProductRepository."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from commerce.domain.model.product import Product
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.product_repository import ProductRepository
from commerce.infrastructure.persistence.models import ProductModel


def _to_domain(row: ProductModel) -> Product:
    return Product(
        id=row.id,
        name=row.name,
        sku=row.sku,
        price=Money(row.price),
        stock_quantity=row.stock_quantity,
        sale_price=Money(row.sale_price) if row.sale_price is not None else None,
        is_active=row.is_active,
        image_url=row.image_url,
    )


class SqlProductRepository(ProductRepository):

    def __init__(self, session: Session) -> None:
        self._session = session

    def get_by_id(self, product_id: str) -> Product | None:
        row = self._session.get(ProductModel, product_id, populate_existing=True)
        return _to_domain(row) if row else None

    def get_by_sku(self, sku: str) -> Product | None:
        row = self._session.scalars(
            select(ProductModel).where(ProductModel.sku == sku.strip().upper())
        ).first()
        return _to_domain(row) if row else None

    def get_many_for_update(self, product_ids: list[str]) -> dict[str, Product]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.id.in_(sorted(set(product_ids))))
            .order_by(ProductModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return {row.id: _to_domain(row) for row in self._session.scalars(stmt)}

    def list_all(self) -> list[Product]:
        rows = self._session.scalars(select(ProductModel).order_by(ProductModel.name))
        return [_to_domain(row) for row in rows]

    def list_low_stock(self, threshold: int) -> list[Product]:
        stmt = (
            select(ProductModel)
            .where(ProductModel.is_active.is_(True))
            .where(ProductModel.stock_quantity <= threshold)
            .order_by(ProductModel.stock_quantity, ProductModel.name)
        )
        return [_to_domain(row) for row in self._session.scalars(stmt)]

    def add(self, product: Product) -> None:
        self._session.add(
            ProductModel(
                id=product.id,
                name=product.name,
                sku=product.sku,
                price=product.price.amount,
                sale_price=product.sale_price.amount if product.sale_price else None,
                stock_quantity=0,
                is_active=product.is_active,
                image_url=product.image_url,
            )
        )
        self._session.flush()

    def save(self, product: Product) -> None:
        self._session.execute(
            update(ProductModel)
            .where(ProductModel.id == product.id)
            .values(
                name=product.name,
                price=product.price.amount,
                sale_price=product.sale_price.amount if product.sale_price else None,
                is_active=product.is_active,
                image_url=product.image_url,
            )
            .execution_options(synchronize_session=False)
        )

    def apply_stock_delta(self, product_id: str, delta: int) -> int | None:
        result = self._session.execute(
            update(ProductModel)
            .where(ProductModel.id == product_id)
            .where(ProductModel.stock_quantity + delta >= 0)
            .values(stock_quantity=ProductModel.stock_quantity + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return None
        return self._session.scalar(
            select(ProductModel.stock_quantity).where(ProductModel.id == product_id)
        )

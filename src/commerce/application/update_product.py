"""Application service: Update Product use case."""

from __future__ import annotations

from commerce.application.dto import ProductDTO
from commerce.application.mappers import product_to_dto
from commerce.domain.exceptions import NotFoundError
from commerce.domain.model.value_objects import Money
from commerce.domain.repository.unit_of_work import UnitOfWork


class UpdateProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        product_id: str,
        name: str | None = None,
        price: str | None = None,
        sale_price: str | None = None,
        clear_sale_price: bool = False,
        is_active: bool | None = None,
        image_url: str | None = None,
    ) -> ProductDTO:
        """Update catalog fields of a product.

        This does NOT affect any existing orders, which captured a price
        snapshot at creation time, and never touches stock.
        """
        with self._uow as uow:
            product = uow.products.get_by_id(product_id)
            if product is None:
                raise NotFoundError(f"Product with ID '{product_id}' not found")

            if name is not None:
                product.rename(name)
            if price is not None:
                product.update_price(Money.of(price))
            if clear_sale_price:
                product.set_sale_price(None)
            elif sale_price is not None:
                product.set_sale_price(Money.of(sale_price))
            if is_active is True:
                product.activate()
            elif is_active is False:
                product.deactivate()
            if image_url is not None:
                product.image_url = image_url

            uow.products.save(product)
            uow.commit()
        return product_to_dto(product)

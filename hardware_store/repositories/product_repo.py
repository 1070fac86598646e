# hardware_store/repositories/product_repo.py
import uuid

from sqlalchemy import func, update
from sqlmodel import Session, col, select

from hardware_store.models.product import Product


class ProductRepository:
    """
    Catalog lookups and stock movements needed by checkout and reporting.

    - Pure DB operations.
    - No FastAPI, no business logic.
    """

    def get_many(
        self,
        session: Session,
        product_ids: list[uuid.UUID],
    ) -> dict[uuid.UUID, Product]:
        if not product_ids:
            return {}
        stmt = select(Product).where(col(Product.id).in_(set(product_ids)))
        return {p.id: p for p in session.exec(stmt).all()}

    def count(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Product)
        value = session.exec(stmt).one()
        return int(value or 0)

    def get_stock(self, session: Session, product_id: uuid.UUID) -> int | None:
        stmt = select(Product.stock_quantity).where(Product.id == product_id)
        return session.exec(stmt).first()

    def reserve_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> bool:
        """
        Take `quantity` units off the shelf if that many are on hand.

        Returns False (and changes nothing) when stock is short.
        """
        stmt = (
            update(Product)
            .where(
                col(Product.id) == product_id,
                col(Product.stock_quantity) >= quantity,
            )
            .values(stock_quantity=col(Product.stock_quantity) - quantity)
        )
        result = session.exec(stmt)  # type: ignore[call-overload]
        return result.rowcount == 1

    def restore_stock(
        self,
        session: Session,
        product_id: uuid.UUID,
        quantity: int,
    ) -> None:
        stmt = (
            update(Product)
            .where(col(Product.id) == product_id)
            .values(stock_quantity=col(Product.stock_quantity) + quantity)
        )
        session.exec(stmt)  # type: ignore[call-overload]

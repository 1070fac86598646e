# hardware_store/models/product.py
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlmodel import SQLModel, Field


class Category(SQLModel, table=True):
    """
    Catalog category (Plumbing, Electrical, Paint, ...).
    """

    __tablename__ = "categories"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=100,
        unique=True,
        index=True,
    )


class Product(SQLModel, table=True):
    """
    Catalog entry. Orders read it for names, categories and the default
    unit price; catalog management lives elsewhere.
    """

    __tablename__ = "products"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    name: str = Field(
        max_length=150,
        index=True,
        description="Display name of the product",
    )

    category_id: uuid.UUID | None = Field(
        default=None,
        foreign_key="categories.id",
        index=True,
    )

    price: Decimal = Field(
        gt=0,
        max_digits=12,
        decimal_places=2,
        description="Current unit price (PHP)",
    )

    unit: str = Field(
        default="piece",
        max_length=20,
        description="Selling unit (piece, meter, box, ...)",
    )

    stock_quantity: int = Field(
        default=0,
        ge=0,
        description="Units on hand; reserved at checkout, returned on cancel / reject",
    )

    is_available: bool = Field(
        default=True,
        index=True,
        description="Whether this product can be ordered",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

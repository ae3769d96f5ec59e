"""Tests for catalog models."""

from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.models import Category, Product


class TestProductStockFlags:
    """Tests for derived stock flags."""

    @pytest.mark.parametrize(
        ("track", "quantity", "threshold", "in_stock", "low"),
        [
            (True, 10, 5, True, False),
            (True, 5, 5, True, True),
            (True, 0, 5, False, True),
            (False, 0, 5, True, False),
        ],
    )
    def test_flags(
        self, track: bool, quantity: int, threshold: int, in_stock: bool, low: bool
    ) -> None:
        product = Product(
            name="Widget",
            price=Decimal("1.00"),
            track_inventory=track,
            stock_quantity=quantity,
            low_stock_threshold=threshold,
        )
        assert product.is_in_stock is in_stock
        assert product.is_low_stock is low


class TestSlugListener:
    """Tests for slug derivation on flush."""

    @pytest.mark.asyncio
    async def test_category_slug_filled_on_insert(self, session: AsyncSession) -> None:
        """Rows saved without a slug get one derived from the name."""
        category = Category(name="Outdoor Recreation")
        session.add(category)
        await session.flush()
        assert category.slug == "outdoor-recreation"

    @pytest.mark.asyncio
    async def test_product_slug_kept_when_given(self, session: AsyncSession) -> None:
        product = Product(name="Tent", slug="tent-4p", price=Decimal("199.00"))
        session.add(product)
        await session.flush()
        assert product.slug == "tent-4p"
        assert product.active is True
        assert product.created_at is not None

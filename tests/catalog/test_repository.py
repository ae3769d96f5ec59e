"""Tests for catalog repositories."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from catalog_api.catalog.models import Brand, Category
from catalog_api.catalog.repository import BrandRepository, CategoryRepository
from catalog_api.domain.exceptions import DuplicateEntityError


class TestUniqueConstraints:
    """Constraint violations that slip past the service checks."""

    @pytest.mark.asyncio
    async def test_brand_name_collision(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """A second insert of the same name reports a duplicate."""
        async with session_factory() as session:
            repository = BrandRepository(session)
            await repository.save(Brand(name="Nike"))
            with pytest.raises(DuplicateEntityError) as exc_info:
                await repository.save(Brand(name="Nike"))

        assert exc_info.value.code == "DUPLICATE_ENTITY"
        assert exc_info.value.details == {
            "entity_type": "Brand",
            "field": "name",
            "value": "Nike",
        }

    @pytest.mark.asyncio
    async def test_category_slug_collision(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        async with session_factory() as session:
            repository = CategoryRepository(session)
            await repository.save(Category(name="Toys", slug="toys"))
            with pytest.raises(DuplicateEntityError) as exc_info:
                await repository.save(Category(name="Games", slug="toys"))

        assert exc_info.value.details["field"] == "slug"
        assert exc_info.value.details["value"] == "toys"

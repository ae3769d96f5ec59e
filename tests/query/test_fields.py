"""Tests for the field-selection analyzer."""

import pytest

from catalog_api.query.fields import (
    BrandField,
    CategoryField,
    CollectionField,
    EntityKind,
    ProductField,
    Relation,
    analyze_fields,
)


class TestAnalyzeFields:
    """Tests for analyze_fields."""

    def test_scalars_only(self) -> None:
        """Only scalar names give a basic selection."""
        selection = analyze_fields(EntityKind.PRODUCT, ["name", "price"])
        assert selection.scalars == (ProductField.ID, ProductField.NAME, ProductField.PRICE)
        assert selection.is_only_basic_fields()
        assert not selection.has_relationship_fields()

    def test_identity_always_included(self) -> None:
        """The id is selected even when the caller does not ask for it."""
        selection = analyze_fields(EntityKind.BRAND, [])
        assert selection.scalars == (BrandField.ID,)

    def test_meta_and_unknown_fields(self) -> None:
        """Metadata names are skipped, unknown names recorded as ignored."""
        selection = analyze_fields(
            EntityKind.CATEGORY, ["__typename", "name", "colour"]
        )
        assert selection.scalars == (CategoryField.ID, CategoryField.NAME)
        assert selection.ignored == ("colour",)

    def test_relation_with_subfields(self) -> None:
        selection = analyze_fields(
            EntityKind.PRODUCT, ["name", {"brand": ["name", "websiteUrl"]}]
        )
        assert selection.relations == frozenset({Relation.BRAND})
        assert selection.has_relationship_fields()
        nested = selection.nested[Relation.BRAND]
        assert nested.kind is EntityKind.BRAND
        assert nested.scalars == (BrandField.ID, BrandField.NAME, BrandField.WEBSITE_URL)

    def test_bare_relation_gets_id_and_name(self) -> None:
        selection = analyze_fields(EntityKind.PRODUCT, ["category"])
        assert selection.nested[Relation.CATEGORY].scalars == (
            CategoryField.ID,
            CategoryField.NAME,
        )

    def test_relation_not_valid_for_kind(self) -> None:
        """Relations are only accepted where they exist."""
        selection = analyze_fields(EntityKind.BRAND, ["name", "category"])
        assert not selection.relations
        assert selection.ignored == ("category",)

    def test_nested_shapes_are_scalar_only(self) -> None:
        selection = analyze_fields(
            EntityKind.CATEGORY, [{"children": ["name", {"products": ["name"]}]}]
        )
        nested = selection.nested[Relation.CHILDREN]
        assert not nested.relations
        assert nested.ignored == ("products",)

    def test_collections_are_not_basic(self) -> None:
        """Element collections need whole rows."""
        selection = analyze_fields(EntityKind.PRODUCT, ["name", "tags", "imageUrls"])
        assert selection.collections == frozenset(
            {CollectionField.TAGS, CollectionField.IMAGE_URLS}
        )
        assert not selection.is_only_basic_fields()
        assert not selection.has_relationship_fields()

    def test_computed_fields_need_their_columns(self) -> None:
        selection = analyze_fields(EntityKind.PRODUCT, ["isLowStock", "stockQuantity"])
        assert selection.columns == (
            "id",
            "track_inventory",
            "stock_quantity",
            "low_stock_threshold",
        )

    @pytest.mark.parametrize(
        ("field", "attribute"),
        [
            (ProductField.COMPARE_AT_PRICE, "compare_at_price"),
            (ProductField.CATEGORY_ID, "category_id"),
            (CategoryField.SORT_ORDER, "sort_order"),
            (BrandField.LOGO_URL, "logo_url"),
        ],
    )
    def test_attribute_names(self, field, attribute: str) -> None:
        assert field.attribute == attribute

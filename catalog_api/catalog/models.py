"""SQLAlchemy models for the product catalog.

Defines Brand, Category and Product tables plus the ordered element
collections (product images and tags) owned by a product.

Relationships are declared ``lazy="raise"``: related rows are only ever
loaded when the fetch planner attaches an explicit loader option.
Category children and brand/category products are not mapped as owned
collections; they are looked up by foreign key when requested.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    event,
)
from sqlalchemy.ext.associationproxy import association_proxy
from sqlalchemy.ext.orderinglist import ordering_list
from sqlalchemy.orm import Mapped, mapped_column, relationship

from catalog_api.domain.slug import generate_slug
from catalog_api.infrastructure.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Creation and last-update timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )


class Brand(TimestampMixin, Base):
    """Product brand.

    Attributes:
        id: Brand identifier.
        name: Display name, unique case-insensitively.
        description: Optional description (max 500 chars).
        logo_url: Logo image URL.
        website_url: Brand website URL.
        active: False once the brand is soft-deleted.
    """

    __tablename__ = "brands"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    website_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    def __repr__(self) -> str:
        """String representation."""
        return f"<Brand(id={self.id}, name={self.name})>"

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False


class Category(TimestampMixin, Base):
    """Node of the category forest.

    The parent is stored as an identity reference (``parent_id``). Root
    categories have no parent.

    Attributes:
        id: Category identifier.
        name: Display name, unique case-insensitively.
        slug: URL key, unique; derived from name when empty.
        description: Optional description.
        image_url: Category image URL.
        active: False once the category is soft-deleted.
        sort_order: Position among siblings (ascending).
        parent_id: Parent category id, None for roots.
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    image_url: Mapped[str | None] = mapped_column(String(255), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )

    parent: Mapped["Category | None"] = relationship(
        "Category",
        remote_side="Category.id",
        lazy="raise",
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Category(id={self.id}, slug={self.slug}, parent_id={self.parent_id})>"

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    def ensure_slug(self) -> None:
        """Derive the slug from the name when it is empty."""
        if not self.slug:
            self.slug = generate_slug(self.name)


class ProductImage(Base):
    """Image URL owned by a product, kept in insertion order."""

    __tablename__ = "product_images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    url: Mapped[str] = mapped_column(String(1000), nullable=False)


class ProductTag(Base):
    """Free-form tag owned by a product, kept in insertion order."""

    __tablename__ = "product_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    product_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("products.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tag: Mapped[str] = mapped_column(String(100), nullable=False)


class Product(TimestampMixin, Base):
    """Product entity in the catalog.

    Brand and category are weak references by id; the product does not
    own them.

    Attributes:
        id: Product identifier.
        name: Product name (2-200 chars).
        description: Product description (max 2000 chars).
        sku: Stock Keeping Unit, unique when present.
        slug: URL key, unique; derived from name when empty.
        price: Unit price, positive, 2 decimal places.
        compare_at_price: Optional reference price.
        stock_quantity: Units on hand, never negative.
        low_stock_threshold: Quantity at or below which stock is low.
        weight: Shipping weight.
        weight_unit: Unit for ``weight``.
        active: False once the product is soft-deleted.
        featured: Whether the product is featured.
        track_inventory: Whether stock is tracked at all.
        brand_id: Optional brand reference.
        category_id: Optional category reference.
    """

    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sku: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)
    slug: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, index=True)
    compare_at_price: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    stock_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    low_stock_threshold: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    weight: Mapped[Decimal | None] = mapped_column(Numeric(11, 3), nullable=True)
    weight_unit: Mapped[str] = mapped_column(String(50), nullable=False, default="kg")
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    featured: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    track_inventory: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    brand_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("brands.id"),
        nullable=True,
        index=True,
    )
    category_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("categories.id"),
        nullable=True,
        index=True,
    )

    # Relationships
    brand: Mapped["Brand | None"] = relationship("Brand", lazy="raise")
    category: Mapped["Category | None"] = relationship("Category", lazy="raise")
    images: Mapped[list["ProductImage"]] = relationship(
        "ProductImage",
        order_by="ProductImage.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="raise",
    )
    tag_rows: Mapped[list["ProductTag"]] = relationship(
        "ProductTag",
        order_by="ProductTag.position",
        collection_class=ordering_list("position"),
        cascade="all, delete-orphan",
        lazy="raise",
    )

    image_urls = association_proxy(
        "images", "url", creator=lambda url: ProductImage(url=url)
    )
    tags = association_proxy(
        "tag_rows", "tag", creator=lambda tag: ProductTag(tag=tag)
    )

    def __repr__(self) -> str:
        """String representation."""
        return f"<Product(id={self.id}, sku={self.sku}, name={self.name[:30]})>"

    @property
    def is_in_stock(self) -> bool:
        return not self.track_inventory or self.stock_quantity > 0

    @property
    def is_low_stock(self) -> bool:
        return self.track_inventory and self.stock_quantity <= self.low_stock_threshold

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    def set_featured(self, featured: bool) -> None:
        self.featured = featured

    def ensure_slug(self) -> None:
        """Derive the slug from the name when it is empty."""
        if not self.slug:
            self.slug = generate_slug(self.name)


@event.listens_for(Category, "before_insert")
@event.listens_for(Category, "before_update")
@event.listens_for(Product, "before_insert")
@event.listens_for(Product, "before_update")
def _ensure_slug(mapper, connection, target) -> None:
    target.ensure_slug()

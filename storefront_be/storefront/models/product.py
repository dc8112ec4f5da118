from sqlalchemy import Column, String, Integer, Numeric, Boolean, DateTime, Text, ForeignKey, Table, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship

from storefront.models.user import Base, new_id
from storefront.utils.dates import utcnow


product_tags = Table(
    "product_tags",
    Base.metadata,
    Column("product_id", String(32), ForeignKey("products.id", ondelete="CASCADE"), primary_key=True),
    Column("tag_id", String(32), ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True),
)


class Product(Base):
    __tablename__ = "products"

    id = Column(String(32), primary_key=True, default=new_id)
    title = Column(String(255), nullable=False)
    slug = Column(String(280), unique=True, index=True, nullable=False)
    description = Column(Text)
    title_price = Column(Numeric(10, 2), nullable=False)
    discounted_price = Column(Numeric(10, 2), nullable=True)
    category_id = Column(String(32), ForeignKey("categories.id"), nullable=False, index=True)
    main_image_url = Column(String(500))
    is_featured = Column(Boolean, default=False, nullable=False)
    is_archived = Column(Boolean, default=False, nullable=False)
    colors = Column(JSON().with_variant(JSONB(), "postgresql"), default=list)  # ordered list of color names
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    category = relationship("Category", back_populates="products")
    images = relationship(
        "ProductImage",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductImage.order",
    )
    variants = relationship("Variant", back_populates="product", cascade="all, delete-orphan")
    tags = relationship("Tag", secondary=product_tags, back_populates="products")
    reviews = relationship("Review", back_populates="product", cascade="all, delete-orphan")


class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    url = Column(String(500), nullable=False)
    key = Column(String(255), nullable=False)  # storage identifier
    alt_text = Column(String(255))
    order = Column(Integer, default=0, nullable=False)

    product = relationship("Product", back_populates="images")


class Variant(Base):
    __tablename__ = "variants"

    id = Column(String(32), primary_key=True, default=new_id)
    product_id = Column(String(32), ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(String(100), nullable=False)  # e.g. Storage, Color, Size
    value = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, default=0, nullable=False)

    product = relationship("Product", back_populates="variants")


class Tag(Base):
    __tablename__ = "tags"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), unique=True, nullable=False)

    products = relationship("Product", secondary=product_tags, back_populates="tags")

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship

from storefront.models.user import Base, new_id
from storefront.utils.dates import utcnow


class Category(Base):
    __tablename__ = "categories"

    id = Column(String(32), primary_key=True, default=new_id)
    # Case-insensitive uniqueness is enforced by the category actions, not the store
    name = Column(String(100), unique=True, nullable=False)
    slug = Column(String(120), unique=True, index=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    products = relationship("Product", back_populates="category")

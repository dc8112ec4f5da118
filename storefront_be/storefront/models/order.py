from sqlalchemy import Column, String, Integer, Numeric, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from storefront.models.user import Base, new_id
from storefront.utils.dates import utcnow

# Value reported by the payment gateway for a settled transaction
PAYMENT_SUCCESS = "success"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), default="PENDING", nullable=False)  # PENDING, PROCESSING, COMPLETED, FAILED, CANCELLED
    payment_status = Column(String(20), default="pending", nullable=False)
    tx_ref = Column(String(100), unique=True, index=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)

    user = relationship("User", back_populates="orders")
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(32), primary_key=True, default=new_id)
    order_id = Column(String(32), ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(String(32), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)  # unit price at time of order

    order = relationship("Order", back_populates="items")
    product = relationship("Product")

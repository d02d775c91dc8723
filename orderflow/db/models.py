"""
SQLAlchemy ORM Models for Orderflow

Products are owned by the inventory side and only read here, apart from the
stock decrement applied when an order is paid. Orders are owned by this
service. All order amounts are stored as integer cents.
"""
from sqlalchemy import Column, String, Integer, Numeric, DateTime, Text, CheckConstraint, func
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class ProductModel(Base):
    """
    ORM model for products table.

    stock is NULL when the product does not track inventory.
    """
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer)
    image = Column(String)

    __table_args__ = (
        CheckConstraint("price >= 0", name="price_non_negative"),
    )


class OrderModel(Base):
    """
    ORM model for orders table.

    One row per checkout attempt. Line items are a JSON snapshot of name and
    price at order time, decoupled from the live product rows.
    """
    __tablename__ = "orders"

    id = Column(String, primary_key=True)
    user_uid = Column(String, nullable=False, index=True)
    user_email = Column(String, nullable=False)
    user_name = Column(String, nullable=False)
    date = Column(String, nullable=False)
    items = Column(Text, nullable=False)  # JSON blob
    subtotal_cents = Column(Integer, nullable=False)
    tps_cents = Column(Integer, nullable=False, default=0)
    tvq_cents = Column(Integer, nullable=False, default=0)
    taxes_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="pending", index=True)
    stripe_session_id = Column(String, index=True)
    stripe_payment_intent_id = Column(String)
    created_at = Column(DateTime, nullable=False, server_default=func.now(), index=True)
    paid_at = Column(DateTime)

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'paid')", name="order_status_check"),
    )

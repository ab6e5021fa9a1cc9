"""
SQLAlchemy ORM Models.

Maps domain entities to database tables.
"""
from datetime import datetime
from sqlalchemy import (
    Column, String, DateTime, Integer, Numeric,
    Text, Boolean, Index, ForeignKey, UniqueConstraint, CheckConstraint, JSON
)
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


# =============================================================================
# USER MODEL (account collaborator, subset)
# =============================================================================

class UserModel(Base):
    """
    User preferences read by the order lifecycle.
    """

    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(100), nullable=False, unique=True)
    name = Column(String(255), nullable=True)

    cash_on_delivery_available = Column(Boolean, default=False, nullable=False)
    inventory_alert_threshold = Column(Integer, nullable=True)
    push_tokens = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, username={self.username})>"


# =============================================================================
# PRODUCT MODELS (catalog collaborator, stock fields owned here)
# =============================================================================

class ProductModel(Base):
    """
    Product with flat or per-size stock.

    quantity_available is NULL for unmanaged inventory.
    """

    __tablename__ = "products"

    id = Column(String(64), primary_key=True)
    seller_id = Column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    price = Column(Numeric(12, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="INR")
    image = Column(String(1024), nullable=False, default="")

    quantity_available = Column(Integer, nullable=True)
    is_out_of_stock = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    seller = relationship("UserModel")
    size_variants = relationship(
        "ProductSizeVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductSizeVariantModel.position",
    )

    __table_args__ = (
        CheckConstraint("quantity_available IS NULL OR quantity_available >= 0",
                        name="ck_products_quantity_non_negative"),
    )

    def __repr__(self):
        return f"<Product(id={self.id}, title={self.title}, qty={self.quantity_available})>"


class ProductSizeVariantModel(Base):
    """Per-size stock row."""

    __tablename__ = "product_size_variants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(String(64), ForeignKey("products.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    size = Column(String(32), nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    price = Column(Numeric(12, 2), nullable=False)

    product = relationship("ProductModel", back_populates="size_variants")

    __table_args__ = (
        UniqueConstraint("product_id", "size", name="uq_product_size_variants_product_size"),
        CheckConstraint("quantity >= 0", name="ck_product_size_variants_quantity_non_negative"),
    )

    def __repr__(self):
        return f"<ProductSizeVariant(product_id={self.product_id}, size={self.size}, qty={self.quantity})>"


# =============================================================================
# ORDER MODELS
# =============================================================================

class OrderModel(Base):
    """
    Order database model.

    Never hard-deleted. `version` guards against concurrent transitions.
    """

    __tablename__ = "orders"

    # Identity
    id = Column(String(32), primary_key=True)
    order_number = Column(String(32), unique=True, nullable=False, index=True)

    # Parties
    buyer_id = Column(String(64), nullable=False, index=True)
    seller_id = Column(String(64), nullable=False, index=True)

    # Pricing
    currency = Column(String(3), nullable=False, default="INR")
    subtotal = Column(Numeric(12, 2), nullable=False)
    shipping_charge = Column(Numeric(12, 2), nullable=False, default=0)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)

    # Payment
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default="pending")
    transaction_id = Column(String(255), nullable=True)
    paid_at = Column(DateTime, nullable=True)

    # Shipping
    shipping_address = Column(JSON, nullable=False)
    tracking_number = Column(String(255), nullable=True)
    shipping_carrier = Column(String(255), nullable=True)
    tracking_link = Column(String(1024), nullable=True)
    estimated_delivery = Column(DateTime, nullable=True)
    delivered_at = Column(DateTime, nullable=True)
    delivery_confirmed_at = Column(DateTime, nullable=True)

    # Status
    status = Column(String(30), nullable=False, default="pending", index=True)

    # Communication
    conversation_id = Column(String(32), nullable=True)
    buyer_notes = Column(Text, nullable=True)
    seller_notes = Column(Text, nullable=True)

    # Cancellation / refund
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(64), nullable=True)
    refund_amount = Column(Numeric(12, 2), nullable=True)
    refund_reason = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    version = Column(Integer, nullable=False)

    # Relationships
    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.position",
    )
    status_history = relationship(
        "OrderStatusHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusHistoryModel.position",
    )

    __mapper_args__ = {"version_id_col": version}

    # Indexes
    __table_args__ = (
        Index("ix_orders_buyer_created", "buyer_id", "created_at"),
        Index("ix_orders_seller_created", "seller_id", "created_at"),
        Index("ix_orders_status_updated", "status", "updated_at"),
        CheckConstraint("buyer_id <> seller_id", name="ck_orders_buyer_not_seller"),
    )

    def __repr__(self):
        return f"<Order(order_number={self.order_number}, status={self.status})>"


class OrderItemModel(Base):
    """Line item snapshot."""

    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)

    product_id = Column(String(64), nullable=False)
    title = Column(String(255), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    image = Column(String(1024), nullable=False, default="")
    selected_size = Column(String(32), nullable=True)

    order = relationship("OrderModel", back_populates="items")

    def __repr__(self):
        return f"<OrderItem(product_id={self.product_id}, quantity={self.quantity})>"


class OrderStatusHistoryModel(Base):
    """Append-only status audit trail."""

    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_id = Column(String(32), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False)

    status = Column(String(30), nullable=False)
    timestamp = Column(DateTime, nullable=False)
    note = Column(Text, nullable=True)
    actor_id = Column(String(64), nullable=True)

    order = relationship("OrderModel", back_populates="status_history")

    __table_args__ = (
        UniqueConstraint("order_id", "position", name="uq_order_status_history_position"),
    )


class OrderCounterModel(Base):
    """
    One row per calendar day, incremented atomically per order.
    """

    __tablename__ = "order_counters"

    date_key = Column(String(8), primary_key=True)
    seq = Column(Integer, nullable=False, default=0)


# =============================================================================
# MESSAGING MODELS (messaging collaborator, written by the fan-out)
# =============================================================================

class ConversationModel(Base):
    """
    Two-party conversation.

    participant_a < participant_b, so one row exists per unordered pair.
    """

    __tablename__ = "conversations"

    id = Column(String(32), primary_key=True)
    participant_a = Column(String(64), nullable=False)
    participant_b = Column(String(64), nullable=False)

    last_message_preview = Column(Text, nullable=True)
    last_message_sender_id = Column(String(64), nullable=True)
    last_message_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False)

    messages = relationship("MessageModel", back_populates="conversation", order_by="MessageModel.created_at")

    __table_args__ = (
        UniqueConstraint("participant_a", "participant_b", name="uq_conversations_participants"),
    )


class MessageModel(Base):
    """Conversation message. Only `delivery_confirmation` is ever updated."""

    __tablename__ = "messages"

    id = Column(String(32), primary_key=True)
    conversation_id = Column(String(32), ForeignKey("conversations.id"), nullable=False, index=True)
    sender_id = Column(String(64), nullable=False)
    content = Column(Text, nullable=False)
    message_type = Column(String(30), nullable=False, default="text")

    order_id = Column(String(32), nullable=True)
    message_metadata = Column("metadata", JSON, nullable=True)
    delivery_confirmation = Column(JSON, nullable=True)

    created_at = Column(DateTime, nullable=False)

    conversation = relationship("ConversationModel", back_populates="messages")

    __table_args__ = (
        Index("ix_messages_order_type_created", "order_id", "message_type", "created_at"),
    )


class NotificationModel(Base):
    """In-app notification record."""

    __tablename__ = "notifications"

    id = Column(String(32), primary_key=True)
    recipient_id = Column(String(64), nullable=False, index=True)
    sender_id = Column(String(64), nullable=True)
    type = Column(String(30), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    order_id = Column(String(32), nullable=True)
    product_id = Column(String(64), nullable=True)
    payload = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime, nullable=False)

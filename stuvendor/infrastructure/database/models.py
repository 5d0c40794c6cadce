"""SQLAlchemy ORM models for accounts, vendors, orders and the vendor ledger"""

import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    DateTime,
    Integer,
    ForeignKey,
    Text,
    Enum,
    Uuid,
    UniqueConstraint,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Account(Base):
    """Identity record created at signup or OAuth login"""

    __tablename__ = "account"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=True)  # Absent for OAuth-only accounts
    role = Column(
        Enum("customer", "vendor", "admin", name="account_role"),
        nullable=False,
        default="customer",
    )
    profile_completed = Column(Boolean, nullable=False, default=False)
    verified = Column(Boolean, nullable=False, default=False)
    google_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    vendor_profile = relationship("VendorProfile", back_populates="account", uselist=False)


class VendorProfile(Base):
    """Storefront owned by a vendor account; id is distinct from the account id"""

    __tablename__ = "vendor_profile"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey("account.id"), nullable=False, unique=True)
    business_name = Column(Text, nullable=False)
    bank_code = Column(String(16), nullable=True)
    bank_account_number = Column(String(32), nullable=True)
    bank_account_name = Column(Text, nullable=True)
    address = Column(Text, nullable=True)
    phone_number = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    account = relationship("Account", back_populates="vendor_profile")
    ledger_entries = relationship("LedgerEntry", back_populates="vendor")


class Order(Base):
    """Purchase spanning one or more vendors; amounts in minor units"""

    __tablename__ = "customer_order"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    account_id = Column(Uuid, ForeignKey("account.id"), nullable=False, index=True)
    total_amount = Column(BigInteger, nullable=False)
    delivery_fee = Column(BigInteger, nullable=False, default=0)
    transaction_reference = Column(String(128), nullable=False, unique=True)
    tx_ref = Column(String(128), nullable=True)
    status = Column(
        Enum("pending", "completed", "cancelled", name="order_status"),
        nullable=False,
        default="pending",
    )
    shipping_address = Column(String(200), nullable=False)
    customer_name = Column(Text, nullable=False)
    customer_email = Column(String(255), nullable=False)
    customer_phone = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    lines = relationship("OrderLine", back_populates="order", cascade="all, delete-orphan")


class OrderLine(Base):
    """Single product line within an order"""

    __tablename__ = "order_line"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id = Column(Uuid, ForeignKey("customer_order.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Uuid, nullable=False)
    vendor_id = Column(Uuid, ForeignKey("vendor_profile.id"), nullable=False, index=True)
    unit_price = Column(BigInteger, nullable=False)
    quantity = Column(Integer, nullable=False)

    order = relationship("Order", back_populates="lines")


class LedgerEntry(Base):
    """Append-only vendor payout event; only status (and provider id) ever change"""

    __tablename__ = "vendor_ledger_entry"
    __table_args__ = (UniqueConstraint("order_id", "vendor_id", name="uq_ledger_order_vendor"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vendor_id = Column(Uuid, ForeignKey("vendor_profile.id"), nullable=False, index=True)
    order_id = Column(Uuid, ForeignKey("customer_order.id"), nullable=True, index=True)
    amount = Column(BigInteger, nullable=False)  # Always positive; type carries the sign
    status = Column(
        Enum("pending", "completed", "failed", name="ledger_status"),
        nullable=False,
        default="pending",
    )
    type = Column(Enum("order_split", "withdrawal", name="ledger_type"), nullable=False)
    transfer_reference = Column(String(64), nullable=True, unique=True)
    provider_transaction_id = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    vendor = relationship("VendorProfile", back_populates="ledger_entries")

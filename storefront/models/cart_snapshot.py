from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, func

from storefront.core.database import Base


class CartSnapshot(Base):
    __tablename__ = "cart_snapshots"
    __table_args__ = (UniqueConstraint("tenant_slug", "session_id", name="uq_cart_snapshots_tenant_session"),)

    id = Column(Integer, primary_key=True)
    tenant_slug = Column(String(120), nullable=False, index=True)
    session_id = Column(String(120), nullable=False)
    storage_key = Column(String(64), nullable=False, default="cartItems")
    payload = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

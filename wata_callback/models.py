"""
SQLAlchemy models for the Wata callback service.

Only the entities needed to validate and settle a callback:
- Payment providers and profiles
- Purchase requests
- Provider logs (one row per delivery)
- Processed callbacks (duplicate-delivery ledger)
"""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey,
    JSON, Numeric, func
)
from sqlalchemy.orm import relationship
from .db import Base


# =====================================================
# PAYMENT PROVIDER MODEL
# =====================================================

class PaymentProvider(Base):
    __tablename__ = "payment_providers"

    provider_id = Column(String(25), primary_key=True)
    provider_class = Column(String(100), nullable=False)
    title = Column(String(100), nullable=True)

    profiles = relationship("PaymentProfile", back_populates="provider")

    def __repr__(self):
        return f"<PaymentProvider(provider_id={self.provider_id})>"


# =====================================================
# PAYMENT PROFILE MODEL
# =====================================================

class PaymentProfile(Base):
    __tablename__ = "payment_profiles"

    id = Column(Integer, primary_key=True)
    provider_id = Column(String(25), ForeignKey("payment_providers.provider_id", ondelete="CASCADE"),
                         nullable=False, index=True)
    title = Column(String(100), nullable=False)

    # {"token": "..."} for Wata
    options = Column(JSON, nullable=False, default=dict)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    provider = relationship("PaymentProvider", back_populates="profiles")
    purchase_requests = relationship("PurchaseRequest", back_populates="payment_profile")

    def __repr__(self):
        return f"<PaymentProfile(id={self.id}, provider_id={self.provider_id})>"


# =====================================================
# PURCHASE REQUEST MODEL
# =====================================================

class PurchaseRequest(Base):
    __tablename__ = "purchase_requests"

    id = Column(Integer, primary_key=True)
    request_key = Column(String(32), unique=True, nullable=False, index=True)

    payment_profile_id = Column(Integer, ForeignKey("payment_profiles.id", ondelete="SET NULL"),
                                nullable=True, index=True)

    cost_amount = Column(Numeric(10, 2), nullable=False)
    cost_currency = Column(String(3), nullable=False)

    # Opaque gateway link id returned on payment initiation
    provider_metadata = Column(String(255), nullable=True)

    payment_state = Column(String(16), nullable=False, default="pending")  # pending/received/reinstated
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(),
                        onupdate=func.now(), nullable=False)

    payment_profile = relationship("PaymentProfile", back_populates="purchase_requests")

    def __repr__(self):
        return f"<PurchaseRequest(request_key={self.request_key}, state={self.payment_state})>"


# =====================================================
# PAYMENT PROVIDER LOG MODEL
# =====================================================

class PaymentProviderLog(Base):
    __tablename__ = "payment_provider_logs"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(String(25), nullable=False, index=True)

    transaction_id = Column(String(100), nullable=True, index=True)
    request_key = Column(String(32), nullable=True, index=True)

    log_type = Column(String(16), nullable=False, index=True)  # payment, cancel, info, error
    log_message = Column(String(255), nullable=False, default="")
    log_details = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<PaymentProviderLog(id={self.id}, provider={self.provider_id}, type={self.log_type})>"


# =====================================================
# PROCESSED CALLBACK MODEL
# =====================================================

class ProcessedCallback(Base):
    __tablename__ = "processed_callbacks"

    id = Column(Integer, primary_key=True)
    # "{provider}:{status}:{transaction_id}"
    event_key = Column(String(160), nullable=False, unique=True, index=True)

    provider_id = Column(String(25), nullable=False)
    transaction_id = Column(String(100), nullable=False)
    status = Column(String(32), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

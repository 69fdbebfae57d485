import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate a string primary key for rows exposed in URLs"""
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class UserData(Base):
    """One document per account: the business profile plus every collection."""

    __tablename__ = "user_data"

    email = Column(String(255), primary_key=True, index=True)
    password_hash = Column(String(255), nullable=True)  # null for Google-only accounts
    business_profile = Column(JSON, nullable=True)
    clients = Column(JSON, default=list, nullable=False)
    appointments = Column(JSON, default=list, nullable=False)
    expenses = Column(JSON, default=list, nullable=False)
    ratings = Column(JSON, default=list, nullable=False)
    bonus_entries = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class Device(Base):
    __tablename__ = "devices"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_email = Column(String(255), index=True, nullable=False)
    device_fingerprint = Column(String(255), nullable=False)
    device_type = Column(String(20), nullable=False, default="desktop")  # desktop, mobile, tablet
    device_name = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_seen_at = Column(DateTime(timezone=True), server_default=func.now())

    savepoints = relationship("SavePoint", back_populates="device")


class SavePoint(Base):
    __tablename__ = "savepoints"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_email = Column(String(255), index=True, nullable=False)
    device_id = Column(String(36), ForeignKey("devices.id", ondelete="SET NULL"), nullable=True)
    label = Column(String(255), nullable=False)
    snapshot_json = Column(JSON, nullable=False)
    snapshot_version = Column(Integer, nullable=False, default=1)
    device_type = Column(String(20), nullable=True)
    device_name = Column(String(100), nullable=True)
    # Set in Python so listings stay ordered within the same second
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)

    device = relationship("Device", back_populates="savepoints")


class ApiKey(Base):
    """Keys for the /ai endpoints. Only the SHA-256 hash of the key is stored."""

    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True, default=generate_id)
    user_email = Column(String(255), index=True, nullable=False)
    label = Column(String(100), nullable=True)
    key_prefix = Column(String(16), nullable=False)  # shown in listings, e.g. "halo_3fA9"
    key_hash = Column(String(64), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    last_used_at = Column(DateTime(timezone=True), nullable=True)

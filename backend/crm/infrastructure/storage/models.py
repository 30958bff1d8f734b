"""
SQLAlchemy Database Models
Maps to the CRM tables touched by call logging and reconciliation

All timestamps are stored as naive UTC.
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import declarative_base, relationship
from datetime import datetime
import uuid

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


class User(Base):
    """User model - maps to users table"""
    __tablename__ = "users"
    
    id = Column(String(36), primary_key=True, default=_uuid)
    email = Column(String(255), nullable=False, unique=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    role = Column(String(20), nullable=False, default="member")
    assigned_call_number = Column(String(32))
    openphone_api_key = Column(String(255))
    openphone_phone_number_id = Column(String(64))
    created_at = Column(DateTime, default=datetime.utcnow)
    
    contacts = relationship("Contact", back_populates="owner")


class Contact(Base):
    """Contact model - maps to contacts table"""
    __tablename__ = "contacts"
    
    id = Column(String(36), primary_key=True, default=_uuid)
    name = Column(String(255), nullable=False)
    phone = Column(String(32), nullable=False, index=True)
    email = Column(String(255))
    company = Column(String(255))
    notes = Column(Text)
    status = Column(String(50), default="Open")
    assigned_to = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    # Denormalized from the most recent logged call
    last_call_outcome = Column(String(100))
    last_call_date = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    owner = relationship("User", back_populates="contacts")
    calls = relationship("Call", back_populates="contact")


class Call(Base):
    """Call model - maps to calls table (also holds SMS log rows)"""
    __tablename__ = "calls"
    
    id = Column(String(36), primary_key=True, default=_uuid)
    contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="SET NULL"))
    date = Column(DateTime, nullable=False, default=datetime.utcnow)
    duration = Column(Integer, nullable=False, default=0)  # minutes
    notes = Column(Text)
    outcome = Column(String(100), nullable=False)
    is_deal = Column(Boolean, nullable=False, default=False)
    provider_call_id = Column(String(64), index=True)
    recording_url = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    
    contact = relationship("Contact", back_populates="calls")


class PendingCall(Base):
    """PendingCall model - an outbound call dispatched and awaiting its provider event"""
    __tablename__ = "pending_calls"
    
    id = Column(String(36), primary_key=True, default=_uuid)
    contact_id = Column(String(36), ForeignKey("contacts.id"), nullable=False)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False)
    phone_number = Column(String(32), nullable=False)
    initiated_at = Column(DateTime, nullable=False)
    status = Column(String(20), nullable=False, default="initiated")
    provider_call_id = Column(String(64))
    completed_at = Column(DateTime)
    notification_shown = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    contact = relationship("Contact")
    
    __table_args__ = (
        Index("ix_pending_calls_match", "status", "phone_number", "initiated_at"),
    )

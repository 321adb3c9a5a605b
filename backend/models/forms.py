from datetime import datetime
from uuid import uuid4
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, JSON, String, Uuid
from sqlalchemy.orm import relationship

from core.database import Base


class FormDefinition(Base):
    """A named form: its wire-format schema document"""
    __tablename__ = "form_definitions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False, unique=True)
    document = Column("schema", JSON, nullable=False)  # {"schema": ..., "definitions": ...}
    created_at = Column(DateTime, default=datetime.utcnow)

    submissions = relationship("FormSubmission", back_populates="form", cascade="all, delete-orphan")


class FormSubmission(Base):
    """One submission and its authoritative outcome"""
    __tablename__ = "form_submissions"

    id = Column(Uuid, primary_key=True, default=uuid4)
    form_id = Column(Uuid, ForeignKey("form_definitions.id", ondelete="CASCADE"), nullable=False)
    status = Column(String(20), nullable=False)  # accepted | rejected
    ui_accepted = Column(Boolean, nullable=False)
    data = Column(JSON)  # cleaned data, accepted submissions only
    errors = Column(JSON, default=list)  # [{"path", "constraint", "message"}]
    created_at = Column(DateTime, default=datetime.utcnow)

    form = relationship("FormDefinition", back_populates="submissions")

# models/society.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from sqlalchemy.orm import relationship
from .base import Base


class Society(Base):
     """
     Society model - one residential society, the unit of tenant isolation.
     Every flat, bill and billing configuration is scoped by society_id.
     """
     __tablename__ = "societies"

     id = Column(Integer, primary_key=True, autoincrement=True)
     name = Column(String(255), nullable=False)
     is_active = Column(Boolean, default=True, nullable=False)
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     # Relationships
     flats = relationship("Flat", back_populates="society")
     billing_config = relationship("BillingConfig", back_populates="society", uselist=False)

     def __repr__(self):
          return f"<Society(id={self.id}, name='{self.name}')>"

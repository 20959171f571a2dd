# models/user.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from .base import Base


class User(Base):
     """
     User model - residents and staff of a society.
     Flats point at users as owner or occupant; bills at the responsible payer.
     """
     __tablename__ = "users"

     id = Column(Integer, primary_key=True, autoincrement=True)
     society_id = Column(Integer, ForeignKey("societies.id", ondelete="CASCADE"), nullable=False, index=True)
     email = Column(String(255), unique=True, nullable=False, index=True)
     first_name = Column(String(100), nullable=False)
     last_name = Column(String(100), nullable=False)
     role = Column(String(50), nullable=False, default="resident")  # admin, manager, resident
     created_at = Column(DateTime, server_default=func.now(), nullable=False)

     @property
     def full_name(self) -> str:
          return f"{self.first_name} {self.last_name}"

     def __repr__(self):
          return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"

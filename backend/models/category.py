# backend/models/category.py
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship
from database import Base

# Leave type reference data; the id is chosen by the manager who creates it
class Category(Base):
    __tablename__ = "leave_categories"

    id = Column(Integer, primary_key=True, autoincrement=False)
    description = Column(String(100), unique=True, nullable=False)

    leave_requests = relationship("LeaveRequest", back_populates="category", passive_deletes="all")

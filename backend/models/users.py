# backend/models/users.py
import enum
from sqlalchemy import Column, Integer, String, CheckConstraint
from sqlalchemy.orm import relationship
from database import Base

# Roles a user can be registered with; never changed after registration
class UserRole(str, enum.Enum):
    EMPLOYEE = "Dipendente"
    MANAGER = "Responsabile"

# Represents a user account with authentication details and system role
class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role IN ('Dipendente', 'Responsabile')",
            name="ck_users_role",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)

    # Requests submitted by this user
    leave_requests = relationship(
        "LeaveRequest",
        back_populates="requester",
        foreign_keys="LeaveRequest.user_id",
    )

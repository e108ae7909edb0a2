import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

ROLE_GUEST = "guest"
ROLE_HOTEL_MANAGER = "hotel_manager"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super_admin"

ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPER_ADMIN)
MANAGEMENT_ROLES = (ROLE_HOTEL_MANAGER, ROLE_ADMIN, ROLE_SUPER_ADMIN)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    role: Mapped[str] = mapped_column(String(20), default=ROLE_GUEST)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

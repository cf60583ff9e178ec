from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dashboard.database import Base

USERNAME_MIN_LENGTH = 3


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    can_edit_categories = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    assigned_materials = relationship(
        "UserMaterial", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def assigned_material_ids(self) -> list[int]:
        return sorted(um.material_id for um in self.assigned_materials)

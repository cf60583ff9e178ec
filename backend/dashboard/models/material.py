from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dashboard.database import Base

MATERIAL_TITLE_MAX_LENGTH = 200
MATERIAL_AUTHOR_MAX_LENGTH = 100


class Material(Base):
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(MATERIAL_TITLE_MAX_LENGTH), nullable=False, index=True)
    author = Column(String(MATERIAL_AUTHOR_MAX_LENGTH), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    segments = relationship(
        "Segment", back_populates="material", order_by="Segment.order_index"
    )
    assigned_users = relationship(
        "UserMaterial", back_populates="material", cascade="all, delete-orphan"
    )

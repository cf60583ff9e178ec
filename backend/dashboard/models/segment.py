from sqlalchemy import Column, Integer, Text, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from dashboard.database import Base


class Segment(Base):
    __tablename__ = "segments"

    id = Column(Integer, primary_key=True, index=True)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    page_number = Column(Integer, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)  # NULL = draft
    order_index = Column(Integer, nullable=False, default=0)  # display order within the material
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index("ix_segments_material_order", "material_id", "order_index"),
        Index("ix_segments_material_page", "material_id", "page_number"),
        Index("ix_segments_category_created", "category_id", "created_at"),
    )

    # Relationships
    material = relationship("Material", back_populates="segments")
    category = relationship("Category", back_populates="segments")

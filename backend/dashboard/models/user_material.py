from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from dashboard.database import Base


class UserMaterial(Base):
    __tablename__ = "user_materials"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    material_id = Column(Integer, ForeignKey("materials.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "material_id", name="uq_user_material"),
    )

    # Relationships
    user = relationship("User", back_populates="assigned_materials")
    material = relationship("Material", back_populates="assigned_users")

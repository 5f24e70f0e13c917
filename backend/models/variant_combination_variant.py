from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship
from database import Base

class VariantCombinationVariant(Base):
    __tablename__ = "variant_combination_variants"

    combination_id = Column(Integer, ForeignKey("variant_combinations.id", ondelete="CASCADE"), primary_key=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id"), primary_key=True, index=True)

    combination = relationship("VariantCombination", back_populates="variant_links")
    variant = relationship("ProductVariant")

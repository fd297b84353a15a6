"""
Perfume catalogue model.
"""
from sqlalchemy import Column, Integer, String, Text

from weatherscent.core.database import Base, JSONType


class PerfumeRecord(Base):
    """A perfume, either seeded or created from an LLM suggestion."""

    __tablename__ = "perfumes"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    brand = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)  # 프레시, 플로럴, 우디, 오리엔탈, ...
    notes = Column(JSONType, nullable=False)  # ordered list of note names
    description = Column(Text, nullable=True)
    image = Column(Text, nullable=True)
    rating = Column(Integer, default=0, nullable=False)  # 0-50 scale
    views = Column(Integer, default=0, nullable=False)

    def __repr__(self):
        return f"<PerfumeRecord(id={self.id}, name='{self.name}', brand='{self.brand}')>"

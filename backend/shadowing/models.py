from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Text
from .db import Base


SENTENCE_CATEGORIES = ("daily", "travel", "cafe", "school", "work")


class Sentence(Base):
	__tablename__ = "sentences"
	id = Column(Integer, primary_key=True)
	korean = Column(Text, nullable=False)
	english = Column(Text, nullable=False)
	category = Column(String(32), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

	def to_dict(self) -> dict:
		return {"id": self.id, "korean": self.korean, "english": self.english, "category": self.category}

from datetime import datetime
from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from ..core.database import Base


class Word(Base):
    __tablename__ = "words"

    id = Column(Integer, primary_key=True, index=True)
    word = Column(String, nullable=False)

    # Lower-cased word text; the identity key used for merges and uniqueness
    word_key = Column(String, unique=True, nullable=False, index=True)

    definition = Column(Text, nullable=False, default="")
    part_of_speech = Column(String, default="noun")
    pronunciation = Column(String, default="")

    examples = Column(JSON, default=list)
    synonyms = Column(JSON, default=list)
    antonyms = Column(JSON, default=list)

    notes = Column(Text, default="")
    difficulty = Column(String, default="medium")  # easy | medium | hard

    mastered = Column(Boolean, default=False)
    mastered_at = Column(DateTime, nullable=True)

    source = Column(String, default="")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)

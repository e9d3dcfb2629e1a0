from datetime import datetime

from sqlalchemy.orm import Session

from ..models import Word
from .records import identity_key


def seed_initial_data(db: Session) -> None:
    """Seed the sample word if the store is empty."""
    if db.query(Word).count() == 0:
        now = datetime.utcnow()
        w = Word(
            word="Serendipity",
            word_key=identity_key("Serendipity"),
            definition="The occurrence and development of events by chance in a happy or beneficial way.",
            part_of_speech="noun",
            pronunciation="/ˌsɛrənˈdɪpɪti/",
            examples=[
                "Finding that old photo was pure serendipity.",
                "Their meeting was a happy serendipity.",
            ],
            synonyms=["fortunate discovery", "happy accident", "luck"],
            antonyms=["misfortune", "bad luck"],
            difficulty="medium",
            mastered=False,
            source="Sample",
            created_at=now,
            updated_at=now,
        )
        db.add(w)

    db.commit()

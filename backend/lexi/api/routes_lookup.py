from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..core.assistant import lookup_draft
from ..core.database import get_db
from ..core.sync_service import SyncService, get_sync_service, schedule_push
from ..core.word_store import create_word_record, find_by_text

router = APIRouter(prefix="/lookup", tags=["lookup"])


class WordDraft(BaseModel):
    word: str
    definition: str = ""
    partOfSpeech: str = "noun"
    pronunciation: str = ""
    examples: List[str] = []
    synonyms: List[str] = []
    antonyms: List[str] = []
    notes: str = ""
    difficulty: str = "medium"
    source: str = ""


class LookupOut(BaseModel):
    draft: WordDraft
    saved: bool = False
    word_id: Optional[int] = None


@router.get("/{word}", response_model=LookupOut)
async def lookup(
    word: str,
    background_tasks: BackgroundTasks,
    source: str = Query("auto", pattern="^(auto|dictionary|ai)$"),
    save: bool = False,
    db: Session = Depends(get_db),
    sync: Optional[SyncService] = Depends(get_sync_service),
):
    draft = await lookup_draft(word, source=source)
    if draft is None:
        raise HTTPException(
            status_code=404,
            detail=f'No lookup result for "{word}"; add it manually',
        )

    out = LookupOut(draft=WordDraft(**draft))
    if not save:
        return out

    existing = find_by_text(db, out.draft.word)
    if existing:
        return LookupOut(draft=out.draft, saved=False, word_id=existing.id)

    w = create_word_record(
        db,
        {
            "word": out.draft.word,
            "definition": out.draft.definition,
            "part_of_speech": out.draft.partOfSpeech,
            "pronunciation": out.draft.pronunciation,
            "examples": out.draft.examples,
            "synonyms": out.draft.synonyms,
            "antonyms": out.draft.antonyms,
            "notes": out.draft.notes,
            "difficulty": out.draft.difficulty,
            "source": out.draft.source,
        },
    )
    schedule_push(background_tasks, sync)
    return LookupOut(draft=out.draft, saved=True, word_id=w.id)

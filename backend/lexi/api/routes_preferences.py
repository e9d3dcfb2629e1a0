from fastapi import APIRouter, Depends
from pydantic import BaseModel, validator
from sqlalchemy.orm import Session

from ..core.database import get_db
from ..models import Preference

router = APIRouter(prefix="/preferences", tags=["preferences"])

THEME_KEY = "theme"
THEMES = ("light", "dark")


class ThemeIn(BaseModel):
    theme: str

    @validator("theme")
    def validate_theme(cls, v):
        v = v.strip().lower()
        if v not in THEMES:
            raise ValueError("theme must be 'light' or 'dark'")
        return v


class ThemeOut(BaseModel):
    theme: str


def _get_theme(db: Session) -> str:
    pref = db.get(Preference, THEME_KEY)
    return pref.value if pref else "light"


def _set_theme(db: Session, theme: str) -> str:
    pref = db.get(Preference, THEME_KEY)
    if pref is None:
        pref = Preference(key=THEME_KEY, value=theme)
        db.add(pref)
    else:
        pref.value = theme
    db.commit()
    return theme


@router.get("/theme", response_model=ThemeOut)
def get_theme(db: Session = Depends(get_db)):
    return ThemeOut(theme=_get_theme(db))


@router.put("/theme", response_model=ThemeOut)
def put_theme(payload: ThemeIn, db: Session = Depends(get_db)):
    return ThemeOut(theme=_set_theme(db, payload.theme))


@router.post("/theme/toggle", response_model=ThemeOut)
def toggle_theme(db: Session = Depends(get_db)):
    current = _get_theme(db)
    return ThemeOut(theme=_set_theme(db, "dark" if current == "light" else "light"))

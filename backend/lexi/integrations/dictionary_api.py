from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)

SOURCE = "Dictionary API"


def parse_entry(word: str, data: Any) -> Optional[Dict[str, Any]]:
    """
    Map a dictionaryapi.dev response onto a word draft.
    Only the first entry and its first meaning are used.
    """
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        return None
    entry = data[0]
    meanings = entry.get("meanings") or []
    if not meanings:
        return None
    meaning = meanings[0]
    definitions = meaning.get("definitions") or []
    if not definitions:
        return None
    first = definitions[0]

    examples = [d["example"] for d in definitions[:3] if d.get("example")]

    synonyms: List[str] = []
    for s in (first.get("synonyms") or []) + (meaning.get("synonyms") or []):
        if s not in synonyms:
            synonyms.append(s)
    antonyms: List[str] = []
    for a in (first.get("antonyms") or []) + (meaning.get("antonyms") or []):
        if a not in antonyms:
            antonyms.append(a)

    pronunciation = entry.get("phonetic") or ""
    if not pronunciation:
        pronunciation = next(
            (p["text"] for p in entry.get("phonetics") or [] if p.get("text")),
            "",
        )

    return {
        "word": entry.get("word") or word,
        "definition": first.get("definition") or "No definition available",
        "partOfSpeech": meaning.get("partOfSpeech") or "unknown",
        "pronunciation": pronunciation,
        "examples": examples,
        "synonyms": synonyms[:5],
        "antonyms": antonyms[:5],
        "difficulty": "medium",
        "source": SOURCE,
    }


async def lookup_word(
    word: str,
    *,
    base_url: str,
    timeout: float = 10.0,
    client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
) -> Optional[Dict[str, Any]]:
    """
    Look a word up in the public dictionary API.
    Returns None when the word is unknown or the service is unavailable.
    """
    url = f"{base_url.rstrip('/')}/{quote(word.strip())}"
    factory = client_factory or (lambda: httpx.AsyncClient(timeout=timeout))
    try:
        async with factory() as client:
            r = await client.get(url)
        if r.status_code != 200:
            logger.info("Dictionary API has no entry for %r (HTTP %s)", word, r.status_code)
            return None
        return parse_entry(word, r.json())
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Dictionary API lookup failed for %r: %s", word, exc)
        return None

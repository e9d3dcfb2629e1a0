from __future__ import annotations

import json
import logging
import re
from typing import Any, Dict, Optional

from ..config import settings
from ..integrations.dictionary_api import lookup_word
from .llm_provider import LLMError, LLMMessage, LLMProvider, build_provider
from .records import normalize_record

logger = logging.getLogger(__name__)

# Shared provider for the process, chosen from settings.
provider = build_provider(settings)

AI_SOURCE = "AI Analysis"

ANALYSIS_PROMPT = """You are a linguistics expert. Analyze the word "{word}" and provide:
1. Definition (clear, concise)
2. Part of speech
3. Pronunciation (IPA format)
4. 3 usage examples
5. 5 synonyms
6. 3 antonyms
7. Difficulty level (easy/medium/hard)
8. Interesting facts about the word

Format response as JSON:
{{
    "word": "{word}",
    "definition": "",
    "partOfSpeech": "",
    "pronunciation": "",
    "examples": [],
    "synonyms": [],
    "antonyms": [],
    "difficulty": "",
    "notes": ""
}}"""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")

LOOKUP_VERBS = ("lookup", "define", "what", "meaning")


class WordAnalysisError(RuntimeError):
    pass


def extract_json_object(text: str) -> Optional[Dict[str, Any]]:
    """
    Take everything from the first "{" to the last "}" and parse it.
    Models tend to wrap JSON in prose or code fences.
    """
    match = _JSON_OBJECT.search(text or "")
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    return data if isinstance(data, dict) else None


async def analyze_word(word: str, llm: Optional[LLMProvider] = None) -> Dict[str, Any]:
    llm = llm or provider
    messages = [LLMMessage(role="system", content=ANALYSIS_PROMPT.format(word=word))]
    try:
        resp = await llm.chat(messages)
    except LLMError as exc:
        raise WordAnalysisError(str(exc)) from exc

    data = extract_json_object(resp.content)
    if data is None:
        raise WordAnalysisError("Could not parse AI response")

    data.setdefault("word", word)
    draft = normalize_record(data)
    if draft is None:
        raise WordAnalysisError("AI response has no word")
    draft["source"] = AI_SOURCE
    return _draft_for_output(draft)


async def lookup_draft(
    word: str,
    source: str = "auto",
    llm: Optional[LLMProvider] = None,
) -> Optional[Dict[str, Any]]:
    """
    Dictionary API first, then the AI provider. None means the caller
    should fall back to manual entry.
    """
    if source in ("auto", "dictionary"):
        found = await lookup_word(
            word,
            base_url=settings.dictionary_api_url,
            timeout=settings.lookup_timeout_sec,
        )
        if found:
            return found
    if source in ("auto", "ai"):
        try:
            return await analyze_word(word, llm)
        except WordAnalysisError as exc:
            logger.info("AI analysis failed for %r: %s", word, exc)
    return None


def _draft_for_output(draft: Dict[str, Any]) -> Dict[str, Any]:
    # drafts are not stored yet, so they carry no timestamps
    return {k: v for k, v in draft.items() if k not in ("masteredAt", "createdAt", "updatedAt")}


def format_word_reply(data: Dict[str, Any]) -> str:
    lines = [
        f"📚 {data['word']} ({data.get('partOfSpeech', '')})",
        data.get("pronunciation", ""),
        "",
        f"Definition: {data.get('definition', '')}",
    ]
    examples = data.get("examples") or []
    if examples:
        lines.append("")
        lines.append("Examples:")
        lines.extend(f"• {ex}" for ex in examples)
    synonyms = data.get("synonyms") or []
    if synonyms:
        lines.append("")
        lines.append("Synonyms: " + ", ".join(synonyms[:3]))
    lines.append("")
    lines.append(f"Difficulty: {data.get('difficulty', 'medium')}")
    return "\n".join(lines)


def _extract_lookup_target(message: str) -> Optional[str]:
    words = message.split()
    for i, w in enumerate(words):
        if w.lower() in LOOKUP_VERBS and i + 1 < len(words):
            target = re.sub(r"[^a-zA-Z\-']", "", words[i + 1])
            if target:
                return target
    return None


async def run_assistant_chat(
    message: str,
    llm: Optional[LLMProvider] = None,
) -> Dict[str, Any]:
    """
    Small intent router for the chat widget: "lookup <word>" or
    "define <word>" runs an AI analysis, anything about saving explains
    how to add words, everything else gets the help text.
    """
    lowered = message.lower()

    if "lookup" in lowered or "define" in lowered:
        word = _extract_lookup_target(message)
        if not word:
            return {
                "reply": "Please specify a word to lookup. Example: 'lookup serendipity'",
                "intent": "lookup",
                "word": None,
            }
        try:
            data = await analyze_word(word, llm)
        except WordAnalysisError:
            return {
                "reply": f"Sorry, I couldn't analyze \"{word}\". Please try again or add it manually.",
                "intent": "lookup",
                "word": None,
            }
        return {"reply": format_word_reply(data), "intent": "lookup", "word": data}

    if "save" in lowered or "add" in lowered:
        return {
            "reply": "To add a word, use the lookup endpoint with save=true or POST it to /words.",
            "intent": "save",
            "word": None,
        }

    return {
        "reply": (
            "I can help you lookup words, provide definitions, and save them "
            "to your dictionary. Try asking: 'lookup serendipity'"
        ),
        "intent": "help",
        "word": None,
    }

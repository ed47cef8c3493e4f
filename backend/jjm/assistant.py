#!/usr/bin/env python3
"""
JJM Assistant - chatbot behind the dashboard
Rule-based intents answered from the database, Groq LLM for everything else
"""
import re
import json
import logging

import pandas as pd

from backend.jjm import config
from backend.jjm.intelligent_qna.knowledge_engine import query_datasets
from backend.jjm.intelligent_qna.query_parser import parse_query
from backend.jjm.intelligent_qna.response_generator import HELP_TEXT, generate_response
from backend.jjm.llm import complete
from backend.jjm.schema import SCHEMA
from backend.jjm.storage import get_region_summary

logger = logging.getLogger(__name__)

LANGUAGES = {"en": "English", "hi": "Hindi", "mr": "Marathi"}
MAX_ROWS = 50

DEVANAGARI = re.compile(r"[\u0900-\u097F]")
# Two Devanagari characters followed by a space are read as Marathi
MARATHI_HINT = re.compile(r"[\u0900-\u097F][\u0900-\u097F]\s")


# -----------------------------------------------------------------------------
# LANGUAGE
# -----------------------------------------------------------------------------
def detect_language(text: str) -> str:
    """'mr', 'hi' or 'en' from the script used in the text."""
    if MARATHI_HINT.search(text):
        return "mr"
    if DEVANAGARI.search(text):
        return "hi"
    return "en"


def system_message(language: str = "en") -> str:
    return (
        "You are a helpful assistant for the Maharashtra Water Dashboard. "
        "Provide concise, helpful information about water infrastructure in Maharashtra. "
        f"Respond in {LANGUAGES.get(language, 'English')}."
    )


# -----------------------------------------------------------------------------
# LLM CHAT
# -----------------------------------------------------------------------------
def chat_completion(prompt: str, max_tokens: int = 150, temperature: float = 0.7, language: str = "en") -> dict:
    """Plain chat completion used by /api/ai/chat."""
    text = complete(
        [
            {"role": "system", "content": system_message(language)},
            {"role": "user", "content": prompt},
        ],
        temperature=temperature,
        max_tokens=max_tokens,
    )
    return {"success": True, "text": text, "model": config.GROQ_MODEL}


def _llm_answer(message: str, conn, language: str) -> str:
    schema_desc = "\n".join([f"- {t}: {', '.join(c)}" for t, c in SCHEMA.items() if t not in ("app_state",)])
    summary = get_region_summary(conn)
    prompt = f"""Answer the user's question about the JJM Maharashtra water dashboard.

Database tables:
{schema_desc}

Current totals across all regions: {json.dumps(summary)}

Use:
- Natural language (friendly tone)
- 2-4 sentences
- Mention specific values if visible

Question: {message}
Answer:"""

    return complete(
        [
            {"role": "system", "content": system_message(language)},
            {"role": "user", "content": prompt},
        ],
        temperature=0.7,
        max_tokens=300,
    )


def _localise(answer: str, language: str) -> str:
    if language == "en" or not config.groq_configured():
        return answer
    try:
        return complete(
            [
                {"role": "system", "content": system_message(language)},
                {"role": "user", "content": f"Rewrite this answer in {LANGUAGES[language]}:\n{answer}"},
            ],
            temperature=0.3,
            max_tokens=400,
        )
    except Exception as e:
        logger.error(f"Answer translation failed: {e}")
        return answer


def _records(results) -> list:
    if results is None or results.empty:
        return []
    # to_json turns numpy / NaN values into plain JSON types
    return json.loads(results.head(MAX_ROWS).to_json(orient="records"))


# -----------------------------------------------------------------------------
# MAIN ENTRY POINT
# -----------------------------------------------------------------------------
def run_assistant_query(message: str, conn, language: str | None = None) -> dict:
    """Answer a chatbot message. Returns answer text, intent, entities and result rows."""
    language = language or detect_language(message)
    intent_data = parse_query(message)
    intent = intent_data["intent"]
    logger.info(f"🤖 Assistant intent: {intent} {intent_data['entities']}")

    if intent == "unknown":
        if config.groq_configured():
            try:
                answer = _llm_answer(message, conn, language)
                return {"answer": answer, "intent": intent, "entities": intent_data["entities"],
                        "rows": [], "language": language, "source": "llm"}
            except Exception as e:
                logger.error(f"LLM fallback failed: {e}")
        answer = "❓ I'm not sure how to answer that yet.\n\n" + HELP_TEXT
        return {"answer": answer, "intent": intent, "entities": intent_data["entities"],
                "rows": [], "language": language, "source": "rules"}

    results = query_datasets(intent_data, conn)
    answer = _localise(generate_response(intent_data, results), language)
    return {
        "answer": answer,
        "intent": intent,
        "entities": intent_data["entities"],
        "rows": _records(results if isinstance(results, pd.DataFrame) else None),
        "language": language,
        "source": "rules",
    }

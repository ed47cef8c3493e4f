import logging

from backend.jjm import config
from backend.jjm.llm import complete

logger = logging.getLogger(__name__)

LANGUAGE_LABELS = {
    "hi": "हिन्दी",
    "mr": "मराठी",
    "gu": "ગુજરાતી",
    "pa": "ਪੰਜਾਬੀ",
    "bn": "বাংলা",
    "ta": "தமிழ்",
    "te": "తెలుగు",
    "kn": "ಕನ್ನಡ",
    "ml": "മലയാളം",
}

LANGUAGE_NAMES = {
    "en": "English",
    "hi": "Hindi",
    "mr": "Marathi",
    "gu": "Gujarati",
    "pa": "Punjabi",
    "bn": "Bengali",
    "ta": "Tamil",
    "te": "Telugu",
    "kn": "Kannada",
    "ml": "Malayalam",
}


def label_translation(text: str, target_language: str) -> str:
    """Text tagged with the target language, used when no translation service is available."""
    label = LANGUAGE_LABELS.get(target_language, target_language)
    return f"{text} ({label})"


def translate_text(text: str, target_language: str) -> dict:
    translated = None
    if config.groq_configured() and target_language in LANGUAGE_NAMES:
        language = LANGUAGE_NAMES[target_language]
        try:
            translated = complete(
                [
                    {"role": "system", "content": (
                        f"Translate the user's text into {language}. "
                        "Return only the translation, keep numbers and proper names unchanged."
                    )},
                    {"role": "user", "content": text},
                ],
                temperature=0.2,
                max_tokens=600,
            )
        except Exception as e:
            logger.error(f"Translation via Groq failed, falling back to label: {e}")

    return {
        "originalText": text,
        "translatedText": translated or label_translation(text, target_language),
        "targetLanguage": target_language,
    }

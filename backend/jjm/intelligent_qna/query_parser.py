# intelligent_qna/query_parser.py
import re

REGION_ALIASES = {
    "amravati": "Amravati",
    "amaravati": "Amravati",
    "nagpur": "Nagpur",
    "chhatrapati sambhajinagar": "Chhatrapati Sambhajinagar",
    "sambhajinagar": "Chhatrapati Sambhajinagar",
    "aurangabad": "Chhatrapati Sambhajinagar",
    "nashik": "Nashik",
    "pune": "Pune",
    "konkan": "Konkan",
    "mumbai": "Konkan",
}

DEVICE_PATTERNS = [
    ("rca", r"\brca\b|residual chlorine|chlorine analy[sz]er"),
    ("pressure_transmitter", r"pressure transmitter|\bpt\b"),
    ("flow_meter", r"flow ?meter|\bmeters?\b|\bflow\b"),
]


def find_regions(text: str):
    """Regions mentioned in the text, in order of appearance, without duplicates."""
    found = []
    for alias in sorted(REGION_ALIASES, key=len, reverse=True):
        for match in re.finditer(rf"\b{re.escape(alias)}\b", text):
            found.append((match.start(), REGION_ALIASES[alias]))

    regions = []
    for _, name in sorted(found):
        if name not in regions:
            regions.append(name)
    return regions


def _has(text, pattern):
    return re.search(pattern, text) is not None


def parse_query(question: str):
    """
    Parses a chatbot message and extracts intent and entities (regions, device).
    """
    question_lower = question.lower().strip()
    regions = find_regions(question_lower)

    entities = {
        "regions": regions,
        "region": regions[0] if regions else None,
        "device": None,
    }

    # detect type of intent
    if "compare" in question_lower and len(regions) >= 2:
        intent = "compare_regions"
    elif _has(question_lower, r"(how many|count|number of|total) schemes?"):
        intent = "scheme_count"
    elif _has(question_lower, r"(how many|count|number of|total) villages?"):
        intent = "village_count"
    elif _has(question_lower, r"\besrs?\b|elevated storage reservoir"):
        intent = "esr"
    elif "fully completed" in question_lower or ("completed" in question_lower and "scheme" in question_lower):
        intent = "completed_schemes"
    elif any(_has(question_lower, p) for _, p in DEVICE_PATTERNS):
        intent = "device"
        entities["device"] = next(d for d, p in DEVICE_PATTERNS if _has(question_lower, p))
    elif _has(question_lower, r"summary|statistics|\bstats\b|overview"):
        intent = "region_summary"
    elif regions:
        intent = "region_schemes"
    elif _has(question_lower, r"\bhelp\b|\bassist|\bsupport\b|\bguide\b|what can you do"):
        intent = "help"
    elif _has(question_lower, r"\b(hello|hi|hey|greetings|namaste|namaskar)\b"):
        intent = "greeting"
    else:
        intent = "unknown"

    return {"intent": intent, "entities": entities}

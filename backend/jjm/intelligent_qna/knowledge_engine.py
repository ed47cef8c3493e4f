# intelligent_qna/knowledge_engine.py
import pandas as pd

from backend.jjm.storage import get_all_regions, get_all_schemes

REGION_INTENTS = ("scheme_count", "village_count", "esr", "device", "region_summary")


def _region_frame(conn, regions=None):
    df = pd.DataFrame(get_all_regions(conn))
    if df.empty or not regions:
        return df
    return df[df["region_name"].isin(regions)]


def query_datasets(intent_data, conn):
    """
    Based on intent, select and filter the matching scheme / region rows
    """
    intent = intent_data["intent"]
    entities = intent_data["entities"]
    region = entities.get("region")
    regions = entities.get("regions") or []

    if intent == "completed_schemes":
        return pd.DataFrame(get_all_schemes(conn, region=region, status="Fully Completed"))

    elif intent == "region_schemes":
        return pd.DataFrame(get_all_schemes(conn, region=region))

    elif intent == "compare_regions":
        return _region_frame(conn, regions[:2])

    elif intent in REGION_INTENTS:
        return _region_frame(conn, [region] if region else None)

    else:
        return pd.DataFrame()

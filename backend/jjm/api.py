#!/usr/bin/env python3
"""
JJM dashboard REST API (/api/*)
Regions, schemes, village LPCD data, ESR readings, report uploads,
dashboard URL maintenance, translation, activity logging and the assistant.
"""

import logging
import shutil
import tempfile
from dataclasses import asdict
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import JSONResponse

from backend.jjm import config, storage
from backend.jjm.activity import log_activity, recent_activity
from backend.jjm.assistant import chat_completion, run_assistant_query
from backend.jjm.daily_updates import get_today_updates
from backend.jjm.dashboard_urls import regenerate_dashboard_urls, verify_dashboard_urls
from backend.jjm.data_loader import CSV_EXTENSIONS, EXCEL_EXTENSIONS, ImportFileError
from backend.jjm.database_connection import get_db
from backend.jjm.importers import import_esr_readings, import_scheme_status, import_water_scheme_data
from backend.jjm.models import (
    ActivityLogRequest,
    AIChatRequest,
    QuestionRequest,
    QuestionResponse,
    SchemeCreate,
    SchemeUpdate,
    TranslateRequest,
)
from backend.jjm.translation import translate_text
from backend.jjm.validation import validate_scheme_workbook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

REPORT_EXTENSIONS = EXCEL_EXTENSIONS | CSV_EXTENSIONS


# -------------------- Upload helpers --------------------
def save_upload(upload: UploadFile, allowed=REPORT_EXTENSIONS) -> Path:
    """Store an uploaded report in UPLOAD_DIR, checking its type and size."""
    suffix = Path(upload.filename or "").suffix.lower()
    if suffix not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type '{suffix or upload.filename}'. Allowed: {', '.join(sorted(allowed))}",
        )

    config.UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=config.UPLOAD_DIR, suffix=suffix, delete=False) as tmp:
        shutil.copyfileobj(upload.file, tmp)
        path = Path(tmp.name)

    if path.stat().st_size > config.MAX_UPLOAD_MB * 1024 * 1024:
        path.unlink(missing_ok=True)
        raise HTTPException(status_code=400, detail=f"File exceeds the {config.MAX_UPLOAD_MB} MB limit")

    logger.info(f"📎 Received upload {upload.filename} ({path.stat().st_size} bytes)")
    return path


def run_import(label, importer, path, *args, **kwargs):
    """Run an importer on a saved upload, mapping failures to HTTP errors."""
    try:
        result = importer(*args, path, **kwargs)
        return {"success": True, "message": f"{label} import completed", **result.to_dict()}
    except (ImportFileError, ValueError) as ve:
        logger.error(f"{label} import rejected: {ve}")
        raise HTTPException(status_code=400, detail=str(ve))
    except Exception as e:
        logger.error(f"{label} import failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"{label} import failed. No changes were saved.")
    finally:
        path.unlink(missing_ok=True)


# -------------------- Regions --------------------
@router.get("/regions")
def list_regions(conn=Depends(get_db)):
    return storage.get_all_regions(conn)


@router.get("/regions/summary")
def region_summary(region: Optional[str] = None, conn=Depends(get_db)):
    return storage.get_region_summary(conn, region)


@router.post("/regions/update-summaries")
def refresh_region_summaries(conn=Depends(get_db)):
    count = storage.update_region_summaries(conn)
    return {"success": True, "regionsUpdated": count}


@router.get("/regions/{region_name}")
def get_region(region_name: str, conn=Depends(get_db)):
    region = storage.get_region_by_name(conn, region_name)
    if not region:
        raise HTTPException(status_code=404, detail=f"Region '{region_name}' not found")
    return region


# -------------------- Schemes --------------------
@router.get("/schemes")
def list_schemes(
    region: Optional[str] = None,
    status: Optional[str] = None,
    scheme_id: Optional[str] = None,
    block: Optional[str] = None,
    conn=Depends(get_db),
):
    return storage.get_all_schemes(conn, region=region, status=status, scheme_id=scheme_id, block=block)


@router.post("/schemes/import/excel")
def import_schemes_excel(
    file: UploadFile = File(...),
    update_existing: bool = Query(False, alias="updateExisting"),
    conn=Depends(get_db),
):
    path = save_upload(file, EXCEL_EXTENSIONS)
    return run_import("Scheme status", import_scheme_status, path, conn, update_existing=update_existing)


@router.post("/schemes/validate")
def validate_schemes_excel(file: UploadFile = File(...)):
    path = save_upload(file, EXCEL_EXTENSIONS)
    try:
        return validate_scheme_workbook(path).to_dict()
    finally:
        path.unlink(missing_ok=True)


@router.get("/schemes/{scheme_id}")
def get_scheme(scheme_id: str, block: Optional[str] = None, conn=Depends(get_db)):
    scheme = storage.get_scheme(conn, scheme_id, block)
    if not scheme:
        raise HTTPException(status_code=404, detail=f"Scheme '{scheme_id}' not found")
    return scheme


@router.post("/schemes", status_code=201)
def create_scheme(payload: SchemeCreate, conn=Depends(get_db)):
    try:
        scheme = storage.create_scheme(conn, payload.model_dump(exclude_none=True))
    except ValueError as ve:
        raise HTTPException(status_code=400, detail=str(ve))
    storage.update_region_summaries(conn)
    return scheme


@router.put("/schemes/{scheme_id}")
def update_scheme(scheme_id: str, payload: SchemeUpdate, block: Optional[str] = None, conn=Depends(get_db)):
    scheme = storage.update_scheme(conn, scheme_id, payload.model_dump(exclude_unset=True), block)
    if not scheme:
        raise HTTPException(status_code=404, detail=f"Scheme '{scheme_id}' not found")
    storage.update_region_summaries(conn)
    return scheme


@router.delete("/schemes/{scheme_id}")
def delete_scheme(scheme_id: str, block: Optional[str] = None, conn=Depends(get_db)):
    deleted = storage.delete_scheme(conn, scheme_id, block)
    if not deleted:
        raise HTTPException(status_code=404, detail=f"Scheme '{scheme_id}' not found")
    storage.update_region_summaries(conn)
    return {"success": True, "deleted": deleted}


# -------------------- Geography --------------------
@router.get("/geo/filters")
def geo_filters(conn=Depends(get_db)):
    return storage.get_geo_filters(conn)


@router.get("/geo/schemes")
def geo_schemes(
    region: Optional[str] = None,
    circle: Optional[str] = None,
    division: Optional[str] = None,
    subdivision: Optional[str] = Query(None, alias="subdivision"),
    block: Optional[str] = None,
    conn=Depends(get_db),
):
    return storage.get_schemes_by_geography(conn, region, circle, division, subdivision, block)


# -------------------- Village LPCD data --------------------
@router.get("/water-scheme-data")
def water_scheme_data(
    region: Optional[str] = None,
    min_lpcd: Optional[float] = Query(None, alias="minLpcd"),
    max_lpcd: Optional[float] = Query(None, alias="maxLpcd"),
    zero_supply_for_week: bool = Query(False, alias="zeroSupplyForWeek"),
    conn=Depends(get_db),
):
    return storage.get_water_scheme_data(conn, region, min_lpcd, max_lpcd, zero_supply_for_week)


@router.get("/water-scheme-data/lpcd-stats")
def lpcd_stats(region: Optional[str] = None, conn=Depends(get_db)):
    return storage.get_village_lpcd_stats(conn, region)


@router.get("/water-scheme-data/scheme-lpcd-stats")
def scheme_lpcd_stats(region: Optional[str] = None, conn=Depends(get_db)):
    return storage.get_scheme_lpcd_stats(conn, region)


@router.get("/scheme-lpcd-data")
def scheme_lpcd_data(
    region: Optional[str] = None,
    min_lpcd: Optional[float] = Query(None, alias="minLpcd"),
    max_lpcd: Optional[float] = Query(None, alias="maxLpcd"),
    conn=Depends(get_db),
):
    return storage.get_scheme_lpcd_data(conn, region, min_lpcd, max_lpcd)


@router.post("/water-scheme-data/import/excel")
def import_lpcd_excel(file: UploadFile = File(...), conn=Depends(get_db)):
    path = save_upload(file, EXCEL_EXTENSIONS)
    return run_import("LPCD", import_water_scheme_data, path, conn)


@router.post("/water-scheme-data/import/csv")
def import_lpcd_csv(file: UploadFile = File(...), conn=Depends(get_db)):
    path = save_upload(file, CSV_EXTENSIONS)
    return run_import("LPCD", import_water_scheme_data, path, conn)


# -------------------- ESR readings --------------------
def _esr_routes(kind):
    @router.get(f"/{kind}", name=f"list_{kind}")
    def list_readings(region: Optional[str] = None, band: Optional[str] = None, conn=Depends(get_db)):
        try:
            return storage.get_esr_readings(conn, kind, region, band)
        except ValueError as ve:
            raise HTTPException(status_code=400, detail=str(ve))

    @router.get(f"/{kind}/dashboard-stats", name=f"{kind}_dashboard_stats")
    def dashboard_stats(region: Optional[str] = None, conn=Depends(get_db)):
        return storage.get_esr_dashboard_stats(conn, kind, region)

    @router.get(f"/{kind}/{{scheme_id}}/{{village_name}}/{{esr_name}}", name=f"get_{kind}_reading")
    def get_reading(scheme_id: str, village_name: str, esr_name: str, conn=Depends(get_db)):
        reading = storage.get_esr_reading(conn, kind, scheme_id, village_name, esr_name)
        if not reading:
            raise HTTPException(status_code=404, detail=f"{kind.title()} data not found")
        return reading

    @router.post(f"/{kind}/import", name=f"import_{kind}")
    def import_readings(file: UploadFile = File(...), conn=Depends(get_db)):
        path = save_upload(file)
        return run_import(kind.title(), import_esr_readings, path, conn, kind=kind)


for _kind in ("chlorine", "pressure"):
    _esr_routes(_kind)


# -------------------- Daily updates / dashboard URLs --------------------
@router.get("/updates/today")
def today_updates(conn=Depends(get_db)):
    return get_today_updates(conn)


@router.post("/dashboard-urls/regenerate")
def regenerate_urls(region: Optional[str] = None, conn=Depends(get_db)):
    changed = regenerate_dashboard_urls(conn, region)
    return {"success": True, "updated": changed}


@router.get("/dashboard-urls/verify")
def verify_urls(conn=Depends(get_db)):
    mismatches = verify_dashboard_urls(conn)
    return {"valid": not mismatches, "mismatches": [asdict(m) for m in mismatches[:200]],
            "total": len(mismatches)}


# -------------------- Translation / activity --------------------
@router.post("/translate")
def translate(payload: TranslateRequest):
    return translate_text(payload.text, payload.targetLanguage)


@router.post("/auth/log-activity")
def log_user_activity(payload: ActivityLogRequest, conn=Depends(get_db)):
    success = log_activity(conn, payload.model_dump())
    return {"success": success}


@router.get("/auth/activity")
def list_activity(limit: int = Query(50, ge=1, le=500), conn=Depends(get_db)):
    return recent_activity(conn, limit)


# -------------------- Assistant / AI --------------------
@router.post("/assistant/ask", response_model=QuestionResponse)
def ask_assistant(request: QuestionRequest, conn=Depends(get_db)):
    """Handles chatbot message → intent → answer generation"""
    question = request.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question cannot be empty")

    logger.info(f"Received question: {question}")
    try:
        return run_assistant_query(question, conn, request.language)
    except ValueError as ve:
        logger.error(f"ValueError: {ve}")
        raise HTTPException(status_code=400, detail=f"Query error: {str(ve)}")
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error. Please try again later.")


@router.post("/ai/chat")
def ai_chat(request: AIChatRequest):
    if not config.groq_configured():
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Groq API key is not configured on the server"},
        )
    try:
        return chat_completion(request.prompt, request.maxTokens, request.temperature, request.language)
    except Exception as e:
        logger.error(f"Error in chat completion endpoint: {e}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Server error processing the request", "error": str(e)},
        )


@router.get("/ai/status")
def ai_status():
    configured = config.groq_configured()
    return {
        "configured": configured,
        "enabled": configured,
        "model": config.GROQ_MODEL,
        "features": {
            "chatCompletions": configured,
            "translations": configured,
            # speech capture and synthesis run in the browser
            "voiceEnabled": True,
        },
    }

#!/usr/bin/env python3
"""
FastAPI server for the JJM Maharashtra water dashboard
Serves the /api endpoints and, when built, the dashboard front end
"""

import os
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, FileResponse
from fastapi.staticfiles import StaticFiles

from backend.jjm import config
from backend.jjm.api import router as api_router
from backend.jjm.cleanup import cleanup_water_scheme_data
from backend.jjm.dashboard_urls import populate_missing_dashboard_urls
from backend.jjm.database_connection import db_connection
from backend.jjm.db_utils import initialize_database
from backend.jjm.storage import update_region_summaries


# -------------------- Logging --------------------
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


# -------------------- Startup --------------------
def prepare_database():
    """Create tables, tidy names, fill missing dashboard URLs and refresh region totals."""
    with db_connection() as conn:
        initialize_database(conn)
        cleanup_water_scheme_data(conn)
        populate_missing_dashboard_urls(conn)
        update_region_summaries(conn)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Preparing database at {config.DB_PATH}")
    prepare_database()
    yield


# -------------------- FastAPI App --------------------
app = FastAPI(
    title="JJM Maharashtra Water Dashboard",
    description="Scheme, village and ESR integration status for Jal Jeevan Mission schemes",
    version="1.0.0",
    lifespan=lifespan,
)

# -------------------- CORS --------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


# -------------------- API Routes --------------------
@app.get("/health")
def health_check():
    """Health check endpoint"""
    return {"status": "ok", "service": "jjm-dashboard", "version": "1.0.0"}


# -------------------- FRONTEND SERVING --------------------
# Serve the built dashboard (index.html + assets)
FRONTEND_DIR = os.getenv(
    "FRONTEND_DIR", os.path.join(os.path.dirname(__file__), "../../frontend/dist")
)

if os.path.exists(FRONTEND_DIR):
    app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="static")

    @app.get("/", include_in_schema=False)
    async def serve_frontend():
        """Serve the main frontend page"""
        index_path = os.path.join(FRONTEND_DIR, "index.html")
        if os.path.exists(index_path):
            return FileResponse(index_path)
        return {"detail": "Frontend not found. Please check deployment paths."}
else:
    logger.warning("⚠️ Frontend directory not found, only API endpoints will work.")


# -------------------- Exception Handlers --------------------
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"success": False, "message": "Invalid request data", "errors": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500, content={"detail": "An unexpected error occurred"}
    )


# -------------------- Entry Point --------------------
if __name__ == "__main__":
    import uvicorn
    logger.info("Starting JJM Dashboard Server...")
    logger.info(f"Docs available at: http://localhost:{config.PORT}/docs")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=config.PORT,
        log_level="info"
    )

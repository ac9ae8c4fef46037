# mediconnect/main.py
import logging
import os

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from mediconnect.database import Base, engine
from mediconnect.errors import MediConnectError
from mediconnect.endpoints.actions import router as actions_router
from mediconnect.endpoints.transfers import router as transfers_router
from mediconnect.endpoints.departments import router as departments_router
from mediconnect.endpoints.visits import router as visits_router
from mediconnect.endpoints.patients import router as patients_router
from mediconnect.endpoints.organizations import router as organizations_router
from mediconnect.endpoints.stats import router as stats_router
from mediconnect.endpoints import ws_events

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="MediConnect API", version="1.0.0")


@app.on_event("startup")
def startup_event():
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Database tables ready")


@app.exception_handler(MediConnectError)
async def mediconnect_error_handler(request: Request, exc: MediConnectError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error(f"❌ Database error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Database error", "field": None})


# Include HTTP routers
app.include_router(actions_router)
app.include_router(transfers_router)
app.include_router(departments_router)
app.include_router(visits_router)
app.include_router(patients_router)
app.include_router(organizations_router)
app.include_router(stats_router)

# Mount WebSocket endpoint
app.add_api_websocket_route("/ws", ws_events.ws_events)


@app.get("/")
def root():
    return {"message": "API is running"}

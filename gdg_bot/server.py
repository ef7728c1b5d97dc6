"""FastAPI server for the GDG WhatsApp assistant.

Run with:
    uvicorn gdg_bot.server:app --host 0.0.0.0 --port 3000

Point the Twilio WhatsApp sandbox (or sender) webhook at
``https://<host>/webhook/whatsapp``.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gdg_bot.agent import create_orchestrator
from gdg_bot.api.routes import health_router, router
from gdg_bot.api.schemas import ErrorResponse
from gdg_bot.config import CORS_ORIGINS, SERVER_HOST, SERVER_PORT
from gdg_bot.dispatcher import MessageDispatcher
from gdg_bot.services.google_calendar import check_connectivity, close_calendar_client
from gdg_bot.services.google_sheets import close_sheets_client
from gdg_bot.services.whatsapp import WhatsAppMessenger
from gdg_bot.session import SessionStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Build the session store, orchestrator and messenger once per process."""
    logger.info("Starting GDG WhatsApp bot…")
    store = SessionStore()
    messenger = WhatsAppMessenger()
    orchestrator = create_orchestrator(store)
    application.state.store = store
    application.state.messenger = messenger
    application.state.dispatcher = MessageDispatcher(store, orchestrator, messenger)
    if not await asyncio.to_thread(check_connectivity):
        logger.warning("Starting without Google Calendar access; event lookups will fail")
    logger.info("Bot ready.")
    yield
    logger.info("Shutting down (%d active sessions discarded)", len(store))
    close_calendar_client()
    close_sheets_client()


app = FastAPI(
    title="GDG WhatsApp Event Assistant",
    description=(
        "WhatsApp chatbot answering questions about GDG events, speakers, "
        "FAQs and community resources."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Tag every request with an ``X-Request-ID`` for log correlation."""
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed requests get a 400 with the ``{success, error}`` envelope."""
    fields = sorted(
        {str(err["loc"][-1]) for err in exc.errors() if err.get("loc")}
    )
    error = f"Missing or invalid fields: {', '.join(fields)}" if fields else "Invalid request"
    return JSONResponse(status_code=400, content=ErrorResponse(error=error).model_dump())


app.include_router(router)
app.include_router(health_router)


@app.get("/")
async def root():
    return {
        "service": "GDG WhatsApp Event Assistant",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
        "webhook": "/webhook/whatsapp",
    }


if __name__ == "__main__":
    logger.info("Starting GDG bot server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run("gdg_bot.server:app", host=SERVER_HOST, port=SERVER_PORT, reload=True)

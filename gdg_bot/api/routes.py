"""FastAPI route definitions: the Twilio webhook plus admin/test endpoints."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime

from fastapi import APIRouter, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from gdg_bot.api.schemas import (
    ClearResponse,
    DirectMessageRequest,
    DirectMessageResponse,
    HealthResponse,
    HistoryResponse,
    InboundMessage,
    SessionStatsOut,
    StatsResponse,
)
from gdg_bot.commands import API_ERROR_TEXT
from gdg_bot.config import TWILIO_VALIDATE_SIGNATURE
from gdg_bot.dispatcher import MessageDispatcher
from gdg_bot.services.whatsapp import normalize_address, validate_signature
from gdg_bot.session import SessionStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhook")
health_router = APIRouter()


def _get_dispatcher(request: Request) -> MessageDispatcher:
    """The dispatcher built during the FastAPI lifespan (see ``server.py``)."""
    dispatcher = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        raise HTTPException(
            status_code=503,
            detail="The bot is still starting up. Please try again in a moment.",
        )
    return dispatcher


def _get_store(request: Request) -> SessionStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="The bot is still starting up.")
    return store


# ── Twilio webhook ───────────────────────────────────────────────────


@router.post("/whatsapp", response_class=PlainTextResponse)
async def whatsapp_webhook(request: Request):
    """Receive an inbound WhatsApp message from Twilio and answer it.

    The reply is delivered through the Twilio REST API before this handler
    returns; the HTTP response body itself is only an acknowledgement.
    """
    request_id = getattr(request.state, "request_id", "?")
    form = await request.form()
    params = {key: str(value) for key, value in form.items()}

    if TWILIO_VALIDATE_SIGNATURE and not validate_signature(
        str(request.url), params, request.headers.get("X-Twilio-Signature"),
    ):
        raise HTTPException(status_code=403, detail="Forbidden")

    try:
        inbound = InboundMessage.model_validate(params)
    except ValidationError as exc:
        logger.warning("[%s] Malformed webhook payload: %s", request_id, exc.errors())
        raise RequestValidationError(exc.errors()) from exc

    dispatcher = _get_dispatcher(request)
    try:
        # Model and Twilio calls block; keep them off the event loop
        await asyncio.to_thread(dispatcher.handle, inbound.sender, inbound.body)
    except Exception:
        logger.exception("[%s] Error handling incoming message", request_id)
        try:
            await asyncio.to_thread(
                request.app.state.messenger.send,
                normalize_address(inbound.sender),
                API_ERROR_TEXT,
            )
        except Exception:
            logger.exception("[%s] Failed to send error message", request_id)
        return PlainTextResponse("Error", status_code=500)

    return PlainTextResponse("OK")


# ── Admin / test endpoints ───────────────────────────────────────────


@router.post("/test", response_model=DirectMessageResponse)
async def test_message(body: DirectMessageRequest, request: Request):
    """Run a message through commands + orchestrator without sending it."""
    dispatcher = _get_dispatcher(request)
    user_key = normalize_address(body.userId)
    logger.info("Processing direct message for user %s", user_key)
    reply, _ = await asyncio.to_thread(dispatcher.reply_for, user_key, body.message)
    return DirectMessageResponse(response=reply, userId=user_key)


@router.get("/stats", response_model=StatsResponse)
async def conversation_stats(request: Request):
    stats = _get_store(request).stats()
    return StatsResponse(
        stats=SessionStatsOut(
            activeSessions=stats.active_sessions,
            totalSessions=stats.total_created,
        )
    )


@router.delete("/conversation/{user_id}", response_model=ClearResponse)
async def clear_conversation(user_id: str, request: Request):
    user_key = normalize_address(user_id)
    _get_store(request).clear(user_key)
    return ClearResponse(message=f"Conversation cleared for user {user_key}")


@router.get("/history/{user_id}", response_model=HistoryResponse)
async def chat_history(user_id: str, request: Request):
    user_key = normalize_address(user_id)
    turns = _get_store(request).history(user_key)
    return HistoryResponse(
        userId=user_key,
        history=[t.model_dump(mode="json", exclude_none=True) for t in turns],
    )


@router.get("/status")
async def webhook_status():
    return {
        "status": "OK",
        "service": "GDG WhatsApp Bot",
        "timestamp": datetime.now(UTC).isoformat(),
        "endpoints": {
            "webhook": "POST /webhook/whatsapp",
            "test": "POST /webhook/test",
            "stats": "GET /webhook/stats",
            "clearConversation": "DELETE /webhook/conversation/:userId",
            "history": "GET /webhook/history/:userId",
        },
    }


@health_router.get("/health", response_model=HealthResponse)
async def health_check():
    return HealthResponse()

"""HTTP surface for the LINE webhook.

GET  /webhook : verification ping from the LINE console
POST /webhook : message events; each message runs through the pipeline
               as a background task after the 200 has been returned
GET  /health  : liveness
"""

import json
import logging
import os
import time

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse

from src.agent.pipeline import HealthCompanion
from src.interface.line import LineReplyClient, parse_webhook_body, verify_signature

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def create_app_from_env(locale: str | None = None) -> FastAPI:
    """Build the app with LINE delivery configured from the environment."""
    reply_client = LineReplyClient()
    companion = HealthCompanion(deliver=reply_client.send, locale=locale)
    return create_app(companion, channel_secret=os.environ.get("LINE_CHANNEL_SECRET"))


def create_app(companion: HealthCompanion | None = None, channel_secret: str | None = None) -> FastAPI:
    app = FastAPI(docs_url=None, redoc_url=None)
    app.state.companion = companion or HealthCompanion()

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    @app.get("/webhook")
    async def verify_webhook(request: Request) -> JSONResponse:
        logger.info(
            "LINE webhook verification request received (user-agent=%s, origin=%s)",
            request.headers.get("user-agent"), request.headers.get("origin"),
        )
        return JSONResponse(
            {"message": "LINE webhook endpoint is ready", "timestamp": int(time.time() * 1000)},
            headers=CORS_HEADERS,
        )

    @app.post("/webhook")
    async def receive_webhook(request: Request, background_tasks: BackgroundTasks) -> JSONResponse:
        raw = await request.body()

        if channel_secret and not verify_signature(raw, request.headers.get("x-line-signature"), channel_secret):
            logger.warning("Rejected webhook with invalid signature")
            return JSONResponse({"message": "Invalid signature"}, status_code=401)

        try:
            body = json.loads(raw or b"{}")
        except ValueError:
            logger.error("Failed to decode LINE webhook body")
            return JSONResponse({"message": "Invalid JSON body"}, status_code=400)

        messages = parse_webhook_body(body)
        if not messages:
            logger.info("No LINE messages in incoming webhook payload (non-message event)")
            return JSONResponse({"message": "No user message to process"})

        for message in messages:
            background_tasks.add_task(app.state.companion.handle, message)
        return JSONResponse({"message": "Messages processed successfully"})

    return app

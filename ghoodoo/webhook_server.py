"""Webhook server for GitHub push and pull request events."""

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from ghoodoo.config.settings import GhoodooSettings
from ghoodoo.engine.reconciler import process_event
from ghoodoo.enums import EventType
from ghoodoo.exceptions import ConfigurationError, MalformedEventError, WebhookSignatureError
from ghoodoo.providers.base import CommentNotifier
from ghoodoo.providers.github_rest import GitHubCommentNotifier
from ghoodoo.providers.odoo_rpc import OdooClient
from ghoodoo.utils.signature import require_valid_signature

log = structlog.get_logger(__name__)

app = FastAPI(title="ghoodoo Webhook Server")

# Global state
settings: GhoodooSettings | None = None

RECONCILED_EVENTS = (EventType.PUSH.value, EventType.PULL_REQUEST.value)


@app.on_event("startup")
async def startup() -> None:
    """Load settings from the environment on startup."""
    try:
        get_settings()
        log.info("webhook_server_started")
    except ConfigurationError as e:
        log.error("webhook_startup_failed", error=e.message)
        raise


def get_settings() -> GhoodooSettings:
    """Return the loaded settings, reading the environment on first use."""
    global settings
    if settings is None:
        settings = GhoodooSettings.from_env()
    return settings


def create_task_client(current: GhoodooSettings) -> OdooClient:
    """Build a fresh Odoo client for one delivery."""
    return OdooClient(current.odoo_config())


def create_notifier(current: GhoodooSettings) -> CommentNotifier | None:
    """Build the PR comment notifier when a GitHub token is configured."""
    if not current.github_token:
        return None
    return GitHubCommentNotifier(current.github_token)


@app.post("/webhook")
async def github_webhook(request: Request):
    """Handle GitHub webhook deliveries."""
    event_type = request.headers.get("X-GitHub-Event")
    if not event_type:
        raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

    payload = await request.body()

    try:
        current = get_settings()
    except ConfigurationError as e:
        log.error("webhook_settings_invalid", error=e.message)
        raise HTTPException(status_code=500, detail="Server configuration error") from e

    try:
        require_valid_signature(payload, request.headers.get("X-Hub-Signature-256"), current.github_webhook_secret)
    except WebhookSignatureError as e:
        log.warning("webhook_signature_invalid", event_type=event_type)
        raise HTTPException(status_code=401, detail=e.message) from e

    log.info("webhook_received", event_type=event_type, delivery=request.headers.get("X-GitHub-Delivery"))

    if event_type == EventType.PING.value:
        return {"status": "ok", "event": event_type}

    if event_type not in RECONCILED_EVENTS:
        log.info("unhandled_event_type", event_type=event_type)
        return {"status": "ok", "event": event_type, "message": "Event type not handled"}

    notifier = create_notifier(current)
    try:
        async with create_task_client(current) as tasks:
            result = await process_event(event_type, payload, tasks, notifier)
    except MalformedEventError as e:
        log.error("webhook_payload_malformed", event_type=event_type, error=e.message)
        return JSONResponse(status_code=422, content={"status": "error", "message": e.message})
    except Exception as e:
        log.error("webhook_processing_unexpected", event_type=event_type, error=str(e), exc_info=True)
        return JSONResponse(status_code=500, content={"status": "error", "message": str(e) or "Unknown error"})
    finally:
        if isinstance(notifier, GitHubCommentNotifier):
            await notifier.close()

    return {"status": "ok", "event": event_type, **result.to_dict()}


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "ghoodoo-webhook"}

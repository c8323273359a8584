# contact_api/main.py
from contextlib import asynccontextmanager
import asyncio
import logging

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from contact_api.core.errors import (
    available_endpoints,
    error_body,
    install_error_handlers,
    internal_error_response,
)
from contact_api.core.mailer import DispatchOutcome, MailDispatcher, SmtpTransport
from contact_api.core.settings import settings
from contact_api.routers.contact import router as contact_router
from contact_api.routers.health import router as health_router

MAX_BODY_BYTES = 10 * 1024 * 1024

log = logging.getLogger("uvicorn.error")
log.setLevel(settings.log_level.upper())


async def verify_transport(dispatcher: MailDispatcher) -> DispatchOutcome:
    outcome = await run_in_threadpool(dispatcher.verify)
    if outcome.sent:
        log.info("[startup] SMTP server is ready to send emails")
    else:
        log.error(f"[startup] SMTP configuration error ({outcome.reason.value}): {outcome.detail}")
        log.error("[startup] check GMAIL_USER and GMAIL_APP_PASSWORD in .env")
    return outcome


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg = app.state.settings
    log.info(f"[startup] {cfg.api_title} on port {cfg.port}")
    log.info(f"[startup] environment = {cfg.environment}")
    log.info(f"[startup] gmail user = {cfg.sender_address or 'Not configured'}")
    log.info(f"[startup] recipient = {cfg.notification_recipient or 'Not configured'}")
    log.info(f"[startup] auto-reply = {'Enabled' if cfg.send_auto_reply else 'Disabled'}")
    for endpoint in available_endpoints(app):
        log.info(f"[startup] endpoint {endpoint}")

    # runs alongside request handling; the outcome is only logged
    app.state.verify_task = asyncio.create_task(verify_transport(app.state.dispatcher))
    try:
        yield
    finally:
        app.state.verify_task.cancel()


app = FastAPI(
    title=settings.api_title,
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)
app.state.settings = settings
app.state.dispatcher = MailDispatcher(SmtpTransport.from_settings(settings))


@app.middleware("http")
async def guard_requests(request: Request, call_next):
    length = request.headers.get("content-length", "")
    if length.isdigit() and int(length) > MAX_BODY_BYTES:
        return JSONResponse(
            status_code=413,
            content=error_body("Payload too large", request.app.state.settings),
        )
    # answered here, inside CORS, so browsers can read the 500 body
    try:
        return await call_next(request)
    except Exception as exc:
        return internal_error_response(request, exc)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# Routers
app.include_router(contact_router)
app.include_router(health_router)


def run() -> None:
    import uvicorn

    uvicorn.run(
        "contact_api.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()

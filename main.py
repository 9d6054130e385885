"""
Main API module for Shortlink Platform.

Responsibilities:
    - Expose REST endpoints for creating, listing and deleting short links
    - Redirect visitors and record each click (IP + user agent)
    - Serve per-link analytics, detailed click history and a global summary
    - Map registry errors onto HTTP status codes

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory store and ledger by default; Postgres via SHORTLINK_STORAGE_BACKEND.
    - LinkRegistry owns link rules; AnalyticsEngine derives read-only views.
    - Every JSON body uses the {success, data?, message?} envelope.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from shortlink_platform.analytics.analytics import AnalyticsEngine
from shortlink_platform.config import settings
from shortlink_platform.errors import NotFoundError, ShortlinkError
from shortlink_platform.manager.link_registry import LinkRegistry
from shortlink_platform.models import ClickEvent, LinkRecord
from shortlink_platform.schemas import CreateShortUrlRequest
from shortlink_platform.storage.storage_factory import get_storage


def _link_payload(link: LinkRecord) -> Dict[str, Any]:
    return {
        "id": link.id,
        "originalUrl": link.original_url,
        "shortUrl": link.short_url,
        "shortCode": link.short_code,
        "alias": link.alias,
        "clickCount": link.click_count,
        "expiresAt": link.expires_at,
        "createdAt": link.created_at,
    }


def _click_payload(event: ClickEvent) -> Dict[str, Any]:
    return {
        "clickedAt": event.clicked_at,
        "ipAddress": event.ip_address,
        "userAgent": event.user_agent,
    }


def _ok(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body


def create_app(
    registry: Optional[LinkRegistry] = None,
    analytics: Optional[AnalyticsEngine] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        registry (Optional[LinkRegistry]): Injected registry (tests); built
            from the configured storage backend when omitted.
        analytics (Optional[AnalyticsEngine]): Injected engine; built on top of
            `registry` when omitted.

    Returns:
        FastAPI: A fully configured application with its own store and ledger.
    """
    app = FastAPI(
        title="Shortlink Platform",
        description="URL shortener with click analytics",
        docs_url="/docs",
    )
    log = logging.getLogger("shortlink")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    if registry is None:
        store, ledger = get_storage()
        registry = LinkRegistry(store=store, ledger=ledger)
    if analytics is None:
        analytics = AnalyticsEngine(registry)
    app.state.registry = registry
    app.state.analytics = analytics

    log.info("Shortlink storage backend: %s", type(registry.store).__name__)

    # ----------------------------------------------------------------
    # Error mapping
    # ----------------------------------------------------------------
    @app.exception_handler(ShortlinkError)
    async def _shortlink_error(request: Request, exc: ShortlinkError) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ())[1:])}: {err.get('msg')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=400, content={"success": False, "message": messages})

    # ----------------------------------------------------------------
    # Routes
    # ----------------------------------------------------------------
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/shorten")
    def shorten_url(req: CreateShortUrlRequest) -> Dict[str, Any]:
        """
        Create a short link.

        Raises (via the ShortlinkError handler):
            400 on invalid URL/alias/expiresAt, 409 when the alias is taken.
        """
        link = registry.create(req.original_url, alias=req.alias, expires_at=req.expires_at)
        data = _link_payload(link)
        data.pop("clickCount")
        return _ok(data)

    @app.get("/info/{short_code}")
    def url_info(short_code: str) -> Dict[str, Any]:
        info = registry.info(short_code)
        return _ok({
            "originalUrl": info["original_url"],
            "createdAt": info["created_at"],
            "clickCount": info["click_count"],
        })

    @app.get("/api/urls")
    def all_urls() -> Dict[str, Any]:
        return _ok([_link_payload(link) for link in registry.list_all()])

    @app.delete("/delete/{short_code}")
    def delete_url(short_code: str) -> Dict[str, Any]:
        if not registry.delete(short_code):
            raise NotFoundError("Short link not found")
        return _ok(message="Short link deleted")

    @app.get("/stats/{short_code}")
    def url_statistics(short_code: str) -> Dict[str, Any]:
        detail = analytics.detailed_info(short_code)
        link = detail["link"]
        return _ok({
            "url": {
                "originalUrl": link.original_url,
                "shortCode": link.short_code,
                "createdAt": link.created_at,
                "clickCount": link.click_count,
            },
            "statistics": [_click_payload(e) for e in detail["statistics"]],
        })

    @app.get("/analytics/summary")
    def analytics_summary() -> Dict[str, Any]:
        return _ok([
            {
                "shortCode": row["short_code"],
                "originalUrl": row["original_url"],
                "totalClicks": row["total_clicks"],
                "uniqueVisitors": row["unique_visitors"],
                "clicksLast24h": row["clicks_last_24h"],
                "createdAt": row["created_at"],
            }
            for row in analytics.global_summary()
        ])

    @app.get("/analytics/{short_code}")
    def url_analytics(short_code: str) -> Dict[str, Any]:
        summary = analytics.summary_for(short_code)
        return _ok({
            "shortCode": summary["short_code"],
            "originalUrl": summary["original_url"],
            "clickCount": summary["click_count"],
            "lastFiveIPs": summary["last_five_ips"],
            "createdAt": summary["created_at"],
        })

    # Catch-all redirect; must stay the last route.
    @app.get("/{short_code}")
    def redirect(short_code: str, request: Request) -> RedirectResponse:
        """
        Look up a live link, record the click and answer with a 301.

        404 when the link is absent or expired.
        """
        link = registry.get(short_code)
        if link is None:
            raise NotFoundError("Short link not found or expired")
        ip_address = request.client.host if request.client else "unknown"
        registry.record_click(short_code, ip_address, request.headers.get("user-agent", ""))
        return RedirectResponse(url=link.original_url, status_code=301)

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()

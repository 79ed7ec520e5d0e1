"""
Pattern Hub REST API
Starlette application serving the pattern registry.

Endpoints:
- GET  /api/health
- GET  /api/items                 list (type, sort, limit, offset, user, tag, timeframe)
- GET  /api/items/{id}
- POST /api/items                 submit a pattern (moderated, rate limited)
- GET  /api/search                q, type, tags
- POST /api/items/{id}/vote       authenticated, rate limited
- GET  /api/tags                  popular tags
- GET  /api/auth/status
- POST /api/auth/logout
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from pattern_hub import __version__
from pattern_hub.api.auth import SESSION_COOKIE, current_session, session_token
from pattern_hub.api.ratelimit import FixedWindowRateLimiter, RateLimitDecision, RateLimiter, client_key
from pattern_hub.config import Config, ConfigManager
from pattern_hub.db import ItemDB, SessionStore, StorageFailure, VoteDB
from pattern_hub.db.votes import VALID_VOTES
from pattern_hub.moderation import Accepted, ModerationPipeline, RejectionStage
from pattern_hub.utils.logger import Logger

INTERNAL_ERROR = "Internal server error. Please try again."

UPLOAD_WINDOW_MS = 60 * 60 * 1000
VOTE_WINDOW_MS = 60 * 1000
UPLOAD_LIMIT_MESSAGE = "Too many pattern submissions. Please wait before submitting again."
VOTE_LIMIT_MESSAGE = "Voting too quickly. Please slow down."


class PatternAPI:
    """Request handlers bound to their collaborators."""

    def __init__(
        self,
        items: Optional[ItemDB] = None,
        votes: Optional[VoteDB] = None,
        sessions: Optional[SessionStore] = None,
        limiter: Optional[RateLimiter] = None,
        config: Optional[Config] = None,
        logger: Optional[Logger] = None,
    ):
        self.config = config or ConfigManager.get_instance().get()
        self.logger = logger or Logger(name="pattern-hub-api", level=self.config.log_level)
        self.items = items or ItemDB(logger=self.logger)
        self.votes = votes or VoteDB(logger=self.logger)
        self.sessions = sessions or SessionStore(
            logger=self.logger, ttl=timedelta(hours=self.config.session_ttl_hours)
        )
        self.limiter = limiter or FixedWindowRateLimiter()
        self.pipeline = ModerationPipeline(self.items, logger=self.logger)

    def routes(self):
        return [
            Route("/api/health", self.health, methods=["GET"]),
            Route("/api/items", self.list_items, methods=["GET"]),
            Route("/api/items", self.create_item, methods=["POST"]),
            Route("/api/items/{item_id}", self.get_item, methods=["GET"]),
            Route("/api/items/{item_id}/vote", self.vote, methods=["POST"]),
            Route("/api/search", self.search, methods=["GET"]),
            Route("/api/tags", self.tags, methods=["GET"]),
            Route("/api/auth/status", self.auth_status, methods=["GET"]),
            Route("/api/auth/logout", self.logout, methods=["POST"]),
        ]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _limit(self, request: Request, bucket: str, limit: int, window_ms: int) -> RateLimitDecision:
        key = f"rate_limit:{bucket}:ip:{client_key(request)}"
        return self.limiter.check(key, limit, window_ms)

    @staticmethod
    def _too_many(decision: RateLimitDecision, message: str) -> JSONResponse:
        return JSONResponse(
            {"error": message, "retryAfter": decision.retry_after},
            status_code=429,
            headers=decision.headers(),
        )

    @staticmethod
    async def _json_body(request: Request) -> Any:
        """Parsed body, or raises ValueError when it is not JSON."""
        raw = await request.body()
        try:
            return json.loads(raw or b"null")
        except RecursionError:
            raise ValueError("JSON nested too deeply") from None

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    async def health(self, request: Request) -> JSONResponse:
        return JSONResponse({
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
        })

    async def list_items(self, request: Request) -> JSONResponse:
        params = request.query_params
        records = await run_in_threadpool(
            self.items.list,
            content_type=params.get("type"),
            sort=params.get("sort", "hot"),
            limit=params.get("limit", 30),
            offset=params.get("offset", 0),
            username=params.get("user"),
            tag=params.get("tag"),
            timeframe=params.get("timeframe"),
        )
        return JSONResponse({"items": [r.to_dict() for r in records], "total": len(records)})

    async def get_item(self, request: Request) -> JSONResponse:
        item_id = request.path_params["item_id"]
        record = await run_in_threadpool(self.items.get, item_id)
        if record is None:
            return JSONResponse({"error": "Item not found"}, status_code=404)
        return JSONResponse(record.to_dict())

    async def create_item(self, request: Request) -> JSONResponse:
        decision = self._limit(request, "upload", self.config.upload_rate_limit, UPLOAD_WINDOW_MS)
        if not decision.allowed:
            return self._too_many(decision, UPLOAD_LIMIT_MESSAGE)
        headers = decision.headers()

        try:
            body = await self._json_body(request)
        except ValueError as e:
            self.logger.warning("Invalid JSON in submission", extra={"error": str(e)})
            return JSONResponse({"error": "Invalid JSON format in request body"}, status_code=400, headers=headers)

        submitter_id = None
        try:
            session = await current_session(request, self.sessions)
            submitter_id = session.user_id if session else None
            outcome = await run_in_threadpool(self.pipeline.submit, body, submitter_id)
        except Exception as e:
            self.logger.exception(
                "Pattern submission failed",
                extra={"submitter_id": submitter_id, "error": str(e)},
            )
            return JSONResponse({"error": INTERNAL_ERROR}, status_code=500, headers=headers)

        if isinstance(outcome, Accepted):
            payload: Dict[str, Any] = {"id": outcome.id, "message": "Item created successfully"}
            if outcome.warnings:
                payload["warning"] = " | ".join(outcome.warnings)
                payload["warning_category"] = outcome.warning_category
                payload["warning_count"] = len(outcome.warnings)
            return JSONResponse(payload, status_code=201, headers=headers)

        if outcome.stage is RejectionStage.DUPLICATE:
            return JSONResponse(
                {"error": outcome.reason, "existing_id": outcome.existing_id}, status_code=409, headers=headers
            )
        if outcome.stage is RejectionStage.SECURITY:
            return JSONResponse(
                {"error": outcome.reason, "blocked": True, "category": outcome.category},
                status_code=400,
                headers=headers,
            )
        if outcome.stage is RejectionStage.STRUCTURE:
            return JSONResponse(
                {"error": outcome.reason, "validation_type": "structure"}, status_code=400, headers=headers
            )
        self.logger.warning("Submission validation failed", extra={"error": outcome.reason, "field": outcome.field})
        return JSONResponse({"error": outcome.reason, "field": outcome.field}, status_code=400, headers=headers)

    async def search(self, request: Request) -> JSONResponse:
        params = request.query_params
        query = params.get("q")
        if not query:
            return JSONResponse({"error": "Query parameter required"}, status_code=400)

        tags = [t.strip() for t in params.get("tags", "").split(",") if t.strip()]
        records = await run_in_threadpool(
            self.items.search, query, content_type=params.get("type"), tags=tags or None
        )
        return JSONResponse({"results": [r.to_dict() for r in records], "query": query})

    async def vote(self, request: Request) -> JSONResponse:
        decision = self._limit(request, "vote", self.config.vote_rate_limit, VOTE_WINDOW_MS)
        if not decision.allowed:
            return self._too_many(decision, VOTE_LIMIT_MESSAGE)
        headers = decision.headers()
        item_id = request.path_params["item_id"]

        session = await current_session(request, self.sessions)
        if session is None:
            self.logger.info("Vote attempt without auth", extra={"item_id": item_id})
            return JSONResponse({"error": "Authentication required"}, status_code=401, headers=headers)

        try:
            body = await self._json_body(request)
        except ValueError as e:
            self.logger.warning("Invalid vote request body", extra={"item_id": item_id, "error": str(e)})
            return JSONResponse({"error": "Invalid request body"}, status_code=400, headers=headers)

        vote = body.get("vote") if isinstance(body, dict) else None
        # JSON true must not count as an upvote
        if isinstance(vote, bool) or vote not in VALID_VOTES:
            return JSONResponse({"error": "Invalid vote value"}, status_code=400, headers=headers)

        tally = await run_in_threadpool(self.votes.cast_vote, session.user_id, item_id, vote)
        return JSONResponse(tally, headers=headers)

    async def tags(self, request: Request) -> JSONResponse:
        return JSONResponse(await run_in_threadpool(self.items.popular_tags))

    async def auth_status(self, request: Request) -> JSONResponse:
        session = await current_session(request, self.sessions)
        if session is None:
            return JSONResponse({"authenticated": False})
        return JSONResponse({"authenticated": True, "username": session.username, "userId": session.user_id})

    async def logout(self, request: Request) -> JSONResponse:
        token = session_token(request)
        if token:
            await run_in_threadpool(self.sessions.delete_session, token)
        response = JSONResponse({"success": True})
        response.delete_cookie(SESSION_COOKIE, path="/")
        return response


def create_app(
    items: Optional[ItemDB] = None,
    votes: Optional[VoteDB] = None,
    sessions: Optional[SessionStore] = None,
    limiter: Optional[RateLimiter] = None,
    config: Optional[Config] = None,
    logger: Optional[Logger] = None,
) -> Starlette:
    """Build the Starlette app. Collaborators default to the Supabase-backed stores."""
    api = PatternAPI(items, votes, sessions, limiter, config, logger)

    async def storage_failure(request: Request, exc: StorageFailure) -> JSONResponse:
        api.logger.error(f"Storage failure on {request.url.path}: {exc}")
        return JSONResponse({"error": INTERNAL_ERROR}, status_code=500)

    app = Starlette(routes=api.routes(), exception_handlers={StorageFailure: storage_failure})
    app.state.api = api
    return app


async def serve(port: Optional[int] = None, host: str = "0.0.0.0"):
    """Run the HTTP API under uvicorn."""
    import uvicorn

    manager = ConfigManager.get_instance()
    await manager.load()
    config = manager.get()
    port = port or config.http_port

    server = uvicorn.Server(uvicorn.Config(
        create_app(config=config),
        host=host,
        port=port,
        log_level=config.log_level.lower(),
    ))

    print(f"Pattern Hub API starting on http://{host}:{port}")
    print(f"  Health: http://{host}:{port}/api/health")

    await server.serve()


def main(port: Optional[int] = None):
    asyncio.run(serve(port))

"""FastAPI routes for the lanwake API."""

import html
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from lanwake import __version__
from lanwake.api.models import (
    ConfigSavedResponse,
    CsrfResponse,
    HostCheckResponse,
    WakeRequest,
    WakeResponse,
)
from lanwake.api.ratelimit import RateLimiter
from lanwake.auth.session import (
    BASIC_REALM,
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    DEFAULT_MAX_AGE,
    check_basic_auth,
    generate_csrf_token,
    generate_secret,
    make_csrf_cookie,
    validate_csrf,
)
from lanwake.config.loader import AppSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = Path.home() / ".config" / "lanwake" / "config.yaml"

_SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
}

_NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, must-revalidate",
    "Pragma": "no-cache",
}


class LanwakeAuthMiddleware(BaseHTTPMiddleware):
    """Gate every request behind basic auth when credentials are configured."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        settings: AppSettings = request.app.state.settings
        authorization = request.headers.get("authorization", "")
        if settings.basic_auth_enabled and not check_basic_auth(
            authorization, settings.username, settings.password
        ):
            response: Response = PlainTextResponse(
                "Authentication required.",
                status_code=401,
                headers={"WWW-Authenticate": f'Basic realm="{BASIC_REALM}"'},
            )
        else:
            response = await call_next(request)
        for name, value in _SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


def _json(
    content: Any, status_code: int = 200, headers: Optional[Mapping[str, str]] = None
) -> JSONResponse:
    merged = {**_NO_CACHE_HEADERS, **(headers or {})}
    return JSONResponse(content, status_code=status_code, headers=merged)


def _load_settings(config_path: Path, environ: Optional[Mapping[str, str]]) -> AppSettings:
    from lanwake.config.loader import (
        ConfigError,
        load_config,
        settings_from_config,
        validate_settings,
    )
    from lanwake.config.writer import write_config

    raw: dict[str, Any] = {}
    if config_path.exists():
        raw = load_config(config_path) or {}
        errors = validate_settings(raw)
        if errors:
            raise ConfigError("; ".join(errors))
        auth: dict[str, Any] = raw.get("auth") or {}
        # Seed auth.session_secret so CSRF cookies survive restarts
        if not auth.get("session_secret"):
            auth["session_secret"] = generate_secret()
            raw["auth"] = auth
            write_config(config_path, raw)
    else:
        logger.warning("Config not found at %s, using defaults", config_path)

    settings = settings_from_config(raw, config_path, environ)
    if not settings.session_secret:
        settings.session_secret = generate_secret()
    return settings


def create_app(
    config_path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config_path: Path to lanwake config.yaml. If None, uses the default location.
        environ: Environment mapping for WOL_* overrides (defaults to os.environ)

    Returns:
        FastAPI application instance

    Raises:
        ConfigError: If the settings file is invalid
    """
    from lanwake.config.loader import HostFileError, load_hosts_raw, validate_hosts
    from lanwake.config.writer import write_hosts
    from lanwake.core.hosts import HostRecord

    _config_path = Path(config_path) if config_path else DEFAULT_CONFIG

    app = FastAPI(
        title="lanwake",
        version=__version__,
        description="Wake-on-LAN host list and reachability service",
    )

    # ── App state ─────────────────────────────────────────────────────────────
    app.state.config_path = _config_path
    app.state.settings = _load_settings(_config_path, environ)
    app.state.rate_limiter = RateLimiter()
    logger.info("Host list: %s", app.state.settings.hosts_file)

    app.add_middleware(LanwakeAuthMiddleware)

    # ── Helpers ────────────────────────────────────────────────────────────────

    def _settings() -> AppSettings:
        settings: AppSettings = app.state.settings
        return settings

    def _rate_limited(request: Request, action: str, max_requests: int) -> Optional[JSONResponse]:
        client = request.client.host if request.client else "unknown"
        window = _settings().rate_limits.window_secs
        if app.state.rate_limiter.allow(client, action, max_requests, window):
            return None
        logger.warning("Rate limit hit for %s on %s", client, action)
        return _json({"error": "Too many requests. Please try again later."}, 429)

    def _csrf_ok(request: Request) -> bool:
        return validate_csrf(
            request.headers.get(CSRF_HEADER_NAME, ""),
            request.cookies.get(CSRF_COOKIE_NAME, ""),
            _settings().session_secret,
        )

    def _csrf_failed() -> JSONResponse:
        return _json({"error": "CSRF token validation failed."}, 403)

    def _set_csrf_cookie(response: Response, token: str) -> None:
        response.set_cookie(
            CSRF_COOKIE_NAME,
            make_csrf_cookie(token, _settings().session_secret),
            httponly=True,
            samesite="strict",
            max_age=DEFAULT_MAX_AGE,
        )

    # ── CSRF bootstrap ────────────────────────────────────────────────────────

    @app.get("/auth/csrf")
    async def get_csrf() -> JSONResponse:
        token = generate_csrf_token()
        resp = _json(CsrfResponse(csrf_token=token).model_dump(by_alias=True))
        _set_csrf_cookie(resp, token)
        return resp

    # ── Host list ─────────────────────────────────────────────────────────────

    @app.get("/config")
    async def get_config() -> JSONResponse:
        try:
            entries = load_hosts_raw(_settings().hosts_file)
        except HostFileError as exc:
            logger.error("%s", exc)
            return _json({"error": f"Failed to parse configuration file: {exc}"}, 500)
        return _json(entries)

    @app.post("/config")
    async def post_config(request: Request) -> JSONResponse:
        limited = _rate_limited(request, "CONFIG.SET", _settings().rate_limits.config_set)
        if limited:
            return limited
        if not _csrf_ok(request):
            return _csrf_failed()

        try:
            entries = json.loads(await request.body())
        except ValueError as exc:
            return _json({"error": f"Invalid JSON data: {exc}"}, 400)

        errors = validate_hosts(entries)
        if errors:
            return _json({"error": "Invalid configuration.", "errors": errors}, 400)

        hosts = [HostRecord.from_dict(e) for e in entries]
        try:
            write_hosts(_settings().hosts_file, hosts)
        except OSError as exc:
            logger.error("Cannot write %s: %s", _settings().hosts_file, exc)
            return _json(
                {
                    "error": "Cannot write configuration file. "
                    "Please make sure the server can write to the folder."
                },
                500,
            )
        logger.info("Saved %d host(s) to %s", len(hosts), _settings().hosts_file)

        token = generate_csrf_token()
        resp = _json(ConfigSavedResponse(csrf_token=token).model_dump(by_alias=True))
        _set_csrf_cookie(resp, token)
        return resp

    @app.get("/config/download")
    async def get_config_download() -> JSONResponse:
        try:
            entries = load_hosts_raw(_settings().hosts_file)
        except HostFileError as exc:
            logger.error("%s", exc)
            return _json({"error": f"Failed to parse configuration file: {exc}"}, 500)
        filename = f"wake-on-lan-{datetime.now():%Y%m%d-%H%M%S}.json"
        return _json(
            entries,
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    # ── Core operations ───────────────────────────────────────────────────────
    # Plain ``def`` endpoints: both block on sockets and run in the threadpool.

    @app.get("/hosts/check")
    def get_host_check(request: Request, host: str = "") -> JSONResponse:
        from lanwake.core.probe import check_host, is_checkable_host

        limited = _rate_limited(request, "HOST.CHECK", _settings().rate_limits.host_check)
        if limited:
            return limited
        if not host:
            return _json({"error": "Parameter host not set."}, 400)
        if not is_checkable_host(host):
            return _json({"error": "Invalid host parameter."}, 400)

        result = check_host(host, timeout=_settings().probe_timeout)
        body = HostCheckResponse(
            is_up=result.is_up,
            info=result.info,
            err_code=result.err_code,
            err_str=result.err_str,
            error_port=result.error_port,
        )
        return _json(body.model_dump(by_alias=True))

    @app.post("/hosts/wake")
    def post_host_wake(req: WakeRequest, request: Request, debug: bool = False) -> JSONResponse:
        from lanwake.core.magic import DebugTrace, send_wake
        from lanwake.core.result import Err, TransportError

        limited = _rate_limited(request, "HOST.WAKEUP", _settings().rate_limits.host_wakeup)
        if limited:
            return limited
        if not _csrf_ok(request):
            return _csrf_failed()

        trace = DebugTrace()
        result = send_wake(
            req.mac,
            req.host,
            req.cidr,
            req.port,
            default_port=_settings().default_port,
            trace=trace,
        )
        if isinstance(result, Err):
            error: dict[str, Any] = {"error": result.error.message}
            if debug:
                error["DEBUG"] = trace.lines
            status = 500 if isinstance(result.error, TransportError) else 400
            return _json(error, status)

        token = generate_csrf_token()
        body = WakeResponse(
            info=(
                f"Magic packet has been sent for {html.escape(req.mac)}. "
                "Please wait for the host to come up..."
            ),
            csrf_token=token,
            debug=trace.lines if debug else None,
        )
        resp = _json(body.model_dump(by_alias=True, exclude_none=True))
        _set_csrf_cookie(resp, token)
        return resp

    return app

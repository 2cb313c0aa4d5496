"""FastAPI application factory for the providers dev server.

Routes:
    GET  /manifest.json, /dist/{provider}/{file}     (routes.dist)
    GET  /{provider}/{function}, /{provider}/search/{query}
                                                      (routes.providers)
    POST /build; GET /status, /providers, /health     (inline below)
Anything else → 404 with the endpoint list.
"""
from __future__ import annotations

import argparse
import logging
import os
import socket
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from core import metrics
from core.config import AggregatedConfig, clear_config_cache, get_config
from core.errors import DevServerError
from core.logs import configure_logging
from core.providers import Dispatcher, make_context
from core.providers.build import run_build
from core.providers.status import build_time, list_providers
from vega_dev.api.routes.dist import router as dist_router
from vega_dev.api.routes.providers import router as providers_router

log = logging.getLogger("vega.api")

AVAILABLE_ENDPOINTS = [
    "GET /manifest.json",
    "GET /dist/:provider/:file",
    "GET /:provider/:function (execute)",
    "POST /build",
    "GET /status",
    "GET /providers",
    "GET /health",
]


def _utc_iso_now() -> str:
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class BuildOutputFiles(StaticFiles):
    """StaticFiles whose directory may not exist yet.

    A missing directory answers 404 on every request until it appears,
    instead of StaticFiles' one-off RuntimeError.
    """

    async def check_config(self) -> None:
        if self.directory is not None and not os.path.isdir(self.directory):
            raise StarletteHTTPException(status_code=404)
        await super().check_config()


def create_app(config: AggregatedConfig | None = None) -> FastAPI:
    cfg = config if config is not None else get_config()
    app = FastAPI(
        title="Vega Providers Dev Server",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
    )
    app.state.config = cfg
    app.state.dispatcher = Dispatcher(
        cfg.dist_dir, lambda: make_context(cfg.provider_context)
    )

    # Origin-unrestricted by default: local / mobile device testing only
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors.allow_origins,
        allow_methods=cfg.cors.allow_methods,
        allow_headers=cfg.cors.allow_headers,
    )

    @app.exception_handler(DevServerError)
    async def _dev_server_error(request: Request, exc: DevServerError):
        metrics.inc_error(exc.error_type)
        return JSONResponse(
            status_code=exc.status_code, content=exc.payload()
        )

    @app.exception_handler(StarletteHTTPException)
    async def _unmatched(request: Request, exc: StarletteHTTPException):
        # 405 means the path exists only for another method: unmatched too
        if exc.status_code in (404, 405):
            metrics.inc_error("not-found")
            return JSONResponse(
                status_code=404,
                content={
                    "error": "Not found",
                    "availableEndpoints": AVAILABLE_ENDPOINTS,
                },
            )
        return JSONResponse(
            status_code=exc.status_code, content={"error": exc.detail}
        )

    @app.post("/build")
    def build():  # noqa: D401
        run_build(cfg.build, cwd=cfg.paths.root)
        return {"success": True, "message": "Build completed"}

    @app.get("/status")
    def status():  # noqa: D401
        providers = list_providers(cfg.dist_dir)
        return {
            "status": "running",
            "port": cfg.server.port,
            "providers": len(providers),
            "providerList": providers,
            "buildTime": build_time(cfg.manifest_path),
        }

    @app.get("/providers")
    def providers():  # noqa: D401
        return list_providers(cfg.dist_dir)

    @app.get("/health")
    def health():  # noqa: D401
        return {"status": "healthy", "timestamp": _utc_iso_now()}

    app.include_router(dist_router)
    app.include_router(providers_router)

    # Deeper build output (source maps, assets) served as-is. The module
    # root may only appear after the first POST /build.
    app.mount(
        "/dist",
        BuildOutputFiles(directory=str(cfg.dist_dir), check_dir=False),
        name="dist",
    )

    @app.middleware("http")
    async def _request_log_mw(request: Request, call_next):  # noqa: D401
        start = time.time()
        path = request.url.path
        method = request.method
        query = request.url.query
        log.info("%s %s%s", method, path, f"?{query}" if query else "")
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000.0
        labels = {"route": path, "method": method}
        metrics.inc("api_request_total", labels)
        metrics.observe("api_request_latency_ms", duration_ms, labels)
        if response.status_code >= 400:
            metrics.inc(
                "api_request_errors_total",
                labels | {"status": response.status_code},
            )
        return response

    return app


def _local_ip() -> str:
    """Best-effort LAN IPv4 address (no packet is sent)."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(("10.255.255.255", 1))
        return sock.getsockname()[0]
    except OSError:
        return "localhost"
    finally:
        sock.close()


def _log_banner(cfg: AggregatedConfig, port: int) -> None:
    local_ip = _local_ip()
    log.info("Vega Providers Dev Server starting")
    log.info("Server URL: http://localhost:%d", port)
    log.info("Mobile Test URL: http://%s:%d", local_ip, port)
    log.info(
        "Point the app at http://%s:%d to test providers", local_ip, port
    )
    log.info("Auto-rebuild: POST to /build to rebuild after changes")
    if not cfg.dist_dir.is_dir():
        log.warning(
            "No build found at %s. Run the build first (%s)",
            cfg.dist_dir,
            cfg.build.command,
        )


def main(argv: list[str] | None = None) -> None:  # pragma: no cover
    import uvicorn

    cfg = get_config()
    parser = argparse.ArgumentParser(
        description="Local dev server for testing providers"
    )
    parser.add_argument("--host", default=cfg.server.host)
    parser.add_argument("--port", type=int, default=cfg.server.port)
    parser.add_argument(
        "--reload",
        action="store_true",
        help="restart the server on source changes of the server itself",
    )
    args = parser.parse_args(argv)
    # /status reports the port from config; rebuild it with the CLI value
    os.environ["PORT"] = str(args.port)
    clear_config_cache()
    cfg = get_config()
    configure_logging(cfg.logging)
    _log_banner(cfg, args.port)
    uvicorn.run(
        "vega_dev.api.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == "__main__":  # pragma: no cover
    main()

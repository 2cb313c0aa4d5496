"""Build output routes: manifest and individual files under the module root."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import FileResponse, JSONResponse

from core.config import AggregatedConfig
from core.errors import ProviderNotFound
from core.providers import loader

router = APIRouter()
log = logging.getLogger("vega.api.dist")


@router.get("/manifest.json")
def manifest(request: Request):  # noqa: D401
    cfg: AggregatedConfig = request.app.state.config
    path = cfg.manifest_path
    log.debug("Serving manifest from: %s", path)
    if not path.is_file():
        raise ProviderNotFound("Manifest not found. Run build first.")
    return FileResponse(path, media_type="application/json")


@router.get("/dist/{provider}/{file}")
def dist_file(provider: str, file: str, request: Request):
    """Module files come back as their JSON-able exports, others raw."""
    cfg: AggregatedConfig = request.app.state.config
    try:
        path = loader.resolve_module_path(cfg.dist_dir / provider / file)
    except ProviderNotFound:
        path = None
    if path is None or not path.is_file():
        log.error("File not found: %s/%s", provider, file)
        raise ProviderNotFound(
            f"File not found: {provider}/{file}",
            hint="Make sure to run build first",
        )
    if path.suffix != loader.MODULE_SUFFIX:
        return FileResponse(path)
    try:
        exports = loader.load(path)
        return JSONResponse(
            content=jsonable_encoder(loader.serializable_exports(exports))
        )
    except Exception as e:  # noqa: BLE001
        log.exception("Error loading module: %s", path)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to load module", "details": str(e)},
        )

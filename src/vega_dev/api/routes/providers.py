"""Provider execution routes: /{provider}/{function} and search redirect."""
from __future__ import annotations

import logging
import traceback
from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, RedirectResponse

from core.errors import ExecutionError
from core.providers import Dispatcher

router = APIRouter()
log = logging.getLogger("vega.api.providers")

# encodeURIComponent leaves these unescaped
_URI_COMPONENT_SAFE = "-_.!~*'()"


def _result_response(provider: str, function_name: str, result: Any):
    # NaN, undecodable bytes etc. fail here, after the provider returned
    try:
        return JSONResponse(content=jsonable_encoder(result))
    except Exception as e:  # noqa: BLE001
        log.exception(
            "Unserialisable result from %s/%s", provider, function_name
        )
        raise ExecutionError(
            str(e) or e.__class__.__name__, traceback.format_exc()
        ) from e


@router.get("/{provider}/search/{query}")
def search_redirect(provider: str, query: str):  # noqa: D401
    encoded = quote(query, safe=_URI_COMPONENT_SAFE)
    return RedirectResponse(
        f"/{provider}/search?query={encoded}", status_code=302
    )


@router.get("/{provider}/{function_name}")
async def execute(provider: str, function_name: str, request: Request):
    """Load ``{dist}/{provider}/{function_name}.py`` and run it."""
    dispatcher: Dispatcher = request.app.state.dispatcher
    result = await dispatcher.dispatch(
        provider, function_name, request.query_params
    )
    return _result_response(provider, function_name, result)

from __future__ import annotations

from mangum import Mangum

from backend.fastapi_app.main import _diag, app


def _safe_get(d, *keys, default=None):
    cur = d
    for k in keys:
        if not isinstance(cur, dict) or k not in cur:
            return default
        cur = cur[k]
    return cur


def _base_path(stage):
    # $default ステージはパスにステージ名が付かない
    if stage and stage != "$default":
        return f"/{stage}"
    return None


def handler(event, context):
    stage = _safe_get(event, "requestContext", "stage", default=None)
    method = _safe_get(event, "requestContext", "http", "method", default=None)

    _diag(
        "incoming_request",
        stage=stage,
        method=method,
        rawPath=event.get("rawPath"),
        **{"requestContext.http.path": _safe_get(event, "requestContext", "http", "path", default=None)},
    )

    # /dev や /prod を Mangum 側で剥がして FastAPI に渡す
    asgi = Mangum(app, api_gateway_base_path=_base_path(stage))
    return asgi(event, context)

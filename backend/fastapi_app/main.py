from __future__ import annotations

import json
import sys
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# ============================================================
# プロジェクトルートを sys.path に追加
# （Lambda / uvicorn どちらでも core パッケージを解決できるように）
# ============================================================
ROOT_DIR = Path(__file__).resolve().parents[2]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from core.csv_table.models import CsvTableRequest, RenderRequest  # noqa: E402
from core.csv_table.service import (  # noqa: E402
    API_VERSION,
    CsvTableError,
    InvalidBase64Error,
    PayloadTooLargeError,
    process_csv,
    render_rows,
)
from core.csv_table.settings import load_settings  # noqa: E402

settings = load_settings()

ERROR_STATUS = {
    InvalidBase64Error.code: 400,
    PayloadTooLargeError.code: 413,
}


def _diag(event: str, **fields) -> None:
    """CloudWatch 向けの 1 行 JSON ログ"""
    print(json.dumps({"diag": event, **fields}, ensure_ascii=False))


# ============================================================
# API Gateway 側で /table をプレフィックスとしてルーティングするため、
# FastAPI には root_path を指定し、ルート定義は /v0/... にする
# ============================================================
app = FastAPI(
    title="CSV Table API",
    version=API_VERSION,
    description="CSV parse & table render API (v0.1)",
    root_path=settings.root_path,
)


@app.exception_handler(CsvTableError)
async def csv_table_error_handler(_: Request, exc: CsvTableError) -> JSONResponse:
    _diag("request_rejected", code=exc.code, message=str(exc))
    return JSONResponse(
        status_code=ERROR_STATUS.get(exc.code, 400),
        content={
            "error": {
                "code": exc.code,
                "message": str(exc),
            },
            "meta": {
                "version": API_VERSION,
            },
        },
    )


@app.post("/v0/parse")
async def csv_parse_endpoint(payload: CsvTableRequest):
    response = process_csv(payload, settings)
    _diag(
        "parse_completed",
        rows=len(response.result.rows),
        issues=len(response.result.issues),
        response_level=payload.response_level.value,
    )
    return response.model_dump()


@app.post("/v0/render")
async def csv_render_endpoint(payload: RenderRequest):
    return render_rows(payload).model_dump()

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional, List, Dict

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


LineEnding = Literal["lf", "crlf"]


class ResponseLevel(str, Enum):
    """
    Response verbosity level.
    - simple   : rows + html only
    - standard : adds csv_text, issues and stats
    - debug    : full response for diagnostics (parser report, settings)
    """

    simple = "simple"
    standard = "standard"
    debug = "debug"


class Issue(BaseModel):
    type: str
    row: Optional[int] = None
    column: Optional[int] = None
    severity: Literal["info", "warning", "error"] = "warning"
    description: str
    fixed: bool = False


class Stats(BaseModel):
    rows: int = 0
    columns_min: int = 0
    columns_max: int = 0
    columns_mode: int = 0
    cells: int = 0
    header_rows: int = 0
    body_rows: int = 0
    truncated_rows: int = 0


class CsvTableResult(BaseModel):
    """
    result 部は response_level に応じて省略されうるため、
    html / csv_text / stats は Optional とする。
    """

    rows: List[List[str]] = Field(default_factory=list)
    html: Optional[str] = None
    csv_text: Optional[str] = None
    issues: List[Issue] = Field(default_factory=list)
    stats: Optional[Stats] = None


class CsvTableResponse(BaseModel):
    result: CsvTableResult
    meta: Dict[str, Any]


class CsvTableRequest(BaseModel):
    """
    CSV Table API (v0.1) リクエストモデル

    基本は csv_b64 だけ渡せばよい。
    max_rows=0 の場合はサーバ設定 (CSV_TABLE_MAX_ROWS) に従う。
    """

    csv_b64: str
    max_rows: int = 0
    include_html: bool = True
    escape_html: bool = False
    line_ending: LineEnding = "lf"

    response_level: ResponseLevel = Field(
        default=ResponseLevel.simple,
        description="Response verbosity: simple | standard | debug",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "csv_b64": "<Base64 encoded CSV string>",
                "response_level": "simple",
            }
        }
    )


class RenderRequest(BaseModel):
    """パース済みの rows をそのまま <table> にする"""

    rows: List[List[Optional[str]]] = Field(default_factory=list)
    escape_html: bool = False


class RenderResponse(BaseModel):
    html: str

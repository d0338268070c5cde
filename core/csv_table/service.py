from __future__ import annotations

import base64
import binascii
import csv
import io
import statistics
from dataclasses import asdict
from typing import List, Tuple, Optional, Dict, Any

from .models import (
    CsvTableRequest,
    CsvTableResult,
    CsvTableResponse,
    Issue,
    LineEnding,
    RenderRequest,
    RenderResponse,
    ResponseLevel,
    Stats,
)
from .parser import LINE_BREAKS, Grid, ParsedDocument, scan
from .renderer import HEADER_ROW_COUNT, render
from .settings import Settings, load_settings

API_VERSION = "0.1.0"


class CsvTableError(Exception):
    """CSV Table サービスの例外の基底クラス"""

    code = "CSV_TABLE_ERROR"


class InvalidBase64Error(CsvTableError):
    """Base64 デコード失敗時に投げる独自例外"""

    code = "INVALID_BASE64"


class PayloadTooLargeError(CsvTableError):
    """デコード後のサイズが上限を超えた場合に投げる"""

    code = "PAYLOAD_TOO_LARGE"


# ---------------------------------------------------------------------------
# Base64 / テキストユーティリティ
# ---------------------------------------------------------------------------


def _decode_base64_to_text(csv_b64: str, max_input_bytes: int = 0) -> str:
    """Base64 -> UTF-8 テキストに変換

    - 先に空白類（スペース・改行・タブなど）をすべて削除
    - そのうえで validate=True で厳密に Base64 を検証
    - 先頭の BOM はブラウザの readAsText と同様に取り除く
    """
    try:
        compact = "".join(csv_b64.split())
        raw = base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidBase64Error("csv_b64 is not valid Base64 UTF-8 text") from exc

    if max_input_bytes > 0 and len(raw) > max_input_bytes:
        raise PayloadTooLargeError(
            f"decoded CSV is {len(raw)} bytes (limit {max_input_bytes} bytes)"
        )

    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InvalidBase64Error("csv_b64 is not valid Base64 UTF-8 text") from exc


# ---------------------------------------------------------------------------
# 構造解析 / Stats
# ---------------------------------------------------------------------------


def _analyze_structure(rows: Grid) -> Tuple[Stats, List[Issue]]:
    """列数の分布を集計する。パーサは列数を揃えないので、ここでは診断のみ行う。"""
    issues: List[Issue] = []

    if not rows:
        return Stats(), issues

    col_counts = [len(r) for r in rows]
    rows_count = len(rows)

    try:
        columns_mode = int(statistics.mode(col_counts))
    except statistics.StatisticsError:
        columns_mode = int(round(statistics.mean(col_counts)))

    for i, col_count in enumerate(col_counts, start=1):
        if col_count != columns_mode:
            issues.append(
                Issue(
                    type="COLUMN_COUNT_MISMATCH",
                    row=i,
                    column=None,
                    severity="warning",
                    description=(
                        f"Row has {col_count} columns (expected ~{columns_mode}). "
                        "Rows are rendered as-is without padding."
                    ),
                    fixed=False,
                )
            )

    header_rows = min(rows_count, HEADER_ROW_COUNT)
    stats = Stats(
        rows=rows_count,
        columns_min=min(col_counts),
        columns_max=max(col_counts),
        columns_mode=columns_mode,
        cells=sum(col_counts),
        header_rows=header_rows,
        body_rows=rows_count - header_rows,
    )
    return stats, issues


def _parser_issues(doc: ParsedDocument, returned_rows: int) -> List[Issue]:
    """パーサの付帯情報から issues を作る。row は返却する rows の範囲内のみ指定する。"""
    issues: List[Issue] = []
    if doc.unterminated_quote:
        # 開いたままのクォートは常に最終行に含まれる
        last_row = len(doc.grid)
        row_no = last_row if 0 < last_row <= returned_rows else None
        issues.append(
            Issue(
                type="UNTERMINATED_QUOTE",
                row=row_no,
                column=None,
                severity="warning",
                description=(
                    "Input ended inside a quoted field; "
                    "the remaining text was kept as cell content."
                ),
                fixed=False,
            )
        )
    return issues


# ---------------------------------------------------------------------------
# 再シリアライズ
# ---------------------------------------------------------------------------


def _rows_to_text(rows: Grid, line_ending: LineEnding) -> str:
    """2 次元配列の rows を RFC4180 風の CSV テキストに再構成する。"""
    lineterminator = "\r\n" if line_ending == "crlf" else "\n"

    output = io.StringIO()
    writer_kwargs = {
        "delimiter": ",",
        "quotechar": '"',
        "lineterminator": lineterminator,
        "doublequote": True,
    }
    writer = csv.writer(output, quoting=csv.QUOTE_MINIMAL, **writer_kwargs)
    # QUOTE_MINIMAL は lineterminator に無い改行文字（"\n" 指定時の "\r" など）を
    # クォートしないことがあるため、改行を含む行は全セルをクォートする
    writer_all = csv.writer(output, quoting=csv.QUOTE_ALL, **writer_kwargs)

    for row in rows:
        if any(ch in cell for cell in row for ch in LINE_BREAKS):
            writer_all.writerow(row)
        else:
            writer.writerow(row)
    return output.getvalue()


# ---------------------------------------------------------------------------
# response_level による間引き
# ---------------------------------------------------------------------------


def _minimize_response(
    level: ResponseLevel,
    result_full: CsvTableResult,
    meta_full: Dict[str, Any],
) -> CsvTableResponse:
    """
    トップ構造 {result, meta} は維持しつつ、
    response_level に応じて result/meta の中身を最小化する。
    """

    meta_simple: Dict[str, Any] = {
        "version": meta_full.get("version"),
        "response_level_used": level.value,
    }

    if level == ResponseLevel.simple:
        result = CsvTableResult(rows=result_full.rows, html=result_full.html)
        return CsvTableResponse(result=result, meta=meta_simple)

    if level == ResponseLevel.standard:
        meta_standard: Dict[str, Any] = dict(meta_simple)
        if "max_rows_used" in meta_full:
            meta_standard["max_rows_used"] = meta_full["max_rows_used"]
        return CsvTableResponse(result=result_full, meta=meta_standard)

    # debug: meta_full をそのまま返す
    meta_debug = dict(meta_full)
    meta_debug["response_level_used"] = level.value
    return CsvTableResponse(result=result_full, meta=meta_debug)


# ---------------------------------------------------------------------------
# API エントリーポイント
# ---------------------------------------------------------------------------


def process_csv(
    request: CsvTableRequest,
    settings: Optional[Settings] = None,
) -> CsvTableResponse:
    """CSV Table API のメイン処理"""
    if settings is None:
        settings = load_settings()

    # 1) Base64 -> UTF-8
    text = _decode_base64_to_text(request.csv_b64, settings.max_input_bytes)

    # 2) パース
    doc = scan(text)

    # 3) 行数制限（リクエスト指定 > サーバ設定）
    max_rows = max(0, int(request.max_rows or 0)) or settings.max_rows
    if max_rows > 0 and len(doc.grid) > max_rows:
        rows = doc.grid[:max_rows]
        truncated = len(doc.grid) - max_rows
    else:
        rows = doc.grid
        truncated = 0

    # 4) 構造解析
    stats, issues = _analyze_structure(rows)
    stats.truncated_rows = truncated
    issues = _parser_issues(doc, len(rows)) + issues
    if truncated:
        issues.append(
            Issue(
                type="ROWS_TRUNCATED",
                row=max_rows + 1,
                column=None,
                severity="info",
                description=f"{truncated} row(s) after row {max_rows} were dropped.",
                fixed=False,
            )
        )

    # 5) 描画・再シリアライズ
    html = render(rows, escape=request.escape_html) if request.include_html else None

    result_full = CsvTableResult(
        rows=rows,
        html=html,
        csv_text=_rows_to_text(rows, request.line_ending),
        issues=issues,
        stats=stats,
    )
    meta_full: Dict[str, Any] = {
        "version": API_VERSION,
        "max_rows_used": max_rows,
        "parser": {
            "delimiters": doc.delimiters,
            "unterminated_quote": doc.unterminated_quote,
            "input_chars": len(text),
        },
        "settings": asdict(settings),
    }

    return _minimize_response(
        level=request.response_level,
        result_full=result_full,
        meta_full=meta_full,
    )


def render_rows(request: RenderRequest) -> RenderResponse:
    """パース済みの rows を HTML テーブルにする"""
    return RenderResponse(html=render(request.rows, escape=request.escape_html))

from __future__ import annotations

import html
from typing import List, Optional, Sequence

# 先頭 2 行は常にヘッダとして扱う（データの形に関係なく固定）
HEADER_ROW_COUNT = 2


def _cell_text(cell: Optional[str], escape: bool) -> str:
    value = cell or ""
    if escape:
        return html.escape(value)
    return value


def render(grid: Sequence[Sequence[Optional[str]]], escape: bool = False) -> str:
    """2 次元配列を HTML の <table> 文字列にする

    - 行番号 0, 1 のセルは <th>、それ以降は <td>
    - None / 空文字のセルは空文字として出力する
    - escape=False（デフォルト）ではセル値を HTML エスケープしない。
      信頼できない入力を表示する場合は呼び出し側で escape=True を指定すること
    """
    parts: List[str] = ["<table>"]

    for r_idx, row in enumerate(grid):
        tag = "th" if r_idx < HEADER_ROW_COUNT else "td"
        parts.append("<tr>")
        for cell in row:
            parts.append(f"<{tag}>{_cell_text(cell, escape)}</{tag}>")
        parts.append("</tr>")

    parts.append("</table>")
    return "".join(parts)

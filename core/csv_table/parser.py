from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List

Cell = str
Row = List[Cell]
Grid = List[Row]

QUOTE = '"'
DELIMITER = ","
LINE_BREAKS = ("\n", "\r")


class ParserState(IntEnum):
    """クォート文脈（クォート内かどうか）"""

    NORMAL = 0
    IN_QUOTES = 1


@dataclass
class ParsedDocument:
    """scan() の結果。grid 以外は診断用の付帯情報。"""

    grid: Grid = field(default_factory=list)
    delimiters: int = 0
    unterminated_quote: bool = False


# ---------------------------------------------------------------------------
# パーサ本体
# ---------------------------------------------------------------------------


def scan(text: str) -> ParsedDocument:
    """CSV テキストを 1 パスで走査し、2 次元配列と付帯情報を返す

    - どんな入力でも例外は出さない（壊れた CSV もベストエフォートで読む）
    - 空行は行として出力しない。CRLF は 1 つの改行として扱われる
    - クォート外の `"` もクォート文脈を反転させる（ab"cd 等）
    """
    doc = ParsedDocument()
    row: Row = []
    value: List[str] = []
    state = ParserState.NORMAL

    i = 0
    length = len(text)
    while i < length:
        char = text[i]
        next_char = text[i + 1] if i + 1 < length else None

        if char == QUOTE and next_char == QUOTE and state is ParserState.IN_QUOTES:
            # "" はクォート内ではリテラルの " 1 文字
            value.append(QUOTE)
            i += 2
            continue

        if char == QUOTE:
            state = ParserState.NORMAL if state is ParserState.IN_QUOTES else ParserState.IN_QUOTES
        elif char == DELIMITER and state is ParserState.NORMAL:
            row.append("".join(value))
            value = []
            doc.delimiters += 1
        elif char in LINE_BREAKS and state is ParserState.NORMAL:
            if value or row:
                row.append("".join(value))
                doc.grid.append(row)
                row = []
                value = []
        else:
            value.append(char)
        i += 1

    # 末尾に改行がない最終行
    if value or row:
        row.append("".join(value))
        doc.grid.append(row)

    doc.unterminated_quote = state is ParserState.IN_QUOTES
    return doc


def parse(text: str) -> Grid:
    """CSV テキストを行 × セルの 2 次元配列に変換する"""
    return scan(text).grid

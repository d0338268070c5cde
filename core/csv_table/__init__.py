# core/csv_table/__init__.py

"""
CSV Table API core package.

- parser.py  : CSV テキスト -> 2 次元配列（クォート対応の 1 パス走査）
- renderer.py: 2 次元配列 -> HTML テーブル（先頭 2 行はヘッダ）
- models.py  : Pydantic モデル定義
- service.py : メイン処理（Base64 デコード + パース + 統計 + 描画）
- settings.py: 環境変数からの設定読み込み
"""

from .parser import parse, scan
from .renderer import render

__all__ = ["parse", "scan", "render"]

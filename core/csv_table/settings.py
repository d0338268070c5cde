from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_ROOT_PATH = "/table"
DEFAULT_MAX_ROWS = 0  # 0 の場合は無制限
DEFAULT_MAX_INPUT_BYTES = 5 * 1024 * 1024


@dataclass(frozen=True)
class Settings:
    """環境変数から読み込むサービス全体の設定"""

    root_path: str = DEFAULT_ROOT_PATH
    max_rows: int = DEFAULT_MAX_ROWS
    max_input_bytes: int = DEFAULT_MAX_INPUT_BYTES


def _int_env(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """CSV_TABLE_* 環境変数から Settings を組み立てる（不正値はデフォルトに戻す）"""
    if env is None:
        env = os.environ

    return Settings(
        root_path=env.get("CSV_TABLE_ROOT_PATH", DEFAULT_ROOT_PATH),
        max_rows=_int_env(env, "CSV_TABLE_MAX_ROWS", DEFAULT_MAX_ROWS),
        max_input_bytes=_int_env(env, "CSV_TABLE_MAX_INPUT_BYTES", DEFAULT_MAX_INPUT_BYTES),
    )

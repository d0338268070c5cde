import os
import sys
from pathlib import Path

# tests/ から見て 1 つ上 = プロジェクトルート（core / backend を import するため）
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# 実行環境の CSV_TABLE_* 設定がテストに混ざらないようにする
# （backend.fastapi_app.main は import 時に設定を読む）
for key in [k for k in os.environ if k.startswith("CSV_TABLE_")]:
    del os.environ[key]

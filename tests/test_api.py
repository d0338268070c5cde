import base64
import json

from fastapi.testclient import TestClient

from backend.fastapi_app import main
from backend.fastapi_app.lambda_handler import _base_path, _safe_get, handler
from core.csv_table.settings import Settings

client = TestClient(main.app)


def _b64(s: str) -> str:
    """テスト用 Base64 ヘルパー"""
    return base64.b64encode(s.encode("utf-8")).decode("ascii")


def test_parse_endpoint():
    res = client.post("/v0/parse", json={"csv_b64": _b64('a,"b,c"\n1,2\n')})

    assert res.status_code == 200
    body = res.json()
    assert body["result"]["rows"] == [["a", "b,c"], ["1", "2"]]
    assert body["result"]["html"] == (
        "<table><tr><th>a</th><th>b,c</th></tr><tr><th>1</th><th>2</th></tr></table>"
    )
    assert body["meta"]["response_level_used"] == "simple"


def test_parse_endpoint_invalid_base64():
    res = client.post("/v0/parse", json={"csv_b64": "***"})

    assert res.status_code == 400
    body = res.json()
    assert body["error"]["code"] == "INVALID_BASE64"
    assert body["meta"]["version"] == "0.1.0"


def test_parse_endpoint_payload_too_large(monkeypatch):
    monkeypatch.setattr(main, "settings", Settings(max_input_bytes=3))

    res = client.post("/v0/parse", json={"csv_b64": _b64("a,b,c\n")})

    assert res.status_code == 413
    assert res.json()["error"]["code"] == "PAYLOAD_TOO_LARGE"


def test_parse_endpoint_requires_csv_b64():
    res = client.post("/v0/parse", json={})
    assert res.status_code == 422


def test_render_endpoint():
    res = client.post("/v0/render", json={"rows": [["h"], ["h2"], ["d"]], "escape_html": True})

    assert res.status_code == 200
    assert res.json() == {
        "html": "<table><tr><th>h</th></tr><tr><th>h2</th></tr><tr><td>d</td></tr></table>"
    }


def test_lambda_helpers():
    event = {"requestContext": {"stage": "dev", "http": {"method": "POST"}}}

    assert _safe_get(event, "requestContext", "http", "method") == "POST"
    assert _safe_get(event, "requestContext", "missing", default="x") == "x"
    assert _base_path("dev") == "/dev"
    assert _base_path("$default") is None
    assert _base_path(None) is None


def test_lambda_handler_dispatches_render():
    """API Gateway (HTTP API v2) イベントを handler に通し、/dev ステージを剥がして処理されること"""
    body = json.dumps({"rows": [["h"], ["h2"], ["d"]]})
    event = {
        "version": "2.0",
        "routeKey": "POST /v0/render",
        "rawPath": "/dev/v0/render",
        "rawQueryString": "",
        "headers": {"content-type": "application/json", "host": "example.com"},
        "requestContext": {
            "stage": "dev",
            "http": {
                "method": "POST",
                "path": "/dev/v0/render",
                "protocol": "HTTP/1.1",
                "sourceIp": "127.0.0.1",
                "userAgent": "pytest",
            },
        },
        "body": body,
        "isBase64Encoded": False,
    }

    response = handler(event, None)

    assert response["statusCode"] == 200
    assert json.loads(response["body"]) == {
        "html": "<table><tr><th>h</th></tr><tr><th>h2</th></tr><tr><td>d</td></tr></table>"
    }

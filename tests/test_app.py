import json

from fastapi.testclient import TestClient


def test_demo_app_wiring(aws_env, monkeypatch):
    import main

    sent = []
    monkeypatch.setattr(main.latency.emitter, "emit", lambda batch: sent.append(list(batch)))
    client = TestClient(main.app)

    r = client.get("/health")
    assert r.status_code == 200
    assert sent == []  # excluded

    r = client.get("/work/3", headers={"X-Real-IP": "203.0.113.9"})
    assert r.status_code == 200
    assert r.json() == {"units": 3}

    # custom metric from the handler, then the latency datum
    assert [b[0].metric_name for b in sent] == ["WorkUnits", main.latency.latency_metric_name]
    assert sent[0][0].value == 3.0
    assert sent[1][0].dimension("RemoteAddr") == "203.0.113.9"
    assert sent[1][0].dimension("RequestURI") == "/work/3"


def test_logger_writes_json_line(capsys):
    from cwlatency.obs.logger import log_event

    log_event("step", namespace="test", datums=2)
    payload = json.loads(capsys.readouterr().out.strip())
    assert payload["event"] == "step"
    assert payload["level"] == "INFO"
    assert payload["datums"] == 2
    assert "ts" in payload


def test_logger_respects_level(monkeypatch, capsys):
    from cwlatency.config import settings
    from cwlatency.obs.logger import log_event

    monkeypatch.setattr(settings, "LOG_LEVEL", "WARNING")
    log_event("quiet", level="INFO")
    log_event("loud", level="ERROR")
    lines = capsys.readouterr().out.strip().splitlines()
    assert [json.loads(line)["event"] for line in lines] == ["loud"]


def test_settings_excluded_urls(monkeypatch):
    from cwlatency.config import Settings

    monkeypatch.setenv("EXCLUDED_URLS", " /health ,, /ping ")
    monkeypatch.setenv("CLOUDWATCH_MAX_RETRIES", "3")
    s = Settings()
    assert s.excluded_urls == ["/health", "/ping"]
    assert s.CLOUDWATCH_MAX_RETRIES == 3
    assert s.LATENCY_METRIC_NAME == "Latency"


def test_diagnostics_route_reports_counters(aws_env):
    import main
    from cwlatency.obs.diagnostics import inc_counter

    inc_counter("emit_failures_total", {"kind": "transport"})
    r = TestClient(main.app).get("/diagnostics")

    assert r.status_code == 200
    assert {"name": "emit_failures_total", "labels": {"kind": "transport"}, "value": 1} in r.json()["counters"]

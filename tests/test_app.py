import dataclasses
from email.message import Message
from urllib.error import HTTPError

import pytest

import app as app_module
import style_grabber
from conftest import PAGE_URL, SAMPLE_PAGE


@pytest.fixture
def client():
    app_module.app.config.update(TESTING=True)
    return app_module.app.test_client()


def test_healthz(client):
    assert client.get("/healthz").get_json() == {"status": "ok"}


def test_analyze_returns_result(client, serve_page):
    serve_page[PAGE_URL] = SAMPLE_PAGE

    res = client.post("/api/analyze", json={"url": PAGE_URL})

    assert res.status_code == 200
    body = res.get_json()
    assert body["colors"] == ["#FF0000", "rgb(0, 128, 255)"]
    assert body["fontSizes"] == ["2em", "12px", "16px"]
    assert "https://x.test/dir/css/site.css" in body["cssUrls"]
    assert body["html"].startswith("<!DOCTYPE html>")


def test_analyze_accepts_query_string(client, serve_page):
    serve_page[PAGE_URL] = "<p style='color: #123456'>x</p>"
    res = client.get("/api/analyze", query_string={"url": PAGE_URL})
    assert res.status_code == 200
    assert res.get_json()["colors"] == ["#123456"]


@pytest.mark.parametrize("payload", [{}, {"url": "not a url"}, {"url": "ftp://x.test/"}, ["https://x.test/"]])
def test_invalid_url_is_400(client, payload, monkeypatch):
    def no_network(*args, **kwargs):
        raise AssertionError("network used")

    monkeypatch.setattr(style_grabber, "fetch_text", no_network)
    res = client.post("/api/analyze", json=payload)
    assert res.status_code == 400
    assert res.get_json() == {"error": "Enter a valid http(s) URL."}


def test_fetch_failure_is_502_with_single_message(client, monkeypatch):
    def not_found(url, timeout=None):
        raise HTTPError(url, 404, "Not Found", Message(), None)

    monkeypatch.setattr(style_grabber, "fetch_text", not_found)
    res = client.post("/api/analyze", json={"url": PAGE_URL})

    assert res.status_code == 502
    body = res.get_json()
    assert body["error"] == "Failed to analyze website"
    assert "colors" not in body


def test_extraction_failure_is_500(client, serve_page, monkeypatch):
    serve_page[PAGE_URL] = SAMPLE_PAGE

    def broken(document, base_url):
        raise RuntimeError("boom")

    monkeypatch.setattr(style_grabber, "extract_css_urls", broken)
    res = client.post("/api/analyze", json={"url": PAGE_URL})
    assert res.status_code == 500
    assert res.get_json() == {"error": "Failed to analyze website"}


def test_refine_flag_runs_refinement(client, serve_page, monkeypatch):
    serve_page[PAGE_URL] = SAMPLE_PAGE
    calls = []

    def fake_refine(result, base_url=None, settle_ms=None, timeout_ms=None):
        calls.append((base_url, settle_ms, timeout_ms))
        return dataclasses.replace(result, fonts=["Computed Sans"], font_sizes=["16px"])

    monkeypatch.setattr(app_module, "refine_typography", fake_refine)
    monkeypatch.setitem(app_module.app.config, "SETTLE_MS", 250)

    res = client.post("/api/analyze", json={"url": PAGE_URL, "refine": True})

    assert res.get_json()["fonts"] == ["Computed Sans"]
    assert res.get_json()["colors"] == ["#FF0000", "rgb(0, 128, 255)"]
    assert calls == [(PAGE_URL, 250, app_module.app.config["RENDER_TIMEOUT_MS"])]


def test_refinement_is_off_by_default(client, serve_page, monkeypatch):
    serve_page[PAGE_URL] = SAMPLE_PAGE

    def fail(*args, **kwargs):
        raise AssertionError("refinement should not run")

    monkeypatch.setattr(app_module, "refine_typography", fail)
    assert client.post("/api/analyze", json={"url": PAGE_URL}).status_code == 200

#!/usr/bin/env python3
"""Style Grabber web application."""

from __future__ import annotations

import logging

from flask import Flask, jsonify, request

import style_grabber
from typography_refiner import RENDER_TIMEOUT_MS, SETTLE_MS, refine_typography

GENERIC_FAILURE = "Failed to analyze website"

app = Flask(__name__)
app.config.update(
    FETCH_TIMEOUT=style_grabber.DEFAULT_TIMEOUT,
    IMAGE_WORKERS=style_grabber.IMAGE_WORKERS,
    SETTLE_MS=SETTLE_MS,
    RENDER_TIMEOUT_MS=RENDER_TIMEOUT_MS,
)
app.config.from_prefixed_env("STYLE_GRABBER")

logger = logging.getLogger(__name__)


def wants_refinement(payload: dict) -> bool:
    flag = payload.get("refine", request.args.get("refine", ""))
    if isinstance(flag, str):
        return flag.strip().lower() in {"1", "true", "yes"}
    return bool(flag)


@app.get("/healthz")
def healthz():
    return jsonify({"status": "ok"})


@app.route("/api/analyze", methods=["GET", "POST"])
def analyze():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        payload = {}
    url = (payload.get("url") or request.form.get("url") or request.args.get("url") or "").strip()

    try:
        result = style_grabber.analyze(
            url,
            timeout=app.config["FETCH_TIMEOUT"],
            workers=app.config["IMAGE_WORKERS"],
        )
    except style_grabber.ValidationError:
        return jsonify({"error": "Enter a valid http(s) URL."}), 400
    except style_grabber.FetchError as exc:
        logger.warning("Fetch failed: %s", exc)
        summary, hints = style_grabber.classify_fetch_error(exc)
        return jsonify({"error": GENERIC_FAILURE, "detail": summary, "hints": hints}), 502
    except style_grabber.AnalysisError:
        logger.exception("Error analyzing website %s", url)
        return jsonify({"error": GENERIC_FAILURE}), 500

    if wants_refinement(payload):
        result = refine_typography(
            result,
            base_url=url,
            settle_ms=app.config["SETTLE_MS"],
            timeout_ms=app.config["RENDER_TIMEOUT_MS"],
        )
    return jsonify(result.to_dict())


if __name__ == "__main__":
    style_grabber.configure_logging()
    app.run(host="0.0.0.0", port=8000, debug=False)

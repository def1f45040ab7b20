"""HTTP router: validates the request, calls the upstream clients and shapes the JSON reply.

Routes:
  GET  /?prompt=...       -> {prompt, aiResponse, images}
  GET  /ai?prompt=...     -> {prompt, aiResponse}
  GET  /image?prompt=...  -> {prompt, images}
  POST /insert            -> {success, record}
  OPTIONS <any path>      -> 204, CORS headers only

Build it with `create_app(settings)`; pass `ai_client`, `image_client` or
`record_store` to swap in other implementations (tests do this).
"""
import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import List, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from .config import Settings
from .errors import ClientInputError, UpstreamError
from .groq_client import GroqClient
from .image_search import DISPLAY_LIMIT, ImageSearchClient
from .record_store import FIELDS, RecordStore


LOG_PREVIEW_LIMIT = 3

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


def require_prompt() -> str:
    prompt = (request.args.get("prompt") or "").strip()
    if not prompt:
        raise ClientInputError("Missing ?prompt= parameter")
    return prompt


def require_insert_payload() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        body = {}
    missing = [name for name in FIELDS if not isinstance(body.get(name), str) or not body[name].strip()]
    if missing:
        raise ClientInputError("Missing one or more fields: " + ", ".join(FIELDS), missing=missing)
    return {name: body[name] for name in FIELDS}


def create_app(settings: Optional[Settings] = None, ai_client=None, image_client=None, record_store=None,
               logger: Optional[logging.Logger] = None) -> Flask:
    settings = settings or Settings.from_env()
    log = logger or logging.getLogger(__name__)

    if ai_client is None or image_client is None or record_store is None:
        settings.validate()
    if ai_client is None:
        ai_client = GroqClient.from_settings(settings)
    if image_client is None:
        image_client = ImageSearchClient.from_settings(settings)
    if record_store is None:
        record_store = RecordStore(settings.database_url)
        record_store.init_db()

    app = Flask(__name__)

    def call_upstream(area: str, func, *args):
        log.info("Calling %s upstream", area)
        try:
            result = func(*args)
        except UpstreamError as exc:
            log.error("%s call failed [%s]: %s", area, exc.kind, exc.describe())
            raise
        log.info("%s upstream call succeeded", area)
        return result

    def fetch_ai(prompt: str) -> str:
        text = call_upstream("AI", ai_client.generate, prompt)
        log.debug("[DATA] AI said: %s", text)
        return text

    def fetch_images(prompt: str) -> List[str]:
        urls = list(call_upstream("Image", image_client.find, prompt))
        log.info("[DATA] Image results (top %d): %s", LOG_PREVIEW_LIMIT, urls[:LOG_PREVIEW_LIMIT])
        return urls[:DISPLAY_LIMIT]

    @app.before_request
    def log_and_short_circuit_preflight():
        if request.method == "OPTIONS":
            return app.response_class(status=204)
        log.info("%s %s received", request.method, request.path)
        return None

    @app.after_request
    def add_cors_headers(response):
        response.headers.update(CORS_HEADERS)
        if request.method != "OPTIONS":
            log.info("%s %s -> %s", request.method, request.path, response.status_code)
        return response

    @app.errorhandler(ClientInputError)
    def handle_client_input(exc: ClientInputError):
        log.warning("Rejected %s %s: %s", request.method, request.path, exc.message)
        return jsonify(exc.to_dict()), 400

    @app.errorhandler(UpstreamError)
    def handle_upstream(exc: UpstreamError):
        return jsonify({"error": exc.public_message}), 500

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc: HTTPException):
        if exc.code in (404, 405):
            return jsonify({"error": "Unknown endpoint"}), 404
        return jsonify({"error": exc.name}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected(exc: Exception):
        log.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    @app.get("/")
    def combined():
        prompt = require_prompt()
        log.info('User prompt: "%s"', prompt)

        executor = ThreadPoolExecutor(max_workers=2)
        try:
            ai_future = executor.submit(fetch_ai, prompt)
            image_future = executor.submit(fetch_images, prompt)
            wait([ai_future, image_future], return_when=FIRST_EXCEPTION)
            for future in (ai_future, image_future):
                if future.done() and future.exception() is not None:
                    raise future.exception()
            ai_response = ai_future.result()
            images = image_future.result()
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return jsonify({"prompt": prompt, "aiResponse": ai_response, "images": images})

    @app.get("/ai")
    def ai_only():
        prompt = require_prompt()
        return jsonify({"prompt": prompt, "aiResponse": fetch_ai(prompt)})

    @app.get("/image")
    def image_only():
        prompt = require_prompt()
        return jsonify({"prompt": prompt, "images": fetch_images(prompt)})

    @app.post("/insert")
    def insert():
        payload = require_insert_payload()
        record = call_upstream("Database", record_store.insert, payload)
        return jsonify({"success": True, "record": record})

    return app

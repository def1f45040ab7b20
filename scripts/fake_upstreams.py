"""Small Flask app that imitates the Groq, Pixabay and Unsplash endpoints.

Useful for exercising the real clients without API keys or network access.

Run locally for development:
    python scripts/fake_upstreams.py

Then point the proxy at it:
    GROQ_API_URL=http://localhost:9090/openai/v1/chat/completions
    PIXABAY_API_URL=http://localhost:9090/api/
    UNSPLASH_API_URL=http://localhost:9090
"""
import hashlib
import os

from flask import Flask, request, jsonify

app = Flask(__name__)


def _digest(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:10]


def _unauthorized(message: str):
    return jsonify({"error": {"message": message}}), 401


@app.route("/openai/v1/chat/completions", methods=["POST"])
def chat_completions():
    if not request.headers.get("Authorization", "").startswith("Bearer "):
        return _unauthorized("Invalid API Key")

    payload = request.get_json(force=True)
    messages = payload.get("messages") or []
    prompt = messages[-1].get("content", "") if messages else ""
    if not prompt:
        return jsonify({"error": {"message": "messages must not be empty"}}), 400

    # Same response shape as the OpenAI-compatible API: choices[0].message.content
    return jsonify({
        "id": f"chatcmpl-{_digest(prompt)}",
        "object": "chat.completion",
        "model": payload.get("model", "fake-model"),
        "choices": [
            {"index": 0, "message": {"role": "assistant", "content": f"Echo from fake Groq: {prompt}"}, "finish_reason": "stop"}
        ],
    })


@app.route("/api/", methods=["GET"])
def pixabay_search():
    if not request.args.get("key"):
        return _unauthorized("[ERROR 400] \"key\" is missing")

    query = request.args.get("q", "")
    per_page = int(request.args.get("per_page", 20))
    h = _digest(query)
    hits = [
        {"id": i, "tags": query, "webformatURL": f"https://pixabay.example/get/{h}_{i}_640.jpg"}
        for i in range(per_page)
    ]
    return jsonify({"total": len(hits), "totalHits": len(hits), "hits": hits})


@app.route("/photos/random", methods=["GET"])
def unsplash_random():
    if not request.args.get("client_id") and not request.headers.get("Authorization"):
        return _unauthorized("OAuth error: The access token is invalid")

    query = request.args.get("query", "")
    h = _digest(query)
    count = request.args.get("count")
    photos = [
        {"id": f"{h}{i}", "urls": {"regular": f"https://images.unsplash.example/photo-{h}-{i}?w=1080"}}
        for i in range(int(count or 1))
    ]
    # Unsplash returns a bare object when `count` is not given
    return jsonify(photos if count else photos[0])


if __name__ == "__main__":
    port = int(os.getenv("FAKE_UPSTREAMS_PORT", "9090"))
    app.run(host="0.0.0.0", port=port)

from urllib.parse import urlsplit

import pytest
import requests

from scripts.fake_upstreams import app as fake_app
from spicy_proxy.groq_client import GroqClient
from spicy_proxy.image_search import ImageSearchClient


class FlaskResp:
    """Adapts a Flask test response to the bits of requests.Response the clients use."""

    def __init__(self, resp):
        self._resp = resp
        self.status_code = resp.status_code
        self.text = resp.get_data(as_text=True)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}", response=self)

    def json(self):
        return self._resp.get_json()


@pytest.fixture
def routed_to_fake(monkeypatch):
    client = fake_app.test_client()

    def fake_post(url, json=None, headers=None, timeout=None):
        return FlaskResp(client.post(urlsplit(url).path, json=json, headers=headers))

    def fake_get(url, params=None, headers=None, timeout=None):
        return FlaskResp(client.get(urlsplit(url).path, query_string=params, headers=headers))

    monkeypatch.setattr("requests.post", fake_post)
    monkeypatch.setattr("requests.get", fake_get)
    return client


def test_groq_client_against_fake(routed_to_fake):
    groq = GroqClient(api_key="fake", api_url="http://localhost:9090/openai/v1/chat/completions")
    assert groq.generate("hello") == "Echo from fake Groq: hello"


def test_pixabay_client_against_fake(routed_to_fake):
    images = ImageSearchClient(provider="pixabay", pixabay_api_key="fake", pixabay_api_url="http://localhost:9090/api/")
    urls = images.find("cats")
    assert len(urls) == 20
    assert all(u.startswith("https://pixabay.example/get/") for u in urls)


def test_unsplash_client_against_fake(routed_to_fake):
    images = ImageSearchClient(provider="unsplash", unsplash_access_key="fake", unsplash_api_url="http://localhost:9090")
    urls = images.find("forest")
    assert len(urls) == 5
    assert len(set(urls)) == 5


def test_fake_rejects_missing_credentials(routed_to_fake):
    resp = routed_to_fake.post("/openai/v1/chat/completions", json={"messages": [{"role": "user", "content": "x"}]})
    assert resp.status_code == 401
    resp = routed_to_fake.get("/api/", query_string={"q": "cats"})
    assert resp.status_code == 401


def test_unsplash_fake_without_count_returns_single_object(routed_to_fake):
    resp = routed_to_fake.get("/photos/random", query_string={"query": "sea", "client_id": "fake"})
    assert isinstance(resp.get_json(), dict)
    assert "regular" in resp.get_json()["urls"]

import logging
from typing import Optional

import requests

from .errors import ConfigError, translate_request_errors


logger = logging.getLogger(__name__)

AREA = "AI"


class GroqClient:
    """Groq chat-completions wrapper (OpenAI-compatible endpoint).

    Behavior:
    - `generate(prompt)` sends a single user message and returns the text of
      the first choice.
    - In `dry_run=True` mode no HTTP call is made and a deterministic
      placeholder is returned.
    - Every failure leaves as `UpstreamError` with area "AI".
    """

    def __init__(self, api_key: Optional[str] = None, api_url: str = "https://api.groq.com/openai/v1/chat/completions",
                 model: str = "llama-3.1-8b-instant", timeout: float = 15.0, dry_run: bool = False):
        self.api_key = api_key
        self.api_url = api_url
        self.model = model
        self.timeout = timeout
        self.dry_run = dry_run
        if not dry_run and not api_key:
            raise ConfigError("GROQ_API_KEY is required when not in dry-run mode")

    @classmethod
    def from_settings(cls, settings) -> "GroqClient":
        return cls(
            api_key=settings.groq_api_key,
            api_url=settings.groq_api_url,
            model=settings.groq_model,
            timeout=settings.upstream_timeout,
            dry_run=settings.dry_run,
        )

    def generate(self, prompt: str) -> str:
        if self.dry_run:
            return f"[dry run] {self.model} would answer: {prompt}"

        headers = {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        with translate_request_errors(AREA):
            resp = requests.post(self.api_url, json=payload, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            content = extract_content(resp.json())

        logger.info("Groq answered with %d characters", len(content))
        return content


def extract_content(data: dict) -> str:
    content = data["choices"][0]["message"]["content"]
    if not isinstance(content, str):
        raise TypeError(f"expected message content to be a string, got {type(content).__name__}")
    return content

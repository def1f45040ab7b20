from contextlib import contextmanager
from typing import Optional

import requests


# UpstreamError kinds
RESPONSE = "response"  # upstream answered with an error status
NO_RESPONSE = "no_response"  # request went out, nothing usable came back (timeout, refused)
REQUEST = "request"  # request could not be built or sent
MALFORMED = "malformed"  # 2xx, but the payload did not have the expected shape

_BODY_LIMIT = 500


class UpstreamError(Exception):
    """A call to a third-party API (or the database) failed.

    `area` names the caller-facing concern ("AI", "Image", "Database") and
    `action` what was attempted, so the public message is e.g. "AI fetch failed".
    `status` and `body` are only set for the `response` kind and are meant for
    server-side logs, never for the HTTP response.
    """

    def __init__(self, area: str, kind: str, status: Optional[int] = None, body: Optional[str] = None,
                 action: str = "fetch", detail: Optional[str] = None):
        self.area = area
        self.kind = kind
        self.status = status
        self.body = body
        self.action = action
        self.detail = detail
        super().__init__(self.describe())

    @property
    def public_message(self) -> str:
        return f"{self.area} {self.action} failed"

    def describe(self) -> str:
        if self.kind == RESPONSE:
            return f"{self.area} upstream returned an error (status={self.status}): {self.body}"
        if self.kind == NO_RESPONSE:
            return f"{self.area} upstream sent no response: {self.detail}"
        if self.kind == MALFORMED:
            return f"{self.area} upstream payload was malformed: {self.detail}"
        return f"{self.area} request was never sent: {self.detail}"


class ClientInputError(Exception):
    """Bad request parameters. Rendered as a 400 with `message` plus `extra` fields."""

    def __init__(self, message: str, **extra):
        self.message = message
        self.extra = extra
        super().__init__(message)

    def to_dict(self) -> dict:
        payload = {"error": self.message}
        payload.update(self.extra)
        return payload


class ConfigError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""


def _truncate(text: Optional[str]) -> Optional[str]:
    if text is None:
        return None
    return text if len(text) <= _BODY_LIMIT else text[:_BODY_LIMIT] + "..."


@contextmanager
def translate_request_errors(area: str):
    """Turn `requests` failures and payload-shape errors into UpstreamError.

    Wrap both the HTTP call and the parsing of its JSON so that a bad payload
    surfaces as `malformed` rather than a bare KeyError.
    """
    try:
        yield
    except UpstreamError:
        raise
    except requests.HTTPError as exc:
        response = exc.response
        status = getattr(response, "status_code", None)
        body = _truncate(getattr(response, "text", None))
        raise UpstreamError(area, RESPONSE, status=status, body=body, detail=str(exc)) from exc
    except requests.exceptions.JSONDecodeError as exc:
        raise UpstreamError(area, MALFORMED, detail=f"invalid JSON: {exc}") from exc
    except (requests.ConnectionError, requests.Timeout) as exc:
        raise UpstreamError(area, NO_RESPONSE, detail=str(exc)) from exc
    except requests.RequestException as exc:
        raise UpstreamError(area, REQUEST, detail=str(exc)) from exc
    except (KeyError, IndexError, TypeError, ValueError) as exc:
        raise UpstreamError(area, MALFORMED, detail=f"{type(exc).__name__}: {exc}") from exc

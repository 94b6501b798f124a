"""Client for the OSV batch query endpoint."""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from typing import Any

import requests
from jsonschema import Draft202012Validator
from requests import Response
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from . import __version__
from .config import OSV_BATCH_URL
from .errors import OsvDecodeError, OsvTransportError
from .models.vulnerability import VulnerabilityQuery, VulnerabilityRecord

logger = logging.getLogger(__name__)

USER_AGENT = f"npm-malscan/{__version__}"

BATCH_RESPONSE_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": ["results"],
    "properties": {
        "results": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "vulns": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["id"],
                            "properties": {
                                "id": {"type": "string", "minLength": 1},
                                "summary": {"type": "string"},
                                "details": {"type": "string"},
                                "aliases": {"type": "array", "items": {"type": "string"}},
                            },
                        },
                    },
                },
            },
        },
    },
}

_VALIDATOR = Draft202012Validator(BATCH_RESPONSE_SCHEMA)


def _log_retry(retry_state: Any) -> None:
    logger.debug(
        "OSV request failed (attempt %d), retrying: %s",
        retry_state.attempt_number,
        retry_state.outcome.exception() if retry_state.outcome else "unknown error",
    )


@retry(
    reraise=True,
    stop=stop_after_attempt(3),
    wait=wait_fixed(2),
    retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    before_sleep=_log_retry,
)
def _post_json(session: Any, url: str, body: dict[str, Any], timeout: float) -> Response:
    return session.post(
        url,
        json=body,
        headers={"User-Agent": USER_AGENT},
        timeout=timeout,
    )


def _format_errors(errors: Sequence[Any]) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"{pointer or '<root>'}: {error.message}")
    return "; ".join(messages)


def decode_batch_response(
    payload: Any, expected: int
) -> list[list[VulnerabilityRecord]]:
    """Validate a batch response and return one record list per query.

    Raises:
        OsvDecodeError: If the payload does not match the response schema or
            the number of results differs from the number of queries.
    """
    errors = sorted(_VALIDATOR.iter_errors(payload), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise OsvDecodeError(f"Malformed OSV response: {_format_errors(errors[:5])}")

    results = payload["results"]
    if len(results) != expected:
        raise OsvDecodeError(
            f"OSV returned {len(results)} result(s) for a batch of {expected} queries"
        )

    return [
        [VulnerabilityRecord.from_dict(vuln) for vuln in result.get("vulns") or []]
        for result in results
    ]


class OsvClient:
    """Submit query batches to OSV and decode positional results.

    Without an explicit ``session`` every calling thread lazily gets its own
    ``requests.Session``, all of which ``close`` releases. An explicit
    ``session`` may be any object with a ``requests.Session.post`` compatible
    signature and is shared by all threads; tests pass a fake to stay off the
    network.
    """

    def __init__(
        self,
        api_url: str = OSV_BATCH_URL,
        timeout: float = 30.0,
        session: Any | None = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout
        self._shared = session
        self._local = threading.local()
        self._owned: list[requests.Session] = []
        self._lock = threading.Lock()

    @property
    def session(self) -> Any:
        """The session for the calling thread."""
        if self._shared is not None:
            return self._shared
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            self._local.session = session
            with self._lock:
                self._owned.append(session)
        return session

    def query_batch(
        self, queries: Sequence[VulnerabilityQuery]
    ) -> list[list[VulnerabilityRecord]]:
        """Return the advisories for each query, aligned with ``queries``."""
        if not queries:
            return []

        body = {"queries": [query.to_dict() for query in queries]}
        try:
            response = _post_json(self.session, self.api_url, body, self.timeout)
        except requests.RequestException as exc:
            raise OsvTransportError(f"Failed to reach OSV at {self.api_url}: {exc}") from exc

        if response.status_code != 200:
            raise OsvTransportError(
                f"Unexpected status code {response.status_code} from OSV batch query"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise OsvDecodeError(f"OSV returned invalid JSON: {exc}") from exc

        return decode_batch_response(payload, len(queries))

    def close(self) -> None:
        if self._shared is not None:
            self._shared.close()
            return
        with self._lock:
            owned, self._owned = self._owned, []
        for session in owned:
            session.close()

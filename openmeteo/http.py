"""Default HTTP transport and the minimal interface the client relies on."""

from __future__ import annotations

from typing import Mapping, Optional, Protocol, Sequence, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from openmeteo._version import __version__

USER_AGENT = f"openmeteo-client/{__version__}"


class Response(Protocol):
    status_code: int

    @property
    def content(self) -> bytes:
        ...

    def close(self) -> None:
        ...


class Transport(Protocol):
    """Anything with a ``requests.Session``-compatible ``get``."""

    def get(
        self,
        url: str,
        *,
        params: Sequence[Tuple[str, str]],
        headers: Mapping[str, str],
        timeout: Optional[float],
        stream: bool,
    ) -> Response:
        ...


def build_session(user_agent: str = USER_AGENT) -> requests.Session:
    """Return a session that never retries on its own.

    Retry policy belongs to the caller, so connection pools are mounted with
    a zero-retry budget and non-success statuses are returned as-is.
    """

    session = requests.Session()
    session.headers.update({
        "User-Agent": user_agent,
        "Accept": "application/json",
    })
    retry = Retry(total=0, raise_on_status=False)
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


__all__ = ["Response", "Transport", "USER_AGENT", "build_session"]

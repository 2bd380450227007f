import re
from typing import Any, Optional

import requests

from core.errors import NetworkError


def collapse_blank_lines(text: str) -> str:
    """Trim each line's trailing spaces and keep at most one blank line between blocks."""
    lines = [line.rstrip() for line in text.splitlines()]
    text = "\n".join(lines)
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def new_session(user_agent: str) -> requests.Session:
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session


def http_request(
    session: requests.Session,
    method: str,
    url: str,
    *,
    timeout: float,
    allow_statuses: tuple[int, ...] = (),
    **kwargs: Any,
) -> requests.Response:
    """
    Perform a request and normalize failures into NetworkError.

    Statuses listed in allow_statuses are returned to the caller instead of raising.
    """
    try:
        r = session.request(method, url, timeout=timeout, **kwargs)
    except requests.RequestException as e:
        raise NetworkError(f"{method} {url} failed: {e}") from e

    if r.status_code in allow_statuses:
        return r
    if not 200 <= r.status_code < 300:
        raise NetworkError(f"{method} {url} returned HTTP {r.status_code}", status_code=r.status_code)
    return r


def json_or_none(r: requests.Response) -> Optional[Any]:
    try:
        return r.json()
    except ValueError:
        return None

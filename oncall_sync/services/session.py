# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Session manager — the authenticated connection to the on-call API.

Owns one cookie-bearing ``httpx.Client`` and the anti-forgery token handed out
at login. Login and renewal are only ever called from a single worker thread;
the token is a plain attribute under that assumption.
"""

from urllib.parse import quote

import httpx

from oncall_sync.core.errors import InvalidEndpoint, LoginFailed
from oncall_sync.core.logging import get_logger

logger = get_logger(__name__)

LOGIN_ENDPOINT = "/login"
CSRF_HEADER = "X-CSRF-TOKEN"


def join_url(base_url: str, resource: str, *names: str) -> str:
    """Join the base URL, a fixed resource path and quoted name segments.

    ``join_url("http://h:8080", "/api/v0/users/", "alice")`` gives
    ``http://h:8080/api/v0/users/alice``. Raises InvalidEndpoint for a base
    URL without scheme/host or for an empty / dot name segment.
    """
    try:
        url = httpx.URL(base_url)
    except httpx.InvalidURL as exc:
        raise InvalidEndpoint(f"invalid base url {base_url!r}: {exc}") from exc
    if url.scheme not in ("http", "https") or not url.host:
        raise InvalidEndpoint(f"invalid base url {base_url!r}")

    path = url.path.rstrip("/") + "/" + resource.lstrip("/")
    if names:
        for name in names:
            if not name or name in (".", ".."):
                raise InvalidEndpoint(f"invalid path segment {name!r} for {resource}")
        path = path.rstrip("/") + "/" + "/".join(quote(n, safe="") for n in names)
    return f"{url.scheme}://{url.netloc.decode('ascii')}{path}"


class Session:
    """Authenticated session: cookie jar plus CSRF token."""

    def __init__(
        self,
        base_url: str,
        username: str = "root",
        password: str = "root",
        login_timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self._username = username
        self._password = password
        self._login_timeout = login_timeout
        self._http = httpx.Client(transport=transport)
        self.csrf_token: str = ""

    @property
    def http(self) -> httpx.Client:
        return self._http

    def login(self) -> None:
        """Authenticate and store the CSRF token. Raises LoginFailed."""
        endpoint = join_url(self.base_url, LOGIN_ENDPOINT)
        try:
            res = self._http.post(
                endpoint,
                data={"username": self._username, "password": self._password},
                headers={"Content-Type": "application/x-www-form-urlencoded;charset=UTF-8"},
                timeout=self._login_timeout,
            )
        except httpx.HTTPError as exc:
            logger.error("Login request failed: %s", exc, extra={"action": "login"})
            raise LoginFailed(f"login request failed: {exc}") from exc

        logger.info(
            "Login response received",
            extra={"action": "login", "status_code": res.status_code},
        )
        if res.status_code >= 400:
            raise LoginFailed(f"login rejected with status {res.status_code}")
        try:
            body = res.json()
        except ValueError as exc:
            raise LoginFailed(f"undecodable login response: {exc}") from exc
        token = body.get("csrf_token") if isinstance(body, dict) else None
        if not token:
            raise LoginFailed("login response carries no csrf_token")
        self.csrf_token = token

    def renew(self) -> bool:
        """Log in again. Failures are logged and the previous token kept."""
        try:
            self.login()
        except (LoginFailed, InvalidEndpoint) as exc:
            logger.error(
                "Session renewal failed, keeping previous token: %s",
                exc,
                extra={"action": "renew"},
            )
            return False
        logger.info("Session renewed", extra={"action": "renew"})
        return True

    def mutation_headers(self) -> dict[str, str]:
        """Headers required on every state-changing call."""
        return {CSRF_HEADER: self.csrf_token}

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "Session":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

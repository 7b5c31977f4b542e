"""GitHub installation token exchange.

A single POST to ``/app/installations/{id}/access_tokens`` authenticated
with the App JWT. There is no retry: a cron-driven run that fails simply
tries again on its next schedule.
"""

import logging
from datetime import datetime
from typing import Any, Optional

import httpx

from tokengetter import __version__
from tokengetter.core.config import DEFAULT_GITHUB_API_URL
from tokengetter.core.deadline import Deadline
from tokengetter.errors import (
    NetworkError,
    ResponseDecodeError,
    TokenExchangeError,
    UnexpectedTokenTypeError,
)
from tokengetter.types import InstallationToken

logger = logging.getLogger(__name__)

# Budget used when the caller has no deadline of its own
DEFAULT_TIMEOUT = 30.0


def exchange_installation_token(
    installation_id: int,
    app_jwt: str,
    *,
    api_url: str = DEFAULT_GITHUB_API_URL,
    deadline: Optional[Deadline] = None,
    client: Optional[httpx.Client] = None,
) -> InstallationToken:
    """Exchange a GitHub App JWT for an installation access token.

    Installation tokens are scoped to the repos the installation was
    granted and expire after 1 hour.

    Args:
        installation_id: The App installation to mint a token for.
        app_jwt: Signed JWT from create_app_jwt().
        api_url: GitHub REST API base URL.
        deadline: Bounds the whole exchange, body included. Defaults
            to DEFAULT_TIMEOUT seconds from now.
        client: Optional pre-built client; one is created and closed
            here when omitted.

    Raises:
        NetworkError: Transport failure or timeout.
        DeadlineExceededError: The deadline ran out mid-response.
        TokenExchangeError: GitHub answered with a non-2xx status.
        ResponseDecodeError: The body is not a JSON object.
        UnexpectedTokenTypeError: The ``token`` field is missing or not
            a string.
    """
    if deadline is None:
        deadline = Deadline(DEFAULT_TIMEOUT)
    # Spent budget: fail before a client or connection is opened
    deadline.remaining()
    url = f"{api_url}/app/installations/{installation_id}/access_tokens"

    if client is None:
        with httpx.Client() as own_client:
            response = _post(own_client, url, app_jwt, deadline)
    else:
        response = _post(client, url, app_jwt, deadline)

    if response.is_error:
        raise TokenExchangeError(response.status_code, _error_message(response))

    body = _decode_body(response)
    token = body.get("token")
    if not isinstance(token, str):
        logger.error(
            "Token expects to be a string type but received %s",
            type(token).__name__,
        )
        raise UnexpectedTokenTypeError(
            f"Token expects to be a string type but received {type(token).__name__}"
        )

    expires_at = _parse_expires_at(body.get("expires_at"))
    logger.info(
        "Obtained installation token for installation %d (expires_at=%s)",
        installation_id,
        expires_at.isoformat() if expires_at else "unknown",
    )
    return InstallationToken(token=token, expires_at=expires_at)


def _post(
    client: httpx.Client,
    url: str,
    app_jwt: str,
    deadline: Deadline,
) -> httpx.Response:
    """POST and read the full body without outliving the deadline.

    Returns a fully read response detached from the connection.
    """
    timeout = deadline.remaining()
    try:
        with client.stream(
            "POST", url, headers=_auth_headers(app_jwt), timeout=timeout
        ) as response:
            content = _read_within(response, deadline)
    except httpx.TimeoutException as exc:
        raise NetworkError(
            f"Timed out after {timeout:.1f}s calling {url}"
        ) from exc
    except httpx.HTTPError as exc:
        raise NetworkError(f"Request to {url} failed: {exc}") from exc

    # Body is already decoded, so headers (Content-Encoding) stay behind.
    return httpx.Response(
        response.status_code,
        content=content,
        request=response.request,
    )


def _read_within(response: httpx.Response, deadline: Deadline) -> bytes:
    chunks: list[bytes] = []
    for chunk in response.iter_bytes():
        chunks.append(chunk)
        deadline.remaining()
    return b"".join(chunks)


def _decode_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as exc:
        raise ResponseDecodeError(
            f"GitHub returned a non-JSON body (HTTP {response.status_code}): {exc}"
        ) from exc

    if not isinstance(body, dict):
        raise ResponseDecodeError(
            f"GitHub returned JSON {type(body).__name__}, expected an object"
        )
    return body


def _error_message(response: httpx.Response) -> str:
    """Best-effort extraction of GitHub's ``message`` field."""
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or response.reason_phrase
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        return body["message"]
    return response.reason_phrase


def _parse_expires_at(value: Any) -> Optional[datetime]:
    if not isinstance(value, str):
        return None
    try:
        # fromisoformat() only accepts the trailing "Z" from Python 3.11
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _auth_headers(app_jwt: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {app_jwt}",
        "Accept": "application/vnd.github.v3+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": f"tokengetter/{__version__}",
    }

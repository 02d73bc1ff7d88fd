"""FastAPI dependencies that authenticate requests with verified tokens."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fbjwt.core.errors import FetchingPublicKeysFailed, InvalidToken
from fbjwt.verify.token import Token
from fbjwt.verify.verifier import IdTokenVerifier, SessionCookieVerifier

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME_DEFAULT = "session"

_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _keys_unavailable(err: FetchingPublicKeysFailed) -> HTTPException:
    logger.warning("Public keys unavailable: %s", err)
    return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE)


class IdTokenBearer:
    """Dependency returning the verified ID token from the Bearer header."""

    def __init__(self, verifier: IdTokenVerifier, leeway_in_seconds: int = 0) -> None:
        self._verifier = verifier
        self._leeway_in_seconds = leeway_in_seconds

    def __call__(
        self,
        credentials: Annotated[
            HTTPAuthorizationCredentials | None, Depends(_security)
        ],
    ) -> Token:
        if credentials is None:
            raise _unauthorized("Missing bearer token")
        try:
            return self._verifier.verify_id_token_with_leeway(
                credentials.credentials, self._leeway_in_seconds
            )
        except InvalidToken as err:
            raise _unauthorized(err.reason) from err
        except FetchingPublicKeysFailed as err:
            raise _keys_unavailable(err) from err


class SessionCookieAuth:
    """Dependency returning the verified session cookie of the request."""

    def __init__(
        self,
        verifier: SessionCookieVerifier,
        cookie_name: str = SESSION_COOKIE_NAME_DEFAULT,
        leeway_in_seconds: int = 0,
    ) -> None:
        self._verifier = verifier
        self._cookie_name = cookie_name
        self._leeway_in_seconds = leeway_in_seconds

    def __call__(self, request: Request) -> Token:
        cookie = request.cookies.get(self._cookie_name)
        if not cookie:
            raise _unauthorized("Missing session cookie")
        try:
            return self._verifier.verify_session_cookie_with_leeway(
                cookie, self._leeway_in_seconds
            )
        except InvalidToken as err:
            raise _unauthorized(err.reason) from err
        except FetchingPublicKeysFailed as err:
            raise _keys_unavailable(err) from err

"""OAuth2 bearer-token authorization: authority and scope guards.

Tokens are issued by the authorization server and signed with the shared
secret; this service only validates them. The ``authorities`` claim carries
the user's permissions and ``scope`` the client application's scopes.
"""

import enum
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request
from jose import JWTError, jwt

from src.core.config import settings

logger = logging.getLogger(__name__)


class Permission(str, enum.Enum):
    WRITE = "ROLE_CADASTRAR_LANCAMENTO"
    READ = "ROLE_PESQUISAR_LANCAMENTO"
    DELETE = "ROLE_REMOVER_LANCAMENTO"


class Scope(str, enum.Enum):
    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class Principal:
    subject: str
    authorities: frozenset[str]
    scopes: frozenset[str]


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=401, detail=detail, headers={"WWW-Authenticate": "Bearer"})


def _claim_set(value) -> frozenset[str]:
    # Scopes may arrive as a list or as a space-separated string.
    if isinstance(value, str):
        return frozenset(value.split())
    if isinstance(value, list | tuple):
        return frozenset(str(v) for v in value)
    return frozenset()


async def validate_access_token(request: Request) -> Principal:
    """Validate the bearer token from the Authorization header.

    Returns the authenticated principal.
    Raises HTTPException 401 if the token is missing, malformed or invalid.
    """
    header = request.headers.get("Authorization", "")
    if not header:
        raise _unauthorized("Missing bearer token")

    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Malformed Authorization header")

    try:
        claims = jwt.decode(
            token.strip(),
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        logger.info("Rejected access token: %s", e)
        raise _unauthorized("Invalid token")

    subject = claims.get("user_name") or claims.get("sub")
    if not subject:
        raise _unauthorized("Token has no subject")

    return Principal(
        subject=str(subject),
        authorities=_claim_set(claims.get("authorities")),
        scopes=_claim_set(claims.get("scope")),
    )


def require(
    permission: Permission, scope: Scope
) -> Callable[..., Awaitable[Principal]]:
    """Build a dependency that demands *permission* from the user and *scope* from the client.

    Both checks run before the endpoint body; a failure raises 403 and the
    endpoint never executes.
    """

    async def guard(principal: Principal = Depends(validate_access_token)) -> Principal:
        if permission.value not in principal.authorities:
            logger.info("%s lacks authority %s", principal.subject, permission.value)
            raise HTTPException(status_code=403, detail="Access denied")
        if scope.value not in principal.scopes:
            logger.info("%s lacks scope %s", principal.subject, scope.value)
            raise HTTPException(status_code=403, detail="Access denied")
        return principal

    return guard

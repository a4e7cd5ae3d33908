"""Bearer token check for the status API."""

from __future__ import annotations

import hmac
import os
from pathlib import Path
from typing import Optional

from fastapi import HTTPException, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

_bearer_scheme = HTTPBearer(auto_error=False)


def expected_token() -> Optional[str]:
    """Token configurado por entorno o archivo; ``None`` desactiva la autenticación."""

    token = (os.environ.get("COLLECTOR_WEBAPI_TOKEN") or "").strip()
    if token:
        return token
    token_file = os.environ.get("COLLECTOR_WEBAPI_TOKEN_FILE")
    if not token_file:
        return None
    try:
        token = Path(token_file).read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        return None
    except OSError as exc:
        raise RuntimeError(f"No se pudo leer el token desde {token_file}: {exc}") from exc
    return token or None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def require_token(
    credentials: HTTPAuthorizationCredentials | None = Security(_bearer_scheme),
) -> None:
    expected = expected_token()
    if expected is None:
        return
    if credentials is None:
        raise _unauthorized("Token requerido")
    valid = credentials.scheme.lower() == "bearer" and hmac.compare_digest(
        credentials.credentials.encode("utf-8"), expected.encode("utf-8")
    )
    if not valid:
        raise _unauthorized("Token inválido")

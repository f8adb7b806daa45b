import logging
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from location_index.services.config import AuthConfig

log = logging.getLogger("location_index.auth")

_bearer = HTTPBearer(auto_error=False)


def get_auth_config() -> AuthConfig:
    return AuthConfig()


def require_manager_client(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer),
    cfg: AuthConfig = Depends(get_auth_config),
) -> Dict[str, Any]:
    """Allow only tokens issued to one of the configured manager clients."""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Access denied. No token provided.")

    try:
        claims = jwt.decode(
            credentials.credentials,
            cfg.jwt_secret,
            algorithms=[cfg.jwt_algorithm],
            options={"verify_aud": False},
        )
    except jwt.InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid token.")

    client_id = claims.get("client_id")
    if client_id not in cfg.manager_clients:
        log.warning("Client %s attempted a management call", client_id)
        raise HTTPException(status_code=403, detail="Access denied. Manager client required.")
    return claims

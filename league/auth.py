from __future__ import annotations

import logging
import secrets

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials

from league import config


logger = logging.getLogger(__name__)

basic_auth = HTTPBasic(realm="Admin", auto_error=False)


def require_admin(credentials: HTTPBasicCredentials | None = Depends(basic_auth)) -> str:
    # No configured credentials means no admin access at all.
    if not config.ADMIN_USER or not config.ADMIN_PASS:
        logger.error("ADMIN_USER / ADMIN_PASS are not configured")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Admin credentials are not set",
        )

    valid = credentials is not None and (
        secrets.compare_digest(credentials.username.encode(), config.ADMIN_USER.encode())
        & secrets.compare_digest(credentials.password.encode(), config.ADMIN_PASS.encode())
    )
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Auth required",
            headers={"WWW-Authenticate": 'Basic realm="Admin"'},
        )
    return credentials.username

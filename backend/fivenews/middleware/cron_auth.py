# fivenews/middleware/cron_auth.py
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from fivenews import config

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def verify_cron_secret(credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)):
    """Require Authorization: Bearer <CRON_SECRET_KEY>"""
    expected = config.CRON_SECRET_KEY
    token = credentials.credentials if credentials else ""
    if not expected or not secrets.compare_digest(token, expected):
        logger.warning("Rejected cron request with missing or invalid secret")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
    return True

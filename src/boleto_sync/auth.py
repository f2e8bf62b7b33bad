"""Authentication and rate limiting helpers for the sync API."""

import os
import secrets
import logging

from fastapi import HTTPException, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from slowapi import Limiter
from slowapi.util import get_remote_address

logger = logging.getLogger(__name__)

security = HTTPBearer()

# Manual sync triggers hit the bank once per pending boleto
limiter = Limiter(key_func=get_remote_address)
SYNC_TRIGGER_LIMIT = "10/minute"


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Security(security)) -> str:
    """Verify the back-office API key from the Authorization header.

    Raises:
        HTTPException: If the key is wrong or the server has none configured.
    """
    api_key = credentials.credentials
    expected_key = os.getenv("API_KEY")
    if not expected_key:
        logger.error("API_KEY environment variable is not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    if not secrets.compare_digest(api_key, expected_key):
        logger.warning("Rejected sync API call with an invalid API key")
        raise HTTPException(status_code=401, detail="Invalid API key")
    return api_key

from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
import logging

from plog.config import settings

logger = logging.getLogger(__name__)

# Tokens are issued by the member service; this module only verifies them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")

credentials_exception = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Could not validate credentials",
    headers={"WWW-Authenticate": "Bearer"},
)

def decode_member_id(token: str) -> int:
    """Get the member id from the ``sub`` claim of an access token"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.ALGORITHM])
    except JWTError as e:
        logger.warning(f"Rejected access token: {e}")
        raise credentials_exception

    subject = payload.get("sub")
    if subject is None:
        raise credentials_exception

    try:
        return int(subject)
    except (TypeError, ValueError):
        raise credentials_exception

async def get_current_member_id(token: str = Depends(oauth2_scheme)) -> int:
    """Dependency resolving the authenticated member's id"""
    return decode_member_id(token)

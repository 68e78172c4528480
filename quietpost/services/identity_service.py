"""Who is calling: an authenticated user or an anonymous session.

Access tokens are issued by the identity provider and signed with the
shared secret; this service only verifies them. Anonymous visitors identify
their session with the ``X-Anonymous-Id`` header.
"""
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError
import logging

from quietpost.config import settings
from quietpost.schemas.participant_schema import Participant

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for a user"""
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode = {"sub": user_id, "exp": expire, "type": "access"}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.ALGORITHM)

def verify_token(token: str) -> Optional[str]:
    """Return the user id carried by a valid access token"""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

    if payload.get("type") != "access":
        return None

    return payload.get("sub")

def resolve_participant(user_id: Optional[str], anonymous_id: Optional[str]) -> Optional[Participant]:
    """An authenticated identity wins over an anonymous session id"""
    try:
        if user_id:
            return Participant.user(user_id)
        if anonymous_id:
            return Participant.anonymous(anonymous_id)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid participant identifier"
        )
    return None

async def get_optional_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme)
) -> Optional[str]:
    """Dependency: user id from the bearer token, None without a token"""
    if credentials is None:
        return None

    user_id = verify_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id

async def get_current_user_id(user_id: Optional[str] = Depends(get_optional_user_id)) -> str:
    """Dependency: user id of an authenticated caller"""
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user_id

async def get_optional_participant(
    user_id: Optional[str] = Depends(get_optional_user_id),
    anonymous_id: Optional[str] = Header(None, alias=settings.ANONYMOUS_ID_HEADER)
) -> Optional[Participant]:
    """Dependency: the calling participant, or None for an unidentified visitor"""
    return resolve_participant(user_id, anonymous_id)

# routes/auth/JWTSecurity.py

from datetime import datetime, timedelta
from jose import jwt, JWTError

from config import JWT_SECRET_KEY, logger

# JWT configuration
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 540


def create_access_token(data: dict, expires_delta: timedelta = None):
    """
    Generates an access token with an expiration time.
    `sub` must carry the user id; `role` is informational.
    """
    to_encode = data.copy()
    if "sub" in to_encode:
        to_encode["sub"] = str(to_encode["sub"])
    expire = datetime.utcnow() + (expires_delta if expires_delta else timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update({"exp": expire, "token_type": "access"})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=ALGORITHM)


def verify_token(token: str):
    """
    Verifies an access token. Returns the payload, or None when the token is
    expired, tampered with, or missing its subject.
    """
    try:
        payload = jwt.decode(token, JWT_SECRET_KEY, algorithms=[ALGORITHM])
        if payload.get("token_type") != "access":
            raise JWTError("Invalid token type")
        if not payload.get("sub"):
            raise JWTError("Invalid token payload: missing user ID")
        return payload
    except JWTError as e:
        logger.error(f"Token verification failed: {str(e)}")
        return None

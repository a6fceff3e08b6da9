from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from jose import JWTError, jwt
from app.core.config import settings

def create_access_token(
    subject: str,
    permissions: Optional[List[Dict[str, str]]] = None,
    expires_delta: Optional[timedelta] = None,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """Mint a token in the shape the hosting platform issues (used by tooling and tests)."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=15))
    payload = {
        "sub": str(subject),
        "exp": expire,
        "permissions": permissions or [],
    }
    if extra_claims:
        payload.update(extra_claims)
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def verify_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None

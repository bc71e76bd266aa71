
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from storefront.security.utils import decode_token

security = HTTPBearer(auto_error=False)

def get_current_identity(creds: HTTPAuthorizationCredentials = Depends(security)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(creds.credentials)
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")
    if payload.get("type") != "access" or payload.get("uid") is None:
        raise HTTPException(status_code=401, detail="Invalid access token")
    return payload  # contains sub (email), uid, role

def is_admin(identity: dict) -> bool:
    return identity.get("role") == "admin"

def require_admin(identity: dict = Depends(get_current_identity)) -> dict:
    if not is_admin(identity):
        raise HTTPException(status_code=403, detail="Admin only")
    return identity

def can_manage_order(identity: dict, order) -> bool:
    """Owner of the order, or any admin."""
    return is_admin(identity) or identity.get("uid") == order.user_id

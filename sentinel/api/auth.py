from fastapi import Header, HTTPException
from sentinel.settings import settings


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    Shared API key is OPTIONAL.
    - If API_KEY env is empty: allow all requests.
    - If API_KEY env is set: require matching x-api-key header.
    """
    if not getattr(settings, "API_KEY", ""):
        return
    if x_api_key != settings.API_KEY:
        raise HTTPException(status_code=401, detail="Invalid API key")


def require_user(x_user_id: str = Header(default="", alias="x-user-id")) -> str:
    """
    User identity is established upstream (hosted auth provider / gateway)
    and forwarded as x-user-id. History routes refuse anonymous calls.
    """
    user_id = (x_user_id or "").strip()
    if not user_id:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user_id


def client_id(x_client_id: str = Header(default="", alias="x-client-id")) -> str:
    return (x_client_id or "").strip() or "anonymous"

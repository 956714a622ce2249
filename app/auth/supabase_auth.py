"""Bearer-token user resolution for FastAPI routes, backed by Supabase Auth."""

from fastapi import Depends, Header, HTTPException
from supabase import create_client
from app.config import settings


async def verify_jwt(authorization: str = Header(None)):
    """Validate a Supabase JWT from the Authorization header.

    Returns the authenticated user object.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Unauthorized")

    token = authorization[len("Bearer "):]
    try:
        client = create_client(settings.supabase_url, settings.supabase_anon_key)
        user_response = client.auth.get_user(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if user_response is None or user_response.user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user_response.user


async def get_current_user_id(user=Depends(verify_jwt)) -> str:
    """Owning identifier for uploads and lookups."""
    return str(user.id)

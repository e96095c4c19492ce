"""Centralized authentication dependencies.

Provides a user-scoped Supabase client (RLS enforced) built from the
caller's bearer token, and the authenticated user's id.
"""

import os

from fastapi import Depends, Header
from supabase import Client, create_client

from apps.api.core.config import settings
from apps.api.core.errors import AuthenticationError


def _get_supabase_url() -> str:
    url = settings.SUPABASE_URL or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
    if not url:
        raise RuntimeError("SUPABASE_URL is not configured")
    return url


def _get_supabase_anon_key() -> str:
    key = settings.SUPABASE_ANON_KEY or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    if not key:
        raise RuntimeError("SUPABASE_ANON_KEY is not configured")
    return key


async def get_user_token(authorization: str = Header(default="")) -> str:
    """Extract Bearer token from Authorization header.

    Returns the raw JWT string.
    """
    if not authorization.startswith("Bearer "):
        raise AuthenticationError(
            "Missing or invalid Authorization header. Expected: Bearer <token>"
        )

    token = authorization[7:].strip()
    if not token:
        raise AuthenticationError("Missing bearer token")
    return token


async def get_user_client(token: str = Depends(get_user_token)) -> Client:
    """Provide a Supabase client authenticated with the user's JWT.

    RLS policies will be enforced for all queries.

    Note: We pass an empty string as the refresh token because the API
    is stateless — each request carries a fresh token from the client.
    The backend never refreshes tokens.
    """
    client = create_client(_get_supabase_url(), _get_supabase_anon_key())
    client.auth.set_session(token, "")
    return client


async def get_current_user_id(client: Client = Depends(get_user_client)) -> str:
    """Resolve the id of the user the bearer token belongs to."""
    user_response = client.auth.get_user()
    if not user_response or not user_response.user:
        raise AuthenticationError("Invalid bearer token")
    return user_response.user.id

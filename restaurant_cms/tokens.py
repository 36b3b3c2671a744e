"""Service token minting for privileged Supabase access"""
from datetime import datetime, timedelta, timezone

import jwt


def generate_jwt(secret: str, role: str = 'service_role', expiry_seconds: int = 3600) -> str:
    """
    Generate an HS256 JWT accepted by Supabase PostgREST.

    Args:
        secret: The project's JWT secret (Settings > API in the Supabase dashboard)
        role: Postgres role the token assumes ('service_role' bypasses RLS)
        expiry_seconds: Token lifetime

    Returns:
        Encoded token string
    """
    now = datetime.now(timezone.utc)
    payload = {
        "role": role,
        "iat": now,
        "exp": now + timedelta(seconds=expiry_seconds),
    }
    return jwt.encode(payload, secret, algorithm="HS256")

from __future__ import annotations

from fastapi import HTTPException, status

from jobfit.core.config import settings


def check_admin_key(x_api_key: str | None) -> None:
    if not settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin endpoints are disabled. Set ADMIN_API_KEY to enable them.",
        )
    if x_api_key != settings.admin_api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Please provide a valid API key.",
        )

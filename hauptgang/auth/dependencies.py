"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

import re

from fastapi import Depends, Header, HTTPException, status

from . import service

# `Token token="abc", nonce="..."` as sent by Rails-style clients.
TOKEN_PARAM = re.compile(r'^token=(?:"([^"]*)"|([^,\s]+))', re.IGNORECASE)


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme == "token":
        match = TOKEN_PARAM.match(token)
        if match:
            token = (match.group(1) or match.group(2) or "").strip()
    if scheme not in {"bearer", "token"} or not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_auth_context(access_token: str = Depends(get_bearer_token)) -> service.AuthContext:
    return await service.authenticate(access_token)


async def get_current_user(context: service.AuthContext = Depends(get_auth_context)) -> dict:
    return context.user

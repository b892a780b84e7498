"""Helpers shared by the HTTP-level tests."""

from __future__ import annotations

import re

import httpx
from httpx import AsyncClient

CSRF_PATTERN = re.compile(r'name="csrf_token" value="([^"]+)"')

USER_EMAIL = "ada@example.com"
USER_PASSWORD = "analytical-engine"
USER_NAME = "Ada Lovelace"


def extract_csrf_token(html: str) -> str:
    match = CSRF_PATTERN.search(html)
    assert match is not None, "Expected a CSRF token in the rendered page"
    return match.group(1)


async def csrf_token(client: AsyncClient, path: str = "/auth") -> str:
    response = await client.get(path)
    assert response.status_code == 200
    return extract_csrf_token(response.text)


async def sign_up_through_form(
    client: AsyncClient,
    *,
    email: str = USER_EMAIL,
    password: str = USER_PASSWORD,
    full_name: str = USER_NAME,
) -> httpx.Response:
    token = await csrf_token(client, "/auth?mode=signup")
    return await client.post(
        "/auth/signup",
        data={
            "csrf_token": token,
            "full_name": full_name,
            "email": email,
            "password": password,
            "confirm_password": password,
        },
    )

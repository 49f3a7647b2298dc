# Admin login. A static allow-list read from settings: a placeholder gate
# for the admin screens, not a security boundary.
from __future__ import annotations
from fastapi import Depends, HTTPException

from database import Settings, settings
from repository import StoreRepository, get_repository


def allowed_credentials(conf: Settings = settings) -> list[tuple[str, str]]:
    return [(conf.ADMIN_EMAIL, conf.ADMIN_PASSWORD)]


def check_credentials(email: str, password: str, conf: Settings = settings) -> bool:
    return any(email == e and password == p for e, p in allowed_credentials(conf))


async def require_admin(repo: StoreRepository = Depends(get_repository)) -> str:
    logged_in, email = await repo.load_login()
    if not logged_in:
        raise HTTPException(status_code=401, detail="Login required")
    return email or ""

# backend/lessonbook/auth.py
"""Caller permissions.

Identity is verified upstream (the sign-in proxy in front of the API); it
forwards the verified address in ``X-User-Email``. Here we only map that
address to a role.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header

from .config import settings
from .errors import PermissionDenied


@dataclass(frozen=True)
class Principal:
    is_admin: bool = False
    owned_teacher_slug: str = ""


def resolve_principal(email: Optional[str]) -> Principal:
    email = (email or "").strip().lower()
    if not email:
        return Principal()
    admins = {e.lower() for e in settings.ADMIN_EMAILS}
    slugs = {e.lower(): slug for e, slug in settings.TEACHER_EMAILS.items()}
    return Principal(is_admin=email in admins, owned_teacher_slug=slugs.get(email, ""))


def get_principal(x_user_email: Optional[str] = Header(None)) -> Principal:
    return resolve_principal(x_user_email)


def require_admin(principal: Principal = Depends(get_principal)) -> Principal:
    # teachers see their own schedule but only admins change it
    if not principal.is_admin:
        raise PermissionDenied("Admin access required")
    return principal


def scoped_teacher_id(principal: Principal, requested: Optional[str]) -> Optional[str]:
    """Teachers only see their own lessons; admins and anonymous reads pass through."""
    if not principal.is_admin and principal.owned_teacher_slug:
        return principal.owned_teacher_slug
    return requested

"""
User Directory
==============
Case-insensitive user lookup shared by sign-up and the partner invitation flow.
"""
from typing import Optional

from .models import User


def normalize_email(email: str) -> str:
    return (email or '').strip().lower()


def find_user_by_email(email: str) -> Optional[User]:
    """Return the active user registered under ``email``, ignoring case."""
    email = normalize_email(email)
    if not email:
        return None
    return User.objects.filter(email__iexact=email, is_active=True).first()

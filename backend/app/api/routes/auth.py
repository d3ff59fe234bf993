"""
Auth API Routes

Identity of the authenticated caller.
"""

from fastapi import APIRouter

from app.api.dependencies import CurrentUserDep
from app.domain.models import User


router = APIRouter()


@router.get("/auth/me", response_model=User)
async def get_me(user: CurrentUserDep):
    """Return the current user, creating the row on first sign-in."""
    return user

"""
User endpoints (registration and lookup).
"""
from fastapi import APIRouter, Depends, HTTPException

from weatherscent.api.deps import get_storage
from weatherscent.schemas import User, UserCreate
from weatherscent.storage import Storage, StorageError

router = APIRouter(prefix="/api/users", tags=["users"])


async def _reject_taken(storage: Storage, payload: UserCreate) -> None:
    if await storage.get_user_by_email(payload.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    if await storage.get_user_by_username(payload.username):
        raise HTTPException(status_code=400, detail="Username already taken")


@router.post("", response_model=User)
async def create_user(payload: UserCreate, storage: Storage = Depends(get_storage)):
    """Create a user. Email and username must be unused."""
    await _reject_taken(storage, payload)
    try:
        return await storage.create_user(payload)
    except StorageError:
        # A concurrent registration may have taken the email/username since the check
        await _reject_taken(storage, payload)
        raise


@router.get("/{user_id}", response_model=User)
async def get_user(user_id: int, storage: Storage = Depends(get_storage)):
    user = await storage.get_user_by_id(user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user

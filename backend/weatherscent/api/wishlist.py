"""
Wishlist endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from weatherscent.api.deps import get_storage
from weatherscent.schemas import CamelModel, WishlistCreate, WishlistItem, WishlistItemWithPerfume
from weatherscent.storage import Storage

router = APIRouter(prefix="/api/wishlist", tags=["wishlist"])


class WishlistCheckResponse(CamelModel):
    is_wishlisted: bool


@router.post("", response_model=WishlistItem)
async def add_to_wishlist(payload: WishlistCreate, storage: Storage = Depends(get_storage)):
    """Save a perfume for a user. A pair that is already saved is rejected with 400."""
    item = await storage.add_to_wishlist(payload)
    if item is None:
        raise HTTPException(status_code=400, detail="Item already in wishlist")
    return item


@router.delete("/{user_id}/{perfume_id}")
async def remove_from_wishlist(user_id: int, perfume_id: int, storage: Storage = Depends(get_storage)):
    removed = await storage.remove_from_wishlist(user_id, perfume_id)
    if not removed:
        raise HTTPException(status_code=404, detail="Wishlist item not found")
    return {"message": "Removed from wishlist"}


@router.get("/{user_id}", response_model=List[WishlistItemWithPerfume])
async def get_wishlist(user_id: int, storage: Storage = Depends(get_storage)):
    """Saved perfumes for a user; perfume is null if it no longer exists."""
    return await storage.get_wishlist_with_perfumes(user_id)


@router.get("/{user_id}/{perfume_id}/check", response_model=WishlistCheckResponse)
async def check_wishlist(user_id: int, perfume_id: int, storage: Storage = Depends(get_storage)):
    return WishlistCheckResponse(is_wishlisted=await storage.is_in_wishlist(user_id, perfume_id))

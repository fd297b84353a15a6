"""
Perfume catalogue endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from weatherscent.api.deps import get_storage
from weatherscent.schemas import Perfume
from weatherscent.services.recommender import similar_perfumes
from weatherscent.storage import Storage

router = APIRouter(prefix="/api/perfumes", tags=["perfumes"])


@router.get("", response_model=List[Perfume])
async def list_perfumes(storage: Storage = Depends(get_storage)):
    """All perfumes in the catalogue."""
    return await storage.get_all_perfumes()


@router.get("/{perfume_id}", response_model=Perfume)
async def get_perfume(perfume_id: int, storage: Storage = Depends(get_storage)):
    """
    Perfume detail. Every successful fetch counts as one view.

    Returns 404 (and records nothing) if the perfume does not exist.
    """
    perfume = await storage.update_perfume_views(perfume_id)
    if not perfume:
        raise HTTPException(status_code=404, detail="Perfume not found")
    return perfume


@router.get("/{perfume_id}/similar", response_model=List[Perfume])
async def get_similar_perfumes(perfume_id: int, storage: Storage = Depends(get_storage)):
    """Up to four perfumes from the same scent family."""
    perfume = await storage.get_perfume_by_id(perfume_id)
    if not perfume:
        raise HTTPException(status_code=404, detail="Perfume not found")
    return similar_perfumes(perfume, await storage.get_all_perfumes())

# reportsync/api/categories.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query

from reportsync.api.deps import get_category_directory
from reportsync.models.category import Category

router = APIRouter(prefix="/categories", tags=["Categories"])


@router.get("", response_model=List[Category])
async def list_categories(directory=Depends(get_category_directory)):
    return await directory.list_active()


@router.get("/search", response_model=List[Category])
async def search_categories(
    q: str = Query("", description="Matched against name and description"),
    directory=Depends(get_category_directory),
):
    return await directory.search(q)


@router.post("/refresh")
async def refresh_categories(directory=Depends(get_category_directory)):
    synced = await directory.force_refresh()
    return {"success": synced, "tier": directory.tier}


@router.get("/{category_id}", response_model=Category)
async def get_category(category_id: str, directory=Depends(get_category_directory)):
    category = await directory.get(category_id)
    if not category:
        raise HTTPException(404, "Category not found")
    return category

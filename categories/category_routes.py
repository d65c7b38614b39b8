from __future__ import annotations

from fastapi import APIRouter, Depends, status
from typing import List

from auth.auth import get_current_user
from categories.category_model import Category, CategoryCreate, CategoryUpdate
from categories.category_repo import CategoryRepo
from schemas.api import Message
from settings.db import get_db
from surrealdb import AsyncSurreal


router = APIRouter(prefix="/categories", tags=["categories"])


def get_category_repo(db: AsyncSurreal = Depends(get_db)) -> CategoryRepo:
    return CategoryRepo(db)


@router.get("/", response_model=List[Category])
async def list_categories(user_id: str = Depends(get_current_user), repo: CategoryRepo = Depends(get_category_repo)) -> List[dict]:
    return await repo.list_for_user(user_id)


@router.get("/{category_id}", response_model=Category)
async def get_category(category_id: str, user_id: str = Depends(get_current_user), repo: CategoryRepo = Depends(get_category_repo)) -> dict:
    return await repo.require(user_id, category_id)


@router.post("/", response_model=Category, status_code=status.HTTP_201_CREATED)
async def create_category(body: CategoryCreate, user_id: str = Depends(get_current_user), repo: CategoryRepo = Depends(get_category_repo)) -> dict:
    return await repo.create(user_id, body.model_dump())


@router.put("/{category_id}", response_model=Category)
async def update_category(
    category_id: str,
    body: CategoryUpdate,
    user_id: str = Depends(get_current_user),
    repo: CategoryRepo = Depends(get_category_repo),
) -> dict:
    return await repo.update(user_id, category_id, body.model_dump(exclude_unset=True))


@router.delete("/{category_id}", response_model=Message)
async def delete_category(category_id: str, user_id: str = Depends(get_current_user), repo: CategoryRepo = Depends(get_category_repo)) -> Message:
    await repo.delete(user_id, category_id)
    return Message(message="Category deleted successfully")

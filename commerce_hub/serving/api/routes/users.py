"""
Users API Endpoints

Responses never include the password hash.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from commerce_hub.schemas import UserIn, UserOut, UserPatch
from commerce_hub.serving.api.dependencies import get_users
from commerce_hub.services import UserService

router = APIRouter()


@router.post("", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def create_user(body: UserIn, users: UserService = Depends(get_users)):
    return await users.create(body.model_dump())


@router.get("", response_model=List[UserOut])
async def list_users(users: UserService = Depends(get_users)):
    return await users.list_all()


@router.get("/{user_id}", response_model=UserOut)
async def get_user(user_id: str, users: UserService = Depends(get_users)):
    return await users.get(user_id)


@router.put("/{user_id}", response_model=UserOut)
async def replace_user(user_id: str, body: UserIn, users: UserService = Depends(get_users)):
    return await users.replace(user_id, body.model_dump())


@router.patch("/{user_id}", response_model=UserOut)
async def update_user(user_id: str, body: UserPatch, users: UserService = Depends(get_users)):
    return await users.patch(user_id, body.model_dump(exclude_unset=True))

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.common import SuccessOut
from pixelshelf.schemas.like import LikeIn, LikeOut
from pixelshelf.services import likes as service
from pixelshelf.utils.cache_decorators import TRENDING_PREFIX, invalidate_cache_pattern

router = APIRouter(prefix="/likes", tags=["likes"])


@router.post("", status_code=status.HTTP_201_CREATED, response_model=LikeOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def like(
    payload: LikeIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.like(db, user, payload)


@router.delete("", response_model=SuccessOut)
@invalidate_cache_pattern(f"{TRENDING_PREFIX}:*")
async def unlike(
    payload: LikeIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await service.unlike(db, user, payload)
    return SuccessOut()

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.db import get_db
from pixelshelf.schemas.search import TrendingType
from pixelshelf.services import trending as service
from pixelshelf.utils.cache_decorators import TRENDING_PREFIX, cache_response

router = APIRouter(prefix="/trending", tags=["trending"])


@router.get("")
@cache_response(ttl=300, key_prefix=TRENDING_PREFIX)
async def trending(
    request: Request,
    type: TrendingType = "assets",
    limit: int = Query(10, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    return await service.trending(db, type, limit)

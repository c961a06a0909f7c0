from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.db import get_db
from pixelshelf.models import FileType
from pixelshelf.schemas.asset import ContentSort
from pixelshelf.schemas.search import SearchType
from pixelshelf.services import search as service
from pixelshelf.utils.pagination import Page, PageParams

router = APIRouter(prefix="/search", tags=["search"])


@router.get("")
async def search(
    q: Optional[str] = None,
    type: SearchType = "all",
    tag: Optional[str] = None,
    asset_type: Optional[FileType] = Query(None, alias="assetType"),
    sort: ContentSort = "latest",
    page: Page = Depends(PageParams(default_limit=10)),
    db: AsyncSession = Depends(get_db),
):
    """
    Search public assets and projects, and users.

    ``type=all`` returns one page of each kind; ``totalPages`` is computed
    over ``limit * 3`` results per page.
    """
    return await service.search(db, page, q, type, tag, asset_type, sort)

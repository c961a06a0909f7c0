from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.config import settings
from pixelshelf.core.dependencies import get_current_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.payment import RedirectUrlOut
from pixelshelf.services import billing
from pixelshelf.services.billing import StripeClient

router = APIRouter(prefix="/payments", tags=["payments"])


def _return_url(origin: Optional[str]) -> str:
    return (origin or settings.app_url).rstrip("/")


@router.post("/create-portal", response_model=RedirectUrlOut)
async def create_portal(
    origin: Optional[str] = Header(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: StripeClient = Depends(billing.get_billing_client),
):
    url = await billing.create_portal(db, user, _return_url(origin), client)
    if url is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No subscription found")
    return RedirectUrlOut(url=url)


@router.post("/create-checkout", response_model=RedirectUrlOut)
async def create_checkout(
    origin: Optional[str] = Header(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    client: StripeClient = Depends(billing.get_billing_client),
):
    """Start a premium checkout, creating the billing customer on first use."""
    url = await billing.create_checkout(db, user, _return_url(origin), client)
    return RedirectUrlOut(url=url)

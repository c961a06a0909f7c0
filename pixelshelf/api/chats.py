from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from pixelshelf.core.dependencies import get_current_user
from pixelshelf.db import get_db
from pixelshelf.models import User
from pixelshelf.schemas.chat import ChatCreateIn, ChatDetail, ChatList, ChatOut, MessageIn, MessageOut
from pixelshelf.schemas.common import SuccessOut
from pixelshelf.services import chats as service

router = APIRouter(prefix="/chats", tags=["chats"])


@router.get("", response_model=ChatList)
async def list_chats(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await service.list_chats(db, user)


@router.post("", response_model=ChatOut, responses={201: {"model": ChatOut}})
async def open_chat(
    payload: ChatCreateIn,
    response: Response,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Return the chat with ``userId``; 201 when it had to be created."""
    chat, created = await service.open_chat(db, user, payload.user_id)
    if created:
        response.status_code = status.HTTP_201_CREATED
    return chat


@router.get("/{chat_id}", response_model=ChatDetail)
async def get_chat(chat_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await service.get_chat(db, chat_id, user)


@router.post("/{chat_id}/messages", status_code=status.HTTP_201_CREATED, response_model=MessageOut)
async def send_message(
    chat_id: str,
    payload: MessageIn,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await service.send_message(db, chat_id, user, payload.content)


@router.post("/{chat_id}/read", response_model=SuccessOut)
async def mark_chat_read(chat_id: str, user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    await service.mark_chat_read(db, chat_id, user)
    return SuccessOut()

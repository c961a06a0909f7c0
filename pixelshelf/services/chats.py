"""Direct messages between two users."""

from __future__ import annotations

import logging
from typing import List, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from pixelshelf.db import utcnow
from pixelshelf.models import Chat, Message, User, UserChat
from pixelshelf.schemas.chat import ChatDetail, ChatList, ChatOut, ChatSummary, LastMessage, MessageOut
from pixelshelf.schemas.user import UserSummary
from pixelshelf.services import notifications

log = logging.getLogger(__name__)

CHAT_NOT_FOUND = "Chat not found"


async def _membership(db: AsyncSession, chat_id: str, user_id: str) -> UserChat:
    membership = await db.scalar(
        select(UserChat).where(UserChat.chat_id == chat_id, UserChat.user_id == user_id)
    )
    if membership is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=CHAT_NOT_FOUND)
    return membership


async def _other_participants(db: AsyncSession, chat_id: str, user_id: str) -> List[User]:
    rows = await db.scalars(
        select(UserChat)
        .options(selectinload(UserChat.user))
        .where(UserChat.chat_id == chat_id, UserChat.user_id != user_id)
    )
    return [row.user for row in rows]


async def _mark_read(db: AsyncSession, membership: UserChat) -> None:
    membership.has_unread = False
    await db.execute(
        update(Message)
        .where(
            Message.chat_id == membership.chat_id,
            Message.receiver_id == membership.user_id,
            Message.read.is_(False),
        )
        .values(read=True)
    )
    await db.commit()


async def list_chats(db: AsyncSession, user: User) -> ChatList:
    memberships = list(
        await db.scalars(
            select(UserChat)
            .options(selectinload(UserChat.chat))
            .join(Chat, Chat.id == UserChat.chat_id)
            .where(UserChat.user_id == user.id)
            .order_by(Chat.updated_at.desc())
        )
    )
    summaries = []
    for membership in memberships:
        chat_id = membership.chat_id
        last = await db.scalar(
            select(Message).where(Message.chat_id == chat_id).order_by(Message.created_at.desc()).limit(1)
        )
        unread = await db.scalar(
            select(func.count(Message.id)).where(
                Message.chat_id == chat_id, Message.receiver_id == user.id, Message.read.is_(False)
            )
        )
        summaries.append(
            ChatSummary(
                id=chat_id,
                participants=[UserSummary.model_validate(u) for u in await _other_participants(db, chat_id, user.id)],
                last_message=LastMessage.model_validate(last) if last else None,
                unread_count=unread,
            )
        )
    return ChatList(chats=summaries)


async def open_chat(db: AsyncSession, user: User, other_user_id: str) -> Tuple[ChatOut, bool]:
    """Return the chat between the caller and ``other_user_id``, creating it when absent.

    The boolean is ``True`` when a new chat was created.
    """
    if other_user_id == user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot start a chat with yourself")
    other = await db.get(User, other_user_id)
    if other is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    shared = select(UserChat.chat_id).where(UserChat.user_id == other.id)
    existing = await db.scalar(
        select(UserChat.chat_id).where(UserChat.user_id == user.id, UserChat.chat_id.in_(shared)).limit(1)
    )
    if existing:
        return ChatOut(id=existing, participants=[UserSummary.model_validate(other)]), False

    chat = Chat()
    db.add(chat)
    await db.flush()
    db.add_all([UserChat(user_id=user.id, chat_id=chat.id), UserChat(user_id=other.id, chat_id=chat.id)])
    await db.commit()
    log.info(f"Chat {chat.id} opened between {user.id} and {other.id}")
    return ChatOut(id=chat.id, participants=[UserSummary.model_validate(other)]), True


async def get_chat(db: AsyncSession, chat_id: str, user: User) -> ChatDetail:
    membership = await _membership(db, chat_id, user.id)
    messages = await db.scalars(
        select(Message).where(Message.chat_id == chat_id).order_by(Message.created_at.asc())
    )
    detail = ChatDetail(
        id=chat_id,
        participants=[UserSummary.model_validate(u) for u in await _other_participants(db, chat_id, user.id)],
        messages=[MessageOut.model_validate(m) for m in messages],
    )
    await _mark_read(db, membership)
    return detail


async def send_message(db: AsyncSession, chat_id: str, sender: User, content: str) -> MessageOut:
    await _membership(db, chat_id, sender.id)
    receiver_membership = await db.scalar(
        select(UserChat).where(UserChat.chat_id == chat_id, UserChat.user_id != sender.id).limit(1)
    )
    if receiver_membership is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Chat has no other participant")

    message = Message(
        chat_id=chat_id,
        sender_id=sender.id,
        receiver_id=receiver_membership.user_id,
        content=content,
    )
    db.add(message)
    receiver_membership.has_unread = True
    await db.execute(update(Chat).where(Chat.id == chat_id).values(updated_at=utcnow()))
    await db.flush()
    notification = await notifications.notify_message(db, sender.id, receiver_membership.user_id)
    await db.commit()
    await notifications.publish(db, [notification])
    return MessageOut.model_validate(message)


async def mark_chat_read(db: AsyncSession, chat_id: str, user: User) -> None:
    membership = await _membership(db, chat_id, user.id)
    await _mark_read(db, membership)

"""
Channel and message history routes.

Messages written here are stored only; live delivery happens over the
chat WebSocket.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import List, Optional

from teamsync.api.deps import get_chat_store
from teamsync.core.exceptions import ChannelNotFoundError, ValidationError
from teamsync.core.logging_config import logger
from teamsync.schemas.channel import (
    ChannelCreate,
    ChannelResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
)
from teamsync.services.chat_store import ChatStore

router = APIRouter()


@router.post("", response_model=ChannelResponse, status_code=status.HTTP_201_CREATED)
async def create_channel(
    body: ChannelCreate,
    store: ChatStore = Depends(get_chat_store),
):
    """Create a channel; the creator is added as a member."""
    channel = await store.create_channel(
        name=body.name,
        creator_id=body.creator_id,
        channel_type=body.type.value,
        project_id=body.project_id,
    )
    logger.info(f"Created channel {channel.id} ({channel.name}) for project {channel.project_id}")
    return channel


@router.get("", response_model=List[ChannelResponse])
async def list_channels(
    project_id: Optional[str] = Query(None, alias="projectId"),
    store: ChatStore = Depends(get_chat_store),
):
    """List the channels of a project."""
    if not project_id:
        raise ValidationError("projectId is required", field="projectId")
    return await store.list_channels(project_id)


@router.get("/{channel_id}/messages", response_model=MessageListResponse)
async def list_channel_messages(
    channel_id: str,
    store: ChatStore = Depends(get_chat_store),
):
    """Persisted history of a channel, oldest first."""
    if await store.get_channel(channel_id) is None:
        raise ChannelNotFoundError(channel_id)

    messages = await store.list_messages(channel_id)
    return MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        total=len(messages),
    )


@router.post("/{channel_id}/messages", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def create_channel_message(
    channel_id: str,
    body: MessageCreate,
    store: ChatStore = Depends(get_chat_store),
):
    """Append a message to channel history without broadcasting it."""
    if await store.get_channel(channel_id) is None:
        raise ChannelNotFoundError(channel_id)

    message = await store.create_message(
        content=body.content,
        channel_id=channel_id,
        author_id=body.author_id,
    )
    return MessageResponse.model_validate(message)

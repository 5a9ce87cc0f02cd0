"""Pydantic schemas for channel and message history routes"""
from pydantic import BaseModel, Field, ConfigDict
from typing import Optional, List
from datetime import datetime
from enum import Enum


class ChannelTypeEnum(str, Enum):
    CHANNEL = "channel"
    DIRECT = "direct"


class ChannelCreate(BaseModel):
    """Create a channel; the creator becomes its first member"""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    type: ChannelTypeEnum = Field(default=ChannelTypeEnum.CHANNEL)
    project_id: Optional[str] = Field(None, alias="projectId")
    creator_id: str = Field(..., alias="creatorId", min_length=1)


class ChannelResponse(BaseModel):
    id: str
    name: str
    type: ChannelTypeEnum
    project_id: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageCreate(BaseModel):
    """Write a message to channel history over HTTP"""
    model_config = ConfigDict(populate_by_name=True)

    content: str = Field(..., min_length=1)
    author_id: str = Field(..., alias="authorId", min_length=1)


class MessageResponse(BaseModel):
    """A persisted chat message"""
    id: str
    content: str
    channel_id: str
    author_id: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageListResponse(BaseModel):
    messages: List[MessageResponse]
    total: int

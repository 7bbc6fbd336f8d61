"""Pydantic schemas for API request/response serialization."""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from gclub.models.game_post import GamePostStatus, WaitingStatus


# ---- Role / Permission ----
class PermissionOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None

    class Config:
        from_attributes = True

class RoleOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    is_default: bool = False
    permissions: List[PermissionOut] = []

    class Config:
        from_attributes = True

class RoleCheckRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    role_id: int = Field(..., alias="roleId")
    permission_name: str = Field(..., alias="permissionName", min_length=1)

class RolePermissionsUpdate(BaseModel):
    permission_ids: List[int]

class UserRoleUpdate(BaseModel):
    role_id: int


# ---- Profile ----
class ProfileCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    image: Optional[str] = None

class ProfileOut(BaseModel):
    id: int
    user_id: str
    name: str
    image: Optional[str] = None
    role: Optional[RoleOut] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class MeResponse(BaseModel):
    profile: Optional[ProfileOut] = None
    capabilities: Dict[str, bool]


# ---- Game posts ----
class GamePostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    game_name: str = Field(..., min_length=1, max_length=100)
    max_players: int
    start_time: datetime

class GamePostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    game_name: Optional[str] = Field(None, min_length=1, max_length=100)
    max_players: Optional[int] = None
    start_time: Optional[datetime] = None

class ParticipantOut(BaseModel):
    id: int
    user_id: str
    is_leader: bool
    is_reserve: bool
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class WaitingOut(BaseModel):
    id: int
    user_id: str
    status: WaitingStatus
    available_time: Optional[datetime] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GamePostOut(BaseModel):
    id: int
    title: str
    game_name: str
    max_players: int
    participant_count: int
    start_time: datetime
    status: GamePostStatus
    author_id: str
    view_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GamePostDetail(GamePostOut):
    content: str
    participants: List[ParticipantOut] = []
    waiting_list: List[WaitingOut] = []

class GamePostListResponse(BaseModel):
    posts: List[GamePostOut]
    total: int
    page: int
    page_size: int

class WaitRequest(BaseModel):
    available_time: Optional[datetime] = None

class GameMatePostOut(GamePostOut):
    is_owner: bool
    waiting_count: int

class GameMateHistoryResponse(BaseModel):
    posts: List[GameMatePostOut]
    total: int
    page: int
    page_size: int


# ---- Comments ----
class CommentWrite(BaseModel):
    # length is checked after trimming by the service
    content: str

class CommentOut(BaseModel):
    id: int
    game_post_id: int
    author_id: str
    author_name: Optional[str] = None
    content: str
    is_deleted: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ---- Channels ----
class ChannelOut(BaseModel):
    id: int
    name: str
    slug: str
    description: Optional[str] = None
    order: int
    is_active: bool

    class Config:
        from_attributes = True

class ChannelOrderItem(BaseModel):
    id: int
    order: int

class ChannelOrderRequest(BaseModel):
    channels: List[ChannelOrderItem]


# ---- Notifications ----
class NotificationOut(BaseModel):
    id: int
    type: str
    title: str
    body: str
    action_url: Optional[str] = None
    game_post_id: Optional[int] = None
    sender_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class ReceiptOut(BaseModel):
    id: int
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    notification: NotificationOut

    class Config:
        from_attributes = True

class NotificationListResponse(BaseModel):
    receipts: List[ReceiptOut]
    total: int
    page: int
    page_size: int
    unread_count: int


# ---- Push ----
class PushSubscribeRequest(BaseModel):
    endpoint: str = Field(..., min_length=1)
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)

class PushStatusResponse(BaseModel):
    enabled: bool


# ---- Notices ----
class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    is_pinned: bool = False

class NoticeOut(BaseModel):
    id: int
    title: str
    content: str
    author_id: str
    is_pinned: bool
    view_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Audit ----
class AuditLogOut(BaseModel):
    id: int
    actor_id: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    ip_address: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ---- Generic ----
class MessageResponse(BaseModel):
    message: str
    detail: Optional[Any] = None

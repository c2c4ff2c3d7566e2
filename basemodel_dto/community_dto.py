from typing import List, Optional

from pydantic import BaseModel, Field


class CommunityPost(BaseModel):
    id: str
    userId: str
    userName: str
    userAvatar: str
    timestamp: Optional[str] = None
    content: str
    imageUrl: Optional[str] = None
    likesCount: int = 0
    commentsCount: int = 0
    likedBy: List[str] = []


class CommentCreate(BaseModel):
    content: str = Field(min_length=1)


class CommunityComment(BaseModel):
    id: str
    userId: str
    userName: str
    userAvatar: str
    timestamp: Optional[str] = None
    content: str

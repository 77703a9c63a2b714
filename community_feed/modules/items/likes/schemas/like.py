from pydantic import BaseModel

class LikeState(BaseModel):
    """Authoritative like state of an item for the current viewer"""
    is_liked: bool
    likes_count: int

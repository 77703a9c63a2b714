from typing import Optional
from pydantic import BaseModel

class UserCreate(BaseModel):
    id: str
    name: str
    email: str
    avatar: str = ""
    level: int = 1

class Author(BaseModel):
    """Public author card embedded in items and comments"""
    user_id: str
    name: Optional[str] = None
    email: str = ""
    avatar: str = ""
    level: int = 1

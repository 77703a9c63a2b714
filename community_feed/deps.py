from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from community_feed.core.config import settings
from community_feed.db.session import get_db
from community_feed.modules.user_management.models.user import User
from community_feed.modules.user_management.services.user import get_user

def get_current_user(
    db: Session = Depends(get_db),
    user_id: Optional[str] = Header(None, alias=settings.USER_ID_HEADER),
) -> User:
    """
    Dependency for getting the user named by the identity header
    """
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing user identity",
        )

    user = get_user(db, user_id=user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user",
        )

    return user

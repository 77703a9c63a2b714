# Import all models here so metadata.create_all can see them
from community_feed.db.session import Base

from community_feed.modules.user_management.models.user import User
from community_feed.modules.items.models.item import Item
from community_feed.modules.items.comments.models.comment import Comment
from community_feed.modules.items.likes.models.like import Like

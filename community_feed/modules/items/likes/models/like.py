from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint

from community_feed.db.session import Base, utcnow

class Like(Base):
    __tablename__ = "likes"
    __table_args__ = (UniqueConstraint("item_id", "user_id", name="uq_likes_item_user"),)

    id = Column(String, primary_key=True, index=True)
    user_id = Column(String, ForeignKey("users.id"))
    item_id = Column(String, ForeignKey("items.id"), index=True)
    created_at = Column(DateTime, default=utcnow)

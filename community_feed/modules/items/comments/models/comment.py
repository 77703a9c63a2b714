from sqlalchemy import Column, String, DateTime, Text, ForeignKey

from community_feed.db.session import Base, utcnow

class Comment(Base):
    __tablename__ = "comments"

    id = Column(String, primary_key=True, index=True)
    content = Column(Text)
    author_id = Column(String, ForeignKey("users.id"))
    item_id = Column(String, ForeignKey("items.id"), index=True)
    parent_id = Column(String, ForeignKey("comments.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, JSON

from community_feed.db.session import Base, utcnow

class Item(Base):
    __tablename__ = "items"

    id = Column(String, primary_key=True, index=True)
    kind = Column(String, index=True)  # posts, announcements, feedback
    content = Column(Text)
    media_urls = Column(JSON, default=list)
    author_id = Column(String, ForeignKey("users.id"))
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

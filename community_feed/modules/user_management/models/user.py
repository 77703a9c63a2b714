from sqlalchemy import Column, Integer, String, DateTime

from community_feed.db.session import Base, utcnow

class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    name = Column(String)
    email = Column(String, unique=True, index=True)
    avatar = Column(String, default="")
    level = Column(Integer, default=1)
    created_at = Column(DateTime, default=utcnow)

from enum import Enum


class ItemKind(str, Enum):
    """The three feed collections. The value doubles as the URL segment."""
    POST = "posts"
    ANNOUNCEMENT = "announcements"
    FEEDBACK = "feedback"

"""
Modules package initialization.
This package contains all the functional modules of the application.
"""

from community_feed.modules import user_management
from community_feed.modules import items
from community_feed.modules import threads

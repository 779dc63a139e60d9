"""
Host Session
Optional accessors the host platform (Knack) may provide for the logged-in user.
Both accessors return None when the host doesn't offer them.
"""

from typing import Any, Dict, Optional


class HostSession:
    def get_user_attributes(self) -> Optional[Dict[str, Any]]:
        """Equivalent of Knack.getUserAttributes()"""
        return None

    def get_session_user(self) -> Optional[Dict[str, Any]]:
        """Equivalent of Knack.session.user"""
        return None


class StaticHostSession(HostSession):
    def __init__(self, user_attributes=None, session_user=None):
        self.user_attributes = user_attributes
        self.session_user = session_user

    def get_user_attributes(self):
        return self.user_attributes

    def get_session_user(self):
        return self.session_user

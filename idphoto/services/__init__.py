"""High-level services for the compliance engine.

This package contains the session object that ties analysis, fixing and
export together for one photo.
"""

from idphoto.services.session import PhotoSession, SessionState

__all__ = [
    "PhotoSession",
    "SessionState",
]

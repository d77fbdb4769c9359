"""
Admin screens — renderable views looked up by name.

    from confsync.screens import default_registry

    fragment = default_registry().render("eprint_error", session)
"""

from confsync.screens.base import Fragment, Screen
from confsync.screens.error import ErrorScreen
from confsync.screens.registry import ScreenRegistry, UnknownScreenError, default_registry

__all__ = [
    "ErrorScreen",
    "Fragment",
    "Screen",
    "ScreenRegistry",
    "UnknownScreenError",
    "default_registry",
]

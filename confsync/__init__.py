"""
confsync — idempotent configuration-file reconciler.

Generates the Apache configuration for a repository installation and
keeps it in sync without ever silently overwriting an existing file.
"""

__version__ = "0.1.0"

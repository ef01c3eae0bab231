"""
Filesystem handlers, one per verb.
"""

from .files import FileHandlers
from .listing import list_directory

__all__ = ["FileHandlers", "list_directory"]

"""tabshelf - saved Setup shortcuts with a pinned prefix, sorting and import/export."""

from __future__ import annotations

__version__ = "0.1.0"

from .app import TabShelf
from .core import SortKey, Tab, TabContainer
from .errors import ShelfError

__all__ = ["ShelfError", "SortKey", "Tab", "TabContainer", "TabShelf", "__version__"]

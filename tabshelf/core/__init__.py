"""Core tab model: the Tab record, the TabContainer and their helpers."""

from .container import ContainerSnapshot, TabContainer
from .ports import SettingsPort, StoragePort, TabsChangedFn
from .sorting import SortKey, SortState
from .tab import Tab
from .urls import contains_record_id, expand_url, extract_org_name, minify_url

__all__ = [
    "ContainerSnapshot",
    "SettingsPort",
    "SortKey",
    "SortState",
    "StoragePort",
    "Tab",
    "TabContainer",
    "TabsChangedFn",
    "contains_record_id",
    "expand_url",
    "extract_org_name",
    "minify_url",
]

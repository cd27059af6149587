"""Query and pagination over discovered Markdown files."""

from .engine import QueryEngine, filter_files, group_by_folder, paginate, total_pages
from .formatting import format_relative_date
from .models import FolderGroup, PageView, QueryState

__all__ = [
    "QueryEngine",
    "filter_files",
    "group_by_folder",
    "paginate",
    "total_pages",
    "format_relative_date",
    "FolderGroup",
    "PageView",
    "QueryState",
]

"""
Data module for the contact dashboard.

Contains the row schema, the CSV loader and the geographic boundary loader.
"""

from src.data.boundaries import (
    DEFAULT_BOUNDARY_URL,
    extract_features,
    load_boundaries,
    load_boundaries_safe,
)
from src.data.local_loader import (
    LoadResult,
    LocalDataLoader,
    load_contact_data,
    load_records,
    records_from_dicts,
)
from src.data.schemas import (
    REQUIRED_COLUMNS,
    SUNBURST_GROUPING,
    TREEMAP_GROUPING,
    ContactRecord,
    GroupingConfig,
    HierarchyNode,
    Link,
    Node,
)

__all__ = [
    # Data loading
    "LocalDataLoader",
    "LoadResult",
    "load_contact_data",
    "load_records",
    "records_from_dicts",
    # Boundaries
    "DEFAULT_BOUNDARY_URL",
    "extract_features",
    "load_boundaries",
    "load_boundaries_safe",
    # Schemas
    "REQUIRED_COLUMNS",
    "ContactRecord",
    "Link",
    "Node",
    "GroupingConfig",
    "HierarchyNode",
    "TREEMAP_GROUPING",
    "SUNBURST_GROUPING",
]

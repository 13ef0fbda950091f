from intake.mapping.config import (
    DEFAULT_CONFIG,
    GrandparentSuffix,
    ImportConfig,
    LinkFailurePolicy,
    SheetKind,
)
from intake.mapping.column_mapper import ColumnMapper

__all__ = [
    "DEFAULT_CONFIG",
    "ColumnMapper",
    "GrandparentSuffix",
    "ImportConfig",
    "LinkFailurePolicy",
    "SheetKind",
]

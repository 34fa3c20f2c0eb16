# FILE: coach_engine/extraction/__init__.py
"""Progressive merging of structured data extracted from the conversation."""
from .merge import (
    CONCAT_SEPARATOR,
    MODULE_MERGE_STRATEGIES,
    MergeStrategy,
    merge_module_record,
    merge_partial,
    merge_strengths,
)

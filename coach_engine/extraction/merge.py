# FILE: coach_engine/extraction/merge.py
"""
Partial Data Merge Engine

Deep-merges structured data extracted turn by turn into the module record
without losing anything captured earlier.

One recursive merge, steered by a per-path strategy table:
  - mappings merge recursively; keys absent from the update are kept
  - an object may replace a scalar, but a non-empty object is never
    replaced by a scalar or a list
  - REPLACE (default): the update wins, except that None, empty strings and
    empty lists never overwrite an existing value
  - UNION: ordered set union for accumulator lists, existing items first
  - CONCAT: provenance text joined with "\\n---\\n"; NOT idempotent, merging
    the same update twice appends it twice
  - CONCAT_UNIQUE: like CONCAT but skips a segment that is already present

Strategy paths use dot notation; "*" matches exactly one segment. Inputs
are never mutated.
"""
from __future__ import annotations

import copy
import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

CONCAT_SEPARATOR = "\n---\n"


class MergeStrategy(str, Enum):
    REPLACE = "replace"
    UNION = "union"
    CONCAT = "concat"
    CONCAT_UNIQUE = "concat_unique"


StrategyTable = Mapping[str, MergeStrategy]


# =============================================================================
# DEFAULT STRATEGY TABLES
# =============================================================================

STRENGTHS_MERGE_STRATEGIES: Dict[str, MergeStrategy] = {
    "raw": MergeStrategy.UNION,
    "categorized.*": MergeStrategy.UNION,
    "sourceResponse": MergeStrategy.CONCAT,
}

MODULE_MERGE_STRATEGIES: Dict[str, Dict[str, MergeStrategy]] = {
    "gz-intake": {
        "validation.strengths": MergeStrategy.UNION,
        "validation.concerns": MergeStrategy.UNION,
        "founder.qualifications.certifications": MergeStrategy.UNION,
        "resources.network.industryContacts": MergeStrategy.UNION,
        "strengths.raw": MergeStrategy.UNION,
        "strengths.categorized.*": MergeStrategy.UNION,
        "strengths.sourceResponse": MergeStrategy.CONCAT,
    },
    "gz-geschaeftsmodell": {
        "valueProposition.customerJobs": MergeStrategy.UNION,
        "valueProposition.customerPains": MergeStrategy.UNION,
        "valueProposition.customerGains": MergeStrategy.UNION,
        "valueProposition.painRelievers": MergeStrategy.UNION,
        "valueProposition.gainCreators": MergeStrategy.UNION,
        "targetAudience.primaryPersona.psychographics.goals": MergeStrategy.UNION,
        "targetAudience.primaryPersona.psychographics.challenges": MergeStrategy.UNION,
        "competitiveAnalysis.directCompetitors": MergeStrategy.UNION,
        "competitiveAnalysis.marketGaps": MergeStrategy.UNION,
    },
}


# =============================================================================
# STRATEGY LOOKUP
# =============================================================================

def _split(path: str) -> Tuple[str, ...]:
    return tuple(part for part in path.split(".") if part)


def _compile_table(strategies: Optional[StrategyTable]) -> List[Tuple[Tuple[str, ...], MergeStrategy]]:
    if not strategies:
        return []
    compiled = []
    for pattern, strategy in strategies.items():
        try:
            compiled.append((_split(pattern), MergeStrategy(strategy)))
        except ValueError:
            logger.warning(f"[merge] Ignoring unknown strategy {strategy!r} for {pattern}")
    # Exact paths take precedence over wildcard paths
    compiled.sort(key=lambda item: "*" in item[0])
    return compiled


def _strategy_for(path: Tuple[str, ...], table: List[Tuple[Tuple[str, ...], MergeStrategy]]) -> MergeStrategy:
    for pattern, strategy in table:
        if len(pattern) != len(path):
            continue
        if all(p == "*" or p == s for p, s in zip(pattern, path)):
            return strategy
    return MergeStrategy.REPLACE


# =============================================================================
# LEAF MERGES
# =============================================================================

def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def _union(existing: Sequence[Any], update: Sequence[Any]) -> List[Any]:
    result: List[Any] = []
    seen_hashable = set()
    for item in list(existing) + list(update):
        try:
            if item in seen_hashable:
                continue
            seen_hashable.add(item)
        except TypeError:
            # dicts / lists: equality scan
            if item in result:
                continue
        result.append(copy.deepcopy(item))
    return result


def _concat(existing: str, update: str, unique: bool) -> str:
    if not update.strip():
        return existing
    if not existing.strip():
        return update
    if unique and update in existing.split(CONCAT_SEPARATOR):
        return existing
    return f"{existing}{CONCAT_SEPARATOR}{update}"


def _as_list(value: Any) -> List[Any]:
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


# =============================================================================
# RECURSIVE MERGE
# =============================================================================

def _merge_value(existing: Any, update: Any, path: Tuple[str, ...], table) -> Any:
    if update is None:
        return copy.deepcopy(existing)

    if isinstance(update, Mapping):
        if isinstance(existing, Mapping):
            return _merge_mapping(existing, update, path, table)
        if not _is_blank(existing):
            logger.debug(f"[merge] {'.'.join(path)}: object replaces scalar")
        return _merge_mapping({}, update, path, table)

    if isinstance(existing, Mapping) and existing:
        # A captured object is never flattened by a scalar or list
        logger.debug(f"[merge] {'.'.join(path)}: keeping object, ignoring {type(update).__name__} update")
        return copy.deepcopy(existing)

    if existing is None:
        if isinstance(update, (list, tuple)):
            return _union([], update) if _strategy_for(path, table) == MergeStrategy.UNION else list(update)
        return copy.deepcopy(update)

    strategy = _strategy_for(path, table)

    if strategy == MergeStrategy.UNION:
        if _is_blank(update):
            return copy.deepcopy(existing)
        return _union(_as_list(existing), _as_list(update))

    if strategy in (MergeStrategy.CONCAT, MergeStrategy.CONCAT_UNIQUE):
        if isinstance(existing, str) and isinstance(update, str):
            return _concat(existing, update, unique=strategy == MergeStrategy.CONCAT_UNIQUE)

    # REPLACE (and CONCAT on non-text values)
    if _is_blank(update) and not _is_blank(existing):
        return copy.deepcopy(existing)
    return copy.deepcopy(update)


def _merge_mapping(existing: Mapping, update: Mapping, path: Tuple[str, ...], table) -> Dict[str, Any]:
    result: Dict[str, Any] = {key: copy.deepcopy(value) for key, value in existing.items()}
    for key, value in update.items():
        merged = _merge_value(existing.get(key), value, path + (str(key),), table)
        if merged is None and key not in existing:
            continue
        result[key] = merged
    return result


def merge_partial(
    existing: Optional[Mapping[str, Any]],
    update: Optional[Mapping[str, Any]],
    strategies: Optional[StrategyTable] = None,
) -> Dict[str, Any]:
    """
    Merge `update` into `existing` and return a new dict.

    Never raises on None, missing sub-objects or shape mismatches; a
    non-mapping argument is treated as empty.
    """
    base = existing if isinstance(existing, Mapping) else {}
    incoming = update if isinstance(update, Mapping) else {}
    return _merge_mapping(base, incoming, (), _compile_table(strategies))


def merge_module_record(
    module_id: str,
    existing: Optional[Mapping[str, Any]],
    update: Optional[Mapping[str, Any]],
    extra_strategies: Optional[StrategyTable] = None,
) -> Dict[str, Any]:
    """Merge using the module's default strategy table (plus any overrides)."""
    strategies: Dict[str, MergeStrategy] = dict(MODULE_MERGE_STRATEGIES.get(module_id, {}))
    if extra_strategies:
        strategies.update(extra_strategies)
    merged = merge_partial(existing, update, strategies)
    logger.debug(f"[merge] {module_id}: merged {len(update or {})} top-level keys")
    return merged


def merge_strengths(
    existing: Optional[Mapping[str, Any]],
    update: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """
    Merge discovered strengths: raw and categorized lists by union, the
    source responses concatenated as provenance.
    """
    if not existing:
        return copy.deepcopy(dict(update or {}))
    return merge_partial(existing, update, STRENGTHS_MERGE_STRATEGIES)

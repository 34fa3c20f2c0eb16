# FILE: coach_engine/coaching/modules.py
"""
Workshop module registry.

The ten Gründungszuschuss workshop modules in order, each with the GROW
phases that are legal inside it. Unknown module ids resolve to the full
GROW sequence.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .schemas import GROW_SEQUENCE, GROWPhase


@dataclass(frozen=True)
class WorkshopModule:
    module_id: str
    title: str
    grow_phases: Tuple[GROWPhase, ...]


_FULL = tuple(GROW_SEQUENCE)

WORKSHOP_MODULES: Tuple[WorkshopModule, ...] = (
    WorkshopModule("gz-intake", "Intake & Gründerprofil", _FULL),
    WorkshopModule("gz-geschaeftsmodell", "Geschäftsmodell", _FULL),
    WorkshopModule("gz-unternehmen", "Unternehmen", _FULL),
    WorkshopModule("gz-markt-wettbewerb", "Markt & Wettbewerb", _FULL),
    WorkshopModule("gz-marketing", "Marketing", _FULL),
    WorkshopModule("gz-finanzplanung", "Finanzplanung", _FULL),
    WorkshopModule("gz-swot", "SWOT-Analyse", _FULL),
    WorkshopModule("gz-meilensteine", "Meilensteine", (GROWPhase.WILL,)),  # commitment
    WorkshopModule("gz-kpi", "KPIs", (GROWPhase.REALITY, GROWPhase.OPTIONS)),  # measurement
    WorkshopModule("gz-zusammenfassung", "Zusammenfassung", (GROWPhase.REALITY,)),
)

MODULE_ORDER: List[str] = [m.module_id for m in WORKSHOP_MODULES]

_BY_ID: Dict[str, WorkshopModule] = {m.module_id: m for m in WORKSHOP_MODULES}

FIRST_MODULE_ID = MODULE_ORDER[0]


def get_module(module_id: Optional[str]) -> Optional[WorkshopModule]:
    if not module_id:
        return None
    return _BY_ID.get(module_id)


def legal_phases(module_id: Optional[str]) -> Tuple[GROWPhase, ...]:
    module = get_module(module_id)
    return module.grow_phases if module else _FULL


def get_next_module(module_id: Optional[str]) -> Optional[str]:
    """Next module in workshop order, or None after the last / for unknown ids."""
    if module_id not in _BY_ID:
        return None
    index = MODULE_ORDER.index(module_id)
    if index + 1 >= len(MODULE_ORDER):
        return None
    return MODULE_ORDER[index + 1]

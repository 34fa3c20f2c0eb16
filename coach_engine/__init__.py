# FILE: coach_engine/__init__.py
"""
GZ Coach Engine

Conversational progress and quality-control engine for the
Gründungszuschuss business-plan workshop:

- coaching:   TTM stage, GROW phase, quality metrics, emotions, beliefs
- validation: quality corrections and phase/module completion gating
- extraction: progressive merge of extracted structured data
- state:      per-session coaching state store
- engine:     per-turn orchestration
- api:        FastAPI router and app factory
"""
__version__ = "0.4.0"

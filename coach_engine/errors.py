# FILE: coach_engine/errors.py
class CoachEngineError(Exception):
    """Base class for coaching engine errors raised by the outer layers."""


class SnapshotPersistError(CoachEngineError):
    """Raised by a snapshot sink when a state snapshot could not be stored."""


class UnknownSessionError(CoachEngineError):
    pass


class ModuleAdvanceError(CoachEngineError):
    """Raised when advancing past a module that is blocked or incomplete."""

    def __init__(self, module_id: str, reason: str):
        super().__init__(f"Cannot leave {module_id}: {reason}")
        self.module_id = module_id
        self.reason = reason

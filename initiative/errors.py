"""Exception hierarchy for the initiative tracker."""


class TrackerError(Exception):
    """Base error for tracker operations."""
    pass


class InvalidPhaseError(TrackerError):
    """Attempted edit operation not valid in the session's current phase."""
    def __init__(self, current: str, attempted: str):
        self.current = current
        self.attempted = attempted
        super().__init__(f"Cannot {attempted} while {current}.")


class UnsavedEditsError(TrackerError):
    """Navigation attempted while a field edit is still open."""
    def __init__(self, combatant_ids: list[int]):
        self.combatant_ids = combatant_ids
        super().__init__(
            "You have unsaved changes. Confirm to leave without saving."
        )


class ValidationError(TrackerError):
    """Input rejected before any request was sent."""
    pass


class SaveError(TrackerError):
    """A save request failed (non-2xx response or transport error)."""
    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class ReorderSyncError(TrackerError):
    """Forwarding a manual reorder to persistence failed."""
    def __init__(self, move, cause: BaseException):
        self.move = move
        self.cause = cause
        super().__init__(f"Reorder {move} not persisted: {cause}")

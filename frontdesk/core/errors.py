class FrontdeskError(Exception):
    """Base for every failure the scheduling core reports to its callers."""

    pass


class ValidationFailed(FrontdeskError):
    """Malformed input, rejected before anything is written."""

    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"{field}: {message}")


class NotFoundError(FrontdeskError):
    def __init__(self, resource: str, resource_id=None):
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found" + (f": {resource_id}" if resource_id is not None else ""))


class ConflictError(FrontdeskError):
    """The input was fine but current state forbids it; re-fetch before trying again."""

    pass


class SlotUnavailableError(ConflictError):
    def __init__(self, staff_id, scheduled_at):
        self.staff_id = staff_id
        self.scheduled_at = scheduled_at
        super().__init__(
            f"slot no longer available: staff={staff_id} at={scheduled_at.strftime('%Y-%m-%d %H:%M')}"
        )


class DuplicateAssignmentError(ConflictError):
    def __init__(self, schedule_id, staff_id):
        self.schedule_id = schedule_id
        self.staff_id = staff_id
        super().__init__(f"schedule {schedule_id} is already assigned to staff {staff_id}")


class InvalidTransitionError(ConflictError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"cannot move appointment from {current} to {requested}")


class TransientError(FrontdeskError):
    """Upstream unavailable; safe to retry the same read."""

    pass


class LockoutTriggered(FrontdeskError):
    """Too many failed identity submissions; the flow ends with a redirect."""

    def __init__(self, redirect_url: str, attempts: int):
        self.redirect_url = redirect_url
        self.attempts = attempts
        super().__init__(f"identity lockout after {attempts} attempts")


class WizardStepError(ConflictError):
    """An action was sent for a step the booking session is not at."""

    def __init__(self, expected: str, current: str):
        self.expected = expected
        self.current = current
        super().__init__(f"booking session is at {current}, action needs {expected}")

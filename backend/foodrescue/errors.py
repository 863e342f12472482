# foodrescue/errors.py
"""
Typed outcomes of the matching engine.

Services raise these; the HTTP layer (see ``foodrescue.main``) maps them to
status codes. NotificationError never leaves the notification dispatcher.
"""


class EngineError(Exception):
    code = "engine_error"

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(EngineError):
    code = "validation_error"


class NotFound(EngineError):
    code = "not_found"


class Conflict(EngineError):
    code = "conflict"


class StorageError(EngineError):
    code = "storage_error"


class NotificationError(EngineError):
    code = "notification_error"

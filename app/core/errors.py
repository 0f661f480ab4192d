"""
Error taxonomy shared by the store, the services and the API layer
"""

from typing import Optional


class AttendanceError(Exception):
    """Base class for all recoverable application errors"""

    status_code = 400
    error_code = "ATTENDANCE_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidEventName(AttendanceError):
    error_code = "INVALID_EVENT_NAME"

    def __init__(self, message: str = "Event name cannot be empty"):
        super().__init__(message)


class DuplicateName(AttendanceError):
    status_code = 409
    error_code = "DUPLICATE_NAME"

    def __init__(self, name: str):
        super().__init__(f"An event named '{name}' already exists")
        self.name = name


class NotFound(AttendanceError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, resource_id: Optional[int] = None):
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} {resource_id} not found"
        super().__init__(message)
        self.resource = resource
        self.resource_id = resource_id


class StorageUnavailable(AttendanceError):
    """Any storage-layer fault; the enclosing operation was rolled back"""

    status_code = 503
    error_code = "STORAGE_UNAVAILABLE"

    def __init__(self, operation: str):
        super().__init__(f"Storage unavailable during {operation}")
        self.operation = operation


class ExportError(AttendanceError):
    status_code = 500
    error_code = "EXPORT_FAILED"

    def __init__(self, path: str, reason: str):
        super().__init__(f"Export to {path} failed: {reason}")
        self.path = path
        self.reason = reason

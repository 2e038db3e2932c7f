"""
Typed exception hierarchy for the taskboard packages.

Every error has a typed class (catch by type, not by message), a ``code``
class attribute (machine-readable, API-safe) and structured attributes
rather than just a message string.

    try:
        orchestrator.enqueue(project_id, "status_update", params, filters)
    except ValidationError as e:
        api_response(status=422, code=e.code, field=e.field)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TaskboardError (base)
    |
    +-- ValidationError
    |   +-- InvalidStatusError
    |   +-- InvalidPriorityError
    |   +-- InvalidFilterError
    |
    +-- NotFoundError
    |   +-- ProjectNotFoundError
    |
    +-- DueDateError
    |   +-- InvalidDateFormatError       (also a ValidationError)
    |   +-- UnknownOperationKindError    (also a ValidationError)
    |
    +-- BulkOperationError
        +-- StoreFailureError
        +-- InvalidParameterError
        +-- UnknownOperationTypeError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                    | When Raised
------------|-------------------------|------------------------------------------
Validation  | VALIDATION_ERROR        | Malformed request parameter
            | INVALID_STATUS          | Status outside todo/in_progress/done
            | INVALID_PRIORITY        | Priority not an integer in [1, 5]
            | INVALID_FILTER          | Filter value outside its domain
------------|-------------------------|------------------------------------------
Not found   | PROJECT_NOT_FOUND       | Project vanished before the job ran
------------|-------------------------|------------------------------------------
Due date    | INVALID_DATE_FORMAT     | set_specific literal is not a date
            | UNKNOWN_OPERATION_KIND  | Due-date kind outside the eight kinds
------------|-------------------------|------------------------------------------
Bulk        | STORE_FAILURE           | Count or batch update failed
            | INVALID_PARAMETER       | Engine received an out-of-domain value
            | UNKNOWN_OPERATION_TYPE  | No job registered for operation type
"""

from typing import Any


class TaskboardError(Exception):
    """
    Base exception for all taskboard errors.

    All subclasses must have a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "TASKBOARD_ERROR"


# Validation exceptions (raised at the enqueue boundary)


class ValidationError(TaskboardError):
    """A request parameter is malformed or outside its domain."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, reason: str | None = None):
        self.field = field
        self.value = value
        self.reason = reason or "is invalid"
        super().__init__(f"Invalid {field} {value!r}: {self.reason}")


class InvalidStatusError(ValidationError):
    """Status is not one of todo, in_progress, done."""

    code: str = "INVALID_STATUS"

    def __init__(self, value: Any, field: str = "status"):
        super().__init__(
            field, value, "must be one of todo, in_progress, done",
        )


class InvalidPriorityError(ValidationError):
    """Priority is not an integer between 1 and 5."""

    code: str = "INVALID_PRIORITY"

    def __init__(self, value: Any, field: str = "priority"):
        super().__init__(field, value, "must be an integer between 1 and 5")


class InvalidFilterError(ValidationError):
    """A filter value cannot be interpreted."""

    code: str = "INVALID_FILTER"


# Lookup exceptions


class NotFoundError(TaskboardError):
    """Base exception for missing records."""

    code: str = "NOT_FOUND"


class ProjectNotFoundError(NotFoundError):
    """Project with given ID was not found."""

    code: str = "PROJECT_NOT_FOUND"

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project not found: {project_id}")


# Due-date resolution exceptions


class DueDateError(TaskboardError):
    """Base exception for due-date resolution errors."""

    code: str = "DUE_DATE_ERROR"


class InvalidDateFormatError(DueDateError, ValidationError):
    """A set_specific literal could not be parsed as a calendar date."""

    code: str = "INVALID_DATE_FORMAT"

    def __init__(self, value: Any):
        ValidationError.__init__(
            self, "date", value, "expected a calendar date (YYYY-MM-DD)",
        )


class UnknownOperationKindError(DueDateError, ValidationError):
    """Due-date operation kind is not one of the supported kinds."""

    code: str = "UNKNOWN_OPERATION_KIND"

    def __init__(self, value: Any):
        ValidationError.__init__(
            self, "operation", value, "is not a supported due date operation",
        )


# Bulk operation exceptions (raised inside the job body)


class BulkOperationError(TaskboardError):
    """Base exception for bulk operation failures."""

    code: str = "BULK_OPERATION_ERROR"


class StoreFailureError(BulkOperationError):
    """The store failed while counting or applying a batch."""

    code: str = "STORE_FAILURE"

    def __init__(self, operation_id: str, stage: str, detail: str):
        self.operation_id = operation_id
        self.stage = stage
        self.detail = detail
        super().__init__(f"Store failure during {stage}: {detail}")


class InvalidParameterError(BulkOperationError):
    """The engine was handed a value that validation should have rejected."""

    code: str = "INVALID_PARAMETER"

    def __init__(self, parameter: str, value: Any):
        self.parameter = parameter
        self.value = value
        super().__init__(
            f"Out-of-domain value for {parameter}: {value!r}"
        )


class UnknownOperationTypeError(BulkOperationError, ValidationError):
    """No mutation job is registered for the operation type."""

    code: str = "UNKNOWN_OPERATION_TYPE"

    def __init__(self, operation_type: str, available: tuple[str, ...]):
        self.available = available
        ValidationError.__init__(
            self,
            "operation_type",
            operation_type,
            f"expected one of {', '.join(available)}",
        )

"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input is malformed: non-positive amounts, missing dates, totals off budget"""

    def __init__(self, message: str, installment_numbers: list[int] | None = None):
        super().__init__(message)
        self.installment_numbers = installment_numbers or []


class ConflictError(DomainException):
    """Existing state forbids the operation (duplicate pending submission, installment already paid)"""

    pass


class InvalidStateError(DomainException):
    """Review attempted on a submission that is no longer pending"""

    pass


class NotFoundError(DomainException):
    """Referenced project, installment, submission or transaction does not exist"""

    pass


class PermissionDeniedError(DomainException):
    """Actor's role or project membership does not allow the operation"""

    pass


class StorageError(DomainException):
    """Receipt storage service returned an error or is unavailable"""

    pass

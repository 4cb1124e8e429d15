"""
Domain-specific errors for the content bounded context (reports, trainings).

These are mapped to HTTP responses at the interface layer.
No framework imports allowed.
"""


class ContentDomainError(Exception):
    """Base error for all content domain errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)


class ReportNotFoundError(ContentDomainError):
    def __init__(self, report_id: str) -> None:
        super().__init__(f"Report not found: {report_id}")
        self.report_id = report_id


class TrainingNotFoundError(ContentDomainError):
    def __init__(self, training_id: str) -> None:
        super().__init__(f"Training not found: {training_id}")
        self.training_id = training_id


class InvalidContentError(ContentDomainError):
    """Raised when report or training input breaks a field rule."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class DuplicateTrainingError(ContentDomainError):
    """Raised when a training already exists for the month and year."""

    def __init__(self, month: int, year: int) -> None:
        super().__init__(f"A training already exists for {month:02d}/{year}")
        self.month = month
        self.year = year


class TrainingLockedError(ContentDomainError):
    """Raised when a change is refused because students are enrolled."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class EnrollmentError(ContentDomainError):
    """Raised when a user cannot enroll in a training."""

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason

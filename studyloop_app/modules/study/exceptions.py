from studyloop_app.core.error_handlers import AppError


class StudyError(AppError):
    """Base exception for the study module."""


class UnauthorizedError(StudyError):
    """Raised when no authenticated user is available."""
    code = 'UNAUTHORIZED'
    status_code = 401

    def __init__(self, message: str = 'Unauthorized'):
        super().__init__(message)


class StudyNotFoundError(StudyError):
    """A deck, card or session is absent or belongs to someone else.

    Both cases raise the same error.
    """
    code = 'NOT_FOUND'
    status_code = 404

    def __init__(self, message: str = 'Not found', resource: str = None):
        super().__init__(message, details={'resource': resource} if resource else None)
        self.resource = resource


class SessionNotFoundError(StudyNotFoundError):
    def __init__(self, session_id=None, message: str = 'Study session not found'):
        super().__init__(message, resource='study_session')
        self.session_id = session_id


class EmptyDeckError(StudyError):
    """Raised when a session is started on a deck with no cards."""
    code = 'EMPTY_DECK'
    status_code = 422

    def __init__(self, deck_id=None, message: str = 'No cards found in this deck'):
        super().__init__(message)
        self.deck_id = deck_id


class ActiveSessionError(StudyError):
    """A working-set override was requested while a session is still open."""
    code = 'SESSION_IN_PROGRESS'
    status_code = 409

    def __init__(self, session_id=None, message: str = 'Another study session is still open on this deck'):
        super().__init__(message)
        self.session_id = session_id


class StudyValidationError(StudyError):
    code = 'VALIDATION_ERROR'
    status_code = 400

    def __init__(self, message: str = 'Validation failed', errors: dict = None):
        super().__init__(message, details={'errors': errors} if errors else None)
        self.errors = errors or {}


class StudyStorageError(StudyError):
    """Persistence failed; the operation may be retried."""
    code = 'STORAGE_ERROR'
    status_code = 503
    retryable = True

    def __init__(self, message: str = 'Storage unavailable, please retry'):
        super().__init__(message, details={'retryable': True})

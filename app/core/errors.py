from app.core.error_codes import ErrorCode


class ApiError(Exception):
    def __init__(self, status_code: int, code: str, message: str):
        self.status_code = status_code
        self.code = str(code)
        self.message = message
        super().__init__(message)


class _TypedApiError(ApiError):
    status = 500
    default_code = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, code: str | None = None):
        super().__init__(status_code=self.status, code=code or self.default_code, message=message)


class ValidationError(_TypedApiError):
    status = 400
    default_code = ErrorCode.VALIDATION_ERROR


class UnauthorizedError(_TypedApiError):
    status = 401
    default_code = ErrorCode.UNAUTHORIZED


class ForbiddenError(_TypedApiError):
    status = 403
    default_code = ErrorCode.FORBIDDEN


class NotFoundError(_TypedApiError):
    status = 404
    default_code = ErrorCode.NOT_FOUND


class CourseUnavailableError(NotFoundError):
    default_code = ErrorCode.COURSE_UNAVAILABLE

    def __init__(self, message: str = "Course not found or not published"):
        super().__init__(message)


class ConflictError(_TypedApiError):
    status = 409
    default_code = ErrorCode.CONFLICT


class AlreadyEnrolledError(ConflictError):
    default_code = ErrorCode.ALREADY_ENROLLED

    def __init__(self, message: str = "Already enrolled"):
        super().__init__(message)


class AlreadyEnrolledFullyError(ConflictError):
    default_code = ErrorCode.ALREADY_PURCHASED

    def __init__(self, message: str = "Course already purchased"):
        super().__init__(message)


class UpstreamError(_TypedApiError):
    status = 503
    default_code = ErrorCode.UPSTREAM_UNAVAILABLE

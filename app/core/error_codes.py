class ErrorCode:
    INTERNAL_ERROR = "INTERNAL_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"
    NOT_FOUND = "NOT_FOUND"

    UNAUTHORIZED = "UNAUTHORIZED"
    INVALID_TOKEN = "INVALID_TOKEN"
    FORBIDDEN = "FORBIDDEN"
    ADMIN_REQUIRED = "ADMIN_REQUIRED"
    ACCOUNT_NOT_FOUND = "ACCOUNT_NOT_FOUND"

    COURSE_NOT_FOUND = "COURSE_NOT_FOUND"
    COURSE_UNAVAILABLE = "COURSE_UNAVAILABLE"
    COURSE_CONFLICT = "COURSE_CONFLICT"
    COURSE_IS_FREE = "COURSE_IS_FREE"
    MODULE_NOT_FOUND = "MODULE_NOT_FOUND"
    MODULE_ACCESS_DENIED = "MODULE_ACCESS_DENIED"
    LESSON_NOT_FOUND = "LESSON_NOT_FOUND"
    LESSON_CONFLICT = "LESSON_CONFLICT"
    QUIZ_NOT_FOUND = "QUIZ_NOT_FOUND"
    CONTENT_NOT_FOUND = "CONTENT_NOT_FOUND"

    ALREADY_ENROLLED = "ALREADY_ENROLLED"
    ALREADY_PURCHASED = "ALREADY_PURCHASED"
    PURCHASE_NOT_FOUND = "PURCHASE_NOT_FOUND"
    PURCHASE_ALREADY_SETTLED = "PURCHASE_ALREADY_SETTLED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"

    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    PAYMENTS_NOT_CONFIGURED = "PAYMENTS_NOT_CONFIGURED"
    PAYMENT_GATEWAY_ERROR = "PAYMENT_GATEWAY_ERROR"
    WEBHOOKS_NOT_CONFIGURED = "WEBHOOKS_NOT_CONFIGURED"

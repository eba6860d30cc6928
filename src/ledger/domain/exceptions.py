from enum import Enum


class ErrorCategory(Enum):
    AUTHORIZATION = "authorization"
    LIFECYCLE = "lifecycle"
    INPUT_BOUNDS = "input_bounds"
    NOT_FOUND = "not_found"
    IDENTITY = "identity"
    RESOURCE = "resource"
    CONFIGURATION = "configuration"


class LedgerErrorKind(Enum):
    """
    Closed set of ledger failures.
    Every failure is a violated precondition; none is retryable.
    """
    CURATOR_ONLY = ("curator only", ErrorCategory.AUTHORIZATION)
    TREASURY_ONLY = ("treasury only", ErrorCategory.AUTHORIZATION)
    FULFILLER_ONLY = ("fulfiller only", ErrorCategory.AUTHORIZATION)

    PAUSED = ("paused", ErrorCategory.LIFECYCLE)
    SNIPPET_DELETED = ("snippet deleted", ErrorCategory.LIFECYCLE)
    HINT_ALREADY_FULFILLED = ("hint already fulfilled", ErrorCategory.LIFECYCLE)

    SNIPPET_TOO_LONG = ("snippet too long", ErrorCategory.INPUT_BOUNDS)
    TITLE_TOO_LONG = ("title too long", ErrorCategory.INPUT_BOUNDS)
    TIP_TOO_SMALL = ("tip too small", ErrorCategory.INPUT_BOUNDS)
    AUTHOR_SNIPPET_CAP = ("author snippet cap", ErrorCategory.INPUT_BOUNDS)
    HINT_REQUEST_CAP = ("hint request cap", ErrorCategory.INPUT_BOUNDS)
    INVALID_BATCH = ("invalid batch", ErrorCategory.INPUT_BOUNDS)

    INVALID_SNIPPET_ID = ("invalid snippet id", ErrorCategory.NOT_FOUND)
    INVALID_HINT_ID = ("invalid hint id", ErrorCategory.NOT_FOUND)

    NOT_AUTHOR = ("not author", ErrorCategory.IDENTITY)
    CANNOT_VOTE_OWN = ("cannot vote own", ErrorCategory.IDENTITY)
    ALREADY_UPVOTED = ("already upvoted", ErrorCategory.IDENTITY)
    ALREADY_DOWNVOTED = ("already downvoted", ErrorCategory.IDENTITY)

    INSUFFICIENT_BALANCE = ("insufficient balance", ErrorCategory.RESOURCE)

    ZERO_ADDRESS = ("zero address", ErrorCategory.CONFIGURATION)
    LANGUAGE_ALREADY_REGISTERED = ("language already registered", ErrorCategory.CONFIGURATION)
    LANGUAGE_NOT_REGISTERED = ("language not registered", ErrorCategory.CONFIGURATION)

    def __init__(self, message: str, category: ErrorCategory):
        self.message = message
        self.category = category


class LedgerError(Exception):
    """
    Raised when a ledger operation's precondition is violated.
    Match on `kind`, not on the message text.
    """

    def __init__(self, kind: LedgerErrorKind, detail: str = ""):
        self.kind = kind
        self.detail = detail
        message = f"ledger: {kind.message}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

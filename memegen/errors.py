"""Domain-specific errors for the meme pipeline.

Failure policy per stage:
- Classification and asset lookup failures are absorbed where they happen
- Caption generation, composition and telemetry fetch failures abort the run
- Upload failures never abort the run; they are attached to the result
"""


class MemeError(Exception):
    """Base exception for all meme pipeline errors."""

    pass


class ActivityFetchError(MemeError):
    """Raised when activity telemetry cannot be fetched from Strava."""

    def __init__(self, activity_id: int | str, message: str, status_code: int | None = None):
        self.activity_id = activity_id
        self.status_code = status_code
        super().__init__(f"Failed to fetch activity {activity_id}: {message}")


class ClassificationError(MemeError):
    """Raised internally when the mood call fails or returns an unknown token.

    Never leaves the mood classifier.
    """

    pass


class CaptionGenerationError(MemeError):
    """Raised when the caption call fails, times out or returns nothing."""

    pass


class AssetNotFoundError(MemeError):
    """Raised when a photo asset cannot be located in the asset store."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Photo asset not found: {path}")


class CompositionError(MemeError):
    """Raised when the photo cannot be decoded, drawn on or encoded."""

    pass


class UploadError(MemeError):
    """Base exception for upload failures.

    Attributes:
        kind: Stable identifier callers can branch on
    """

    kind = "upload_error"


class UploadPreconditionError(UploadError):
    """Raised when an upload precondition is not met. No transport call was made."""

    kind = "precondition_failed"


class NoCredentialError(UploadPreconditionError):
    """No access credential is available. Callers should re-authenticate."""

    kind = "no_credential"


class InsufficientScopeError(UploadPreconditionError):
    """The credential lacks the write scope. Callers should re-authorize."""

    kind = "insufficient_scope"

    def __init__(self, required: str, granted: set[str]):
        self.required = required
        self.granted = granted
        super().__init__(f"Credential lacks '{required}' scope (granted: {', '.join(sorted(granted)) or 'none'})")


class ActivityUnreachableError(UploadPreconditionError):
    """The target activity does not exist or is not readable with the credential."""

    kind = "activity_unreachable"

    def __init__(self, activity_id: int | str, status_code: int | None = None):
        self.activity_id = activity_id
        self.status_code = status_code
        super().__init__(f"Activity {activity_id} is not reachable (status={status_code})")


class UploadTransportError(UploadError):
    """Network failure or error response during the publish call. Callers may retry."""

    kind = "transport_failed"

    def __init__(self, message: str, status_code: int | None = None, detail: dict | str | None = None):
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)

"""Error taxonomy shared by the submitting side and the server."""

INIT_FAILED_MESSAGE = "Unable to initialize secure encryption. Please try again."
ENCRYPT_FAILED_MESSAGE = "Failed to encrypt data securely."


class WhistleboxError(Exception):
    pass


class KeyFetchError(WhistleboxError):
    """The public-key endpoint could not supply a usable key."""


class EncryptionFailure(WhistleboxError):
    """A sealed-box operation failed. Never carries plaintext."""


class PipelineNotReady(WhistleboxError):
    """No public key is available after the initialisation attempt."""


class SubmissionEncryptionError(WhistleboxError):
    """The only error the form layer sees. Message is always user-safe."""


class IntegrityError(WhistleboxError):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class SubmissionRejected(WhistleboxError):
    def __init__(self, status_code: int, error: str):
        super().__init__(f"submission rejected with HTTP {status_code}: {error}")
        self.status_code = status_code
        self.error = error

"""Error taxonomy for a token rotation run.

Every failure a run can hit is one of these. Each kind carries the
process exit code the CLI maps it to, so the top-level handler never
has to inspect messages.
"""


class TokenGetterError(Exception):
    """Base class for all expected run failures."""

    exit_code = 1


class ConfigurationError(TokenGetterError):
    """Raised for invalid flags or an unloadable Kubernetes config."""

    exit_code = 2


class KeyLoadError(TokenGetterError):
    """Raised when the PEM private key is missing or cannot be parsed."""

    exit_code = 3


class SigningError(TokenGetterError):
    exit_code = 4


class NetworkError(TokenGetterError):
    """Raised when the GitHub API cannot be reached or times out."""

    exit_code = 5


class TokenExchangeError(NetworkError):
    """Raised when GitHub answers the exchange with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        super().__init__(
            f"GitHub token exchange failed with HTTP {status_code}: {message}"
        )


class ResponseDecodeError(TokenGetterError):
    exit_code = 6


class UnexpectedTokenTypeError(TokenGetterError):
    """Raised when the exchange response has no string ``token`` field."""

    exit_code = 7


class SecretReadError(TokenGetterError):
    exit_code = 8


class SecretWriteError(TokenGetterError):
    exit_code = 9


class SecretAlreadyExistsError(SecretWriteError):
    pass


class SecretNotFoundError(SecretWriteError):
    pass


class DeadlineExceededError(TokenGetterError):
    """Raised when the whole-run deadline has been used up."""

    exit_code = 10

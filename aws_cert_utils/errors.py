class CertUtilsError(Exception):
    exit_code = 1


class UsageError(CertUtilsError):
    """Invalid, missing or conflicting input, detected before any AWS call."""

    exit_code = 2


class ProviderError(CertUtilsError):
    """An AWS API call failed. The message is the botocore error verbatim."""

    def __init__(self, message, operation=None):
        super().__init__(message)
        self.operation = operation


class ResourceNotFound(ProviderError):
    pass

"""Error hierarchy raised by DMS clients.

DMSClientError
  DMSAuthExpiredError  : 401, the session token is no longer accepted.
  DMSValidationError   : input rejected by the backend or by the client-side required-field check.
  DMSNotFoundError     : 404 on a document resource.
  DMSServerError       : any other non-2xx response.
  DMSNetworkError      : transport level failure, no response received.
"""

DEFAULT_ERROR_MESSAGE = "Something went wrong"
INVALID_RESPONSE_MESSAGE = "Invalid response from server"


class DMSClientError(Exception):
    """Base class for all failures of a DMS request.

    Attributes:
        message (str): Human-readable message, suitable for showing to the user.
        status_code (int | None): HTTP status of the failed response, None if no response was received.
    """

    def __init__(self, message: str = DEFAULT_ERROR_MESSAGE, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class DMSAuthExpiredError(DMSClientError):
    def __init__(self, message: str = "Session expired, please log in again.", status_code: int | None = 401):
        super().__init__(message, status_code)


class DMSValidationError(DMSClientError):
    pass


class DMSNotFoundError(DMSClientError):
    pass


class DMSServerError(DMSClientError):
    pass


class DMSNetworkError(DMSClientError):
    pass


def error_for_status(status_code: int, message: str) -> DMSClientError:
    """
    Map a non-2xx HTTP status onto the matching error class.

    Args:
        status_code (int): The HTTP status code of the response.
        message (str): The message extracted from the response body.

    Returns:
        DMSClientError: An instance of the most specific error class.
    """
    if status_code == 401:
        return DMSAuthExpiredError(message, status_code)
    if status_code in (400, 409, 422):
        return DMSValidationError(message, status_code)
    if status_code == 404:
        return DMSNotFoundError(message, status_code)
    return DMSServerError(message, status_code)

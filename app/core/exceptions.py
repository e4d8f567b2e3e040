from fastapi import status


class RegistryError(Exception):
    """Base class for every failure that aborts a registry invocation.

    The message is surfaced verbatim to the caller. ``status_code`` is the HTTP
    status the REST layer answers with.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ArgumentCountError(RegistryError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, given: int, expected: int):
        super().__init__(
            f"not enough number of arguments: {given} given, {expected} expected"
        )
        self.given = given
        self.expected = expected


class DecodeError(RegistryError):
    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT


class AlreadyExists(RegistryError):
    status_code = status.HTTP_409_CONFLICT


class NotFound(RegistryError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationFailed(RegistryError):
    status_code = status.HTTP_400_BAD_REQUEST


class StoreError(RegistryError):
    pass


class InvalidKeyError(StoreError):
    pass


class UnknownFunction(RegistryError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, function: str):
        super().__init__(f"Unknown method: {function}")
        self.function = function

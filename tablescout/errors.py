from __future__ import annotations


class TableScoutError(Exception):
    """Base error carrying the HTTP status it should surface as."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationFailed(TableScoutError):
    status_code = 400


class NotFound(TableScoutError):
    status_code = 404


class UpstreamError(TableScoutError):
    status_code = 500


class PlacesAPIError(UpstreamError):
    """Google Places returned a non-2xx response or could not be reached."""


class GeneratorError(UpstreamError):
    """The recommendation LLM call itself failed (transport, auth, config)."""


def is_client_error(exc: BaseException) -> bool:
    return isinstance(exc, TableScoutError) and exc.status_code < 500

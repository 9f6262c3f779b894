# app/services/errors.py
"""Error taxonomy shared by the store, the reader and the HTTP layer."""


class SurveyError(Exception):
    """Base class; `status_code` is what the HTTP layer answers with."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SurveyError):
    status_code = 400


class InvalidFilenameError(ValidationError):
    pass


class NotFoundError(SurveyError):
    status_code = 404


class NoDataError(NotFoundError):
    pass


class ParseError(SurveyError):
    """A stored file is not valid JSON. Recovered by skipping the file."""

    def __init__(self, filename: str, reason: str):
        super().__init__(f"Error parsing {filename}: {reason}")
        self.filename = filename

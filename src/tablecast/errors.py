"""Pipeline error taxonomy.

Only conditions that leave no valid dataset to display are raised. Recoverable
conditions (cache misses, unmapped headers, malformed cells) are absorbed where
they occur and never reach these classes.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base class for errors surfaced to the user as a single message."""

    @property
    def user_message(self) -> str:
        return str(self)


class InvalidInputError(PipelineError, TypeError):
    """Row data was not a list of records."""

    def __init__(self, received: object) -> None:
        self.received_type = type(received).__name__
        super().__init__(
            f"Expected a list of row records but received {self.received_type}."
        )


class ExtractionFormatError(PipelineError):
    """The extraction model returned an empty, non-JSON or non-array payload."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(
            f"Failed to parse the model's response as a JSON array of records: {detail}"
        )


class NoDataExtractedError(PipelineError):
    """Extraction succeeded but yielded no usable rows."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(
            f"No data could be extracted from '{file_name}'. "
            "Please check that the document contains a table."
        )


class UnsupportedFileError(PipelineError):
    """The source document is not a supported tabular format."""

    def __init__(self, file_name: str, mime_type: str) -> None:
        self.file_name = file_name
        self.mime_type = mime_type
        super().__init__(
            f"Unsupported file type for '{file_name}' ({mime_type}). "
            "Upload a PDF, Excel workbook, or CSV file."
        )


class SupersededError(PipelineError):
    """A newer operation replaced this one before it finished."""

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"Processing of '{file_name}' was superseded by a newer request.")


class ExtractionServiceError(PipelineError):
    """The extraction model could not be reached or refused the request."""

    def __init__(self, model: str, cause: BaseException) -> None:
        self.model = model
        self.cause = cause
        super().__init__(f"The extraction model '{model}' failed: {cause}")

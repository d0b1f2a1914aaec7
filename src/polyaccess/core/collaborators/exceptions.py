"""Collaborator-specific exceptions."""


class CollaboratorError(Exception):
    """Base exception for extraction and conversion collaborator errors."""

    def __init__(self, message: str, collaborator: str | None = None) -> None:
        self.message = message
        self.collaborator = collaborator
        super().__init__(message)


class ExtractionError(CollaboratorError):
    """Raised when the extraction process fails to run or exits non-zero."""

    pass


class ExtractionPayloadError(CollaboratorError):
    """Raised when extraction output is not a well-formed payload."""

    def __init__(
        self,
        message: str,
        output_snippet: str | None = None,
        collaborator: str | None = None,
    ) -> None:
        super().__init__(message, collaborator)
        self.output_snippet = output_snippet


class ConversionError(CollaboratorError):
    """Raised when the query converter fails or returns an unusable reply."""

    pass


class ExpressionConversionError(CollaboratorError):
    """Raised when a calculated-column expression cannot be converted."""

    def __init__(self, message: str, expression: str | None = None) -> None:
        super().__init__(message, collaborator="expression")
        self.expression = expression


class CollaboratorNotFoundError(CollaboratorError):
    """Raised when a requested collaborator is not registered."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"Unknown {kind}: {name!r}", collaborator=name)
        self.kind = kind
        self.name = name

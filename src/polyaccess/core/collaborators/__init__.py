"""Extraction and conversion collaborators for polyaccess."""

from polyaccess.core.collaborators.exceptions import (
    CollaboratorError,
    CollaboratorNotFoundError,
    ConversionError,
    ExpressionConversionError,
    ExtractionError,
    ExtractionPayloadError,
)
from polyaccess.core.collaborators.registry import CollaboratorInfo, CollaboratorRegistry
from polyaccess.core.collaborators.extraction import (
    ExtractionAdapter,
    SavedOutputExtractor,
    SubprocessExtractor,
    extract_json_object,
    parse_extraction_output,
    parse_extraction_payload,
)
from polyaccess.core.collaborators.conversion import (
    ColumnTypeMap,
    ControlMapping,
    QueryConverter,
    SubprocessQueryConverter,
)
from polyaccess.core.collaborators.expressions import (
    BasicExpressionConverter,
    ExpressionConverter,
)

__all__ = [
    # Registry
    "CollaboratorRegistry",
    "CollaboratorInfo",
    # Exceptions
    "CollaboratorError",
    "CollaboratorNotFoundError",
    "ExtractionError",
    "ExtractionPayloadError",
    "ConversionError",
    "ExpressionConversionError",
    # Extraction
    "ExtractionAdapter",
    "SavedOutputExtractor",
    "SubprocessExtractor",
    "extract_json_object",
    "parse_extraction_output",
    "parse_extraction_payload",
    # Query conversion
    "QueryConverter",
    "SubprocessQueryConverter",
    "ColumnTypeMap",
    "ControlMapping",
    # Expression conversion
    "ExpressionConverter",
    "BasicExpressionConverter",
]

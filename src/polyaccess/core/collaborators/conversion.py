"""Dialect-conversion collaborator: legacy query → PostgreSQL statements."""

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from polyaccess.config import Settings, get_settings
from polyaccess.core.collaborators.exceptions import (
    CollaboratorError,
    ConversionError,
)
from polyaccess.core.collaborators.extraction import extract_json_object
from polyaccess.core.collaborators.registry import CollaboratorRegistry
from polyaccess.core.models.schemas import ConvertedQuery, QueryPayload

logger = logging.getLogger(__name__)

ColumnTypeMap = dict[str, str]
ControlMapping = dict[str, dict[str, str]]


class QueryConverter(ABC):
    """Abstract base class for query converters."""

    @abstractmethod
    def convert(
        self,
        payload: QueryPayload,
        schema_name: str,
        column_types: ColumnTypeMap,
        control_mapping: ControlMapping,
    ) -> ConvertedQuery:
        """Convert a legacy query into target statements.

        Args:
            payload: Extracted query definition.
            schema_name: Target namespace the statements must be qualified with.
            column_types: ``table.column`` and bare ``column`` keys → data type,
                used to type query parameters.
            control_mapping: ``form.control`` → ``{"table": ..., "column": ...}``
                for resolving form references.

        Returns:
            ConvertedQuery with statements, object name/kind and warnings.

        Raises:
            ConversionError: If the conversion cannot be performed.
        """
        pass


@CollaboratorRegistry.register(
    kind="query_converter",
    name="subprocess",
    display_name="External query converter (JSON on stdin/stdout)",
)
class SubprocessQueryConverter(QueryConverter):
    """Pipes a JSON request to an external converter and parses its JSON reply."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def build_request(
        self,
        payload: QueryPayload,
        schema_name: str,
        column_types: ColumnTypeMap,
        control_mapping: ControlMapping,
    ) -> dict[str, Any]:
        return {
            "query": payload.model_dump(mode="json", by_alias=True, exclude={"kind"}),
            "schemaName": schema_name,
            "columnTypes": column_types,
            "controlMapping": control_mapping,
        }

    def convert(
        self,
        payload: QueryPayload,
        schema_name: str,
        column_types: ColumnTypeMap,
        control_mapping: ControlMapping,
    ) -> ConvertedQuery:
        command = self.settings.converter_command
        if not command:
            raise ConversionError(
                "No query converter configured (set POLYACCESS_CONVERTER_COMMAND)",
                collaborator="subprocess",
            )

        request = self.build_request(payload, schema_name, column_types, control_mapping)
        try:
            completed = subprocess.run(
                command,
                input=json.dumps(request),
                capture_output=True,
                text=True,
                encoding="utf-8",
                check=False,
            )
        except FileNotFoundError as e:
            raise ConversionError(
                f"Converter executable not found: {command[0]}",
                collaborator="subprocess",
            ) from e
        except UnicodeDecodeError as e:
            raise ConversionError(
                f"Converter output is not valid UTF-8: {e}",
                collaborator="subprocess",
            ) from e

        if completed.returncode != 0:
            message = completed.stderr.strip() or f"Converter exited with code {completed.returncode}"
            raise ConversionError(message, collaborator="subprocess")

        try:
            return ConvertedQuery.model_validate(extract_json_object(completed.stdout))
        except (CollaboratorError, ValidationError) as e:
            raise ConversionError(
                f"Malformed converter reply: {e}",
                collaborator="subprocess",
            ) from e

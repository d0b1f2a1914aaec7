"""Extraction collaborator: pulls structure and data out of the legacy file.

The extraction itself runs outside this process (a script that opens the
legacy database and prints one JSON object on stdout). This module owns the
boundary: running that process and parsing its output eagerly into the typed
payloads the import engine consumes. Anything that does not parse is rejected
here, before a single statement reaches the target store.
"""

import json
import logging
import subprocess
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Literal, cast

from pydantic import TypeAdapter, ValidationError

from polyaccess.config import Settings, get_settings
from polyaccess.core.collaborators.exceptions import ExtractionError, ExtractionPayloadError
from polyaccess.core.collaborators.registry import CollaboratorRegistry
from polyaccess.core.models.schemas import ExtractionPayload, QueryPayload, TablePayload

logger = logging.getLogger(__name__)

_payload_adapter: TypeAdapter[TablePayload | QueryPayload] = TypeAdapter(ExtractionPayload)

SNIPPET_RADIUS = 50


def extract_json_object(output: str) -> dict[str, Any]:
    """Locate and decode the JSON object in raw process output.

    Scripts may print a byte-order mark or banner lines before the payload,
    so parsing starts at the first ``{``.

    Raises:
        ExtractionPayloadError: If no object is found or it does not decode.
    """
    clean = output.lstrip("\ufeff").strip()
    start = clean.find("{")
    if start == -1:
        raise ExtractionPayloadError("No JSON object found in extraction output")

    body = clean[start:]
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        lo = max(0, e.pos - SNIPPET_RADIUS)
        snippet = body[lo : e.pos + SNIPPET_RADIUS]
        raise ExtractionPayloadError(
            f"Invalid JSON in extraction output: {e.msg}. Near: {snippet}",
            output_snippet=snippet,
        ) from e

    if not isinstance(data, dict):
        raise ExtractionPayloadError("Extraction output is not a JSON object")
    return data


def parse_extraction_payload(
    data: dict[str, Any],
    kind: Literal["table", "query"],
) -> TablePayload | QueryPayload:
    """Validate a decoded payload as exactly one payload variant.

    Raises:
        ExtractionPayloadError: If the payload does not match the variant's shape.
    """
    if "error" in data and len(data) == 1:
        raise ExtractionPayloadError(f"Extractor reported an error: {data['error']}")

    try:
        return _payload_adapter.validate_python({**data, "kind": kind})
    except ValidationError as e:
        raise ExtractionPayloadError(f"Malformed {kind} payload: {e}") from e


def parse_extraction_output(
    output: str,
    kind: Literal["table", "query"],
) -> TablePayload | QueryPayload:
    """Decode raw extractor stdout into a typed payload."""
    return parse_extraction_payload(extract_json_object(output), kind)


class ExtractionAdapter(ABC):
    """Abstract base class for extraction collaborators."""

    @abstractmethod
    def extract_table(self, source_path: str, table_name: str) -> TablePayload:
        """Extract fields, indexes, rows and skipped columns of one table.

        Raises:
            ExtractionError: If the extraction could not run.
            ExtractionPayloadError: If its output is malformed.
        """
        pass

    @abstractmethod
    def extract_query(self, source_path: str, query_name: str) -> QueryPayload:
        """Extract the SQL text and parameters of one stored query.

        Raises:
            ExtractionError: If the extraction could not run.
            ExtractionPayloadError: If its output is malformed.
        """
        pass


class SavedOutputExtractor(ExtractionAdapter):
    """Replays extractor output previously saved to a file."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def extract_table(self, source_path: str, table_name: str) -> TablePayload:
        return cast(TablePayload, parse_extraction_output(self._read(), "table"))

    def extract_query(self, source_path: str, query_name: str) -> QueryPayload:
        payload = cast(QueryPayload, parse_extraction_output(self._read(), "query"))
        if payload.query_name is None:
            payload.query_name = query_name
        return payload

    def _read(self) -> str:
        try:
            return self.path.read_text(encoding="utf-8-sig")
        except FileNotFoundError as e:
            raise ExtractionError(
                f"Payload file not found: {self.path}", collaborator="saved-output"
            ) from e
        except UnicodeDecodeError as e:
            raise ExtractionPayloadError(
                f"Payload file is not valid UTF-8: {e}", collaborator="saved-output"
            ) from e


@CollaboratorRegistry.register(
    kind="extractor",
    name="subprocess",
    display_name="External extraction scripts (JSON on stdout)",
)
class SubprocessExtractor(ExtractionAdapter):
    """Runs the export_table / export_query scripts and parses their stdout."""

    TABLE_SCRIPT = "export_table.ps1"
    QUERY_SCRIPT = "export_query.ps1"

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()

    def extract_table(self, source_path: str, table_name: str) -> TablePayload:
        output = self._run(
            self.TABLE_SCRIPT,
            ["-DatabasePath", source_path, "-TableName", table_name],
        )
        return cast(TablePayload, parse_extraction_output(output, "table"))

    def extract_query(self, source_path: str, query_name: str) -> QueryPayload:
        output = self._run(
            self.QUERY_SCRIPT,
            ["-DatabasePath", source_path, "-QueryName", query_name],
        )
        payload = cast(QueryPayload, parse_extraction_output(output, "query"))
        if payload.query_name is None:
            payload.query_name = query_name
        return payload

    def _run(self, script_name: str, args: list[str]) -> str:
        command = [
            *self.settings.extractor_command,
            str(self.settings.script_path(script_name)),
            *args,
        ]
        logger.debug(f"Running extractor: {' '.join(command)}")
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                timeout=self.settings.extractor_timeout_seconds,
                check=False,
            )
        except FileNotFoundError as e:
            raise ExtractionError(
                f"Extractor executable not found: {command[0]}",
                collaborator="subprocess",
            ) from e
        except subprocess.TimeoutExpired as e:
            raise ExtractionError(
                f"Extractor timed out after {self.settings.extractor_timeout_seconds}s",
                collaborator="subprocess",
            ) from e
        except UnicodeDecodeError as e:
            raw = e.object[max(0, e.start - SNIPPET_RADIUS) : e.end + SNIPPET_RADIUS]
            raise ExtractionPayloadError(
                f"Extraction output is not valid UTF-8: {e}",
                output_snippet=bytes(raw).decode("utf-8", errors="replace"),
                collaborator="subprocess",
            ) from e

        if completed.returncode != 0:
            message = completed.stderr.strip() or f"Extractor exited with code {completed.returncode}"
            raise ExtractionError(message, collaborator="subprocess")
        return completed.stdout

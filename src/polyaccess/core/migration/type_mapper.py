"""Legacy field type → semantic type → PostgreSQL column type.

Two steps, both total:

1. ``map_legacy_type`` turns a field descriptor (numeric DAO type code plus
   size/precision/autonumber flags) into a :class:`SemanticType`, the
   store-agnostic tag the legacy designer shows ("Short Text", "Number/Double").
2. ``resolve_type`` turns a semantic type into a concrete column type.

Neither step raises. Unknown codes fall back to ``Short Text(255)``; unknown
semantic tags pass through verbatim so hand-authored column specs can name a
raw PostgreSQL type.
"""

from dataclasses import dataclass

from polyaccess.core.models.schemas import FieldDescriptor

SHORT_TEXT = "Short Text"
LONG_TEXT = "Long Text"
NUMBER = "Number"
YES_NO = "Yes/No"
DATE_TIME = "Date/Time"
DATE_TIME_EXTENDED = "Date/Time Extended"
CURRENCY = "Currency"
AUTONUMBER = "AutoNumber"

BYTE = "Byte"
INTEGER = "Integer"
LONG_INTEGER = "Long Integer"
BIG_INTEGER = "Big Integer"
SINGLE = "Single"
DOUBLE = "Double"
DECIMAL = "Decimal"

DEFAULT_TEXT_LENGTH = 255
GUID_TEXT_LENGTH = 38
DEFAULT_DECIMAL_PRECISION = 18
DEFAULT_DECIMAL_SCALE = 0

CALCULATED_CODE = 18
# Calculated fields without a declared result type are text in the legacy designer.
DEFAULT_CALCULATED_RESULT_CODE = 10


@dataclass(frozen=True)
class SemanticType:
    """Intermediate type tag between legacy code and target column type."""

    type: str
    field_size: str | None = None
    max_length: int | None = None
    precision: int | None = None
    scale: int | None = None

    def __str__(self) -> str:
        if self.type == NUMBER and self.field_size:
            return f"{NUMBER}/{self.field_size}"
        if self.type == SHORT_TEXT and self.max_length:
            return f"{SHORT_TEXT}({self.max_length})"
        return self.type


def map_legacy_type(field: FieldDescriptor) -> SemanticType:
    """Map a legacy field descriptor to its semantic type.

    Args:
        field: Field descriptor from the extraction payload. ``type`` is
            either a numeric DAO type code or an already-symbolic type name.

    Returns:
        SemanticType for the field. Never raises.
    """
    code = field.type
    if isinstance(code, str):
        stripped = code.strip()
        if stripped.isdigit():
            code = int(stripped)
        else:
            return SemanticType(
                type=stripped,
                field_size=field.field_size,
                max_length=field.max_length or field.size,
                precision=field.precision,
                scale=field.scale,
            )

    if code == 1:
        return SemanticType(YES_NO)
    if code == 2:
        return SemanticType(NUMBER, field_size=BYTE)
    if code == 3:
        return SemanticType(NUMBER, field_size=INTEGER)
    if code == 4:
        if field.is_auto_number:
            return SemanticType(AUTONUMBER)
        return SemanticType(NUMBER, field_size=LONG_INTEGER)
    if code == 5:
        return SemanticType(CURRENCY)
    if code == 6:
        return SemanticType(NUMBER, field_size=SINGLE)
    if code == 7:
        return SemanticType(NUMBER, field_size=DOUBLE)
    if code == 8:
        return SemanticType(DATE_TIME)
    if code == 10:
        return SemanticType(
            SHORT_TEXT, max_length=field.size or field.max_length or DEFAULT_TEXT_LENGTH
        )
    if code == 12:
        return SemanticType(LONG_TEXT)
    if code == 15:
        return SemanticType(SHORT_TEXT, max_length=GUID_TEXT_LENGTH)
    if code == 16:
        return SemanticType(NUMBER, field_size=LONG_INTEGER)
    if code == CALCULATED_CODE:
        result_code = field.result_type
        if result_code is None or result_code == CALCULATED_CODE:
            result_code = DEFAULT_CALCULATED_RESULT_CODE
        resolved = field.model_copy(update={"type": result_code, "is_auto_number": False})
        return map_legacy_type(resolved)
    if code == 20:
        return SemanticType(
            NUMBER,
            field_size=DECIMAL,
            precision=field.precision if field.precision is not None else DEFAULT_DECIMAL_PRECISION,
            scale=field.scale if field.scale is not None else DEFAULT_DECIMAL_SCALE,
        )
    if code == 26:
        return SemanticType(DATE_TIME_EXTENDED)
    return SemanticType(SHORT_TEXT, max_length=DEFAULT_TEXT_LENGTH)


def resolve_type(semantic: SemanticType) -> str:
    """Resolve a semantic type to a PostgreSQL column type string."""
    tag = (semantic.type or "").strip()

    if tag == SHORT_TEXT:
        return f"character varying({semantic.max_length or DEFAULT_TEXT_LENGTH})"
    if tag == LONG_TEXT:
        return "text"
    if tag == NUMBER:
        return _resolve_number(semantic)
    if tag == YES_NO:
        return "boolean"
    if tag == DATE_TIME:
        return "timestamp without time zone"
    if tag == DATE_TIME_EXTENDED:
        return "timestamp with time zone"
    if tag == CURRENCY:
        return "numeric(19,4)"
    if tag == AUTONUMBER:
        return "integer"
    return tag or "text"


def _resolve_number(semantic: SemanticType) -> str:
    field_size = (semantic.field_size or LONG_INTEGER).strip()
    if field_size in (BYTE, INTEGER):
        return "smallint"
    if field_size == LONG_INTEGER:
        return "integer"
    if field_size == BIG_INTEGER:
        return "bigint"
    if field_size == SINGLE:
        return "real"
    if field_size == DOUBLE:
        return "double precision"
    if field_size == DECIMAL:
        precision = semantic.precision or DEFAULT_DECIMAL_PRECISION
        scale = semantic.scale or DEFAULT_DECIMAL_SCALE
        return f"numeric({precision},{scale})"
    return "integer"


def target_type_for(field: FieldDescriptor) -> str:
    """Full pipeline: legacy descriptor → PostgreSQL column type."""
    return resolve_type(map_legacy_type(field))

"""Target database registry and control mapping models."""

from sqlalchemy import Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from polyaccess.core.models.base import Base, TimestampMixin


class TargetDatabase(Base, TimestampMixin):
    """A registered import target: one PostgreSQL schema per migrated application."""

    __tablename__ = "databases"

    database_id: Mapped[str] = mapped_column(String(100), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    schema_name: Mapped[str] = mapped_column(String(63), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def __repr__(self) -> str:
        return f"<TargetDatabase(id={self.database_id!r}, schema={self.schema_name!r})>"


class ControlColumnMap(Base):
    """Maps a legacy form control to the table column it is bound to.

    Written by the form import layer; read here only to feed the query converter.
    """

    __tablename__ = "control_column_map"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    database_id: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    form_name: Mapped[str] = mapped_column(String(255), nullable=False)
    control_name: Mapped[str] = mapped_column(String(255), nullable=False)
    table_name: Mapped[str] = mapped_column(String(255), nullable=False)
    column_name: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "database_id", "form_name", "control_name", name="uq_control_column_map_control"
        ),
    )

    def __repr__(self) -> str:
        return (
            f"<ControlColumnMap({self.form_name}.{self.control_name} -> "
            f"{self.table_name}.{self.column_name})>"
        )

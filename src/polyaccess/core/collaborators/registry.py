"""Registry for discovering and instantiating collaborators."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Literal

from polyaccess.core.collaborators.exceptions import CollaboratorNotFoundError

CollaboratorKind = Literal["extractor", "query_converter", "expression_converter"]


@dataclass
class CollaboratorInfo:
    """Metadata about a registered collaborator."""

    kind: CollaboratorKind
    name: str
    display_name: str
    collaborator_class: type


class CollaboratorRegistry:
    """Registry for extractors and converters.

    Collaborators register themselves using the @register decorator, making
    them selectable by name from settings or import plans.

    Usage:
        @CollaboratorRegistry.register(
            kind="extractor",
            name="subprocess",
            display_name="External extraction script",
        )
        class SubprocessExtractor(ExtractionAdapter):
            ...

        extractor = CollaboratorRegistry.create("extractor", "subprocess", settings=settings)
    """

    _collaborators: dict[tuple[str, str], CollaboratorInfo] = {}

    @classmethod
    def register(
        cls,
        kind: CollaboratorKind,
        name: str,
        display_name: str,
    ) -> Callable[[type], type]:
        """Decorator to register a collaborator class.

        Args:
            kind: Collaborator kind.
            name: Unique name within the kind.
            display_name: Human-readable name for display.

        Returns:
            Decorator function.
        """

        def decorator(collaborator_class: type) -> type:
            cls._collaborators[(kind, name)] = CollaboratorInfo(
                kind=kind,
                name=name,
                display_name=display_name,
                collaborator_class=collaborator_class,
            )
            return collaborator_class

        return decorator

    @classmethod
    def create(cls, kind: CollaboratorKind, name: str, **kwargs: Any) -> Any:
        """Instantiate a registered collaborator.

        Raises:
            CollaboratorNotFoundError: If no collaborator of that kind/name is registered.
        """
        return cls.get_info(kind, name).collaborator_class(**kwargs)

    @classmethod
    def get_info(cls, kind: CollaboratorKind, name: str) -> CollaboratorInfo:
        """Get metadata about a registered collaborator.

        Raises:
            CollaboratorNotFoundError: If no collaborator of that kind/name is registered.
        """
        key = (kind, name)
        if key not in cls._collaborators:
            raise CollaboratorNotFoundError(kind, name)
        return cls._collaborators[key]

    @classmethod
    def list_collaborators(cls, kind: CollaboratorKind | None = None) -> list[CollaboratorInfo]:
        """List registered collaborators, optionally filtered by kind."""
        return [
            info
            for info in cls._collaborators.values()
            if kind is None or info.kind == kind
        ]

    @classmethod
    def is_registered(cls, kind: CollaboratorKind, name: str) -> bool:
        return (kind, name) in cls._collaborators

"""Tests for the collaborator registry."""

import pytest

from polyaccess.core.collaborators import (
    BasicExpressionConverter,
    CollaboratorNotFoundError,
    CollaboratorRegistry,
    SubprocessExtractor,
    SubprocessQueryConverter,
)


class TestCollaboratorRegistry:
    """Test cases for CollaboratorRegistry."""

    def test_builtins_registered(self):
        """The built-in collaborators register on import."""
        assert CollaboratorRegistry.is_registered("extractor", "subprocess")
        assert CollaboratorRegistry.is_registered("query_converter", "subprocess")
        assert CollaboratorRegistry.is_registered("expression_converter", "basic")

    def test_same_name_different_kinds(self):
        """Names are unique per kind, not globally."""
        extractor = CollaboratorRegistry.get_info("extractor", "subprocess")
        converter = CollaboratorRegistry.get_info("query_converter", "subprocess")
        assert extractor.collaborator_class is SubprocessExtractor
        assert converter.collaborator_class is SubprocessQueryConverter

    def test_create(self):
        """create instantiates the registered class."""
        instance = CollaboratorRegistry.create("expression_converter", "basic")
        assert isinstance(instance, BasicExpressionConverter)

    def test_unknown(self):
        """Unknown names raise CollaboratorNotFoundError."""
        with pytest.raises(CollaboratorNotFoundError) as exc_info:
            CollaboratorRegistry.create("extractor", "odbc")
        assert exc_info.value.kind == "extractor"
        assert exc_info.value.name == "odbc"

    def test_list_by_kind(self):
        """Listing can be filtered by kind."""
        infos = CollaboratorRegistry.list_collaborators("expression_converter")
        assert [info.name for info in infos] == ["basic"]
        assert len(CollaboratorRegistry.list_collaborators()) >= 3

    def test_register_decorator(self):
        """Custom collaborators can be registered."""

        @CollaboratorRegistry.register(
            kind="expression_converter", name="test-upper", display_name="Test"
        )
        class UpperConverter(BasicExpressionConverter):
            def convert(self, expression, columns=None):
                return expression.upper()

        try:
            assert CollaboratorRegistry.create("expression_converter", "test-upper").convert("a") == "A"
        finally:
            CollaboratorRegistry._collaborators.pop(("expression_converter", "test-upper"))

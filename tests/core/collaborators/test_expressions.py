"""Tests for calculated-column expression conversion."""

import pytest

from polyaccess.core.collaborators import BasicExpressionConverter, ExpressionConversionError


@pytest.fixture
def converter() -> BasicExpressionConverter:
    return BasicExpressionConverter()


class TestBasicExpressionConverter:
    """Test cases for BasicExpressionConverter."""

    @pytest.mark.parametrize(
        ("expression", "expected"),
        [
            ("[Qty]*[Unit Price]", '"qty" * "unit_price"'),
            ('[First] & " " & [Last]', "\"first\" || ' ' || \"last\""),
            ("UCase([Name])", 'upper("name")'),
            ("Nz([Discount],0)", 'coalesce("discount", 0)'),
            ("IIf([Qty]>10,1,0)", 'CASE WHEN "qty" > 10 THEN 1 ELSE 0 END'),
            ("Mid([Code],2,3)", 'substr("code", 2, 3)'),
            ("([A]+[B])/2", '("a" + "b") / 2'),
            ("[A] Mod 2", '"a" % 2'),
            ("#12/31/2020#", "'2020-12-31'::date"),
            ('"it\'s"', "'it''s'"),
        ],
    )
    def test_convert(self, converter, expression: str, expected: str):
        """Supported expressions translate to PostgreSQL."""
        assert converter.convert(expression) == expected

    @pytest.mark.parametrize("expression", ["Now()", "Date()", "Time()", "Rnd()", "[A]+Rnd()"])
    def test_volatile_functions_rejected(self, converter, expression: str):
        """Clock and random functions cannot back a stored generated column."""
        with pytest.raises(ExpressionConversionError, match="not allowed"):
            converter.convert(expression)

    @pytest.mark.parametrize(
        "expression",
        ["", "   ", "DLookUp(\"a\",\"b\")", "[Unclosed", '"open', "(1+2", "IIf(1,2)", "[A] ~ 2"],
    )
    def test_unconvertible(self, converter, expression: str):
        """Anything outside the supported subset raises."""
        with pytest.raises(ExpressionConversionError):
            converter.convert(expression)

    def test_known_columns_accepted(self, converter):
        """References to listed columns convert normally."""
        result = converter.convert("[Qty]*Price", columns={"qty", "price"})
        assert result == '"qty" * "price"'

    @pytest.mark.parametrize("expression", ["[Qty]*[Missing]", "Nz(Missing, 0)", "[Total]*2"])
    def test_unknown_columns_rejected(self, converter, expression: str):
        """References outside the listed columns raise."""
        with pytest.raises(ExpressionConversionError, match="not a stored column"):
            converter.convert(expression, columns={"qty"})

    def test_error_carries_expression(self, converter):
        """Errors keep the original expression for the warning message."""
        with pytest.raises(ExpressionConversionError) as exc_info:
            converter.convert("Foo([A])")
        assert exc_info.value.expression == "Foo([A])"

"""Unit tests for the expression evaluator."""

import math

import pytest

from ruleval.core.rules import parse_expression
from ruleval.core.rules.ast import Node
from ruleval.core.rules.evaluator import Evaluator
from ruleval.core.rules.exceptions import RuleEvaluationError, RuleSyntaxError, RuleTypeError
from ruleval.core.rules.values import (
    FALSE,
    NIL,
    TRUE,
    FloatValue,
    IntValue,
    StringValue,
    string_sequence,
    to_value,
)


@pytest.fixture
def evaluate(data_source):
    def _evaluate(expression, environment=None):
        env = data_source if environment is None else environment
        return Evaluator(env).evaluate(parse_expression(expression))

    return _evaluate


class TestLiterals:
    """Test evaluating literals."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ('"abc123"', StringValue("abc123")),
            ('"-a中国_+="', StringValue("-a中国_+=")),
            ('"123"', StringValue("123")),
            ("1", IntValue(1)),
            ("01230", IntValue(1230)),
            ("12304567", IntValue(12304567)),
            ("1.01", FloatValue(1.01)),
            ("0.1234567", FloatValue(0.1234567)),
            (".5", FloatValue(0.5)),
            ("1e3", FloatValue(1000.0)),
        ],
    )
    def test_literal_values(self, evaluate, expression, expected):
        assert evaluate(expression) == expected

    def test_strings_are_not_unescaped(self, evaluate):
        assert evaluate(r'"a\"b\n"') == StringValue(r"a\"b\n")
        assert evaluate(r"`a\d+`") == StringValue(r"a\d+")

    def test_integer_literal_out_of_range(self, evaluate):
        assert evaluate("9223372036854775807") == IntValue(2**63 - 1)
        with pytest.raises(RuleSyntaxError, match="out of range"):
            evaluate("9223372036854775808")

    def test_float_literal_out_of_range(self, evaluate):
        assert evaluate("1.7976931348623157e308") == FloatValue(1.7976931348623157e308)
        with pytest.raises(RuleSyntaxError, match="Float literal 1e400 out of range"):
            evaluate("1e400")
        with pytest.raises(RuleSyntaxError, match="out of range"):
            evaluate("1e400 > 1.0")

    def test_char_literal_is_unsupported(self, evaluate):
        with pytest.raises(RuleSyntaxError, match="Unsupported literal 'a'"):
            evaluate("'a'")


class TestIdentifiers:
    """Test name resolution."""

    def test_bound_names(self, evaluate, data_source):
        for name, value in data_source.items():
            assert evaluate(name) == to_value(value)

    def test_unbound_name_is_nil(self, evaluate):
        assert evaluate("noexit") is NIL

    def test_reserved_constants_win(self, evaluate):
        environment = {"true": False, "false": True}
        assert evaluate("true", environment) == TRUE
        assert evaluate("false", environment) == FALSE

    def test_nil_is_an_ordinary_name(self, evaluate):
        assert evaluate("nil") is NIL
        assert evaluate("nil", {"nil": 1}) == IntValue(1)


class TestSelectors:
    """Test field selection."""

    def test_field(self, evaluate):
        assert evaluate("mp.mc") == StringValue("xxx")
        assert evaluate("mp.md") == to_value([1, 2, 3])

    def test_missing_field_is_nil(self, evaluate):
        assert evaluate("mp.missing") is NIL

    def test_reserved_field_name(self, evaluate):
        assert evaluate("mp.true", {"mp": {"true": "shadowed"}}) == TRUE

    def test_nested(self, evaluate):
        assert evaluate("a.b.c", {"a": {"b": {"c": 5}}}) == IntValue(5)

    @pytest.mark.parametrize("expression", ["str.x", "noexit.x", "arrary.x", "mp.mc.x"])
    def test_non_mapping_target(self, evaluate, expression):
        with pytest.raises(RuleTypeError, match="cannot select field 'x'"):
            evaluate(expression)


class TestIndexing:
    """Test index expressions."""

    def test_sequence_index(self, evaluate):
        assert evaluate("arrary[0]") == StringValue("0a")
        assert evaluate('mp["md"][1]') == IntValue(2)
        assert evaluate("mp.md[it2]") == IntValue(3)

    def test_mapping_index(self, evaluate):
        assert evaluate('mp["mc"]') == StringValue("xxx")
        assert evaluate('mp["nope"]') is NIL

    @pytest.mark.parametrize("expression", ["arrary[2]", "arrary[-1]", "mp.md[3]"])
    def test_out_of_range(self, evaluate, expression):
        with pytest.raises(RuleEvaluationError, match="out of range"):
            evaluate(expression)

    @pytest.mark.parametrize(
        "expression, message",
        [
            ("mp[0]", "cannot index Mapping"),
            ('arrary["x"]', "cannot index Sequence"),
            ("str[0]", "cannot index String"),
            ("noexit[0]", "cannot index Nil"),
            ("arrary[1.0]", "index must be Int64 or String"),
            ("arrary[bl]", "index must be Int64 or String"),
        ],
    )
    def test_index_type_errors(self, evaluate, expression, message):
        with pytest.raises(RuleTypeError, match=message):
            evaluate(expression)


class TestUnary:
    """Test unary operators."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("-123", IntValue(-123)),
            ("-0.99", FloatValue(-0.99)),
            ("!true", FALSE),
            ("!false", TRUE),
            ("-mp.ma", IntValue(12232)),
            ("--it2", IntValue(2)),
        ],
    )
    def test_valid(self, evaluate, expression, expected):
        assert evaluate(expression) == expected

    @pytest.mark.parametrize("expression", ["!1", '-"a"', "-bl", "+1", "^1", "!noexit"])
    def test_unsupported_combinations_fail(self, evaluate, expression):
        with pytest.raises(RuleTypeError, match="invalid unary operation"):
            evaluate(expression)


class TestBinary:
    """Test binary operators."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("1+2-2", IntValue(1)),
            ("(1-1)*100", IntValue(0)),
            ("1.223400012-1.2", FloatValue(0.023400012)),
            ("1.000001*0.2", FloatValue(0.2000002)),
            ("1.0/2", FloatValue(0.5)),
            ("1.1*it2", FloatValue(2.2)),
            ("5-4.5", FloatValue(0.5)),
            ("7%3", IntValue(1)),
            ("-7/2", IntValue(-3)),
            ("-7%2", IntValue(-1)),
            ('"abc"+"123"+"X"', StringValue("abc123X")),
            ("3>5", FALSE),
            ("5>=5", TRUE),
            ("5<=5", TRUE),
            ("1.2344<1.23441", TRUE),
            ('"abc123"=="abc123"', TRUE),
            ("100>99&&true&&!false", TRUE),
            ("bl||false", TRUE),
        ],
    )
    def test_operations(self, evaluate, expression, expected):
        assert evaluate(expression) == expected

    def test_float_division_is_not_decimal_corrected(self, evaluate):
        assert evaluate("1.0 / 3.0") == FloatValue(1.0 / 3.0)

    def test_float_division_by_zero(self, evaluate):
        assert evaluate("1.0 / 0") == FloatValue(math.inf)

    @pytest.mark.parametrize("expression", ["1/0", "it2 % 0", "1 / (it2 - 2)"])
    def test_integer_division_by_zero(self, evaluate, expression):
        with pytest.raises(RuleEvaluationError, match="by zero"):
            evaluate(expression)

    def test_integer_overflow_wraps(self, evaluate):
        assert evaluate("9223372036854775807 + 1") == IntValue(-(2**63))

    @pytest.mark.parametrize("op", ["+", "*", "=="])
    def test_mixed_promotion_matches_float(self, evaluate, op):
        mixed = evaluate(f"it2 {op} 1.5")
        assert mixed == evaluate(f"1.5 {op} it2")
        assert mixed == evaluate(f"2.0 {op} 1.5")

    @pytest.mark.parametrize(
        "expression",
        [
            '"xx"+100',
            "true + false",
            '"a" < "b"',
            "1 && true",
            "bl || 1",
            "1 & 2",
            "1 << 2",
            "1.5 % 2.0",
            "mp + mp",
            "noexit + 1",
        ],
    )
    def test_unsupported_combinations_fail(self, evaluate, expression):
        with pytest.raises(RuleTypeError, match="invalid binary operation"):
            evaluate(expression)


class TestEquality:
    """Test == and != across types."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ("1 == 1.0", TRUE),
            ('it2 == "2"', FALSE),
            ("bl == 1", FALSE),
            ('bl != "true"', TRUE),
            ("mp == mp", TRUE),
            ('arrary == newSlice("0a", "1b")', TRUE),
            ('arrary == newSlice("0a")', FALSE),
            ("mp.md == arrary", FALSE),
            ("noexit == other", TRUE),
            ("noexit != 0", TRUE),
            ('noexit == ""', FALSE),
        ],
    )
    def test_structural_equality(self, evaluate, expression, expected):
        assert evaluate(expression) == expected


class TestNoShortCircuit:
    """Test && and || always evaluate both operands."""

    def test_or_surfaces_right_error(self, evaluate):
        with pytest.raises(RuleEvaluationError, match="by zero"):
            evaluate("true || 1/0 == 0")

    def test_and_surfaces_right_error(self, evaluate):
        with pytest.raises(RuleTypeError):
            evaluate("false && noexit.field")


class TestCalls:
    """Test call expressions."""

    def test_call_builtin(self, evaluate, data_source):
        assert evaluate('newSlice("a",str)') == string_sequence(["a", data_source["str"]])

    def test_callee_resolved_from_registry_not_environment(self, evaluate):
        environment = {"contains": "not a function", "arrary": ["x"]}
        assert evaluate('contains(arrary, "x")', environment) == TRUE

    def test_unknown_function(self, evaluate):
        with pytest.raises(RuleEvaluationError, match="Unknown function: str"):
            evaluate("str()")

    def test_reserved_constant_is_not_callable(self, evaluate):
        with pytest.raises(RuleTypeError, match="true is not a function"):
            evaluate("true()")

    def test_callee_must_be_a_name(self, evaluate):
        with pytest.raises(RuleTypeError, match="call target must be a function name"):
            evaluate("mp.contains(1)")


class TestScenarios:
    """End-to-end expressions against a shared environment."""

    @pytest.mark.parametrize(
        "expression, expected",
        [
            ('(2+1-2)*(-2)/(mp["md"][1])', IntValue(-1)),
            ("((5%it2)+2-3)/100", IntValue(0)),
            ('bl&&(mp["md"][it2]-1==2)', TRUE),
            ('contains(arrary,"1b")&&it>1.0&&it2<=3', TRUE),
            ('(!matchString("abc[0-9]+.*m",mp["ms"])||!bl)==false', TRUE),
            (
                '((!matchString("abc[0-9]+.*m",mp["ms"])||!bl)==false)'
                '&&(555%2+0.1234*10>(it2/5-1.0123)'
                '||contains(newSlice("abc","cfg","123"),"cfg"))',
                TRUE,
            ),
        ],
    )
    def test_scenarios(self, evaluate, expression, expected):
        assert evaluate(expression) == expected


class TestPurity:
    """Test evaluation has no hidden state."""

    def test_repeatable(self, evaluate):
        assert evaluate("mp.md[1] * 2") == evaluate("mp.md[1] * 2") == IntValue(4)
        expression = "mp.md[1] * 2 + missing"
        with pytest.raises(RuleTypeError):
            evaluate(expression)
        with pytest.raises(RuleTypeError):
            evaluate(expression)

    def test_environment_untouched(self, data_source):
        snapshot = repr(data_source)
        Evaluator(data_source).evaluate(parse_expression('newSlice(mp.mc, str)'))
        assert repr(data_source) == snapshot

    def test_unsupported_node(self):
        with pytest.raises(RuleEvaluationError, match="Unsupported expression: Node"):
            Evaluator({}).evaluate(Node())

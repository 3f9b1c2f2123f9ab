"""Exceptions for expression parsing and evaluation."""

class RuleError(Exception):
    """Base class for all rule-related errors."""
    pass

class RuleSyntaxError(RuleError):
    """Raised when expression text cannot be parsed."""
    def __init__(self, message: str, position: int | None = None):
        self.position = position
        super().__init__(f"{message} at position {position}" if position is not None else message)

class RuleEvaluationError(RuleError):
    """Raised when evaluation of a parsed expression fails."""
    pass

class RuleTypeError(RuleEvaluationError):
    """Raised when an operator, index or function gets a value of the wrong type."""
    pass

class ValueConversionError(RuleEvaluationError):
    """Raised when a Python object has no counterpart in the value model."""
    pass

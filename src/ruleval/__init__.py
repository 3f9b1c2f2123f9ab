"""ruleval - a dynamically-typed expression evaluator.

Evaluates rule-style conditions (arithmetic, comparison, boolean logic,
indexing, field selection and built-in calls) against ad-hoc structured data.
"""

__version__ = "0.1.0"

from ruleval.core.rules import RunResult, parse_expression, run

__all__ = ["run", "parse_expression", "RunResult", "__version__"]

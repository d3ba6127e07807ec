# src/alchemist/rules/expressions.py
"""
@brief
Sandboxed rule expression language.

@details
Rules authored outside the codebase (engine.yaml, an assistant that turns
prose into rules) are written as a single Python-syntax expression and never
as executable code. The expression is parsed with `ast`, every node is checked
against a whitelist, and only whitelisted helper functions may be called.

Names available to an expression:
    value                 the cell value of the rule's field
    row                   the whole row (subscript it: row["Duration"])
    data                  the dataset (data["tasks"])
    clients/workers/tasks the three collections

Helpers:
    num(x)                float, NaN when x is not numeric (comparisons are then False)
    is_num(x)             x is numeric
    tokens(x)             comma/whitespace separated tokens of a list cell
    lower(x) upper(x) strip(x)
    matches(pattern, x)   regex search on the text of x
    is_json(x)            x is blank or valid JSON
    json_list(x)          x decoded as a list ([] when blank or invalid)
    column(entity, field) trimmed key values of a column
    count(entity, field, v)  rows whose trimmed field equals v
    missing(items, entity, field)  items not found in that column
    len abs min max round any all str

The expression states what must hold: a falsy result reports the rule message.

`*` and `%` take numbers only. Sequence repetition and %-formatting would
let a short expression allocate without bound on every row; such an
operand raises ExpressionError at evaluation time.

Example:
    "1 <= num(value) <= 5"
    "not missing(tokens(value), 'tasks', 'TaskID')"
"""

from __future__ import annotations

import ast
import logging
import math
import re
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from alchemist.errors import ExpressionError, RuleError
from alchemist.rules.model import Rule
from alchemist.schemas.models import RuleDefinition
from alchemist.validator.fields import (
    is_number,
    is_valid_json,
    record_key,
    slot_list,
    split_tokens,
    to_number,
)
from alchemist.validator.types import Dataset, Record

logger = logging.getLogger(__name__)

MAX_EXPRESSION_LENGTH = 2000

ALLOWED_NODES = (
    ast.Expression,
    ast.BoolOp,
    ast.BinOp,
    ast.UnaryOp,
    ast.Compare,
    ast.IfExp,
    ast.Call,
    ast.Name,
    ast.Load,
    ast.Constant,
    ast.Subscript,
    ast.List,
    ast.Tuple,
    ast.And,
    ast.Or,
    ast.Not,
    ast.Add,
    ast.Sub,
    ast.Mult,
    ast.Div,
    ast.FloorDiv,
    ast.Mod,
    ast.USub,
    ast.UAdd,
    ast.Eq,
    ast.NotEq,
    ast.Gt,
    ast.GtE,
    ast.Lt,
    ast.LtE,
    ast.In,
    ast.NotIn,
    ast.Is,
    ast.IsNot,
)

CONTEXT_NAMES = frozenset({"value", "row", "data", "clients", "workers", "tasks"})


def _num(x: Any) -> float:
    number = to_number(x)
    return math.nan if number is None else number


def _text(x: Any) -> str:
    return "" if x is None else str(x)


def _matches(pattern: str, x: Any) -> bool:
    return re.search(pattern, _text(x)) is not None


STATIC_FUNCTIONS: dict[str, Callable[..., Any]] = {
    "num": _num,
    "is_num": lambda x: to_number(x) is not None,
    "tokens": split_tokens,
    "lower": lambda x: _text(x).lower(),
    "upper": lambda x: _text(x).upper(),
    "strip": lambda x: _text(x).strip(),
    "matches": _matches,
    "is_json": is_valid_json,
    "json_list": slot_list,
    "len": len,
    "abs": abs,
    "min": min,
    "max": max,
    "round": round,
    "any": any,
    "all": all,
    "str": _text,
}

# Numeric-only stand-ins for ast.Mult and ast.Mod, injected by _NumericOperators
_NUMERIC_OPERATORS = {ast.Mult: "__mul__", ast.Mod: "__mod__"}


def _numeric_operands(symbol: str, a: Any, b: Any) -> None:
    if not (is_number(a) and is_number(b)):
        raise ExpressionError(
            message=(
                f"Operator {symbol} needs numbers, got {type(a).__name__} and {type(b).__name__}"
            ),
            source="expressions.evaluate",
            suggested_action="Convert operands with num(...).",
        )


def _mul(a: Any, b: Any) -> Any:
    _numeric_operands("*", a, b)
    return a * b


def _mod(a: Any, b: Any) -> Any:
    _numeric_operands("%", a, b)
    return a % b


OPERATOR_FUNCTIONS: dict[str, Callable[..., Any]] = {"__mul__": _mul, "__mod__": _mod}


class _NumericOperators(ast.NodeTransformer):
    """Rewrite `a * b` and `a % b` into calls of the numeric-only helpers."""

    def visit_BinOp(self, node: ast.BinOp) -> ast.AST:
        self.generic_visit(node)
        name = _NUMERIC_OPERATORS.get(type(node.op))
        if name is None:
            return node
        call = ast.Call(
            func=ast.Name(id=name, ctx=ast.Load()), args=[node.left, node.right], keywords=[]
        )
        return ast.copy_location(call, node)


DATASET_FUNCTIONS = frozenset({"column", "count", "missing"})


def _dataset_functions(dataset: Dataset) -> dict[str, Callable[..., Any]]:
    """Helpers bound to one dataset snapshot."""

    def column(entity: str, field: str) -> list[str]:
        return [record_key(r, field) for r in dataset.rows(entity)]

    def count(entity: str, field: str, v: Any) -> int:
        key = _text(v).strip()
        return sum(1 for r in dataset.rows(entity) if record_key(r, field) == key)

    def missing(items: Any, entity: str, field: str) -> list[str]:
        known = set(column(entity, field))
        values = items if isinstance(items, (list, tuple)) else split_tokens(items)
        return [str(v) for v in values if str(v) not in known]

    return {"column": column, "count": count, "missing": missing}


@dataclass(frozen=True, slots=True)
class ExpressionProgram:
    """Validated, compiled expression that can be evaluated repeatedly."""

    source: str
    code: Any

    def evaluate(self, value: Any, row: Record, dataset: Dataset) -> Any:
        scope: dict[str, Any] = {"__builtins__": {}}
        scope.update(STATIC_FUNCTIONS)
        scope.update(OPERATOR_FUNCTIONS)
        scope.update(_dataset_functions(dataset))
        context = {
            "value": value,
            "row": row,
            "data": dataset,
            "clients": dataset.clients,
            "workers": dataset.workers,
            "tasks": dataset.tasks,
        }
        return eval(self.code, scope, context)


def _validate_ast(tree: ast.AST) -> None:
    function_names = set(STATIC_FUNCTIONS) | DATASET_FUNCTIONS
    for node in ast.walk(tree):
        if not isinstance(node, ALLOWED_NODES):
            raise ExpressionError(
                message=f"Unsupported expression syntax: {type(node).__name__}",
                source="expressions._validate_ast",
                suggested_action="Use comparisons, boolean logic, arithmetic and helper calls only.",
            )
        if isinstance(node, ast.Call):
            if not isinstance(node.func, ast.Name) or node.func.id not in function_names:
                raise ExpressionError(
                    message=f"Unsupported function call in expression: {ast.unparse(node.func)}",
                    source="expressions._validate_ast",
                    suggested_action=f"Allowed helpers: {', '.join(sorted(function_names))}",
                )
        elif isinstance(node, ast.Name):
            if node.id not in CONTEXT_NAMES and node.id not in function_names:
                raise ExpressionError(
                    message=f"Unknown name in expression: {node.id}",
                    source="expressions._validate_ast",
                    suggested_action=f"Available names: {', '.join(sorted(CONTEXT_NAMES))}",
                )


def compile_expression(source: str) -> ExpressionProgram:
    """
    @brief
    Parse, validate and compile a rule expression.

    @raises
        ExpressionError
            On syntax errors, disallowed syntax, unknown names or functions.
    """
    if not isinstance(source, str) or not source.strip():
        raise ExpressionError(
            message="Expression must be a non-empty string",
            source="expressions.compile_expression",
        )
    if len(source) > MAX_EXPRESSION_LENGTH:
        raise ExpressionError(
            message=f"Expression longer than {MAX_EXPRESSION_LENGTH} characters",
            source="expressions.compile_expression",
            suggested_action="Split the condition into several rules.",
        )

    try:
        tree = ast.parse(source.strip(), mode="eval")
    except SyntaxError as e:
        raise ExpressionError(
            message=f"Invalid expression syntax: {e.msg}",
            source="expressions.compile_expression",
            suggested_action="Write a single expression, e.g. 1 <= num(value) <= 5",
        ) from e

    _validate_ast(tree)
    tree = ast.fix_missing_locations(_NumericOperators().visit(tree))
    return ExpressionProgram(source=source, code=compile(tree, "<rule>", "eval"))


def compile_rule(definition: RuleDefinition | Mapping[str, Any]) -> Rule:
    """
    @brief
    Turn a declarative RuleDefinition into an executable Rule.

    @details
    Accepts a RuleDefinition or a plain mapping with the same keys. Rules
    without an id get a random uuid4 hex id.

    @raises
        RuleError
            If the definition does not match the RuleDefinition schema.
        ExpressionError
            If the expression is rejected by the compiler.
    """
    if not isinstance(definition, RuleDefinition):
        try:
            definition = RuleDefinition.model_validate(definition)
        except ValidationError as e:
            raise RuleError(
                message=f"Invalid rule definition: {e}",
                source="expressions.compile_rule",
                suggested_action="Provide entity, field, expression and message.",
            ) from e

    program = compile_expression(definition.expression)
    message = definition.message

    def validate(value: Any, row: Record, dataset: Dataset) -> str | None:
        return None if program.evaluate(value, row, dataset) else message

    rule_id = definition.id or uuid.uuid4().hex
    logger.debug("Compiled rule %r: %s", rule_id, definition.expression)
    return Rule(
        id=rule_id,
        entity=definition.entity,
        field=definition.field,
        validate=validate,
        message=message,
        active=definition.active,
        weight=definition.weight,
    )


__all__ = ["ExpressionProgram", "compile_expression", "compile_rule", "STATIC_FUNCTIONS"]

"""Safe expression evaluation for the ``calc`` script command."""

from __future__ import annotations

import ast
import math
from typing import Any

import numpy as np

ALLOWED_FUNCS = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "asin": np.arcsin,
    "acos": np.arccos,
    "atan": np.arctan,
    "sqrt": np.sqrt,
    "exp": np.exp,
    "log": np.log,
    "log10": np.log10,
    "log2": np.log2,
    "floor": np.floor,
    "ceil": np.ceil,
    "round": np.round,
    "abs": np.abs,
    "min": min,
    "max": max,
    "pow": np.power,
}

ALLOWED_NAMES = {"pi": math.pi, "e": math.e}


class ExprEvaluator(ast.NodeVisitor):
    def visit(self, node: ast.AST) -> float:
        return super().visit(node)

    def visit_Expression(self, node: ast.Expression) -> float:
        return self.visit(node.body)

    def visit_BinOp(self, node: ast.BinOp) -> float:
        left = self.visit(node.left)
        right = self.visit(node.right)
        if isinstance(node.op, ast.Add):
            return left + right
        if isinstance(node.op, ast.Sub):
            return left - right
        if isinstance(node.op, ast.Mult):
            return left * right
        if isinstance(node.op, ast.Div):
            return left / right
        if isinstance(node.op, ast.FloorDiv):
            return left // right
        if isinstance(node.op, ast.Mod):
            return left % right
        if isinstance(node.op, ast.Pow):
            return left**right
        raise ValueError("Unsupported operator")

    def visit_UnaryOp(self, node: ast.UnaryOp) -> float:
        operand = self.visit(node.operand)
        if isinstance(node.op, ast.UAdd):
            return operand
        if isinstance(node.op, ast.USub):
            return -operand
        raise ValueError("Unsupported unary operator")

    def visit_Call(self, node: ast.Call) -> float:
        if not isinstance(node.func, ast.Name):
            raise ValueError("Unsupported function")
        func = ALLOWED_FUNCS.get(node.func.id)
        if func is None:
            raise ValueError(f"Unsupported function: {node.func.id}")
        args = [self.visit(arg) for arg in node.args]
        return float(func(*args))

    def visit_Name(self, node: ast.Name) -> float:
        if node.id in ALLOWED_NAMES:
            return float(ALLOWED_NAMES[node.id])
        raise ValueError(f"Unknown name: {node.id}")

    def visit_Constant(self, node: ast.Constant) -> float:
        if isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
            return float(node.value)
        raise ValueError("Unsupported literal")

    def generic_visit(self, node: ast.AST) -> Any:
        raise ValueError("Unsupported expression")


def eval_expr(expr: str) -> float:
    tree = ast.parse(expr.strip(), mode="eval")
    evaluator = ExprEvaluator()
    return evaluator.visit(tree)


def format_number(value: float) -> str:
    """Whole numbers without a fractional part, everything else in full."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)

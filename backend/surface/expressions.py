from __future__ import annotations

from typing import Any


def evaluate(expr: Any, props: dict[str, Any]) -> Any:
    """
    Evaluate the subset of style expressions used by marker layers against feature props.

    Supported: literals, ["get", k], ["has", k], ["!", e], ["==", a, b], ["all", ...],
    ["case", cond1, out1, ..., fallback].
    """
    if not isinstance(expr, list) or not expr or not isinstance(expr[0], str):
        return expr

    op, args = expr[0], expr[1:]
    if op == "get":
        return props.get(str(args[0]))
    if op == "has":
        return str(args[0]) in props
    if op == "!":
        return not evaluate(args[0], props)
    if op == "==":
        return evaluate(args[0], props) == evaluate(args[1], props)
    if op == "all":
        return all(evaluate(a, props) for a in args)
    if op == "case":
        if len(args) % 2 != 1:
            raise ValueError(f"case expression needs a fallback: {expr!r}")
        for cond, out in zip(args[0:-1:2], args[1:-1:2]):
            if evaluate(cond, props):
                return evaluate(out, props)
        return evaluate(args[-1], props)
    raise ValueError(f"Unsupported expression operator: {op!r}")


def matches_filter(flt: Any, props: dict[str, Any]) -> bool:
    if flt is None:
        return True
    return bool(evaluate(flt, props))

"""查询参数解析：把宽松的筛选值转换为 SQLAlchemy 条件表达式。

支持的写法：
- 数值字段：``5``、``[1, 2]``、``"1,2"``、``">=5"``、``"not 5"``；
- 字符串字段：``"foo"``、``"foo*"``（通配）、``"not foo"``、``"a,b"``（或）；
  需要字面量逗号时写作 ``"\\,"``；
- 两类字段均接受 ``:empty:`` / ``:notempty:`` 表示 IS NULL / IS NOT NULL。
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from sqlalchemy import and_, func, not_, or_
from sqlalchemy.sql.elements import ColumnElement

from app.packages.assets.core.constants import CRITERIA_EMPTY, CRITERIA_NOT_EMPTY
from app.packages.assets.core.exceptions import OperationError

_UNESCAPED_COMMA = re.compile(r"(?<!\\),")
_NUMERIC_OP = re.compile(r"^(not\s+|!=|>=|<=|>|<|=)?\s*(-?\d+)$", re.IGNORECASE)


class Exact(str):
    """按字面量精确匹配的取值，不做逗号拆分、通配或 not 前缀解析。"""


def escape_like(value: str, escape: str = "\\") -> str:
    """转义 LIKE 模式中的通配符，使其按字面量匹配。"""
    return (
        value.replace(escape, escape + escape)
        .replace("%", escape + "%")
        .replace("_", escape + "_")
    )


def split_param(value: str) -> list[str]:
    """按未转义的逗号拆分，并还原 ``\\,`` 为字面量逗号。"""
    parts = _UNESCAPED_COMMA.split(value)
    if len(parts) == 1:
        return [value.replace("\\,", ",")]
    return [part.strip().replace("\\,", ",") for part in parts if part.strip()]


def _null_condition(column, value: Any) -> ColumnElement | None:
    if value == CRITERIA_EMPTY:
        return column.is_(None)
    if value == CRITERIA_NOT_EMPTY:
        return column.is_not(None)
    return None


def _numeric_token(column, token: Any) -> ColumnElement:
    null_cond = _null_condition(column, token)
    if null_cond is not None:
        return null_cond
    if isinstance(token, bool):
        raise OperationError(f"无效的数值条件: {token!r}")
    if isinstance(token, int):
        return column == token
    match = _NUMERIC_OP.match(str(token).strip())
    if not match:
        raise OperationError(f"无效的数值条件: {token!r}")
    op = (match.group(1) or "=").strip().lower()
    number = int(match.group(2))
    if op in ("not", "!="):
        return column != number
    if op == ">=":
        return column >= number
    if op == "<=":
        return column <= number
    if op == ">":
        return column > number
    if op == "<":
        return column < number
    return column == number


def parse_numeric_param(column, value: Any) -> ColumnElement:
    """数值条件：多个取值之间为 OR，纯整数列表折叠成 IN。"""
    if isinstance(value, str):
        tokens: list[Any] = split_param(value)
    elif isinstance(value, Iterable):
        tokens = list(value)
    else:
        tokens = [value]
    if not tokens:
        raise OperationError("数值条件不能为空")

    ints = [t for t in tokens if isinstance(t, int) and not isinstance(t, bool)]
    if len(ints) == len(tokens) and len(ints) > 1:
        return column.in_(ints)
    conditions = [_numeric_token(column, t) for t in tokens]
    return conditions[0] if len(conditions) == 1 else or_(*conditions)


def _string_token(column, token: str, *, case_insensitive: bool) -> ColumnElement:
    null_cond = _null_condition(column, token)
    if null_cond is not None:
        return null_cond
    negate = False
    if token.lower().startswith("not "):
        negate = True
        token = token[4:]

    target = column
    if case_insensitive:
        target = func.lower(column)
        token = token.lower()

    if "*" in token:
        pattern = "%".join(escape_like(piece) for piece in token.split("*"))
        cond = target.like(pattern, escape="\\")
    else:
        cond = target == token
    return not_(cond) if negate else cond


def parse_param(column, value: Any, *, case_insensitive: bool = False) -> ColumnElement:
    """字符串条件：肯定项之间为 OR，否定项（``not x``）与之 AND 组合。"""
    if isinstance(value, Exact):
        if case_insensitive:
            return func.lower(column) == value.lower()
        return column == str(value)
    if isinstance(value, str):
        tokens = split_param(value)
    elif isinstance(value, Iterable):
        tokens = [str(v) for v in value]
    else:
        tokens = [str(value)]
    if not tokens:
        raise OperationError("字符串条件不能为空")

    positives: list[ColumnElement] = []
    negatives: list[ColumnElement] = []
    for token in tokens:
        cond = _string_token(column, token, case_insensitive=case_insensitive)
        if token.lower().startswith("not "):
            negatives.append(cond)
        else:
            positives.append(cond)

    parts: list[ColumnElement] = []
    if positives:
        parts.append(positives[0] if len(positives) == 1 else or_(*positives))
    parts.extend(negatives)
    return parts[0] if len(parts) == 1 else and_(*parts)

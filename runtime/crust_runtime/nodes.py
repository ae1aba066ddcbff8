"""
Crust Runtime - Syntax Tree

Expression and statement node types produced by the parser. Nodes are
plain dataclasses: structural equality and repr come for free, and the
evaluator dispatches on their class.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


# ============================================================================
# Expressions
# ============================================================================

@dataclass
class Expression:
    """Base expression node"""
    pass


@dataclass
class Literal(Expression):
    """Literal value: number, string, boolean or null"""
    value: Any


@dataclass
class Identifier(Expression):
    """Name reference"""
    name: str


@dataclass
class ListLiteral(Expression):
    """List literal: [a, b, c]"""
    elements: List[Expression]


@dataclass
class ObjectLiteral(Expression):
    """Object literal: {key: value, shorthand}"""
    fields: Dict[str, Expression]


@dataclass
class MemberAccess(Expression):
    """Indexed or keyed access: container[key], container.name, container.0"""
    container: Expression
    key: Expression


@dataclass
class BinaryOp(Expression):
    """Binary operation"""
    op: str
    left: Expression
    right: Expression


@dataclass
class UnaryOp(Expression):
    """Prefix operation: -x, !x"""
    op: str
    operand: Expression


@dataclass
class Call(Expression):
    """Function call; callee is usually an Identifier"""
    callee: Expression
    args: List[Expression]

    @property
    def name(self) -> Optional[str]:
        return self.callee.name if isinstance(self.callee, Identifier) else None


@dataclass
class ClosureLiteral(Expression):
    """Anonymous function: fn(params) returnExpr { body }"""
    params: List[str]
    body: List['Statement']
    returns: Expression


@dataclass
class Increment(Expression):
    """++x, --x, x++, x--"""
    name: str
    delta: float
    prefix: bool


# ============================================================================
# Statements
# ============================================================================

@dataclass
class Statement:
    """Base statement node"""
    pass


@dataclass
class Nop(Statement):
    """No-op; also stands in for statements that failed to parse"""
    pass


@dataclass
class Assignment(Statement):
    """target = value, optionally global"""
    target: Expression
    value: Expression
    is_global: bool = False


@dataclass
class Assert(Statement):
    """assert condition"""
    condition: Expression


@dataclass
class Match(Statement):
    """match value { case: {...} ... } else {...}"""
    value: Expression
    cases: List[Tuple[Expression, List[Statement]]]
    default: Optional[List[Statement]] = None


@dataclass
class If(Statement):
    """if / else if / else chain"""
    condition: Expression
    body: List[Statement]
    elifs: List[Tuple[Expression, List[Statement]]] = field(default_factory=list)
    else_body: Optional[List[Statement]] = None


@dataclass
class While(Statement):
    """while condition { body }"""
    condition: Expression
    body: List[Statement]


@dataclass
class For(Statement):
    """for name in iterable { body }"""
    name: str
    iterable: Expression
    body: List[Statement]


@dataclass
class Setup(Statement):
    """setup { body }"""
    body: List[Statement]


@dataclass
class Update(Statement):
    """update { body }"""
    body: List[Statement]


@dataclass
class CloneSetup(Statement):
    """clone_setup { body }"""
    body: List[Statement]


@dataclass
class CloneUpdate(Statement):
    """clone_update { body }"""
    body: List[Statement]


@dataclass
class WhenBroadcast(Statement):
    """when "message" { body }"""
    message: str
    body: List[Statement]


@dataclass
class WhenCondition(Statement):
    """when condition { body }"""
    condition: Expression
    body: List[Statement]


@dataclass
class Import(Statement):
    """import "path" """
    path: str


@dataclass
class CallStatement(Statement):
    """Bare call or increment evaluated for its effect"""
    expression: Expression


@dataclass
class FunctionDefinition(Statement):
    """fn name(params) returnExpr { body }"""
    name: str
    params: List[str]
    body: List[Statement]
    returns: Expression


SECTION_TYPES = (Setup, Update, CloneSetup, CloneUpdate, WhenBroadcast, WhenCondition)


# ============================================================================
# Formatting
# ============================================================================

def format_expression(expr: Expression) -> str:
    """Render an expression back to source-like text (used by assert)"""
    if isinstance(expr, Literal):
        value = expr.value
        if value is None:
            return 'null'
        if isinstance(value, bool):
            return 'true' if value else 'false'
        if isinstance(value, str):
            return '"' + value.replace('\\', '\\\\').replace('"', '\\"') + '"'
        return str(int(value)) if float(value).is_integer() else repr(value)
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, ListLiteral):
        return '[' + ', '.join(format_expression(e) for e in expr.elements) + ']'
    if isinstance(expr, ObjectLiteral):
        return '{' + ', '.join(f"{k}: {format_expression(v)}" for k, v in expr.fields.items()) + '}'
    if isinstance(expr, MemberAccess):
        return f"{format_expression(expr.container)}[{format_expression(expr.key)}]"
    if isinstance(expr, BinaryOp):
        return f"{format_expression(expr.left)} {expr.op} {format_expression(expr.right)}"
    if isinstance(expr, UnaryOp):
        return f"{expr.op}{format_expression(expr.operand)}"
    if isinstance(expr, Call):
        return f"{format_expression(expr.callee)}({', '.join(format_expression(a) for a in expr.args)})"
    if isinstance(expr, ClosureLiteral):
        return f"fn({', '.join(expr.params)}) {format_expression(expr.returns)} {{...}}"
    if isinstance(expr, Increment):
        op = '++' if expr.delta > 0 else '--'
        return f"{op}{expr.name}" if expr.prefix else f"{expr.name}{op}"
    return type(expr).__name__

"""
Crust Runtime - Evaluator

Tree-walking evaluation of expressions and statements.

resolve() never raises for authoring mistakes: unknown names, failed calls
and bad member assignments are reported as diagnostics and produce null.

Name lookup order:
    local bindings (most recent first)
    -> sprite variables
    -> project globals
    -> sprite functions
    -> builtins
    -> PI, E
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from .errors import (
    CrustError, Diagnostics,
    E_NAME_ERROR, E_ARITY_ERROR, E_TYPE_ERROR, E_RUNTIME_ERROR,
)
from .nodes import (
    Expression, Literal, Identifier, ListLiteral, ObjectLiteral, MemberAccess,
    BinaryOp, UnaryOp, Call, ClosureLiteral, Increment,
    Statement, Nop, Assignment, Assert, Match, If, While, For,
    CallStatement, FunctionDefinition, Import, SECTION_TYPES, format_expression,
)
from .values import (
    Closure, UserFunction, BuiltinFunction,
    to_number, to_boolean, to_string, to_list, values_equal, contains,
    format_number, type_name, is_number,
)


CONSTANTS = {'PI': math.pi, 'E': math.e}


# ============================================================================
# Execution Context
# ============================================================================

class Binding:
    """A local name; child contexts share Binding objects with their parent"""
    __slots__ = ('name', 'value')

    def __init__(self, name: str, value: Any):
        self.name = name
        self.value = value

    def __repr__(self) -> str:
        return f"Binding({self.name!r}, {self.value!r})"


@dataclass
class ExecutionContext:
    """Everything a statement list needs while it runs"""
    sprite: Any
    project: Any
    snapshots: Tuple[Any, ...] = ()
    script_id: int = 0
    locals: List[Binding] = field(default_factory=list)

    @property
    def evaluator(self) -> 'Evaluator':
        return self.project.evaluator

    @property
    def config(self):
        return self.project.config

    def find_local(self, name: str) -> Optional[Binding]:
        for binding in reversed(self.locals):
            if binding.name == name:
                return binding
        return None

    def with_bindings(self, bindings: List[Binding]) -> 'ExecutionContext':
        """Child context; the parent's bindings stay shared"""
        return ExecutionContext(self.sprite, self.project, self.snapshots,
                                self.script_id, self.locals + bindings)

    def call(self, function: Closure, args: List[Any]) -> Any:
        return self.evaluator.invoke(function, args, self)

    def find_snapshot(self, name: str):
        for snapshot in self.snapshots:
            if snapshot.name == name:
                return snapshot
        return None


# ============================================================================
# Evaluator
# ============================================================================

class Evaluator:
    """Evaluate Crust syntax trees against an execution context"""

    def __init__(self, diagnostics: Diagnostics):
        self.diagnostics = diagnostics

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def execute_block(self, statements: List[Statement], ctx: ExecutionContext):
        for statement in statements:
            self.execute(statement, ctx)

    def execute(self, stmt: Statement, ctx: ExecutionContext):
        """Execute one statement"""
        if isinstance(stmt, CallStatement):
            self.resolve(stmt.expression, ctx)

        elif isinstance(stmt, Assignment):
            value = self.resolve(stmt.value, ctx)
            if isinstance(stmt.target, Identifier):
                self._assign_name(stmt.target.name, value, stmt.is_global, ctx)
            else:
                self._assign_member(stmt.target, value, stmt.is_global, ctx)

        elif isinstance(stmt, If):
            if to_boolean(self.resolve(stmt.condition, ctx)):
                self.execute_block(stmt.body, ctx)
                return
            for condition, body in stmt.elifs:
                if to_boolean(self.resolve(condition, ctx)):
                    self.execute_block(body, ctx)
                    return
            if stmt.else_body is not None:
                self.execute_block(stmt.else_body, ctx)

        elif isinstance(stmt, While):
            while to_boolean(self.resolve(stmt.condition, ctx)):
                self.execute_block(stmt.body, ctx)

        elif isinstance(stmt, For):
            # Iterate a copy so the body may mutate the list
            for item in list(to_list(self.resolve(stmt.iterable, ctx))):
                self.execute_block(stmt.body, ctx.with_bindings([Binding(stmt.name, item)]))

        elif isinstance(stmt, Match):
            value = self.resolve(stmt.value, ctx)
            for case, body in stmt.cases:
                if values_equal(value, self.resolve(case, ctx)):
                    self.execute_block(body, ctx)
                    return
            if stmt.default is not None:
                self.execute_block(stmt.default, ctx)

        elif isinstance(stmt, Assert):
            text = format_expression(stmt.condition)
            if to_boolean(self.resolve(stmt.condition, ctx)):
                print(f"assert {text}: Passed")
            else:
                self.diagnostics.report(E_RUNTIME_ERROR, f"assert {text}: Failed")

        elif isinstance(stmt, FunctionDefinition):
            ctx.sprite.functions[stmt.name] = UserFunction(stmt.name, stmt.params, stmt.body, stmt.returns)

        elif isinstance(stmt, (Nop, Import) + SECTION_TYPES):
            # Sections and imports are organised when the sprite is built
            pass

        else:
            raise CrustError(E_RUNTIME_ERROR, f"Unknown statement type: {type(stmt).__name__}")

    def _assign_name(self, name: str, value: Any, is_global: bool, ctx: ExecutionContext):
        if is_global:
            ctx.project.globals[name] = value
            return
        binding = ctx.find_local(name)
        if binding is not None:
            binding.value = value
        elif name in ctx.sprite.variables:
            ctx.sprite.variables[name] = value
        elif name in ctx.sprite.functions and isinstance(value, Closure):
            ctx.sprite.functions[name] = value
        else:
            ctx.sprite.variables[name] = value

    def _assign_member(self, target: MemberAccess, value: Any, is_global: bool, ctx: ExecutionContext):
        """Mutate the container in place; every alias observes the change"""
        if is_global and isinstance(target.container, Identifier):
            name = target.container.name
            if name not in ctx.project.globals:
                self.diagnostics.report(E_NAME_ERROR, f"Global variable '{name}' not found")
                return
            container = ctx.project.globals[name]
        else:
            container = self.resolve(target.container, ctx)
        key = self.resolve(target.key, ctx)

        if isinstance(container, list):
            index = self._list_index(container, key)
            if index is None:
                self.diagnostics.report(E_RUNTIME_ERROR,
                                        f"Index {to_string(key)} out of range for list of length {len(container)}")
                return
            container[index] = value
        elif isinstance(container, dict):
            if is_number(key):
                key = format_number(key)
            if not isinstance(key, str):
                self.diagnostics.report(E_TYPE_ERROR, f"Object keys must be strings, got {type_name(key)}")
                return
            container[key] = value
        else:
            self.diagnostics.report(E_TYPE_ERROR, f"Cannot assign a member of {type_name(container)}")

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def resolve(self, expr: Expression, ctx: ExecutionContext) -> Any:
        """Resolve an expression to a value"""
        if isinstance(expr, Literal):
            return expr.value

        elif isinstance(expr, Identifier):
            return self._lookup(expr.name, ctx)

        elif isinstance(expr, BinaryOp):
            return self._eval_binary_op(expr, ctx)

        elif isinstance(expr, UnaryOp):
            operand = self.resolve(expr.operand, ctx)
            if expr.op == '-':
                return -to_number(operand)
            return not to_boolean(operand)

        elif isinstance(expr, Call):
            return self._eval_call(expr, ctx)

        elif isinstance(expr, MemberAccess):
            return self._eval_member(self.resolve(expr.container, ctx), self.resolve(expr.key, ctx))

        elif isinstance(expr, ListLiteral):
            return [self.resolve(element, ctx) for element in expr.elements]

        elif isinstance(expr, ObjectLiteral):
            return {key: self.resolve(value, ctx) for key, value in expr.fields.items()}

        elif isinstance(expr, ClosureLiteral):
            captured = [Binding(b.name, b.value) for b in ctx.locals]
            return UserFunction("<closure>", expr.params, expr.body, expr.returns, captured)

        elif isinstance(expr, Increment):
            return self._eval_increment(expr, ctx)

        raise CrustError(E_RUNTIME_ERROR, f"Unknown expression type: {type(expr).__name__}")

    def _lookup(self, name: str, ctx: ExecutionContext) -> Any:
        binding = ctx.find_local(name)
        if binding is not None:
            return binding.value
        if name in ctx.sprite.variables:
            return ctx.sprite.variables[name]
        if name in ctx.project.globals:
            return ctx.project.globals[name]
        if name in ctx.sprite.functions:
            return ctx.sprite.functions[name]
        if name in ctx.project.builtins:
            return ctx.project.builtins[name]
        if name in CONSTANTS:
            return CONSTANTS[name]
        self.diagnostics.report(E_NAME_ERROR, f"Variable '{name}' not found")
        return None

    def _lookup_variable(self, name: str, ctx: ExecutionContext) -> Tuple[bool, Any]:
        """Variables only: locals, sprite variables, globals"""
        binding = ctx.find_local(name)
        if binding is not None:
            return True, binding.value
        if name in ctx.sprite.variables:
            return True, ctx.sprite.variables[name]
        if name in ctx.project.globals:
            return True, ctx.project.globals[name]
        return False, None

    def _eval_member(self, container: Any, key: Any) -> Any:
        if isinstance(container, (list, str)):
            index = self._list_index(container, key)
            return None if index is None else container[index]
        if isinstance(container, dict):
            if is_number(key):
                key = format_number(key)
            return container.get(key) if isinstance(key, str) else None
        return None

    @staticmethod
    def _list_index(container, key: Any) -> Optional[int]:
        if not is_number(key) or not math.isfinite(key) or not float(key).is_integer():
            return None
        index = int(key)
        return index if 0 <= index < len(container) else None

    def _eval_increment(self, expr: Increment, ctx: ExecutionContext) -> Any:
        found, current = self._lookup_variable(expr.name, ctx)
        if not found:
            self.diagnostics.report(E_NAME_ERROR, f"Variable '{expr.name}' not found")
        old = to_number(current)
        new = old + expr.delta

        binding = ctx.find_local(expr.name)
        if binding is not None:
            binding.value = new
        elif expr.name not in ctx.sprite.variables and expr.name in ctx.project.globals:
            ctx.project.globals[expr.name] = new
        else:
            ctx.sprite.variables[expr.name] = new
        return new if expr.prefix else old

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def _eval_binary_op(self, expr: BinaryOp, ctx: ExecutionContext) -> Any:
        """Evaluate binary operation"""
        op = expr.op
        left = self.resolve(expr.left, ctx)

        if op == '&&':
            return to_boolean(left) and to_boolean(self.resolve(expr.right, ctx))
        if op == '||':
            return to_boolean(left) or to_boolean(self.resolve(expr.right, ctx))

        right = self.resolve(expr.right, ctx)

        if op == '==':
            return values_equal(left, right)
        elif op == '!=':
            return not values_equal(left, right)
        elif op == '..':
            return to_string(left) + to_string(right)
        elif op == 'in':
            return contains(right, left)

        a, b = to_number(left), to_number(right)
        if op == '+':
            return a + b
        elif op == '-':
            return a - b
        elif op == '*':
            return a * b
        elif op == '/':
            return _divide(a, b)
        elif op == '%':
            return _modulo(a, b)
        elif op in ('^', '**'):
            return _power(a, b)
        elif op == '<':
            return a < b
        elif op == '>':
            return a > b
        elif op == '<=':
            return a <= b
        elif op == '>=':
            return a >= b
        elif op in ('&', '|', '<<', '>>'):
            return _bitwise(op, _to_int(a), _to_int(b))

        self.diagnostics.report(E_RUNTIME_ERROR, f"Unknown binary operator: {op}")
        return None

    # ------------------------------------------------------------------
    # Calls
    # ------------------------------------------------------------------

    def _eval_call(self, expr: Call, ctx: ExecutionContext) -> Any:
        name = expr.name
        args = [self.resolve(arg, ctx) for arg in expr.args]

        if name is None:
            callee = self.resolve(expr.callee, ctx)
            if not isinstance(callee, Closure):
                self.diagnostics.report(E_TYPE_ERROR, f"Cannot call a value of type {type_name(callee)}")
                return None
            return self.invoke(callee, args, ctx)

        if name in ctx.sprite.functions:
            return self.invoke(ctx.sprite.functions[name], args, ctx)
        if name in ctx.project.builtins:
            return self.invoke(ctx.project.builtins[name], args, ctx)

        found, value = self._lookup_variable(name, ctx)
        if found and isinstance(value, Closure):
            return self.invoke(value, args, ctx, name)
        if found:
            self.diagnostics.report(E_TYPE_ERROR, f"'{name}' is a {type_name(value)}, not a function")
        else:
            self.diagnostics.report(E_NAME_ERROR, f"Function '{name}' not found")
        return None

    def invoke(self, function: Closure, args: List[Any], ctx: ExecutionContext,
               name: Optional[str] = None) -> Any:
        """Call a closure value; failures become a diagnostic and null"""
        name = name or function.name

        if isinstance(function, BuiltinFunction):
            try:
                return function(ctx, args)
            except CrustError as error:
                self.diagnostics.report(error.code, f"Error calling function {name}(): {error.message}")
                return None
            except RecursionError:
                self.diagnostics.report(E_RUNTIME_ERROR, f"Error calling function {name}(): maximum recursion depth exceeded")
                return None

        if len(args) != len(function.params):
            self.diagnostics.report(
                E_ARITY_ERROR,
                f"Error calling function {name}(): Called with incorrect number of arguments: "
                f"expected {len(function.params)}, got {len(args)}",
            )
            return None

        # Parameters come last so they shadow captured names
        locals_ = list(function.captured)
        locals_.extend(Binding(param, arg) for param, arg in zip(function.params, args))
        call_ctx = ExecutionContext(ctx.sprite, ctx.project, ctx.snapshots, ctx.script_id, locals_)
        try:
            self.execute_block(function.body, call_ctx)
            return self.resolve(function.returns, call_ctx)
        except RecursionError:
            self.diagnostics.report(E_RUNTIME_ERROR, f"Error calling function {name}(): maximum recursion depth exceeded")
            return None


# ============================================================================
# Numeric Helpers
# ============================================================================

def _divide(a: float, b: float) -> float:
    if b != 0:
        return a / b
    if a == 0 or math.isnan(a):
        return math.nan
    return math.copysign(math.inf, a) * math.copysign(1.0, b)


def _modulo(a: float, b: float) -> float:
    if b == 0 or not math.isfinite(a):
        return math.nan
    return math.fmod(a, b)


def _power(a: float, b: float) -> float:
    try:
        return math.pow(a, b)
    except OverflowError:
        return _signed_inf(a, b)
    except ValueError:
        # Zero to a negative power; other domain errors are negative bases
        # with fractional exponents
        return _signed_inf(a, b) if a == 0 else math.nan


def _signed_inf(base: float, exponent: float) -> float:
    odd = exponent.is_integer() and exponent % 2 == 1
    return math.copysign(math.inf, base) if odd else math.inf


def _to_int(number: float) -> int:
    return int(number) if math.isfinite(number) else 0


def _to_float(number: int) -> float:
    try:
        return float(number)
    except OverflowError:
        return math.inf if number > 0 else -math.inf


def _bitwise(op: str, a: int, b: int) -> float:
    if op == '&':
        return _to_float(a & b)
    if op == '|':
        return _to_float(a | b)
    b = min(max(b, 0), 63)
    if op == '<<':
        return _to_float(a << b)
    return _to_float(a >> b)

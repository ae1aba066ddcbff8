"""
Test suite for the Crust evaluator
Verifies expressions, statements, name resolution, functions and diagnostics
"""

import math

import pytest
import sys
import os

# Add grandparent directory to path for imports (to find crust_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from crust_runtime.evaluator import ExecutionContext
from crust_runtime.parser import parse_expression


@pytest.fixture
def evaluate(project):
    """Resolve a single expression against a fresh sprite"""
    sprite = project.add_sprite("Sprite", "")

    def resolve(source):
        return project.evaluator.resolve(parse_expression(source), ExecutionContext(sprite, project))
    return resolve


def run_setup(project, body, name="Sprite"):
    """Run a setup section for one tick and return the sprite's variables"""
    sprite = project.add_sprite(name, "setup {\n" + body + "\n}")
    project.tick()
    return sprite.variables


class TestArithmetic:
    """Test numeric operators"""

    def test_precedence(self, evaluate):
        assert evaluate('3 + 4 * 2') == 11.0

    def test_power(self, evaluate):
        assert evaluate('2 ^ 10') == 1024.0
        assert evaluate('2 ** 3') == 8.0

    def test_modulo(self, evaluate):
        assert evaluate('7 % 3') == 1.0

    def test_division_by_zero(self, evaluate):
        assert evaluate('1 / 0') == math.inf
        assert evaluate('-1 / 0') == -math.inf
        assert math.isnan(evaluate('0 / 0'))
        assert math.isnan(evaluate('1 % 0'))

    def test_bitwise(self, evaluate):
        assert evaluate('6 & 3') == 2.0
        assert evaluate('6 | 3') == 7.0
        assert evaluate('1 << 4') == 16.0
        assert evaluate('256 >> 4') == 16.0

    def test_numeric_strings_coerce(self, evaluate):
        assert evaluate('"2" * 3') == 6.0

    def test_unary(self, evaluate):
        assert evaluate('-(2 + 3)') == -5.0
        assert evaluate('!0') is True


class TestComparisonAndLogic:
    """Test comparison, equality and logical operators"""

    def test_comparisons(self, evaluate):
        assert evaluate('1 < 2') is True
        assert evaluate('2 <= 1') is False

    def test_structural_equality(self, evaluate):
        assert evaluate('[1, [2]] == [1, [2]]') is True
        assert evaluate('{a: 1} != {a: 2}') is True

    def test_no_cross_type_equality(self, evaluate):
        assert evaluate('1 == "1"') is False

    def test_short_circuit(self, evaluate, project):
        assert evaluate('false && missing') is False
        assert evaluate('true || missing') is True
        assert project.diagnostics.messages() == []

    def test_membership(self, evaluate):
        assert evaluate('2 in [1, 2]') is True
        assert evaluate('"k" in {k: 1}') is True
        assert evaluate('"z" in "abc"') is False

    def test_concat(self, evaluate):
        assert evaluate('"score: " .. 10') == "score: 10"


class TestNames:
    """Test identifier resolution"""

    def test_constants(self, evaluate):
        assert evaluate('PI') == pytest.approx(math.pi)
        assert evaluate('E') == pytest.approx(math.e)

    def test_unknown_variable_is_null_with_diagnostic(self, evaluate, project):
        assert evaluate('nope') is None
        assert project.diagnostics.messages() == ["Variable 'nope' not found"]

    def test_sprite_variable_shadows_global(self, project):
        project.globals['level'] = 1.0
        variables = run_setup(project, 'seen_global = level\nlevel = 5\nseen_local = level')
        assert variables['seen_global'] == 1.0
        assert variables['seen_local'] == 5.0
        assert project.globals['level'] == 1.0

    def test_global_assignment(self, project):
        run_setup(project, 'global score = 5')
        assert project.globals['score'] == 5.0

    def test_global_member_assignment(self, project):
        project.globals['board'] = [0.0, 0.0]
        run_setup(project, 'global board[1] = 9')
        assert project.globals['board'] == [0.0, 9.0]

    def test_builtin_as_value(self, project):
        variables = run_setup(project, 'f = sqrt\nr = f(16)')
        assert variables['r'] == 4.0


class TestMembers:
    """Test member access and container mutation"""

    def test_index_and_field(self, evaluate):
        assert evaluate('[10, 20, 30][1]') == 20.0
        assert evaluate('{a: {b: 7}}.a.b') == 7.0
        assert evaluate('"abc".2') == "c"

    def test_out_of_range_is_null(self, evaluate):
        assert evaluate('[1][5]') is None
        assert evaluate('[1][0.5]') is None

    def test_numeric_key_on_object(self, evaluate):
        assert evaluate('{"0": "zero"}.0') == "zero"

    def test_lists_alias(self, project):
        variables = run_setup(project, 'b = [1, 2, 3]\na = b\na[0] = 99')
        assert variables['b'] == [99.0, 2.0, 3.0]
        assert variables['a'] is variables['b']

    def test_objects_alias_through_calls(self, project):
        source = (
            'fn rename(obj, name) null {\n obj.name = name\n}\n'
            'setup {\n player = {name: "a"}\n rename(player, "b")\n}'
        )
        sprite = project.add_sprite("Sprite", source)
        project.tick()
        assert sprite.variables['player'] == {"name": "b"}

    def test_assignment_out_of_range(self, project):
        variables = run_setup(project, 'a = [1]\na[3] = 2')
        assert variables['a'] == [1.0]
        assert "out of range" in project.diagnostics.messages()[0]


class TestStatements:
    """Test control-flow statements"""

    def test_if_else_chain(self, project):
        variables = run_setup(project, 'x = 2\nif x == 1 { r = "one" } else if x == 2 { r = "two" } else { r = "many" }')
        assert variables['r'] == "two"

    def test_while(self, project):
        variables = run_setup(project, 'i = 0\nwhile i < 5 { i += 1 }')
        assert variables['i'] == 5.0

    def test_match(self, project):
        variables = run_setup(project, 'k = "b"\nmatch k {\n "a": { r = 1 }\n "b": { r = 2 }\n} else { r = 0 }')
        assert variables['r'] == 2.0

    def test_match_default(self, project):
        variables = run_setup(project, 'match 5 {\n 1: { r = 1 }\n} else { r = 0 }')
        assert variables['r'] == 0.0

    def test_for_binding_is_local(self, project):
        variables = run_setup(project, 'seen = []\nfor item in [1, 2, 3] { seen = push(seen, item) }\nafter = item')
        assert variables['seen'] == [1.0, 2.0, 3.0]
        assert 'item' not in variables
        assert variables['after'] is None
        assert "Variable 'item' not found" in project.diagnostics.messages()

    def test_for_over_string(self, project):
        variables = run_setup(project, 'out = ""\nfor c in "abc" { out = c .. out }')
        assert variables['out'] == "cba"

    def test_increments(self, project):
        variables = run_setup(project, 'x = 1\ny = x++\nz = ++x\nx--')
        assert variables['y'] == 1.0
        assert variables['z'] == 3.0
        assert variables['x'] == 2.0

    def test_assert(self, project, capsys):
        run_setup(project, 'assert 1 == 1\nassert 1 == 2')
        assert "assert 1 == 1: Passed" in capsys.readouterr().out
        assert project.diagnostics.messages() == ["assert 1 == 2: Failed"]

    def test_top_level_statements_run_with_setup(self, project):
        sprite = project.add_sprite("Sprite", 'a = 1\nsetup { b = a + 1 }')
        project.tick()
        assert sprite.variables == {'a': 1.0, 'b': 2.0}


class TestFunctions:
    """Test function definitions, closures and calls"""

    def test_named_function(self, project):
        sprite = project.add_sprite("Sprite", 'fn add(a, b) a + b {}\nsetup { r = add(2, 3) }')
        project.tick()
        assert sprite.variables['r'] == 5.0

    def test_function_body_runs_before_return(self, project):
        source = 'fn double_all(items) out {\n out = []\n for i in items { out = push(out, i * 2) }\n}\nsetup { r = double_all([1, 2]) }'
        sprite = project.add_sprite("Sprite", source)
        project.tick()
        assert sprite.variables['r'] == [2.0, 4.0]

    def test_closure_in_variable(self, project):
        variables = run_setup(project, 'double = fn(x) x * 2 {}\nr = double(4)')
        assert variables['r'] == 8.0

    def test_closure_captures_locals(self, project):
        variables = run_setup(project, 'make = fn(n) fn(x) x + n {} {}\nadd2 = make(2)\nr = add2(5)')
        assert variables['r'] == 7.0

    def test_params_shadow_captured(self, project):
        variables = run_setup(project, 'make = fn(x) fn(x) x * 10 {} {}\nf = make(1)\nr = f(3)')
        assert variables['r'] == 30.0

    def test_recursion(self, project):
        sprite = project.add_sprite(
            "Sprite", 'fn fact(n) result {\n result = 1\n if n > 1 { result = n * fact(n - 1) }\n}\nsetup { r = fact(5) }')
        project.tick()
        assert sprite.variables['r'] == 120.0

    def test_closure_replaces_function(self, project):
        sprite = project.add_sprite("Sprite", 'fn f() 1 {}\nsetup {\n f = fn() 2 {}\n r = f()\n}')
        project.tick()
        assert sprite.variables['r'] == 2.0
        assert 'f' not in sprite.variables

    def test_unknown_function(self, project):
        variables = run_setup(project, 'r = nope(1)')
        assert variables['r'] is None
        assert project.diagnostics.messages() == ["Function 'nope' not found"]

    def test_arity_mismatch(self, project):
        sprite = project.add_sprite("Sprite", 'fn f(a) a {}\nsetup { r = f(1, 2) }')
        project.tick()
        assert sprite.variables['r'] is None
        assert "expected 1, got 2" in project.diagnostics.messages()[0]

    def test_builtin_error_becomes_diagnostic(self, project):
        variables = run_setup(project, 'r = sqrt("x")')
        assert variables['r'] is None
        assert project.diagnostics.messages() == [
            "Error calling function sqrt(): sqrt() argument 1 must be a number, got string"
        ]

    def test_calling_a_number(self, project):
        variables = run_setup(project, 'n = 3\nr = n()')
        assert variables['r'] is None
        assert project.diagnostics.messages() == ["'n' is a number, not a function"]


class TestExtremeValues:
    """Test that inf, nan, huge integers and cyclic containers never abort a tick"""

    def test_modulo_of_infinity(self, evaluate):
        assert math.isnan(evaluate('(1 / 0) % 2'))
        assert math.isnan(evaluate('(0 / 0) % 2'))
        assert evaluate('5 % (1 / 0)') == 5.0

    def test_shift_overflow_saturates(self, evaluate):
        assert evaluate('(2 ** 1000) << 63') == math.inf
        assert evaluate('(0 - 2 ** 1000) << 63') == -math.inf
        assert evaluate('(1 / 0) << 2') == 0.0

    def test_zero_to_negative_power(self, evaluate):
        assert evaluate('0 ^ -1') == math.inf
        assert evaluate('0 ** -2') == math.inf

    def test_power_overflow_keeps_sign(self, evaluate):
        assert evaluate('10 ^ 1000') == math.inf
        assert evaluate('(0 - 10) ^ 1001') == -math.inf

    def test_following_statement_still_runs(self, project):
        variables = run_setup(project, 'm = (1 / 0) % 2\ns = (2 ** 1000) << 63\nafter = 1')
        assert math.isnan(variables['m'])
        assert variables['s'] == math.inf
        assert variables['after'] == 1.0

    def test_self_containing_list(self, project, capsys):
        variables = run_setup(project, 'a = [1]\na[0] = a\nprint(a)\nb = [1]\nb[0] = b\n'
                                       'same = a == b\ntext = "list: " .. a\nafter = 1')
        assert capsys.readouterr().out == "Sprite => ...\n"
        assert variables['same'] is True
        assert variables['text'] == "list: ..."
        assert variables['after'] == 1.0
        assert len(project.diagnostics) == 0


if __name__ == '__main__':
    pytest.main([__file__, '-v'])

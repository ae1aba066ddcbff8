"""
Test suite for Crust builtins
Verifies each builtin category through scripts run for one tick
"""

import math

import pytest
import sys
import os

# Add grandparent directory to path for imports (to find crust_runtime package)
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from crust_runtime import Project, RuntimeConfig
from crust_runtime.builtins import CATEGORIES, build_registry
from crust_runtime.collaborators import DrawCommand, FrameInput


def run_setup(project, body, name="Sprite", **kwargs):
    """Run a setup section for one tick and return the sprite"""
    sprite = project.add_sprite(name, "setup {\n" + body + "\n}", **kwargs)
    project.tick()
    return sprite


class TestRegistry:
    """Test registry construction"""

    def test_every_category_registered(self):
        registry = build_registry()
        for table in CATEGORIES.values():
            assert set(table) <= set(registry)

    def test_registry_entries_are_named(self):
        registry = build_registry()
        assert registry['sqrt'].name == 'sqrt'


class TestMaths:
    """Test numeric builtins"""

    def test_unary(self, project):
        v = run_setup(project, 'r1 = abs(-3)\nr2 = sqrt(16)\nr3 = to_deg(PI)\nr4 = sqrt(-1)').variables
        assert v['r1'] == 3.0
        assert v['r2'] == 4.0
        assert v['r3'] == pytest.approx(180.0)
        assert math.isnan(v['r4'])

    def test_lerp_clamp_distance(self, project):
        v = run_setup(project, 'r1 = lerp(0, 10, 0.25)\nr2 = clamp(15, 0, 10)\nr3 = distance(0, 0, 3, 4)').variables
        assert (v['r1'], v['r2'], v['r3']) == (2.5, 10.0, 5.0)

    def test_random_in_range_and_seeded(self, make_project):
        first = run_setup(make_project(seed=7), 'r = random(1, 2)').variables['r']
        second = run_setup(make_project(seed=7), 'r = random(1, 2)').variables['r']
        assert 1.0 <= first < 2.0
        assert first == second

    def test_random_requires_ordered_bounds(self, project):
        sprite = run_setup(project, 'r = random(2, 1)')
        assert sprite.variables['r'] is None
        assert "min < max" in project.diagnostics.messages()[0]


class TestContainers:
    """Test list and object builtins"""

    def test_push_returns_new_list(self, project):
        v = run_setup(project, 'orig = [1]\nnew = push(orig, 2)').variables
        assert v['orig'] == [1.0]
        assert v['new'] == [1.0, 2.0]

    def test_pop_returns_rest_and_value(self, project):
        v = run_setup(project, 'r = pop([1, 2, 3])').variables
        assert v['r'] == [[1.0, 2.0], 3.0]

    def test_pop_empty_is_error(self, project):
        run_setup(project, 'r = pop([])')
        assert "empty list" in project.diagnostics.messages()[0]

    def test_insert_and_remove(self, project):
        v = run_setup(project, 'l1 = insert([1, 3], 1, 2)\nl2 = remove([1, 2, 3], 0)\n'
                               'o1 = insert({}, "k", 1)\no2 = remove({k: 1, j: 2}, "k")').variables
        assert v['l1'] == [1.0, 2.0, 3.0]
        assert v['l2'] == [2.0, 3.0]
        assert v['o1'] == {"k": 1.0}
        assert v['o2'] == {"j": 2.0}

    def test_extend_contains_len(self, project):
        v = run_setup(project, 'e = extend([1], [2])\nc = contains([[1]], [1])\nn1 = len("abc")\nn2 = len({k: 1})').variables
        assert v['e'] == [1.0, 2.0]
        assert v['c'] is True
        assert (v['n1'], v['n2']) == (3.0, 1.0)

    def test_keys_values(self, project):
        v = run_setup(project, 'o = {a: 1, b: 2}\nks = keys(o)\nvs = values(o)').variables
        assert v['ks'] == ["a", "b"]
        assert v['vs'] == [1.0, 2.0]

    def test_range_is_inclusive(self, project):
        v = run_setup(project, 'r1 = range(3)\nr2 = range(1, 5, 2)\nr3 = range(2, 2)').variables
        assert v['r1'] == [0.0, 1.0, 2.0, 3.0]
        assert v['r2'] == [1.0, 3.0, 5.0]
        assert v['r3'] == [2.0]

    def test_range_rejects_descending(self, project):
        run_setup(project, 'r = range(5, 1)')
        assert "start <= end" in project.diagnostics.messages()[0]

    def test_sort_with_comparator(self, project):
        v = run_setup(project, 'asc = sort([3, 1, 2], fn(p, q) p < q {})\ndesc = sort([3, 1, 2], fn(p, q) p > q {})').variables
        assert v['asc'] == [1.0, 2.0, 3.0]
        assert v['desc'] == [3.0, 2.0, 1.0]

    def test_filter_and_map(self, project):
        v = run_setup(project, 'evens = filter(range(6), fn(n) n % 2 == 0 {})\nsq = map([1, 2, 3], fn(n) n * n {})').variables
        assert v['evens'] == [0.0, 2.0, 4.0, 6.0]
        assert v['sq'] == [1.0, 4.0, 9.0]

    def test_map_requires_closure(self, project):
        run_setup(project, 'r = map([1], 5)')
        assert "must be a closure" in project.diagnostics.messages()[0]


class TestStrings:
    """Test string builtins"""

    def test_split_join(self, project):
        v = run_setup(project, 's1 = split("a,b", ",")\ns2 = split("ab", "")\nj = join([1, "x"], "-")').variables
        assert v['s1'] == ["a", "b"]
        assert v['s2'] == ["a", "b"]
        assert v['j'] == "1-x"

    def test_affixes_and_trim(self, project):
        v = run_setup(project, 't = trim("  hi ")\nsw = starts_with("hello", "he")\new = ends_with("hello", "x")').variables
        assert v['t'] == "hi"
        assert v['sw'] is True
        assert v['ew'] is False


class TestConversions:
    """Test conversion builtins"""

    def test_to_string_with_base(self, project):
        v = run_setup(project, 'hex = to_string(255, 16)\nbin = to_string(-10, 2)\nplain = to_string(3)').variables
        assert v['hex'] == "ff"
        assert v['bin'] == "-1010"
        assert v['plain'] == "3"

    def test_to_number_boolean_list_object(self, project):
        v = run_setup(project, 'n = to_number("4.5")\nt = to_boolean("")\nl = to_list(null)\n'
                               'o = to_object([["k", 1]])').variables
        assert v['n'] == 4.5
        assert v['t'] is False
        assert v['l'] == []
        assert v['o'] == {"k": 1.0}

    def test_typeof(self, project):
        v = run_setup(project, 't1 = typeof(1)\nt2 = typeof("s")\nt3 = typeof(null)\nt4 = typeof(sqrt)').variables
        assert (v['t1'], v['t2'], v['t3'], v['t4']) == ("number", "string", "null", "closure")


class TestOutputAndContext:
    """Test print, args and identity builtins"""

    def test_print_prefixes_sprite_name(self, project, capsys):
        run_setup(project, 'print("hi", 1)\nprint_raw("raw", true)', name="Cat")
        assert capsys.readouterr().out == "Cat => hi 1\nraw true\n"

    def test_args_and_whoami(self, make_project):
        sprite = run_setup(make_project(args=["--level", "2"]), 'a1 = args()\nme = whoami()', name="Cat")
        assert sprite.variables['a1'] == ["--level", "2"]
        assert sprite.variables['me'] == "Cat"

    def test_frame_and_time(self, project):
        project.tick()
        sprite = project.add_sprite("Sprite", 'setup {\n f = frame()\n dt = delta_time()\n}')
        project.tick()
        assert sprite.variables['f'] == 2.0
        assert sprite.variables['dt'] == pytest.approx(1.0 / 60.0)


class TestFiles:
    """Test write/read builtins"""

    def test_write_append_read(self, make_project, tmp_path):
        project = make_project(base_dir=str(tmp_path), export_path=str(tmp_path))
        sprite = run_setup(project, 'write("hello", "out.txt")\nwrite(" world", "out.txt", true)\ntext = read("out.txt")')
        assert sprite.variables['text'] == "hello world"
        assert (tmp_path / "out.txt").read_text() == "hello world"

    def test_read_binary(self, make_project, tmp_path):
        (tmp_path / "data.bin").write_bytes(b"\x01\xff")
        project = make_project(base_dir=str(tmp_path))
        assert run_setup(project, 'bytes = read_binary("data.bin")').variables['bytes'] == [1.0, 255.0]

    def test_read_missing_file(self, make_project, tmp_path):
        project = make_project(base_dir=str(tmp_path))
        sprite = run_setup(project, 'text = read("nope.txt")')
        assert sprite.variables['text'] is None
        assert "does not exist" in project.diagnostics.messages()[0]


class TestMotion:
    """Test motion builtins"""

    def test_move_along_direction(self, project):
        sprite = run_setup(project, 'move(10)\nturn_cw(90)\nmove(5)')
        assert sprite.x == pytest.approx(10.0)
        assert sprite.y == pytest.approx(5.0)
        assert sprite.direction == 90.0

    def test_turn_wraps(self, project):
        assert run_setup(project, 'turn_ccw(30)').direction == 330.0

    def test_goto_and_setters(self, project):
        sprite = run_setup(project, 'goto(5, 6)\nchange_x(1)\nchange_y(-1)\npx = x()\npy = y()')
        assert sprite.position == (6.0, 5.0)
        assert (sprite.variables['px'], sprite.variables['py']) == (6.0, 5.0)

    def test_goto_mouse(self, project):
        sprite = project.add_sprite("Sprite", 'setup { goto("mouse") }')
        project.tick(FrameInput(mouse=(3.0, 4.0)))
        assert sprite.position == (3.0, 4.0)

    def test_goto_random_stays_in_window(self, make_project):
        sprite = run_setup(make_project(seed=1), 'goto("random")')
        assert -480.0 <= sprite.x <= 480.0
        assert -360.0 <= sprite.y <= 360.0

    def test_point_towards(self, project):
        assert run_setup(project, 'point(0, 10)').direction == pytest.approx(90.0)

    def test_point_towards_sprite(self, project):
        project.add_sprite("Target", 'setup { goto(-10, 0) }')
        sprite = project.add_sprite("Sprite", 'update { point("Target") }')
        project.run(2)
        assert sprite.direction == pytest.approx(180.0)

    def test_distance_to_sprite(self, project):
        project.add_sprite("Target", 'setup { goto(3, 4) }')
        sprite = project.add_sprite("Sprite", 'update { d = distance_to("Target") }')
        project.run(2)
        assert sprite.variables['d'] == 5.0

    def test_edge_bounce(self, project):
        sprite = run_setup(project, 'edge_bounce(true)\nset_x(400)\nmove(100)')
        assert sprite.x == 430.0
        assert sprite.direction == 180.0

    def test_unknown_target(self, project):
        run_setup(project, 'goto("Nobody")')
        assert "target 'Nobody' not found" in project.diagnostics.messages()[0]

    def test_rotation_style(self, project):
        sprite = run_setup(project, 'rotation_style("left-right")\nrotation_style("sideways")')
        assert sprite.rotation_style == "left-right"
        assert len(project.diagnostics) == 1


class TestLooks:
    """Test looks builtins"""

    def test_visibility(self, project):
        sprite = run_setup(project, 'hide()\nhidden = !visible()')
        assert sprite.visible is False
        assert sprite.variables['hidden'] is True

    def test_scale_and_size(self, project):
        sprite = run_setup(project, 'set_scale(150)\npct = scale()\nsz = size()\nchange_scale(-50)\nbox = bounds()')
        assert sprite.variables['pct'] == 150.0
        assert sprite.variables['sz'] == [150.0, 150.0]
        assert sprite.variables['box'] == [-50.0, -50.0, 50.0, 50.0]

    def test_costumes(self, project):
        sprite = run_setup(project, 'switch_costume("b")\nfirst = costume()\nnext_costume()\nnext_costume()',
                           costumes=("a", "b", "c"))
        assert sprite.variables['first'] == 1.0
        assert sprite.costume == "a"

    def test_unknown_costume(self, project):
        run_setup(project, 'switch_costume("z")', costumes=("a",))
        assert "Costume 'z' not found" in project.diagnostics.messages()[0]

    def test_backdrops(self):
        project = Project(RuntimeConfig(echo_diagnostics=False), backdrops=("day", "night"))
        sprite = run_setup(project, 'switch_backdrop("night")\nis_night = is_backdrop("night")\nnext_backdrop()\nidx = backdrop()')
        assert sprite.variables['is_night'] is True
        assert sprite.variables['idx'] == 0.0
        assert project.stage.backdrop == "day"

    def test_effects(self, project):
        sprite = run_setup(project, 'set_effect("ghost", 50)\nchange_effect("ghost", 10)\ng = effect("ghost")\nclear_effects()')
        assert sprite.variables['g'] == 60.0
        assert sprite.effects == {}

    def test_layers(self, project):
        sprite = run_setup(project, 'go_to_layer(2)\ngo_by_layers("backwards", 1)\nl = layer()')
        assert sprite.variables['l'] == 1.0

    def test_render_order_by_layer(self, project):
        project.add_sprite("Front", 'setup { go_to_layer(5) }')
        project.add_sprite("Back", 'setup { go_to_layer(1) }')
        project.add_sprite("Hidden", 'setup { hide() }')
        project.tick()
        assert [s.name for s in project.render_order()] == ["Back", "Front"]


class TestSounds:
    """Test sound builtins"""

    def test_play_with_volume(self, project):
        run_setup(project, 'play_sound("pop")\nset_sound_effect("volume", 50)\nplay_sound("pop")', sounds=("pop",))
        assert project.audio.events == [('play', 'pop', 1.0), ('play', 'pop', 0.5)]
        assert project.audio.playing == {'pop'}

    def test_stop_sound(self, project):
        run_setup(project, 'play_sound("pop")\nstop_all_sounds()', sounds=("pop", "bang"))
        assert project.audio.playing == set()

    def test_unknown_sound(self, project):
        run_setup(project, 'play_sound("boom")', sounds=("pop",))
        assert "Sound 'boom' not found" in project.diagnostics.messages()[0]

    def test_sound_effects(self, project):
        sprite = run_setup(project, 'change_sound_effect("pitch", 20)\np = sound_effect("pitch")\nq = sound_effect("echo")')
        assert sprite.variables['p'] == 20.0
        assert sprite.variables['q'] is None


class TestEvents:
    """Test input queries and broadcasts"""

    def test_key_edges(self, project):
        sprite = project.add_sprite("Sprite", 'update {\n pressed = key_pressed("space")\n held = key_down("space")\n}')
        space = FrameInput(keys_down=frozenset({"space"}))
        project.tick()
        project.tick(space)
        assert sprite.variables['pressed'] is True
        assert sprite.variables['held'] is True
        project.tick(space)
        assert sprite.variables['pressed'] is False
        project.tick()
        assert sprite.variables['held'] is False

    def test_key_released(self, project):
        sprite = project.add_sprite("Sprite", 'update { up = key_released("a") }')
        project.tick()
        project.tick(FrameInput(keys_down=frozenset({"a"})))
        project.tick()
        assert sprite.variables['up'] is True

    def test_mouse(self, project):
        sprite = project.add_sprite("Cat", 'setup {\n mx = mouse_x()\n clicked = sprite_clicked()\n'
                                           ' down = mouse_button_down("left")\n}')
        project.tick(FrameInput(mouse=(12.0, -3.0), mouse_buttons_down=frozenset({"left"}), clicked_sprite="Cat"))
        assert sprite.variables['mx'] == 12.0
        assert sprite.variables['clicked'] is True
        assert sprite.variables['down'] is True

    def test_broadcast_ids(self, project):
        sprite = run_setup(project, 'first = broadcast("a")\nagain = broadcast_id_of("a")\nmissing = broadcast_id_of("b")')
        assert sprite.variables['first'] == 0.0
        assert sprite.variables['again'] == 0.0
        assert sprite.variables['missing'] is None


class TestDrawing:
    """Test drawing builtins"""

    def test_shape_uses_draw_color(self, project):
        run_setup(project, 'set_color(255, 0, 0, 255)\nrect(0, 0, 10, 20)')
        assert project.draw_list.commands == [
            DrawCommand('rect', (0.0, 0.0, 10.0, 20.0), (1.0, 0.0, 0.0, 1.0), 'Sprite')
        ]

    def test_ellipse_optional_rotation(self, project):
        run_setup(project, 'ellipse(0, 0, 4, 2)\nellipse(0, 0, 4, 2, 45)\nrect(0, 0, 1, 1, 9)')
        assert [len(c.params) for c in project.draw_list.commands] == [4, 5]
        assert len(project.diagnostics) == 1

    def test_polygon_needs_three_points(self, project):
        run_setup(project, 'polygon([[0, 0], [1, 0], [0, 1]])\npolygon([[0, 0], [1, 1]])')
        assert len(project.draw_list.commands) == 1
        assert "at least three points" in project.diagnostics.messages()[0]

    def test_channels(self, project):
        sprite = run_setup(project, 'set_color(0, 0, 0, 255)\nchange_g(51)\ngreen = g()')
        assert sprite.variables['green'] == pytest.approx(51.0)

    def test_commands_cleared_each_tick(self, project):
        project.add_sprite("Sprite", 'setup { circle(0, 0, 5) }')
        project.tick()
        assert len(project.draw_list.commands) == 1
        project.tick()
        assert project.draw_list.commands == []

    def test_stamps_persist(self, project):
        run_setup(project, 'stamp()\nstamp()')
        project.tick()
        assert len(project.draw_list.stamps) == 2


class TestWindow:
    """Test window builtins"""

    def test_window_size(self, project):
        sprite = run_setup(project, 'w = window_width()\nh = window_height()')
        assert (sprite.variables['w'], sprite.variables['h']) == (960.0, 720.0)

    def test_window_requests(self, project):
        run_setup(project, 'set_window_title("Game")\nset_window_size(640, 480)\nset_window_size(0, 10)')
        assert project.window.title == "Game"
        assert project.window.size == (640.0, 480.0)
        assert len(project.diagnostics) == 1


class TestNonFiniteArguments:
    """Test that inf and nan arguments become diagnostics instead of aborting the tick"""

    @pytest.mark.parametrize("call,expected", [
        ('range(0, 1 / 0)', "range() bounds must be finite numbers"),
        ('range(1 / 0)', "range() bounds must be finite numbers"),
        ('range(0, 10000000)', "range() would produce more than 1000000 items"),
        ('to_string(1 / 0, 2)', "to_string() argument 1 must be a finite number"),
        ('to_string(255, 0 / 0)', "to_string() argument 2 must be a finite number"),
        ('insert([1], 1 / 0, 5)', "insert() index out of bounds"),
        ('insert([1], 0 / 0, 5)', "insert() index out of bounds"),
        ('random(0, 1 / 0)', "random() bounds must be finite numbers"),
        ('wait(1 / 0)', "Duration must be a finite number of seconds"),
        ('say("hi", 0 / 0)', "Duration must be a finite number of seconds"),
        ('glide(10, 10, 1 / 0)', "Duration must be a finite number of seconds"),
        ('switch_costume(1 / 0)', "switch_costume() argument 1 must be a finite number"),
        ('go_to_layer(0 / 0)', "go_to_layer() argument 1 must be a finite number"),
        ('delete_clone(1 / 0)', "delete_clone() argument 1 must be a finite number"),
        ('set_window_size(1 / 0, 10)', "set_window_size() expects positive finite dimensions"),
    ])
    def test_rejected_with_diagnostic(self, project, call, expected):
        sprite = run_setup(project, f'r = {call}\nafter = 1')
        assert sprite.variables['r'] is None
        assert sprite.variables['after'] == 1.0
        assert len(project.diagnostics) == 1
        assert expected in project.diagnostics.messages()[0]

    def test_rejected_durations_do_not_suspend(self, project):
        sprite = run_setup(project, 'wait(1 / 0)\nglide(10, 10, 1 / 0)\nsay("hi", 1 / 0)')
        assert sprite.wait_ticks == 0
        assert sprite.glide is None
        assert sprite.dialogue is None
        assert len(project.diagnostics) == 3


if __name__ == '__main__':
    pytest.main([__file__, '-v'])

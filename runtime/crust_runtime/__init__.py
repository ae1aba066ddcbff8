"""
Crust Runtime - Sprite Scripting Language

A small scripting language for interactive 2D sprites and the tick-driven
runtime that executes it.

**Language:**
- Tokenizer: source text to positioned tokens
- Parser: tokens to statement lists, recovering from malformed statements
- Evaluator: tree-walking execution with first-class closures

**Runtime:**
- Sprite: transform/look state, variables, functions and categorized scripts
- Scheduler: one pass per sprite per tick (setup, update, handlers, clones)
- Project: globals, stage, broadcasts, builtin registry, collaborators

**Collaborators:**
- FrameInput/InputState, DrawList, AudioSink, WindowState

Version: 0.4.0
"""

__version__ = '0.4.0'

# ============================================================================
# Errors
# ============================================================================

from .errors import (
    E_PARSE_ERROR, E_NAME_ERROR, E_ARITY_ERROR, E_TYPE_ERROR,
    E_VALUE_ERROR, E_IO_ERROR, E_IMPORT_ERROR, E_RUNTIME_ERROR,
    CrustError, ParseError, BuiltinError, Diagnostic, Diagnostics,
)

# ============================================================================
# Language
# ============================================================================

from .tokenizer import Token, TokenType, Tokenizer, tokenize
from .parser import Parser, parse, parse_expression
from .values import (
    Closure, UserFunction, BuiltinFunction,
    to_number, to_string, to_boolean, to_list, to_object, type_name, values_equal,
)
from .evaluator import Evaluator, ExecutionContext, Binding

# ============================================================================
# Runtime
# ============================================================================

from .config import RuntimeConfig, TICKS_PER_SECOND, EASINGS
from .easing import EasingCurve, get_easing
from .sprite import Sprite, SpriteSnapshot, Script, Dialogue, Glide, StopRequest
from .scheduler import Scheduler
from .project import Project, Stage, BroadcastRegistry, run_source
from .collaborators import FrameInput, InputState, DrawList, DrawCommand, AudioSink, WindowState
from .builtins import build_registry

# ============================================================================
# Exports
# ============================================================================

__all__ = [
    '__version__',

    # Errors
    'E_PARSE_ERROR', 'E_NAME_ERROR', 'E_ARITY_ERROR', 'E_TYPE_ERROR',
    'E_VALUE_ERROR', 'E_IO_ERROR', 'E_IMPORT_ERROR', 'E_RUNTIME_ERROR',
    'CrustError', 'ParseError', 'BuiltinError', 'Diagnostic', 'Diagnostics',

    # Language
    'Token', 'TokenType', 'Tokenizer', 'tokenize',
    'Parser', 'parse', 'parse_expression',
    'Closure', 'UserFunction', 'BuiltinFunction',
    'to_number', 'to_string', 'to_boolean', 'to_list', 'to_object', 'type_name', 'values_equal',
    'Evaluator', 'ExecutionContext', 'Binding',

    # Runtime
    'RuntimeConfig', 'TICKS_PER_SECOND', 'EASINGS',
    'EasingCurve', 'get_easing',
    'Sprite', 'SpriteSnapshot', 'Script', 'Dialogue', 'Glide', 'StopRequest',
    'Scheduler',
    'Project', 'Stage', 'BroadcastRegistry', 'run_source',

    # Collaborators
    'FrameInput', 'InputState', 'DrawList', 'DrawCommand', 'AudioSink', 'WindowState',
    'build_registry',
]

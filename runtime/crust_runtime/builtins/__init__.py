"""
Crust Runtime - Builtin Registry

Builtins are grouped by category, one module each. build_registry() wraps
every entry as a BuiltinFunction; a Project builds its table once and
passes it to the evaluator by reference.
"""

from typing import Dict

from ..values import BuiltinFunction
from . import controls, drawing, events, looks, misc, motion, sounds, window


CATEGORIES = {
    'misc': misc.BUILTINS,
    'motion': motion.BUILTINS,
    'looks': looks.BUILTINS,
    'sounds': sounds.BUILTINS,
    'events': events.BUILTINS,
    'controls': controls.BUILTINS,
    'drawing': drawing.BUILTINS,
    'window': window.BUILTINS,
}


def build_registry() -> Dict[str, BuiltinFunction]:
    """Name -> BuiltinFunction for every category"""
    registry = {}
    for table in CATEGORIES.values():
        for name, function in table.items():
            registry[name] = BuiltinFunction(name, function)
    return registry


__all__ = ['build_registry', 'CATEGORIES']

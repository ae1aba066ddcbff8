"""
Crust Runtime - Module Imports

`import "path"` is resolved once, while a sprite is being built. Paths are
relative to the project base directory; a directory imports every file in it
as one module. Only two things are taken from a module: its function
definitions, and the assignments directly inside its `setup` blocks (these are
hoisted to the front of the importing sprite's setup). Imports inside a
module are followed, skipping anything already on the import chain.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Tuple

from .errors import Diagnostics, E_IMPORT_ERROR
from .nodes import Assignment, FunctionDefinition, Import, Setup
from .parser import parse


@dataclass
class Module:
    """What an import contributes to a sprite"""
    functions: List[FunctionDefinition] = field(default_factory=list)
    assignments: List[Assignment] = field(default_factory=list)

    def merge(self, other: 'Module'):
        self.functions.extend(other.functions)
        self.assignments.extend(other.assignments)


class ModuleLoader:
    """Resolves import paths against a base directory"""

    def __init__(self, base_dir: str, diagnostics: Diagnostics):
        self.base_dir = Path(base_dir)
        self.diagnostics = diagnostics

    def load(self, path: str, chain: Tuple[Path, ...] = ()) -> Module:
        target = (self.base_dir / path).resolve()
        if target in chain:
            self.diagnostics.report(E_IMPORT_ERROR, f"Circular import detected: {path}, skipping")
            return Module()

        module = Module()
        if target.is_dir():
            for child in sorted(target.iterdir()):
                if child.is_file():
                    module.merge(self._load_file(child, str(child), chain + (target,)))
        else:
            module.merge(self._load_file(target, path, chain))
        return module

    def _load_file(self, target: Path, display: str, chain: Tuple[Path, ...]) -> Module:
        if target in chain:
            self.diagnostics.report(E_IMPORT_ERROR, f"Circular import detected: {display}, skipping")
            return Module()
        try:
            source = target.read_text(encoding='utf-8')
        except OSError:
            self.diagnostics.report(E_IMPORT_ERROR, f"Failed to load module: {display}")
            return Module()

        statements, parse_diagnostics = parse(source, display)
        self.diagnostics.report_block(parse_diagnostics, display)

        module = Module()
        for statement in statements:
            if isinstance(statement, FunctionDefinition):
                module.functions.append(statement)
            elif isinstance(statement, Setup):
                module.assignments.extend(s for s in statement.body if isinstance(s, Assignment))
            elif isinstance(statement, Import):
                module.merge(self.load(statement.path, chain + (target,)))
        return module

"""
Crust Runtime - Errors and Diagnostics

Authoring errors never stop a running project. The parser and evaluator
report them through a Diagnostics collector and carry on; only CrustError
subclasses are caught, anything else is a bug and propagates.
"""

import sys
from dataclasses import dataclass
from typing import List, Optional


# ============================================================================
# Error Codes
# ============================================================================

E_PARSE_ERROR = "E_PARSE_ERROR"
E_NAME_ERROR = "E_NAME_ERROR"
E_ARITY_ERROR = "E_ARITY_ERROR"
E_TYPE_ERROR = "E_TYPE_ERROR"
E_VALUE_ERROR = "E_VALUE_ERROR"
E_IO_ERROR = "E_IO_ERROR"
E_IMPORT_ERROR = "E_IMPORT_ERROR"
E_RUNTIME_ERROR = "E_RUNTIME_ERROR"


# ============================================================================
# Exceptions
# ============================================================================

class CrustError(Exception):
    """Base exception for Crust runtime errors"""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class ParseError(CrustError):
    """Malformed statement; carries the offending token position"""
    def __init__(self, message: str, line: int = 0, column: int = 0, token: str = ""):
        self.line = line
        self.column = column
        self.token = token
        super().__init__(E_PARSE_ERROR, message)


class BuiltinError(CrustError):
    """Raised by builtins on bad arguments or failed lookups"""
    def __init__(self, message: str, code: str = E_RUNTIME_ERROR):
        super().__init__(code, message)


# ============================================================================
# Diagnostics
# ============================================================================

@dataclass
class Diagnostic:
    """One reported problem"""
    code: str
    message: str
    line: int = 0
    column: int = 0
    source: str = ""
    token: str = ""

    def format(self) -> str:
        text = f"[{self.code}] {self.message}"
        if self.token:
            text += f" near {self.token}"
        if self.line:
            text += f" (line {self.line}, column {self.column})"
        if self.source:
            text = f"{self.source}: {text}"
        return text


class Diagnostics:
    """Ordered collector of diagnostics, optionally echoed to stderr"""

    def __init__(self, echo: bool = True):
        self.echo = echo
        self.records: List[Diagnostic] = []

    def report(self, code: str, message: str, line: int = 0, column: int = 0,
               source: str = "") -> Diagnostic:
        diagnostic = Diagnostic(code, message, line, column, source)
        self.records.append(diagnostic)
        if self.echo:
            print(diagnostic.format(), file=sys.stderr)
        return diagnostic

    def report_block(self, diagnostics: List[Diagnostic], source: str = ""):
        """Report a parse's diagnostics together under one heading"""
        if not diagnostics:
            return
        self.records.extend(diagnostics)
        if not self.echo:
            return
        if len(diagnostics) == 1:
            header = "There was a parsing error:"
        else:
            header = f"There were {len(diagnostics)} parsing errors:"
        if source:
            header = f"{source}: {header}"
        print(header, file=sys.stderr)
        for diagnostic in diagnostics:
            print(f"  {diagnostic.format()}", file=sys.stderr)

    def messages(self, code: Optional[str] = None) -> List[str]:
        return [d.message for d in self.records if code is None or d.code == code]

    def clear(self):
        self.records.clear()

    def __len__(self) -> int:
        return len(self.records)

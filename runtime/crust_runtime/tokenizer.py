"""
Crust Runtime - Tokenizer

Turns sprite script source into a flat list of positioned tokens.

Lexing is best effort and never raises:
- whitespace is skipped, newlines are kept as statement separators
- `#` and `//` comments run to end of line, `/* ... */` may span lines;
  every comment collapses to a single NEWLINE token
- operators are matched two characters first, then one
- characters that start nothing are dropped silently

The token list always ends with an EOF token.
"""

from dataclasses import dataclass
from typing import Any, List


# ============================================================================
# Token Types
# ============================================================================

@dataclass
class Token:
    """Token from Crust source"""
    kind: str
    value: Any
    line: int
    column: int

    def describe(self) -> str:
        if self.kind in (TokenType.NEWLINE, TokenType.EOF):
            return self.kind.lower()
        return f"{self.kind.lower()} '{self.value}'"


class TokenType:
    """Token kind constants"""
    NEWLINE = "NEWLINE"
    EOF = "EOF"
    IDENTIFIER = "IDENTIFIER"
    VALUE = "VALUE"
    OPERATOR = "OPERATOR"
    KEYWORD = "KEYWORD"
    SYMBOL = "SYMBOL"


KEYWORDS = {
    'nop', 'match', 'if', 'else', 'while', 'for', 'in', 'global', 'assert',
    'setup', 'update', 'clone_setup', 'clone_update', 'when', 'fn', 'import',
}

LITERALS = {'null': None, 'true': True, 'false': False}

TWO_CHAR_OPERATORS = {
    '+=', '-=', '*=', '/=', '==', '!=', '<=', '>=', '&&', '||',
    '..', '**', '<<', '>>', '++', '--',
}

ONE_CHAR_OPERATORS = set('=+-*/%^&|<>!')

SYMBOLS = set('()[]{},:.')

RADIX_PREFIXES = {'x': 16, 'b': 2, 'o': 8}

# Tokens after which a '.' means member access rather than a number
_OPERAND_ENDINGS = {')', ']', '}'}


# ============================================================================
# Tokenizer
# ============================================================================

class Tokenizer:
    """Tokenize Crust source code"""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Token] = []

    def tokenize(self) -> List[Token]:
        """Tokenize entire source"""
        while self.pos < len(self.source):
            ch = self.source[self.pos]
            start_line, start_column = self.line, self.column

            if ch in ' \t\r':
                self._advance()
            elif ch == '\n':
                self._advance()
                self._add_token(TokenType.NEWLINE, '\n', start_line, start_column)
            elif ch == '#' or self._starts_with('//'):
                self._skip_line_comment()
                self._add_token(TokenType.NEWLINE, '\n', start_line, start_column)
            elif self._starts_with('/*'):
                self._skip_block_comment()
                self._add_token(TokenType.NEWLINE, '\n', start_line, start_column)
            elif ch == '"':
                self._read_string(start_line, start_column)
            elif ch.isdigit() or (ch == '.' and self._leading_dot_number()):
                self._read_number(start_line, start_column)
            elif ch.isalpha() or ch == '_':
                self._read_identifier(start_line, start_column)
            elif self.source[self.pos:self.pos + 2] in TWO_CHAR_OPERATORS:
                op = self.source[self.pos:self.pos + 2]
                self._advance(2)
                self._add_token(TokenType.OPERATOR, op, start_line, start_column)
            elif ch in ONE_CHAR_OPERATORS:
                self._advance()
                self._add_token(TokenType.OPERATOR, ch, start_line, start_column)
            elif ch in SYMBOLS:
                self._advance()
                self._add_token(TokenType.SYMBOL, ch, start_line, start_column)
            else:
                self._advance()

        self._add_token(TokenType.EOF, None, self.line, self.column)
        return self.tokens

    def _advance(self, count: int = 1):
        for _ in range(count):
            if self.pos >= len(self.source):
                return
            if self.source[self.pos] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def _starts_with(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def _leading_dot_number(self) -> bool:
        """`.5` is a number unless the dot follows an operand (`list.0`)"""
        if self.pos + 1 >= len(self.source) or not self.source[self.pos + 1].isdigit():
            return False
        if not self.tokens:
            return True
        previous = self.tokens[-1]
        if previous.kind in (TokenType.IDENTIFIER, TokenType.VALUE):
            return False
        return not (previous.kind == TokenType.SYMBOL and previous.value in _OPERAND_ENDINGS)

    def _skip_line_comment(self):
        while self.pos < len(self.source) and self.source[self.pos] != '\n':
            self._advance()
        # The newline itself becomes the comment's token
        self._advance()

    def _skip_block_comment(self):
        self._advance(2)
        while self.pos < len(self.source) and not self._starts_with('*/'):
            self._advance()
        self._advance(2)

    def _read_number(self, line: int, column: int):
        """Read decimal or radix-prefixed numeric literal"""
        source = self.source
        if (source[self.pos] == '0' and self.pos + 1 < len(source)
                and source[self.pos + 1].lower() in RADIX_PREFIXES):
            base = RADIX_PREFIXES[source[self.pos + 1].lower()]
            self._advance(2)
            start = self.pos
            while self.pos < len(source) and (source[self.pos].isalnum() or source[self.pos] == '_'):
                self._advance()
            digits = source[start:self.pos].replace('_', '')
            try:
                value = float(int(digits, base))
            except ValueError:
                value = 0.0
            self._add_token(TokenType.VALUE, value, line, column)
            return

        start = self.pos
        # After a member dot (`a.0.1`) the number is a plain index
        has_dot = bool(self.tokens) and self.tokens[-1].kind == TokenType.SYMBOL and self.tokens[-1].value == '.'
        while self.pos < len(source):
            ch = source[self.pos]
            if ch.isdigit():
                self._advance()
            elif ch == '.' and not has_dot and not self._starts_with('..'):
                has_dot = True
                self._advance()
            else:
                break

        text = source[start:self.pos]
        if text.endswith('.'):
            text += '0'
        self._add_token(TokenType.VALUE, float(text), line, column)

    def _read_string(self, line: int, column: int):
        """Read string literal; an unterminated string runs to end of input"""
        self._advance()  # Skip opening quote
        chars = []
        escapes = {'n': '\n', 't': '\t', '"': '"', '\\': '\\'}

        while self.pos < len(self.source) and self.source[self.pos] != '"':
            ch = self.source[self.pos]
            if ch == '\\' and self.pos + 1 < len(self.source):
                nxt = self.source[self.pos + 1]
                chars.append(escapes.get(nxt, '\\' + nxt))
                self._advance(2)
            else:
                chars.append(ch)
                self._advance()

        self._advance()  # Skip closing quote
        self._add_token(TokenType.VALUE, ''.join(chars), line, column)

    def _read_identifier(self, line: int, column: int):
        """Read identifier, keyword or literal word"""
        start = self.pos
        while self.pos < len(self.source) and (self.source[self.pos].isalnum() or self.source[self.pos] == '_'):
            self._advance()

        text = self.source[start:self.pos]
        if text in LITERALS:
            self._add_token(TokenType.VALUE, LITERALS[text], line, column)
        elif text in KEYWORDS:
            self._add_token(TokenType.KEYWORD, text, line, column)
        else:
            self._add_token(TokenType.IDENTIFIER, text, line, column)

    def _add_token(self, kind: str, value: Any, line: int, column: int):
        """Add token to list"""
        self.tokens.append(Token(kind=kind, value=value, line=line, column=column))


def tokenize(source: str) -> List[Token]:
    """Tokenize source (convenience function)"""
    return Tokenizer(source).tokenize()

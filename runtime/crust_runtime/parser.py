"""
Crust Runtime - Parser

Recursive-descent statement parser with precedence climbing for
expressions. The parser never aborts: a malformed statement is recorded as
a diagnostic, replaced by a Nop, and parsing resumes one token further on.

Precedence (higher binds tighter):
    9  postfix ++ --
    8  ^ **
    7  & | << >>
    6  * / %
    5  + - ..
    4  == != < > <= >= in
    3  ! (prefix)
    2  && ||
"""

from typing import List, Optional, Tuple

from .errors import Diagnostic, ParseError, E_PARSE_ERROR
from .nodes import (
    Expression, Literal, Identifier, ListLiteral, ObjectLiteral, MemberAccess,
    BinaryOp, UnaryOp, Call, ClosureLiteral, Increment,
    Statement, Nop, Assignment, Assert, Match, If, While, For,
    Setup, Update, CloneSetup, CloneUpdate, WhenBroadcast, WhenCondition,
    Import, CallStatement, FunctionDefinition,
)
from .tokenizer import Token, TokenType, Tokenizer


BINARY_PRECEDENCE = {
    '^': 8, '**': 8,
    '&': 7, '|': 7, '<<': 7, '>>': 7,
    '*': 6, '/': 6, '%': 6,
    '+': 5, '-': 5, '..': 5,
    '==': 4, '!=': 4, '<': 4, '>': 4, '<=': 4, '>=': 4, 'in': 4,
    '&&': 2, '||': 2,
}

NOT_PRECEDENCE = 3

COMPOUND_ASSIGNMENT = {'+=': '+', '-=': '-', '*=': '*', '/=': '/'}

SECTIONS = {
    'setup': Setup,
    'update': Update,
    'clone_setup': CloneSetup,
    'clone_update': CloneUpdate,
}


class Parser:
    """Parse Crust tokens into a statement list"""

    def __init__(self, tokens: List[Token], source_name: str = ""):
        self.tokens = tokens
        self.source_name = source_name
        self.pos = 0
        self.diagnostics: List[Diagnostic] = []

    def parse(self) -> List[Statement]:
        """Parse all statements; failures become Nop plus a diagnostic"""
        statements = []
        while True:
            self._skip_newlines()
            if self._is_at_end():
                break
            statements.append(self._parse_statement_recovering())
        return statements

    def parse_expression(self) -> Expression:
        """Parse a single expression (used by tests and the REPL-style helpers)"""
        self._skip_newlines()
        return self._parse_expression()

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _parse_statement_recovering(self) -> Statement:
        try:
            return self._parse_statement()
        except ParseError as error:
            self.diagnostics.append(Diagnostic(
                E_PARSE_ERROR, error.message, error.line, error.column, self.source_name, error.token,
            ))
            self._advance()
            return Nop()

    def _parse_statement(self) -> Statement:
        token = self._peek()

        if token.kind == TokenType.KEYWORD:
            return self._parse_keyword_statement(token)
        if token.kind == TokenType.IDENTIFIER:
            return self._parse_identifier_statement(is_global=False)
        if token.kind == TokenType.OPERATOR and token.value in ('++', '--'):
            return CallStatement(self._parse_primary())

        raise self._error(f"Unexpected {token.describe()}")

    def _parse_keyword_statement(self, token: Token) -> Statement:
        keyword = self._advance().value

        if keyword == 'nop':
            return Nop()
        if keyword == 'assert':
            return Assert(self._parse_expression())
        if keyword == 'match':
            return self._parse_match()
        if keyword == 'if':
            return self._parse_if()
        if keyword == 'while':
            condition = self._parse_expression()
            return While(condition, self._parse_block())
        if keyword == 'for':
            name = self._expect_kind(TokenType.IDENTIFIER, "Expected loop variable after 'for'").value
            if not self._match_keyword('in'):
                raise self._error("Expected 'in' after loop variable")
            iterable = self._parse_expression()
            return For(name, iterable, self._parse_block())
        if keyword in SECTIONS:
            return SECTIONS[keyword](self._parse_block())
        if keyword == 'when':
            return self._parse_when()
        if keyword == 'fn':
            return self._parse_function_definition()
        if keyword == 'import':
            path = self._peek()
            if path.kind != TokenType.VALUE or not isinstance(path.value, str):
                raise self._error("Expected module path string after 'import'")
            self._advance()
            return Import(path.value)
        if keyword == 'global':
            if not self._check_kind(TokenType.IDENTIFIER):
                raise self._error("Expected identifier after 'global'")
            return self._parse_identifier_statement(is_global=True)

        raise ParseError(f"Unexpected keyword '{keyword}'", token.line, token.column, token.describe())

    def _parse_identifier_statement(self, is_global: bool) -> Statement:
        name_token = self._advance()
        target = self._parse_postfix(Identifier(name_token.value))
        token = self._peek()

        if token.kind == TokenType.OPERATOR and token.value == '=':
            self._advance()
            self._check_assignable(target)
            return Assignment(target, self._parse_expression(), is_global)

        if token.kind == TokenType.OPERATOR and token.value in COMPOUND_ASSIGNMENT:
            self._advance()
            self._check_assignable(target)
            rhs = self._parse_expression()
            return Assignment(target, BinaryOp(COMPOUND_ASSIGNMENT[token.value], target, rhs), is_global)

        if not is_global and isinstance(target, (Call, Increment)):
            return CallStatement(target)

        raise self._error(f"Expected assignment or call after '{name_token.value}'")

    def _check_assignable(self, target: Expression):
        if not isinstance(target, (Identifier, MemberAccess)):
            raise self._error("Invalid assignment target")

    def _parse_match(self) -> Match:
        value = self._parse_expression()
        self._expect_symbol('{', "Expected '{' after match value")
        cases = []
        self._skip_newlines()
        while not self._check_symbol('}'):
            if self._is_at_end():
                raise self._error("Unterminated match block")
            case = self._parse_expression()
            self._expect_symbol(':', "Expected ':' after match case")
            cases.append((case, self._parse_block()))
            self._skip_newlines()
        self._advance()

        default = None
        if self._match_else():
            default = self._parse_block()
        return Match(value, cases, default)

    def _parse_if(self) -> If:
        condition = self._parse_expression()
        body = self._parse_block()
        elifs: List[Tuple[Expression, List[Statement]]] = []
        else_body = None

        while self._match_else():
            if self._match_keyword('if'):
                elif_condition = self._parse_expression()
                elifs.append((elif_condition, self._parse_block()))
            else:
                else_body = self._parse_block()
                break
        return If(condition, body, elifs, else_body)

    def _parse_when(self) -> Statement:
        token = self._peek()
        following = self._peek(1)
        if (token.kind == TokenType.VALUE and isinstance(token.value, str)
                and following.kind == TokenType.SYMBOL and following.value == '{'):
            self._advance()
            return WhenBroadcast(token.value, self._parse_block())
        condition = self._parse_expression()
        return WhenCondition(condition, self._parse_block())

    def _parse_function_definition(self) -> FunctionDefinition:
        name = self._expect_kind(TokenType.IDENTIFIER, "Expected function name after 'fn'").value
        params = self._parse_params()
        returns = self._parse_return_expression()
        return FunctionDefinition(name, params, self._parse_block(), returns)

    def _parse_block(self) -> List[Statement]:
        """Parse `{ statement* }`, tolerating newlines anywhere"""
        self._skip_newlines()
        self._expect_symbol('{', "Expected '{'")
        statements = []
        while True:
            self._skip_newlines()
            if self._check_symbol('}'):
                self._advance()
                return statements
            if self._is_at_end():
                raise self._error("Unterminated block, expected '}'")
            statements.append(self._parse_statement_recovering())

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _parse_expression(self, min_precedence: int = 0) -> Expression:
        """Precedence climbing; the right side binds at precedence + 1"""
        left = self._parse_primary()
        while True:
            op = self._binary_operator()
            if op is None:
                break
            precedence = BINARY_PRECEDENCE[op]
            if precedence < min_precedence:
                break
            self._advance()
            right = self._parse_expression(precedence + 1)
            left = BinaryOp(op, left, right)
        return left

    def _binary_operator(self) -> Optional[str]:
        token = self._peek()
        if token.kind == TokenType.OPERATOR and token.value in BINARY_PRECEDENCE:
            return token.value
        if token.kind == TokenType.KEYWORD and token.value == 'in':
            return 'in'
        return None

    def _parse_primary(self) -> Expression:
        token = self._peek()

        if token.kind == TokenType.VALUE:
            self._advance()
            return self._parse_postfix(Literal(token.value))

        if token.kind == TokenType.IDENTIFIER:
            self._advance()
            return self._parse_postfix(Identifier(token.value))

        if token.kind == TokenType.OPERATOR:
            if token.value == '-':
                self._advance()
                return UnaryOp('-', self._parse_primary())
            if token.value == '!':
                self._advance()
                return UnaryOp('!', self._parse_expression(NOT_PRECEDENCE))
            if token.value in ('++', '--'):
                self._advance()
                name = self._expect_kind(TokenType.IDENTIFIER, f"Expected identifier after '{token.value}'").value
                return Increment(name, 1.0 if token.value == '++' else -1.0, prefix=True)

        if token.kind == TokenType.SYMBOL:
            if token.value == '(':
                self._advance()
                self._skip_newlines()
                expression = self._parse_expression()
                self._skip_newlines()
                self._expect_symbol(')', "Expected ')' after expression")
                return self._parse_postfix(expression)
            if token.value == '[':
                self._advance()
                elements = self._parse_sequence(']')
                return self._parse_postfix(ListLiteral(elements))
            if token.value == '{':
                self._advance()
                return self._parse_postfix(self._parse_object())

        if token.kind == TokenType.KEYWORD and token.value == 'fn':
            self._advance()
            params = self._parse_params()
            returns = self._parse_return_expression()
            return ClosureLiteral(params, self._parse_block(), returns)

        raise self._error(f"Unexpected {token.describe()} in expression")

    def _parse_postfix(self, expression: Expression) -> Expression:
        """Calls, [index] and .member chains, then a trailing ++/--"""
        while True:
            if self._check_symbol('('):
                self._advance()
                expression = Call(expression, self._parse_sequence(')'))
            elif self._check_symbol('['):
                self._advance()
                key = self._parse_expression()
                self._expect_symbol(']', "Expected ']' after index")
                expression = MemberAccess(expression, key)
            elif self._check_symbol('.'):
                self._advance()
                member = self._peek()
                if member.kind == TokenType.IDENTIFIER:
                    self._advance()
                    expression = MemberAccess(expression, Literal(member.value))
                elif member.kind == TokenType.VALUE and isinstance(member.value, float):
                    self._advance()
                    expression = MemberAccess(expression, Literal(member.value))
                else:
                    raise self._error("Expected member name or index after '.'")
            else:
                break

        token = self._peek()
        if (isinstance(expression, Identifier) and token.kind == TokenType.OPERATOR
                and token.value in ('++', '--')):
            self._advance()
            return Increment(expression.name, 1.0 if token.value == '++' else -1.0, prefix=False)
        return expression

    def _parse_sequence(self, closing: str) -> List[Expression]:
        """Comma separated expressions up to `closing`; the opener is consumed"""
        items = []
        self._skip_newlines()
        while not self._check_symbol(closing):
            items.append(self._parse_expression())
            self._skip_newlines()
            if not self._match_symbol(','):
                break
            self._skip_newlines()
        self._skip_newlines()
        self._expect_symbol(closing, f"Expected '{closing}'")
        return items

    def _parse_object(self) -> ObjectLiteral:
        fields = {}
        self._skip_newlines()
        while not self._check_symbol('}'):
            key_token = self._advance()
            if key_token.kind == TokenType.IDENTIFIER:
                key = key_token.value
            elif key_token.kind == TokenType.VALUE and isinstance(key_token.value, str):
                key = key_token.value
            else:
                raise ParseError("Expected object key", key_token.line, key_token.column,
                                 key_token.describe())

            if self._match_symbol(':'):
                self._skip_newlines()
                fields[key] = self._parse_expression()
            elif key_token.kind == TokenType.IDENTIFIER:
                fields[key] = Identifier(key)
            else:
                raise self._error("Expected ':' after object key")

            self._skip_newlines()
            if not self._match_symbol(','):
                break
            self._skip_newlines()
        self._skip_newlines()
        self._expect_symbol('}', "Expected '}' after object literal")
        return ObjectLiteral(fields)

    def _parse_params(self) -> List[str]:
        self._expect_symbol('(', "Expected '(' before parameters")
        params = []
        self._skip_newlines()
        while not self._check_symbol(')'):
            params.append(self._expect_kind(TokenType.IDENTIFIER, "Expected parameter name").value)
            self._skip_newlines()
            if not self._match_symbol(','):
                break
            self._skip_newlines()
        self._expect_symbol(')', "Expected ')' after parameters")
        return params

    def _parse_return_expression(self) -> Expression:
        # A body brace right after the parameters means "returns null"
        if self._check_symbol('{'):
            return Literal(None)
        return self._parse_expression()

    # ------------------------------------------------------------------
    # Parser utilities
    # ------------------------------------------------------------------

    def _error(self, message: str) -> ParseError:
        token = self._peek()
        return ParseError(message, token.line, token.column, token.describe())

    def _skip_newlines(self):
        while self._check_kind(TokenType.NEWLINE):
            self._advance()

    def _match_else(self) -> bool:
        """Consume `else`, looking past newlines; leave position alone otherwise"""
        saved = self.pos
        self._skip_newlines()
        if self._match_keyword('else'):
            return True
        self.pos = saved
        return False

    def _match_keyword(self, keyword: str) -> bool:
        token = self._peek()
        if token.kind == TokenType.KEYWORD and token.value == keyword:
            self._advance()
            return True
        return False

    def _check_kind(self, kind: str) -> bool:
        return self._peek().kind == kind

    def _check_symbol(self, symbol: str) -> bool:
        token = self._peek()
        return token.kind == TokenType.SYMBOL and token.value == symbol

    def _match_symbol(self, symbol: str) -> bool:
        if self._check_symbol(symbol):
            self._advance()
            return True
        return False

    def _expect_symbol(self, symbol: str, message: str) -> Token:
        if not self._check_symbol(symbol):
            raise self._error(message)
        return self._advance()

    def _expect_kind(self, kind: str, message: str) -> Token:
        if not self._check_kind(kind):
            raise self._error(message)
        return self._advance()

    def _advance(self) -> Token:
        """Consume current token and return it"""
        token = self._peek()
        if not self._is_at_end():
            self.pos += 1
        return token

    def _is_at_end(self) -> bool:
        return self._peek().kind == TokenType.EOF

    def _peek(self, offset: int = 0) -> Token:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]


# ============================================================================
# Convenience Functions
# ============================================================================

def parse(source: str, source_name: str = "") -> Tuple[List[Statement], List[Diagnostic]]:
    """Tokenize and parse source, returning statements and parse diagnostics"""
    parser = Parser(Tokenizer(source).tokenize(), source_name)
    return parser.parse(), parser.diagnostics


def parse_expression(source: str) -> Expression:
    """Parse a single expression from source"""
    return Parser(Tokenizer(source).tokenize()).parse_expression()

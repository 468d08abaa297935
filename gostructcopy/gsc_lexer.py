#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from enum import Enum, auto
from typing import List, Optional


# ==========================
# Tokens and lexer (Go subset)
# ==========================

class TokenKind(Enum):
    # Special
    EOF = auto()

    IDENT = auto()  # identifier, e.g. User, time, int
    NUMBER = auto()  # integer / float / imaginary literal, e.g. 42, 0x1F, 1.5e3
    STRING = auto()  # interpreted string literal, e.g. "hello"
    RAW_STRING = auto()  # raw string literal, e.g. `json:"name"`
    RUNE = auto()  # rune literal, e.g. 'a'

    # Keywords the parser looks at
    PACKAGE = auto()
    IMPORT = auto()
    TYPE = auto()
    STRUCT = auto()
    INTERFACE = auto()
    MAP = auto()
    CHAN = auto()
    FUNC = auto()
    VAR = auto()
    CONST = auto()
    RETURN = auto()
    BREAK = auto()
    CONTINUE = auto()
    FALLTHROUGH = auto()
    KEYWORD = auto()  # every other Go keyword

    # Punctuation
    LBRACE = auto()  # {
    RBRACE = auto()  # }
    LPAREN = auto()  # (
    RPAREN = auto()  # )
    LBRACKET = auto()  # [
    RBRACKET = auto()  # ]
    COMMA = auto()  # ,
    SEMI = auto()  # ; (explicit or inserted at end of line)
    COLON = auto()  # :
    DOT = auto()  # .
    ELLIPSIS = auto()  # ...
    STAR = auto()  # *
    EQ = auto()  # =
    ARROW = auto()  # <-
    TILDE = auto()  # ~
    PIPE = auto()  # |
    INC = auto()  # ++
    DEC = auto()  # --
    OP = auto()  # any other operator, e.g. +, &&, :=, <<=


KEYWORDS = {
    "package": TokenKind.PACKAGE,
    "import": TokenKind.IMPORT,
    "type": TokenKind.TYPE,
    "struct": TokenKind.STRUCT,
    "interface": TokenKind.INTERFACE,
    "map": TokenKind.MAP,
    "chan": TokenKind.CHAN,
    "func": TokenKind.FUNC,
    "var": TokenKind.VAR,
    "const": TokenKind.CONST,
    "return": TokenKind.RETURN,
    "break": TokenKind.BREAK,
    "continue": TokenKind.CONTINUE,
    "fallthrough": TokenKind.FALLTHROUGH,
    "case": TokenKind.KEYWORD,
    "default": TokenKind.KEYWORD,
    "defer": TokenKind.KEYWORD,
    "else": TokenKind.KEYWORD,
    "for": TokenKind.KEYWORD,
    "go": TokenKind.KEYWORD,
    "goto": TokenKind.KEYWORD,
    "if": TokenKind.KEYWORD,
    "range": TokenKind.KEYWORD,
    "select": TokenKind.KEYWORD,
    "switch": TokenKind.KEYWORD,
}

# Tokens after which a newline ends the statement (Go automatic semicolons).
SEMI_TRIGGERS = {
    TokenKind.IDENT,
    TokenKind.NUMBER,
    TokenKind.STRING,
    TokenKind.RAW_STRING,
    TokenKind.RUNE,
    TokenKind.RETURN,
    TokenKind.BREAK,
    TokenKind.CONTINUE,
    TokenKind.FALLTHROUGH,
    TokenKind.INC,
    TokenKind.DEC,
    TokenKind.RPAREN,
    TokenKind.RBRACKET,
    TokenKind.RBRACE,
}

# Longest operators first so that maximal munch works with a simple scan.
OPERATORS = [
    ("...", TokenKind.ELLIPSIS),
    ("<<=", TokenKind.OP), (">>=", TokenKind.OP), ("&^=", TokenKind.OP),
    ("<-", TokenKind.ARROW), ("++", TokenKind.INC), ("--", TokenKind.DEC),
    ("&&", TokenKind.OP), ("||", TokenKind.OP), ("<<", TokenKind.OP), (">>", TokenKind.OP),
    ("&^", TokenKind.OP), ("==", TokenKind.OP), ("!=", TokenKind.OP), ("<=", TokenKind.OP),
    (">=", TokenKind.OP), (":=", TokenKind.OP), ("+=", TokenKind.OP), ("-=", TokenKind.OP),
    ("*=", TokenKind.OP), ("/=", TokenKind.OP), ("%=", TokenKind.OP), ("&=", TokenKind.OP),
    ("|=", TokenKind.OP), ("^=", TokenKind.OP),
    ("{", TokenKind.LBRACE), ("}", TokenKind.RBRACE), ("(", TokenKind.LPAREN), (")", TokenKind.RPAREN),
    ("[", TokenKind.LBRACKET), ("]", TokenKind.RBRACKET), (",", TokenKind.COMMA), (";", TokenKind.SEMI),
    (":", TokenKind.COLON), (".", TokenKind.DOT), ("*", TokenKind.STAR), ("=", TokenKind.EQ),
    ("~", TokenKind.TILDE), ("|", TokenKind.PIPE),
    ("+", TokenKind.OP), ("-", TokenKind.OP), ("/", TokenKind.OP), ("%", TokenKind.OP),
    ("&", TokenKind.OP), ("^", TokenKind.OP), ("<", TokenKind.OP), (">", TokenKind.OP),
    ("!", TokenKind.OP),
]


@dataclass
class Token:
    kind: TokenKind
    text: str  # verbatim source text ("\n" for an inserted semicolon)
    line: int
    column: int
    offset: int = 0  # index of the first character in the source
    end: int = 0  # index just past the last character

    def __repr__(self) -> str:
        if self.kind is TokenKind.EOF:
            return "end-of-file"
        if self.kind is TokenKind.SEMI and self.text == "\n":
            return "newline"
        return f"{self.text!r}"


@dataclass
class LexerError(Exception):
    message: str
    filename: str
    line: int
    column: int


class Lexer:
    def __init__(self, source: str, filename: str = "<input>") -> None:
        self.source = source
        self.filename = filename
        self.length = len(source)
        self.index = 0
        self.line = 1
        self.column = 1
        self._last_kind: Optional[TokenKind] = None

    # --- low-level char utilities ---

    def _at_end(self) -> bool:
        return self.index >= self.length

    def _peek(self) -> str:
        if self._at_end():
            return "\0"
        return self.source[self.index]

    def _peek_next(self) -> str:
        if self.index + 1 >= self.length:
            return "\0"
        return self.source[self.index + 1]

    def _advance(self) -> str:
        c = self._peek()
        if not self._at_end():
            self.index += 1
            if c == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return c

    # --- main API ---

    def tokenize(self) -> List[Token]:
        tokens: List[Token] = []
        while True:
            tok = self._next_token()
            tokens.append(tok)
            self._last_kind = tok.kind
            if tok.kind is TokenKind.EOF:
                break
        return tokens

    def _wants_semi(self) -> bool:
        return self._last_kind in SEMI_TRIGGERS

    def _next_token(self) -> Token:
        newline = self._skip_ws_and_comments()
        start_line, start_col, start = self.line, self.column, self.index

        if newline is not None and self._wants_semi():
            line, col, offset = newline
            return Token(TokenKind.SEMI, "\n", line, col, offset, offset)

        if self._at_end():
            if self._wants_semi():
                return Token(TokenKind.SEMI, "\n", start_line, start_col, start, start)
            return Token(TokenKind.EOF, "", start_line, start_col, start, start)

        c = self._peek()

        # identifiers / keywords
        if c.isalpha() or c == "_":
            while self._peek().isalnum() or self._peek() == "_":
                self._advance()
            text = self.source[start:self.index]
            return Token(KEYWORDS.get(text, TokenKind.IDENT), text, start_line, start_col, start, self.index)

        # numbers
        if c.isdigit() or (c == "." and self._peek_next().isdigit()):
            self._read_number()
            return Token(TokenKind.NUMBER, self.source[start:self.index], start_line, start_col, start, self.index)

        # strings
        if c == '"':
            self._read_string_literal()
            return Token(TokenKind.STRING, self.source[start:self.index], start_line, start_col, start, self.index)
        if c == "`":
            self._read_raw_string_literal()
            return Token(TokenKind.RAW_STRING, self.source[start:self.index], start_line, start_col, start, self.index)
        if c == "'":
            self._read_rune_literal()
            return Token(TokenKind.RUNE, self.source[start:self.index], start_line, start_col, start, self.index)

        # punctuation / operators
        for op, kind in OPERATORS:
            if self.source.startswith(op, self.index):
                for _ in op:
                    self._advance()
                return Token(kind, op, start_line, start_col, start, self.index)

        raise LexerError(f"[LEX-0040] unexpected character {c!r} at {start_line}:{start_col}", self.filename,
                         start_line, start_col)

    def _read_number(self) -> None:
        prev = ""
        while True:
            c = self._peek()
            if c.isalnum() or c == "_":
                prev = self._advance()
            elif c == "." and self._peek_next() != ".":
                prev = self._advance()
            elif c in "+-" and prev in ("e", "E", "p", "P"):
                prev = self._advance()
            else:
                break

    def _read_string_literal(self) -> None:
        self._advance()  # opening "
        while True:
            ch = self._peek()
            if ch == "\0" or ch == "\n":
                raise LexerError("[LEX-0010] unterminated string literal", self.filename, self.line, self.column)
            if ch == "\\":
                self._advance()
                if self._peek() in ("\0", "\n"):
                    raise LexerError("[LEX-0010] unterminated string literal", self.filename, self.line,
                                     self.column)
                self._advance()
                continue
            self._advance()
            if ch == '"':
                return

    def _read_raw_string_literal(self) -> None:
        line, col = self.line, self.column
        self._advance()  # opening `
        while True:
            if self._at_end():
                raise LexerError("[LEX-0011] unterminated raw string literal", self.filename, line, col)
            if self._advance() == "`":
                return

    def _read_rune_literal(self) -> None:
        self._advance()  # opening '
        while True:
            ch = self._peek()
            if ch == "\0" or ch == "\n":
                raise LexerError("[LEX-0020] unterminated rune literal", self.filename, self.line, self.column)
            if ch == "\\":
                self._advance()
                self._advance()
                continue
            self._advance()
            if ch == "'":
                return

    def _skip_ws_and_comments(self) -> Optional[tuple[int, int, int]]:
        """
        Skip blanks and comments. Returns the position of the first newline
        crossed (a block comment spanning lines counts as one), or None.
        """
        newline: Optional[tuple[int, int, int]] = None
        while True:
            c = self._peek()
            if c == "\n":
                if newline is None:
                    newline = (self.line, self.column, self.index)
                self._advance()
                continue
            if c in (" ", "\t", "\r"):
                self._advance()
                continue
            if c == "/" and self._peek_next() == "/":
                while self._peek() not in ("\n", "\0"):
                    self._advance()
                continue
            if c == "/" and self._peek_next() == "*":
                line, col, offset = self.line, self.column, self.index
                self._advance()  # '/'
                self._advance()  # '*'
                while True:
                    if self._at_end():
                        raise LexerError("[LEX-0070] unterminated block comment", self.filename, self.line,
                                         self.column)
                    if self._peek() == "*" and self._peek_next() == "/":
                        self._advance()
                        self._advance()
                        break
                    if self._peek() == "\n" and newline is None:
                        newline = (line, col, offset)
                    self._advance()
                continue
            return newline

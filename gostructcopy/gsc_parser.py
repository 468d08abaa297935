#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from typing import List, Optional

from gsc_ast import (
    Span, TypeExpr, NamedType, StructType, PointerType, SequenceType, MapType, OpaqueType, FieldDecl, TypeDecl,
    Import, SourceFile,
)
from gsc_lexer import TokenKind, Token


# ==========================
# Parser (Go declarations subset)
# ==========================
#
# Only the parts of a Go file that describe types are modeled: the package
# clause, imports and type declarations. Functions, variables and constants
# are skipped token-wise.

OPEN_KINDS = {TokenKind.LPAREN: TokenKind.RPAREN, TokenKind.LBRACKET: TokenKind.RBRACKET,
              TokenKind.LBRACE: TokenKind.RBRACE}

# Tokens that may follow a complete field declaration.
FIELD_END_KINDS = {TokenKind.SEMI, TokenKind.RBRACE, TokenKind.STRING, TokenKind.RAW_STRING}

# Tokens that may start a type; used to tell type parameter lists from array lengths.
TYPE_START_KINDS = {
    TokenKind.IDENT, TokenKind.LBRACKET, TokenKind.INTERFACE, TokenKind.TILDE, TokenKind.FUNC,
    TokenKind.MAP, TokenKind.CHAN, TokenKind.STRUCT, TokenKind.LPAREN, TokenKind.COMMA,
}


@dataclass
class ParseError(Exception):
    message: str
    token: Optional[Token] = None
    filename: Optional[str] = None


class Parser:
    def __init__(self, tokens: List[Token], source: str, filename: Optional[str] = None) -> None:
        self.tokens = tokens
        self.source = source
        self.index = 0
        self.filename = filename
        self.import_path = ""

    # --- token utilities ---

    def _peek(self, ahead: int = 0) -> Token:
        idx = min(self.index + ahead, len(self.tokens) - 1)
        return self.tokens[idx]

    def _last(self) -> Token:
        return self.tokens[self.index - 1 if self.index > 0 else 0]

    def _at_end(self) -> bool:
        return self._peek().kind is TokenKind.EOF

    def _advance(self) -> Token:
        tok = self._peek()
        if not self._at_end():
            self.index += 1
        return tok

    def _check(self, kind: TokenKind) -> bool:
        return self._peek().kind is kind

    def _match(self, *kinds: TokenKind) -> bool:
        if self._peek().kind in kinds:
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind, msg: str) -> Token:
        if not self._check(kind):
            raise ParseError(f"{msg}, got {self._peek()} instead", self._peek(), self.filename)
        return self._advance()

    def _skip_semis(self) -> None:
        while self._match(TokenKind.SEMI):
            pass

    def _span_start(self) -> Span:
        here = self._peek()
        return Span(here.line, here.column, here.line, here.column)

    def _extend_span(self, start: Span) -> Span:
        here = self._last()
        return Span(
            start.start_line,
            start.start_column,
            here.line,
            here.column + len(here.text),
        )

    def _text_from(self, first: Token) -> str:
        """Verbatim source text from `first` up to the last consumed token."""
        return self.source[first.offset:self._last().end]

    def _skip_balanced(self, msg: str) -> None:
        """Consume an opening bracket and everything up to its matching close."""
        stack = [OPEN_KINDS[self._advance().kind]]
        while stack:
            tok = self._advance()
            if tok.kind is TokenKind.EOF:
                raise ParseError(msg, tok, self.filename)
            if tok.kind in OPEN_KINDS:
                stack.append(OPEN_KINDS[tok.kind])
            elif tok.kind is stack[-1]:
                stack.pop()

    # --- entry point ---

    def parse_file(self, filename: Optional[str] = None, import_path: str = "") -> SourceFile:
        # package <Ident> ;

        if filename is not None:
            self.filename = filename
        self.import_path = import_path

        start = self._span_start()
        self._skip_semis()
        self._expect(TokenKind.PACKAGE, "[PAR-0010] expected 'package'")
        package_name = self._expect(TokenKind.IDENT, "[PAR-0011] expected package name").text
        self._expect_decl_end("[PAR-0020] expected ';' after package clause")

        imports: List[Import] = []
        self._skip_semis()
        while self._match(TokenKind.IMPORT):
            if self._match(TokenKind.LPAREN):
                self._skip_semis()
                while not self._check(TokenKind.RPAREN):
                    imports.append(self._parse_import_spec())
                    if not self._check(TokenKind.RPAREN):
                        self._expect(TokenKind.SEMI, "[PAR-0031] expected ';' or ')' in import group")
                    self._skip_semis()
                self._expect(TokenKind.RPAREN, "[PAR-0031] expected ')' after import group")
            else:
                imports.append(self._parse_import_spec())
            self._expect_decl_end("[PAR-0020] expected ';' after import declaration")
            self._skip_semis()

        decls: List[TypeDecl] = []
        while not self._at_end():
            if self._match(TokenKind.SEMI):
                continue
            if self._check(TokenKind.TYPE):
                decls.extend(self._parse_type_decl(package_name))
            else:
                self._skip_declaration()

        return SourceFile(package_name, imports, decls, span=self._extend_span(start), filename=self.filename)

    def _expect_decl_end(self, msg: str) -> None:
        if self._at_end():
            return
        self._expect(TokenKind.SEMI, msg)

    def _parse_import_spec(self) -> Import:
        start = self._span_start()
        alias = None
        if self._check(TokenKind.IDENT) or self._check(TokenKind.DOT):
            alias = self._advance().text
        path_tok = self._peek()
        if path_tok.kind not in (TokenKind.STRING, TokenKind.RAW_STRING):
            raise ParseError(f"[PAR-0030] expected import path string, got {path_tok} instead", path_tok,
                             self.filename)
        self._advance()
        return Import(path_tok.text[1:-1], alias, span=self._extend_span(start))

    # --- top-level declarations ---

    def _skip_declaration(self) -> None:
        """Skip a func / var / const declaration (or anything else) up to its terminating ';'."""
        while not self._at_end():
            if self._peek().kind in OPEN_KINDS:
                self._skip_balanced("[PAR-0070] unbalanced brackets in declaration")
                continue
            if self._advance().kind is TokenKind.SEMI:
                return

    def _parse_type_decl(self, package_name: str) -> List[TypeDecl]:
        self._expect(TokenKind.TYPE, "[PAR-0050] expected 'type'")
        decls: List[TypeDecl] = []
        if self._match(TokenKind.LPAREN):
            self._skip_semis()
            while not self._check(TokenKind.RPAREN):
                if self._at_end():
                    raise ParseError("[PAR-0051] expected ')' after type group", self._peek(), self.filename)
                decls.append(self._parse_type_spec(package_name))
                if not self._check(TokenKind.RPAREN):
                    self._expect(TokenKind.SEMI, "[PAR-0052] expected ';' after type declaration")
                self._skip_semis()
            self._expect(TokenKind.RPAREN, "[PAR-0051] expected ')' after type group")
        else:
            decls.append(self._parse_type_spec(package_name))
        self._expect_decl_end("[PAR-0052] expected ';' after type declaration")
        return decls

    def _parse_type_spec(self, package_name: str) -> TypeDecl:
        start = self._span_start()
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0050] expected type name")

        type_params = None
        if self._check(TokenKind.LBRACKET) and self._looks_like_type_params():
            first = self._peek()
            self._skip_balanced("[PAR-0053] expected ']' after type parameters")
            type_params = self._text_from(first)

        is_alias = self._match(TokenKind.EQ)
        target = self._parse_type()
        return TypeDecl(
            name_tok.text,
            target,
            location=self.import_path,
            package_name=package_name,
            is_alias=is_alias,
            type_params=type_params,
            span=self._extend_span(start),
            filename=self.filename,
        )

    def _looks_like_type_params(self) -> bool:
        # type A [N]int  vs  type A[T any] struct{...}
        first = self._peek(1)
        second = self._peek(2)
        return first.kind is TokenKind.IDENT and second.kind in TYPE_START_KINDS

    # --- types ---

    def _parse_type(self) -> TypeExpr:
        start = self._span_start()
        first = self._peek()

        if self._check(TokenKind.IDENT):
            return self._parse_named_type()

        if self._match(TokenKind.STAR):
            inner = self._parse_type()
            return PointerType(inner, text=self._text_from(first), span=self._extend_span(start))

        if self._match(TokenKind.LBRACKET):
            length = None
            ellipsis = False
            if self._match(TokenKind.ELLIPSIS):
                ellipsis = True
            elif not self._check(TokenKind.RBRACKET):
                length_first = self._peek()
                while not self._check(TokenKind.RBRACKET):
                    if self._at_end():
                        raise ParseError("[PAR-0041] expected ']' after array length", self._peek(), self.filename)
                    if self._peek().kind in OPEN_KINDS:
                        self._skip_balanced("[PAR-0041] expected ']' after array length")
                    else:
                        self._advance()
                length = self._text_from(length_first).strip()
            self._expect(TokenKind.RBRACKET, "[PAR-0041] expected ']' after array length")
            inner = self._parse_type()
            return SequenceType(inner, length, ellipsis, text=self._text_from(first), span=self._extend_span(start))

        if self._match(TokenKind.MAP):
            self._expect(TokenKind.LBRACKET, "[PAR-0065] expected '[' after 'map'")
            key = self._parse_type()
            self._expect(TokenKind.RBRACKET, "[PAR-0041] expected ']' after map key type")
            value = self._parse_type()
            return MapType(key, value, text=self._text_from(first), span=self._extend_span(start))

        if self._check(TokenKind.STRUCT):
            return self._parse_struct_type()

        if self._check(TokenKind.INTERFACE):
            self._advance()
            if not self._check(TokenKind.LBRACE):
                raise ParseError(f"[PAR-0064] expected '{{' after 'interface', got {self._peek()} instead",
                                 self._peek(), self.filename)
            self._skip_balanced("[PAR-0064] expected '}' after interface body")
            return OpaqueType(self._text_from(first), span=self._extend_span(start))

        if self._match(TokenKind.FUNC):
            self._parse_signature()
            return OpaqueType(self._text_from(first), span=self._extend_span(start))

        if self._match(TokenKind.CHAN):
            self._match(TokenKind.ARROW)
            self._parse_type()
            return OpaqueType(self._text_from(first), span=self._extend_span(start))

        if self._match(TokenKind.ARROW):
            self._expect(TokenKind.CHAN, "[PAR-0040] expected 'chan' after '<-'")
            self._parse_type()
            return OpaqueType(self._text_from(first), span=self._extend_span(start))

        if self._match(TokenKind.LPAREN):
            self._parse_type()
            self._expect(TokenKind.RPAREN, "[PAR-0042] expected ')' after parenthesized type")
            return OpaqueType(self._text_from(first), span=self._extend_span(start))

        raise ParseError(f"[PAR-0040] expected type, got {self._peek()} instead", self._peek(), self.filename)

    def _parse_named_type(self) -> NamedType:
        start = self._span_start()
        first = self._advance()
        qualifier = None
        name = first.text
        if self._match(TokenKind.DOT):
            qualifier = name
            name = self._expect(TokenKind.IDENT, "[PAR-0050] expected type name after '.'").text
        if self._check(TokenKind.LBRACKET):
            # type arguments: pkg.Box[int]
            self._skip_balanced("[PAR-0041] expected ']' after type arguments")
        return NamedType(name, qualifier, text=self._text_from(first), span=self._extend_span(start))

    def _parse_signature(self) -> None:
        if not self._check(TokenKind.LPAREN):
            raise ParseError(f"[PAR-0042] expected '(' in function type, got {self._peek()} instead",
                             self._peek(), self.filename)
        self._skip_balanced("[PAR-0042] expected ')' after parameters")
        if self._check(TokenKind.LPAREN):
            self._skip_balanced("[PAR-0042] expected ')' after results")
        elif self._starts_type():
            self._parse_type()

    def _starts_type(self) -> bool:
        return self._peek().kind in (
            TokenKind.IDENT, TokenKind.STAR, TokenKind.LBRACKET, TokenKind.MAP, TokenKind.CHAN, TokenKind.FUNC,
            TokenKind.STRUCT, TokenKind.INTERFACE, TokenKind.ARROW,
        )

    def _parse_struct_type(self) -> StructType:
        start = self._span_start()
        first = self._expect(TokenKind.STRUCT, "[PAR-0060] expected 'struct'")
        self._expect(TokenKind.LBRACE, "[PAR-0060] expected '{' after 'struct'")
        fields: List[FieldDecl] = []
        self._skip_semis()
        while not self._check(TokenKind.RBRACE):
            fields.extend(self._parse_field_decl())
            if not self._check(TokenKind.RBRACE):
                self._expect(TokenKind.SEMI, "[PAR-0062] expected ';' or '}' after field declaration")
            self._skip_semis()
        self._expect(TokenKind.RBRACE, "[PAR-0062] expected '}' after struct body")
        return StructType(fields, text=self._text_from(first), span=self._extend_span(start))

    def _parse_field_decl(self) -> List[FieldDecl]:
        start = self._span_start()
        tok = self._peek()

        if tok.kind is TokenKind.STAR or self._is_embedded_named():
            field_type = self._parse_type()
            return [FieldDecl(None, field_type, self._parse_tag(), span=self._extend_span(start))]

        if tok.kind is not TokenKind.IDENT:
            raise ParseError(f"[PAR-0061] expected field name, got {tok} instead", tok, self.filename)

        names = [self._advance()]
        while self._match(TokenKind.COMMA):
            names.append(self._expect(TokenKind.IDENT, "[PAR-0061] expected field name after ','"))
        field_type = self._parse_type()
        tag = self._parse_tag()
        span = self._extend_span(start)
        return [FieldDecl(n.text, field_type, tag, span=span) for n in names]

    def _is_embedded_named(self) -> bool:
        # T  |  pkg.T  |  T `tag`  |  Box[int]
        if not self._check(TokenKind.IDENT):
            return False
        nxt = self._peek(1).kind
        if nxt is TokenKind.LBRACKET:
            return self._peek(self._closing_offset(1) + 1).kind in FIELD_END_KINDS
        return nxt is TokenKind.DOT or nxt in FIELD_END_KINDS

    def _closing_offset(self, ahead: int) -> int:
        """Offset of the token closing the bracket at `ahead`, without consuming anything."""
        stack = [OPEN_KINDS[self._peek(ahead).kind]]
        while stack:
            ahead += 1
            tok = self._peek(ahead)
            if tok.kind is TokenKind.EOF:
                return ahead
            if tok.kind in OPEN_KINDS:
                stack.append(OPEN_KINDS[tok.kind])
            elif tok.kind is stack[-1]:
                stack.pop()
        return ahead

    def _parse_tag(self) -> Optional[str]:
        if self._check(TokenKind.STRING) or self._check(TokenKind.RAW_STRING):
            return self._advance().text
        return None

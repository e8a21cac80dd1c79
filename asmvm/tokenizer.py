from __future__ import annotations

from typing import List

from asmvm.model import Token, TokenKind


COMMENT = ";"
SEPARATOR = ","
QUOTE = "'"


def _read_string(line: str, start: int) -> str:
    end = line.find(QUOTE, start)
    if end == -1:
        return line[start:]
    return line[start:end]


def _read_atom(line: str, start: int) -> str:
    i = start
    while i < len(line):
        ch = line[i]
        if ch.isspace() or ch in (SEPARATOR, COMMENT):
            break
        i += 1
    return line[start:i]


def _classify_atom(atom: str, line_no: int) -> Token:
    if atom[0] == "-" or atom[0].isdigit():
        return Token(TokenKind.NUMBER_LITERAL, atom, line_no)
    if atom.endswith(":"):
        return Token(TokenKind.LABEL, atom[:-1], line_no)
    return Token(TokenKind.IDENTIFIER, atom, line_no)


def tokenize_line(line: str, line_no: int = 0) -> List[Token]:
    """Tokenize one source line, always ending with an END_OF_LINE token."""
    tokens: List[Token] = []
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == COMMENT:
            break
        if ch == SEPARATOR or ch.isspace():
            i += 1
            continue
        if ch == QUOTE:
            literal = _read_string(line, i + 1)
            tokens.append(Token(TokenKind.STRING_LITERAL, literal, line_no))
            # skip the opening quote, the body and the closing quote
            i += len(literal) + 2
            continue
        atom = _read_atom(line, i)
        tokens.append(_classify_atom(atom, line_no))
        i += len(atom)
    tokens.append(Token(TokenKind.END_OF_LINE, "", line_no))
    return tokens


def tokenize(text: str) -> List[Token]:
    tokens: List[Token] = []
    for idx, line in enumerate(text.split("\n"), start=1):
        tokens.extend(tokenize_line(line, idx))
    return tokens

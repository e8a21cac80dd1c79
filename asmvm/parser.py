from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence

from asmvm.cpu import INT32_MAX, INT32_MIN
from asmvm.model import Instruction, Opcode, Program, Token, TokenKind
from asmvm.tokenizer import tokenize


INT_LITERAL_RE = re.compile(r"-?[0-9]+")

ARGUMENT_KINDS = {TokenKind.STRING_LITERAL, TokenKind.NUMBER_LITERAL}


def parse_int_literal(text: str) -> Optional[int]:
    """Parse a decimal integer literal, returning None when it is malformed.

    Only an optional leading ``-`` followed by ASCII digits is accepted, so
    things like ``12abc``, ``--3`` or ``-`` yield None, as does a value that
    does not fit a signed 32-bit register. What a failed parse means is up
    to the caller.
    """
    if not INT_LITERAL_RE.fullmatch(text):
        return None
    value = int(text, 10)
    if value < INT32_MIN or value > INT32_MAX:
        return None
    return value


class _PendingInstruction:
    def __init__(self) -> None:
        self.mnemonic: Optional[str] = None
        self.arguments: List[Token] = []
        self.line_no = 0

    def build(self, mnemonic: str, text: str) -> Instruction:
        return Instruction(
            line_no=self.line_no,
            text=text,
            mnemonic=mnemonic,
            opcode=Opcode.from_mnemonic(mnemonic),
            arguments=list(self.arguments),
        )


def _line_text(lines: Sequence[str], line_no: int) -> str:
    if 1 <= line_no <= len(lines):
        return lines[line_no - 1].rstrip("\r")
    return ""


def parse_tokens(tokens: Iterable[Token], lines: Sequence[str] = ()) -> Program:
    """Group a token stream into a Program in a single pass.

    ``lines`` is only used to attach the raw source text to each
    instruction for diagnostics.
    """
    instructions: List[Instruction] = []
    labels: Dict[str, int] = {}
    pending = _PendingInstruction()
    position = 0

    for token in tokens:
        if token.kind is TokenKind.END_OF_LINE:
            if pending.mnemonic is not None:
                instructions.append(pending.build(pending.mnemonic, _line_text(lines, pending.line_no)))
            pending = _PendingInstruction()
            position = 0
            continue
        if token.kind is TokenKind.LABEL:
            labels[token.text] = len(instructions) - 1
        elif token.kind is TokenKind.IDENTIFIER:
            if position == 0:
                pending.mnemonic = token.text
                pending.line_no = token.line_no
            else:
                pending.arguments.append(token)
        elif token.kind in ARGUMENT_KINDS:
            pending.arguments.append(token)
        position += 1

    return Program(instructions=instructions, labels=labels)


def parse_program(text: str) -> Program:
    return parse_tokens(tokenize(text), text.split("\n"))

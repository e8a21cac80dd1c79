from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    STRING_LITERAL = "string"
    NUMBER_LITERAL = "number"
    LABEL = "label"
    END_OF_LINE = "eol"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    text: str
    line_no: int = 0


class Opcode(Enum):
    MOV = "mov"
    INC = "inc"
    DEC = "dec"
    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    JMP = "jmp"
    CMP = "cmp"
    JE = "je"
    JNE = "jne"
    JG = "jg"
    JGE = "jge"
    JL = "jl"
    JLE = "jle"
    CALL = "call"
    RET = "ret"
    END = "end"
    MSG = "msg"

    @classmethod
    def from_mnemonic(cls, mnemonic: str) -> Optional[Opcode]:
        try:
            return cls(mnemonic)
        except ValueError:
            return None


@dataclass(frozen=True)
class Instruction:
    line_no: int
    text: str
    mnemonic: str
    opcode: Optional[Opcode]
    arguments: List[Token] = field(default_factory=list)


@dataclass
class Program:
    instructions: List[Instruction]
    # label -> index of the last instruction before the label (-1 if none)
    labels: Dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.instructions)

    def get_label(self, name: str) -> Optional[int]:
        return self.labels.get(name)

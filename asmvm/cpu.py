from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
from typing import Dict, List, Optional


INT32_MIN = -0x80000000
INT32_MAX = 0x7FFFFFFF


def clamp_i32(value: int) -> int:
    """Wrap to a signed 32-bit value, as register arithmetic overflows."""
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value > INT32_MAX else value


class CmpFlag(IntFlag):
    NONE = 0
    EQUALS = 1
    GREATER = 2
    LESS = 4


@dataclass
class VmState:
    registers: Dict[str, int] = field(default_factory=dict)
    pc: int = 0
    flags: CmpFlag = CmpFlag.NONE
    call_stack: List[int] = field(default_factory=list)
    output: List[str] = field(default_factory=list)

    def reset(self) -> None:
        self.registers = {}
        self.pc = 0
        self.flags = CmpFlag.NONE
        self.call_stack = []
        self.output = []

    def get_reg(self, name: str) -> int:
        return self.registers.get(name, 0)

    def lookup_reg(self, name: str) -> Optional[int]:
        """Like get_reg, but None for a register that was never written."""
        return self.registers.get(name)

    def set_reg(self, name: str, value: int) -> None:
        self.registers[name] = value

    def has_flag(self, flag: CmpFlag) -> bool:
        return bool(self.flags & flag)

    def set_flag(self, flag: CmpFlag) -> None:
        self.flags |= flag

    def clear_flags(self) -> None:
        self.flags = CmpFlag.NONE

    def push(self, value: int) -> None:
        self.call_stack.append(value)

    def pop(self) -> Optional[int]:
        if not self.call_stack:
            return None
        return self.call_stack.pop()

    def emit(self, text: str) -> None:
        self.output.append(text)

    def rendered_output(self) -> str:
        return "".join(self.output)

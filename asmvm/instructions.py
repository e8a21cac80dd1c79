from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from asmvm.cpu import CmpFlag, VmState, clamp_i32
from asmvm.model import Instruction, Opcode, Program, Token, TokenKind
from asmvm.parser import parse_int_literal


@dataclass
class ExecResult:
    jump_to: int | None = None
    halt: bool = False
    output: str | None = None


Executor = Callable[[VmState, Instruction, Program], ExecResult]


class EmulationError(Exception):
    def __init__(self, message: str, line_no: int, text: str) -> None:
        super().__init__(message)
        self.message = message
        self.line_no = line_no
        self.text = text


INSTRUCTION_IMPLS: Dict[Opcode, Executor] = {}


def register_instruction_impl(opcode: Opcode, executor: Executor) -> None:
    INSTRUCTION_IMPLS[opcode] = executor


def get_instruction_executor(mnemonic: str) -> Executor | None:
    opcode = Opcode.from_mnemonic(mnemonic)
    if opcode is None:
        return None
    return INSTRUCTION_IMPLS.get(opcode)


def _expect_operands(instr: Instruction, count: int) -> None:
    if len(instr.arguments) < count:
        raise EmulationError(
            f"Expected {count} operands for {instr.mnemonic}",
            instr.line_no,
            instr.text,
        )


def _value_of(token: Token, state: VmState) -> Optional[int]:
    """Operand value for data movement and arithmetic; unset registers read as 0."""
    if token.kind is TokenKind.IDENTIFIER:
        return state.get_reg(token.text)
    if token.kind is TokenKind.NUMBER_LITERAL:
        return parse_int_literal(token.text)
    return None


def _compared_value(token: Token, state: VmState) -> Optional[int]:
    """Operand value for cmp; unset registers do not resolve."""
    if token.kind is TokenKind.IDENTIFIER:
        return state.lookup_reg(token.text)
    if token.kind is TokenKind.NUMBER_LITERAL:
        return parse_int_literal(token.text)
    return None


def _label_target(instr: Instruction, program: Program) -> Optional[int]:
    token = instr.arguments[0]
    if token.kind is not TokenKind.IDENTIFIER:
        return None
    target = program.get_label(token.text)
    if target is None:
        raise EmulationError(
            f"Unknown label: {token.text}",
            instr.line_no,
            instr.text,
        )
    return target


def _truncating_div(left: int, right: int) -> int:
    quotient = abs(left) // abs(right)
    return quotient if (left < 0) == (right < 0) else -quotient


def _unary(state: VmState, instr: Instruction, operator: Callable[[int], int]) -> ExecResult:
    _expect_operands(instr, 1)
    dest = instr.arguments[0]
    if dest.kind is TokenKind.IDENTIFIER:
        state.set_reg(dest.text, clamp_i32(operator(state.get_reg(dest.text))))
    return ExecResult()


def _binary(state: VmState, instr: Instruction, operator: Callable[[int, int], int]) -> ExecResult:
    _expect_operands(instr, 2)
    dest = instr.arguments[0]
    value = _value_of(instr.arguments[1], state)
    # malformed literal or string source: leave the register alone
    if value is None:
        return ExecResult()
    state.set_reg(dest.text, clamp_i32(operator(state.get_reg(dest.text), value)))
    return ExecResult()


def exec_mov(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr, 2)
    dest = instr.arguments[0]
    value = _value_of(instr.arguments[1], state)
    if value is not None:
        state.set_reg(dest.text, value)
    return ExecResult()


def exec_inc(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _unary(state, instr, lambda a: a + 1)


def exec_dec(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _unary(state, instr, lambda a: a - 1)


def exec_add(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _binary(state, instr, lambda a, b: a + b)


def exec_sub(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _binary(state, instr, lambda a, b: a - b)


def exec_mul(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _binary(state, instr, lambda a, b: a * b)


def exec_div(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr, 2)
    if _value_of(instr.arguments[1], state) == 0:
        raise EmulationError("Division by zero", instr.line_no, instr.text)
    return _binary(state, instr, _truncating_div)


def exec_cmp(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr, 2)
    left = _compared_value(instr.arguments[0], state)
    right = _compared_value(instr.arguments[1], state)
    if left is None or right is None:
        return ExecResult()
    # flags accumulate until a conditional jump is taken
    if left == right:
        state.set_flag(CmpFlag.EQUALS)
    if left > right:
        state.set_flag(CmpFlag.GREATER)
    if left < right:
        state.set_flag(CmpFlag.LESS)
    return ExecResult()


def exec_jmp(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr, 1)
    return ExecResult(jump_to=_label_target(instr, program))


def _exec_jcc(state: VmState, instr: Instruction, program: Program, taken: bool) -> ExecResult:
    if not taken:
        return ExecResult()
    result = exec_jmp(state, instr, program)
    state.clear_flags()
    return result


def exec_je(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _exec_jcc(state, instr, program, state.has_flag(CmpFlag.EQUALS))


def exec_jne(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _exec_jcc(state, instr, program, not state.has_flag(CmpFlag.EQUALS))


def exec_jg(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _exec_jcc(state, instr, program, state.has_flag(CmpFlag.GREATER))


def exec_jge(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _exec_jcc(state, instr, program, state.has_flag(CmpFlag.GREATER | CmpFlag.EQUALS))


def exec_jl(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _exec_jcc(state, instr, program, state.has_flag(CmpFlag.LESS))


def exec_jle(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return _exec_jcc(state, instr, program, state.has_flag(CmpFlag.LESS | CmpFlag.EQUALS))


def exec_call(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    _expect_operands(instr, 1)
    target = _label_target(instr, program)
    if target is None:
        return ExecResult()
    state.push(state.pc)
    return ExecResult(jump_to=target)


def exec_ret(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return_pc = state.pop()
    if return_pc is None:
        raise EmulationError(
            "Return with an empty call stack (RET reached without CALL)",
            instr.line_no,
            instr.text,
        )
    return ExecResult(jump_to=return_pc)


def exec_end(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    return ExecResult(halt=True)


def exec_msg(state: VmState, instr: Instruction, program: Program) -> ExecResult:
    parts: List[str] = []
    for arg in instr.arguments:
        if arg.kind is TokenKind.IDENTIFIER:
            parts.append(str(state.get_reg(arg.text)))
        elif arg.kind is TokenKind.STRING_LITERAL:
            parts.append(arg.text)
    return ExecResult(output="".join(parts))


register_instruction_impl(Opcode.MOV, exec_mov)
register_instruction_impl(Opcode.INC, exec_inc)
register_instruction_impl(Opcode.DEC, exec_dec)
register_instruction_impl(Opcode.ADD, exec_add)
register_instruction_impl(Opcode.SUB, exec_sub)
register_instruction_impl(Opcode.MUL, exec_mul)
register_instruction_impl(Opcode.DIV, exec_div)
register_instruction_impl(Opcode.JMP, exec_jmp)
register_instruction_impl(Opcode.CMP, exec_cmp)
register_instruction_impl(Opcode.JE, exec_je)
register_instruction_impl(Opcode.JNE, exec_jne)
register_instruction_impl(Opcode.JG, exec_jg)
register_instruction_impl(Opcode.JGE, exec_jge)
register_instruction_impl(Opcode.JL, exec_jl)
register_instruction_impl(Opcode.JLE, exec_jle)
register_instruction_impl(Opcode.CALL, exec_call)
register_instruction_impl(Opcode.RET, exec_ret)
register_instruction_impl(Opcode.END, exec_end)
register_instruction_impl(Opcode.MSG, exec_msg)

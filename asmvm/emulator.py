from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from asmvm.cpu import VmState
from asmvm.instructions import EmulationError, ExecResult, INSTRUCTION_IMPLS
from asmvm.model import Instruction, Opcode, Program
from asmvm.parser import parse_program


logger = logging.getLogger(__name__)


@dataclass
class StepOutcome:
    halted: bool = False
    error: Optional[EmulationError] = None
    output: Optional[str] = None


class Emulator:
    """Runs a parsed Program against a VmState one instruction at a time.

    With ``strict`` set, an instruction whose mnemonic has no opcode is a
    fatal fault instead of a no-op.
    """

    def __init__(self, state: VmState, program: Program, strict: bool = False) -> None:
        self.state = state
        self.program = program
        self.strict = strict
        self.halted = False
        self.last_instruction: Optional[Instruction] = None

    def reset(self) -> None:
        self.state.reset()
        self.halted = False
        self.last_instruction = None

    def step(self) -> StepOutcome:
        if self.halted:
            return StepOutcome(halted=True)

        if self.state.pc >= len(self.program):
            self.halted = True
            return StepOutcome(halted=True)

        instr = self.program.instructions[self.state.pc]
        self.last_instruction = instr
        if instr.opcode is None:
            if self.strict:
                error = EmulationError(
                    f"Unknown instruction: {instr.mnemonic}",
                    instr.line_no,
                    instr.text,
                )
                logger.debug("fault at line %d: %s", instr.line_no, error.message)
                return StepOutcome(error=error)
            logger.debug("ignoring unknown instruction %r at line %d", instr.mnemonic, instr.line_no)
            self.state.pc += 1
            return StepOutcome()

        try:
            result: ExecResult = INSTRUCTION_IMPLS[instr.opcode](self.state, instr, self.program)
        except EmulationError as exc:
            logger.debug("fault at line %d: %s", exc.line_no, exc.message)
            return StepOutcome(error=exc)

        if result.output is not None:
            self.state.emit(result.output)

        if result.halt:
            self.state.pc = len(self.program)
            self.halted = True
            logger.debug("halted by %s at line %d", instr.mnemonic, instr.line_no)
            return StepOutcome(halted=True, output=result.output)

        # label values point one before their target, so the increment
        # applies after jumps too
        if result.jump_to is not None:
            self.state.pc = result.jump_to
        self.state.pc += 1
        return StepOutcome(output=result.output)

    def run(self) -> Optional[str]:
        """Run to completion.

        Returns the concatenated ``msg`` output, or None when the last
        executed instruction was not ``end``. Raises EmulationError on a
        fatal fault.
        """
        while True:
            outcome = self.step()
            if outcome.error is not None:
                raise outcome.error
            if outcome.halted:
                break

        last = self.last_instruction
        if last is not None and last.opcode is not Opcode.END:
            logger.debug("program finished without end (last: %s at line %d)", last.mnemonic, last.line_no)
            return None
        return self.state.rendered_output()


def interpret(source: str, strict: bool = False) -> Optional[str]:
    program = parse_program(source)
    return Emulator(VmState(), program, strict=strict).run()

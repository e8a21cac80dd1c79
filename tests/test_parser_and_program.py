import pytest

from asmvm.model import Opcode, Token, TokenKind
from asmvm.parser import parse_int_literal, parse_program, parse_tokens
from asmvm.tokenizer import tokenize


def test_instructions_keep_mnemonic_opcode_and_arguments():
    program = parse_program("mov a, 5\nmsg 'a=', a\nend\n")

    assert [instr.mnemonic for instr in program.instructions] == ["mov", "msg", "end"]
    assert [instr.opcode for instr in program.instructions] == [Opcode.MOV, Opcode.MSG, Opcode.END]
    mov_instr = program.instructions[0]
    assert mov_instr.line_no == 1
    assert mov_instr.text == "mov a, 5"
    assert mov_instr.arguments == [
        Token(TokenKind.IDENTIFIER, "a", 1),
        Token(TokenKind.NUMBER_LITERAL, "5", 1),
    ]
    assert program.instructions[1].arguments[0].kind is TokenKind.STRING_LITERAL


def test_blank_comment_and_label_lines_add_no_instructions():
    program = parse_program(
        """
; header comment

start:
    mov a, 1

    end
"""
    )
    assert len(program) == 2
    assert program.instructions[1].line_no == 7


def test_label_stores_index_of_previous_instruction():
    program = parse_program(
        """start:
mov a, 1
middle:
other:
inc a
end
tail:"""
    )
    assert program.labels == {"start": -1, "middle": 0, "other": 0, "tail": 2}
    assert program.get_label("middle") == 0
    assert program.get_label("missing") is None


def test_redeclared_label_keeps_last_position():
    program = parse_program("a:\ninc x\na:\nend")
    assert program.labels["a"] == 0


def test_unknown_mnemonic_is_parsed_without_opcode():
    program = parse_program("nop\nMOV a, 1\n")
    assert [instr.opcode for instr in program.instructions] == [None, None]
    assert program.instructions[0].mnemonic == "nop"


def test_line_starting_with_literal_has_no_mnemonic():
    program = parse_program("5 mov a\n'text'\nend")
    assert [instr.mnemonic for instr in program.instructions] == ["end"]


def test_label_before_instruction_on_same_line_takes_first_slot():
    # the label occupies position 0, so "mov" is an argument and the line is dropped
    program = parse_program("here: mov a, 1\nend")
    assert [instr.mnemonic for instr in program.instructions] == ["end"]
    assert program.labels["here"] == -1


def test_parse_tokens_without_source_lines():
    program = parse_tokens(tokenize("inc a\nend"))
    assert [instr.text for instr in program.instructions] == ["", ""]
    assert [instr.line_no for instr in program.instructions] == [1, 2]


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("0", 0),
        ("42", 42),
        ("-7", -7),
        ("007", 7),
        ("2147483647", 2147483647),
        ("-2147483648", -2147483648),
        ("2147483648", None),
        ("-2147483649", None),
        ("12345678901234567890", None),
        ("-", None),
        ("12x", None),
        ("--3", None),
        ("1_000", None),
        ("", None),
    ],
)
def test_parse_int_literal(text, expected):
    assert parse_int_literal(text) == expected

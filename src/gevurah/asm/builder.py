''' Program builder, receives grammar actions in source order '''

import re
import logging as lg
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List

import gevurah.common.ops as ops
from gevurah.common.conf import MAX_NUMBER_DIGITS, REGISTER_PATTERN
from gevurah.common.errors import ParseError
from gevurah.asm.program import Kind, Operand, Instruction, Program

Tokens = List[Any]

VALUE_KINDS = frozenset([Kind.REGISTER, Kind.NUMBER, Kind.TEXT, Kind.REF, Kind.NAME])

ACCEPTED: Dict[ops.Arg, FrozenSet[Kind]] = {
    ops.Arg.REG: frozenset([Kind.REGISTER]),
    ops.Arg.VALUE: VALUE_KINDS,
    ops.Arg.ADDR: frozenset([Kind.REGISTER, Kind.NUMBER]),
    ops.Arg.LABEL: frozenset([Kind.NAME]),
    ops.Arg.FLAG: frozenset([Kind.NAME]),
    ops.Arg.NAME: frozenset([Kind.NAME, Kind.TEXT]),
    ops.Arg.SOURCE: VALUE_KINDS | {Kind.PATH},
    ops.Arg.LOCATION: frozenset([Kind.REGISTER, Kind.NUMBER, Kind.PATH]),
}


class Builder:
    instructions: List[Instruction]
    labels: Dict[str, int]
    line: int
    source: str

    def __init__(self):
        self.instructions = list()
        self.labels = dict()
        self.line = 0
        self.source = ''

    def fail(self, kind: str, message: str):
        raise ParseError(kind, message, self.line)

    # Handlers
    def on_label(self, tokens: Tokens):
        name = str(tokens[0])

        if name in self.labels:
            self.fail(ParseError.DUPLICATE_LABEL, f'Label {name} is already defined')

        # Jump operands with this shape lex as registers
        if re.fullmatch(REGISTER_PATTERN, name):
            self.fail(ParseError.MALFORMED_OPERAND, f'Label {name} reads as a register')

        self.labels[name] = len(self.instructions)
        lg.debug(f'Label {name} @ {self.labels[name]}')

    def on_instruction(self, tokens: Tokens):
        mnemonic = str(tokens[0])
        operands: List[Operand] = list(tokens[1:])
        op = ops.lookup(mnemonic)

        if op is None:
            self.fail(ParseError.UNKNOWN_OPCODE, f'Unknown opcode {mnemonic}')
            return

        if len(operands) != op.arity:
            self.fail(
                ParseError.MALFORMED_OPERAND,
                f'{op.mnemonic} expects {op.arity} operand(s), got {len(operands)}'
            )

        for index, (arg, operand) in enumerate(zip(op.args, operands)):
            if operand.kind == Kind.NUMBER and len(operand.text.lstrip('+-')) > MAX_NUMBER_DIGITS:
                self.fail(ParseError.MALFORMED_OPERAND, f'Number literal longer than {MAX_NUMBER_DIGITS} digits')

            if operand.kind not in ACCEPTED[arg]:
                self.fail(
                    ParseError.MALFORMED_OPERAND,
                    f'{op.mnemonic} operand {index + 1} must be a {arg.value}, got {operand.kind.value} {operand}'
                )

            if arg == ops.Arg.ADDR and operand.kind == Kind.NUMBER and int(operand.text) < 0:
                self.fail(ParseError.MALFORMED_OPERAND, f'Negative address {operand}')

        instruction = Instruction(op, tuple(operands), self.line, self.source)
        lg.debug(f'{len(self.instructions):04d} {instruction}')
        self.instructions.append(instruction)

    def program(self) -> Program:
        return Program(tuple(self.instructions), MappingProxyType(dict(self.labels)))

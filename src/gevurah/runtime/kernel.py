''' Reference computation kernel for SYSCALL '''

import logging as lg
from fractions import Fraction
from typing import Any

import pyparsing as pp

from gevurah.common.errors import KernelError
from gevurah.common.values import Value, Number, Text

MAX_EXPRESSION_LENGTH = 1024

number = pp.Regex(r'[0-9]+(\.[0-9]+)?|\.[0-9]+').set_parse_action(lambda r: Fraction(r[0]))

expression = pp.infix_notation(number, [
    (pp.one_of('+ -'), 1, pp.OpAssoc.RIGHT),
    (pp.one_of('* / %'), 2, pp.OpAssoc.LEFT),
    (pp.one_of('+ -'), 2, pp.OpAssoc.LEFT),
])


def apply(op: str, a: Fraction, b: Fraction) -> Fraction:
    match op:
        case '+':
            return a + b
        case '-':
            return a - b
        case '*':
            return a * b
        case '/':
            if b == 0:
                raise KernelError('Division by zero')
            return a / b
        case '%':
            if b == 0:
                raise KernelError('Modulo by zero')
            return a % b

    raise KernelError(f'Unknown operator {op}')


def reduce(node: Any) -> Fraction:
    if isinstance(node, Fraction):
        return node

    items = list(node)

    if len(items) == 1:
        return reduce(items[0])

    if len(items) == 2:
        # Unary sign
        (sign, operand) = items
        value = reduce(operand)
        return -value if sign == '-' else value

    result = reduce(items[0])

    for i in range(1, len(items), 2):
        result = apply(items[i], result, reduce(items[i + 1]))

    return result


def as_value(result: Fraction) -> Value:
    if result.denominator == 1:
        return Number(result.numerator)

    # Non-integral results travel as opaque text
    return Text(repr(float(result)))


class ArithmeticKernel:
    ''' Integer and decimal arithmetic: + - * / % and parentheses '''
    NAMES = ('EVAL', 'UNIMATICS_EVAL')

    def evaluate(self, opcode_name: str, expression_text: str) -> Value:
        if opcode_name.upper() not in self.NAMES:
            raise KernelError(f'Unknown kernel operation {opcode_name}')

        if len(expression_text) > MAX_EXPRESSION_LENGTH:
            raise KernelError(f'Expression longer than {MAX_EXPRESSION_LENGTH} characters')

        try:
            tree = expression.parse_string(expression_text, parse_all=True)
            result = reduce(tree)
            value = as_value(result)
        except pp.ParseException as e:
            raise KernelError(f'Malformed expression {expression_text!r}: {e.msg}') from e
        except RecursionError as e:
            raise KernelError(f'Expression nested too deeply: {expression_text!r}') from e
        except OverflowError as e:
            raise KernelError(f'Result of {expression_text!r} is out of range') from e

        lg.debug(f'{opcode_name} {expression_text!r} = {result}')
        return value

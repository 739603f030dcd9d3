''' Script line grammar '''

import pyparsing as pp

from gevurah.common.conf import REGISTER_PATTERN
from gevurah.asm.builder import Builder
from gevurah.asm.program import Kind, Operand


def g_operand(expr: pp.ParserElement, kind: Kind):
    return expr.copy().set_parse_action(lambda r: Operand(kind, str(r[0])))


def unquote(text: str) -> str:
    text = text.strip()

    if len(text) >= 2 and text[0] == text[-1] and text[0] in '"\'':
        return text[1:-1]

    return text


id = pp.Regex(r'[A-Za-z_]\w*')
comment = pp.python_style_comment

label = pp.Regex(r'[A-Za-z_]\w*:').set_parse_action(lambda r: (Builder.on_label, [r[0][:-1]]))

# Operands
path = pp.Regex(r'PATH\((?P<path>[^)]*)\)').set_parse_action(
    lambda r: Operand(Kind.PATH, unquote(r['path']))
)

dq_text = g_operand(pp.QuotedString('"', esc_char='\\'), Kind.TEXT)
sq_text = g_operand(pp.QuotedString("'", esc_char='\\'), Kind.TEXT)
ref = pp.Regex(r'&[A-Za-z_]\w*').set_parse_action(lambda r: Operand(Kind.REF, r[0][1:]))
number = g_operand(pp.Regex(r'[+-]?[0-9]+\b'), Kind.NUMBER)

register = g_operand(pp.Regex(REGISTER_PATTERN + r"\b"), Kind.REGISTER)
name = g_operand(id, Kind.NAME)

operand = path | dq_text | sq_text | ref | number | register | name
operands = pp.Optional(operand + pp.ZeroOrMore(pp.Optional(pp.Suppress(',')) + operand))

instruction = (id + operands).set_parse_action(lambda r: (Builder.on_instruction, list(r)))

statement = pp.Optional(label) + pp.Optional(instruction) + pp.StringEnd()
statement.ignore(comment)

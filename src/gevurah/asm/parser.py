import sys
import json
import logging as lg
from pathlib import Path

import click
import pyparsing as pp

import gevurah.common.ops as ops
from gevurah.common.errors import ParseError
from gevurah.asm.builder import Builder
from gevurah.asm.program import Program
import gevurah.asm.grammar as grammar


def classify_failure(line: str) -> str:
    words = line.split()

    if words and words[0].endswith(':'):
        words = words[1:]

    if not words:
        return ParseError.MALFORMED_OPERAND

    mnemonic = words[0].rstrip(',')

    if ops.lookup(mnemonic) is None:
        return ParseError.UNKNOWN_OPCODE

    return ParseError.MALFORMED_OPERAND


def parse(text: str) -> Program:
    builder = Builder()

    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()

        if not line or line.startswith('#'):
            continue

        builder.line = number
        builder.source = line

        try:
            actions = grammar.statement.parse_string(line, parse_all=True)
        except pp.ParseException as e:
            raise ParseError(classify_failure(line), f'{line!r}: {e.msg}', number) from e

        for (func, arg) in actions:  # type: ignore
            func(builder, arg)

    program = builder.program()
    lg.debug(f'Parsed {len(program)} instruction(s), {len(program.labels)} label(s)')
    return program


def parse_file(filepath: str | Path) -> Program:
    if isinstance(filepath, str):
        filepath = Path(filepath)

    lg.debug(f'Parsing file {filepath}')
    return parse(filepath.read_text())


@click.command()
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('--json', 'as_json', is_flag=True, help='Print instructions and labels as JSON')
@click.argument('script', type=Path)
def check(verbose: bool, as_json: bool, script: Path):
    lg.basicConfig(level=lg.DEBUG if verbose else lg.INFO)

    try:
        program = parse_file(script)
    except ParseError as e:
        lg.error(f'{script}: {e}')
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(program.json(), indent=2))
    else:
        click.echo(program.listing())

    lg.info(f'{script.name}: {len(program)} instruction(s), {len(program.labels)} label(s)')


if __name__ == '__main__':
    check()

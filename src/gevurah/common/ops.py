''' Gevurah instruction set '''

from enum import Enum
from typing import Dict, Tuple


class Category(Enum):
    CORE = 'Core'
    DATA = 'Data Structure'
    CONTROL = 'Control Flow'
    IO = 'I/O'
    LOGIC = 'Logic'
    HOST = 'Host Bridge'


class Arg(Enum):
    ''' Operand forms accepted by an opcode slot '''
    REG = 'register'
    VALUE = 'value'             # register, number, text, &ref or name
    ADDR = 'address'            # register or number
    LABEL = 'label'
    FLAG = 'flag'
    NAME = 'name'
    SOURCE = 'source'           # PATH(...) or value
    LOCATION = 'location'       # PATH(...) or address


class Op(Enum):
    # mnemonic, operand slots, category, aliases

    # Core
    INIT = ('INIT', (Arg.REG, Arg.VALUE), Category.CORE, ())
    SEAL = ('SEAL', (), Category.CORE, ('HALT',))
    EXECUTE = ('EXECUTE', (Arg.SOURCE,), Category.CORE, ())
    FENCE = ('FENCE', (Arg.NAME,), Category.CORE, ())

    # Data movement
    STORE = ('STORE', (Arg.ADDR, Arg.VALUE), Category.DATA, ())
    FETCH = ('FETCH', (Arg.REG, Arg.LOCATION), Category.DATA, ())
    FLOW = ('FLOW', (Arg.REG, Arg.VALUE), Category.DATA, ('SEEK',))
    ANCHOR = ('ANCHOR', (Arg.NAME, Arg.VALUE), Category.DATA, ())
    CONCENTRATE = ('CONCENTRATE', (Arg.VALUE,), Category.DATA, ('PUSH', 'SEED'))
    EMERGE = ('EMERGE', (Arg.REG,), Category.DATA, ('POP',))
    RESTRUCTURE = ('RESTRUCTURE', (Arg.REG,), Category.DATA, ())

    # Control flow
    JMP = ('JMP', (Arg.LABEL,), Category.CONTROL, ('DIRECT',))
    GATE = ('GATE', (Arg.LABEL, Arg.FLAG), Category.CONTROL, ())
    CMP = ('CMP', (Arg.VALUE, Arg.VALUE), Category.CONTROL, ())
    CALL = ('CALL', (Arg.LABEL,), Category.CONTROL, ())
    RET = ('RET', (), Category.CONTROL, ())
    SUPPORT = ('SUPPORT', (Arg.LABEL,), Category.CONTROL, ())

    # I/O
    OUT = ('OUT', (Arg.VALUE,), Category.IO, ('MANIFEST', 'DECLARE', 'SPEAK'))
    QUERY = ('QUERY', (Arg.REG, Arg.VALUE), Category.IO, ())
    OBSERVE = ('OBSERVE', (Arg.REG,), Category.IO, ())

    # Logic
    BIND = ('BIND', (Arg.REG, Arg.VALUE), Category.LOGIC, ('CONNECT',))
    DIFFER = ('DIFFER', (Arg.REG, Arg.VALUE), Category.LOGIC, ('DISCERN',))
    INVERT = ('INVERT', (Arg.REG,), Category.LOGIC, ())

    # Host bridge
    SYSCALL = ('SYSCALL', (Arg.NAME, Arg.REG, Arg.VALUE), Category.HOST, ())

    def __init__(
        self,
        mnemonic: str,
        args: Tuple[Arg, ...],
        category: Category,
        aliases: Tuple[str, ...]
    ):
        self.mnemonic = mnemonic
        self.args = args
        self.category = category
        self.aliases = aliases

    @property
    def arity(self) -> int:
        return len(self.args)

    def __str__(self) -> str:
        return self.mnemonic


def build_mnemonics() -> Dict[str, Op]:
    table: Dict[str, Op] = dict()

    for op in Op:
        for name in (op.mnemonic,) + op.aliases:
            if name in table:
                raise Exception(f'Mnemonic {name} is defined twice')

            table[name] = op

    return table


MNEMONICS = build_mnemonics()


def lookup(mnemonic: str) -> Op | None:
    return MNEMONICS.get(mnemonic.upper())

''' Script values and their ordering '''

from dataclasses import dataclass
from typing import Any, Dict

from gevurah.common.conf import COMPONENT_SEPARATOR


class Value:
    rank: int = -1

    def key(self) -> Any:
        raise NotImplementedError()

    def json(self) -> Dict[str, Any]:
        raise NotImplementedError()


class Empty(Value):
    ''' Read of an unwritten register, memory cell or missing path '''
    rank = 0

    def key(self):
        return 0

    def json(self):
        return {'Class': 'Empty'}

    def __str__(self) -> str:
        return ''

    def __repr__(self) -> str:
        return 'EMPTY'

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Empty)

    def __hash__(self) -> int:
        return hash(Empty)


EMPTY = Empty()


@dataclass(frozen=True)
class Number(Value):
    value: int
    rank = 1

    def key(self):
        return self.value

    def json(self):
        return {'Class': 'Number', 'Value': self.value}

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Text(Value):
    value: str
    rank = 2

    def key(self):
        return self.value

    def json(self):
        return {'Class': 'Text', 'Value': self.value}

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class RegisterRef(Value):
    name: str
    rank = 3

    def key(self):
        return self.name

    def json(self):
        return {'Class': 'RegisterRef', 'Name': self.name}

    def __str__(self) -> str:
        return f'&{self.name}'


@dataclass(frozen=True)
class AnchorRef(Value):
    name: str
    rank = 4

    def key(self):
        return self.name

    def json(self):
        return {'Class': 'AnchorRef', 'Name': self.name}

    def __str__(self) -> str:
        return f'&{self.name}'


def compare(a: Value, b: Value) -> int:
    '''
    Three-way comparison, -1/0/1.

    Values of the same kind compare natively: numbers numerically, text and
    reference names by code point. Values of different kinds are ordered by
    kind: EMPTY < Number < Text < RegisterRef < AnchorRef, so Number(10) and
    Text("10") are never equal.
    '''
    if a.rank != b.rank:
        return -1 if a.rank < b.rank else 1

    ka, kb = a.key(), b.key()

    if ka == kb:
        return 0

    return -1 if ka < kb else 1


def reverse_components(text: str) -> str:
    if COMPONENT_SEPARATOR in text:
        return COMPONENT_SEPARATOR.join(reversed(text.split(COMPONENT_SEPARATOR)))

    return text[::-1]


def restructure(value: Value) -> Value:
    # Composite identifiers ("a.b.c") swap component order, plain text is
    # reversed character-wise, numbers keep their sign.
    match value:
        case Text(text):
            return Text(reverse_components(text))

        case Number(n):
            digits = int(str(abs(n))[::-1])
            return Number(-digits if n < 0 else digits)

        case RegisterRef(name):
            return RegisterRef(reverse_components(name))

        case AnchorRef(name):
            return AnchorRef(reverse_components(name))

        case _:
            return value


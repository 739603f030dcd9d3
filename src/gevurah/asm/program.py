from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from gevurah.common.ops import Op


class Kind(Enum):
    REGISTER = 'register'
    NUMBER = 'number'
    TEXT = 'text'
    REF = 'ref'
    NAME = 'name'
    PATH = 'path'


@dataclass(frozen=True)
class Operand:
    kind: Kind
    text: str

    def __str__(self) -> str:
        match self.kind:
            case Kind.TEXT:
                escaped = self.text.replace('\\', '\\\\').replace('"', '\\"')
                return f'"{escaped}"'
            case Kind.PATH:
                return f'PATH({self.text})'
            case Kind.REF:
                return f'&{self.text}'
            case _:
                return self.text


@dataclass(frozen=True)
class Instruction:
    op: Op
    operands: Tuple[Operand, ...]
    line: int = 0
    source: str = ''

    def __str__(self) -> str:
        if not self.operands:
            return self.op.mnemonic

        return f'{self.op.mnemonic} ' + ', '.join(str(o) for o in self.operands)


@dataclass(frozen=True)
class Program:
    instructions: Tuple[Instruction, ...]
    labels: Mapping[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.instructions)

    def __getitem__(self, index: int) -> Instruction:
        return self.instructions[index]

    def json(self) -> Dict[str, Any]:
        return {
            'Instructions': [str(i) for i in self.instructions],
            'Labels': dict(self.labels)
        }

    def listing(self) -> str:
        by_index: Dict[int, list[str]] = dict()

        for name, index in self.labels.items():
            by_index.setdefault(index, []).append(name)

        lines = []

        for index in range(len(self.instructions) + 1):
            for name in by_index.get(index, []):
                lines.append(f'{name}:')

            if index < len(self.instructions):
                lines.append(f'    {index:04d}  {self.instructions[index]}')

        return '\n'.join(lines)

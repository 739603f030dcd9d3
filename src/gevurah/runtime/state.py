import logging as lg
from dataclasses import dataclass, field
from typing import Dict, List

from gevurah.common.conf import FLAG_EQUAL, FLAG_BELOW, FLAG_ABOVE
from gevurah.common.values import Value, EMPTY


@dataclass
class Flags:
    equal: bool = False
    below: bool = False
    above: bool = False

    def set_from(self, order: int):
        # Every compare overwrites all three
        self.equal = order == 0
        self.below = order < 0
        self.above = order > 0

    def get(self, name: str) -> bool:
        return {
            FLAG_EQUAL: self.equal,
            FLAG_BELOW: self.below,
            FLAG_ABOVE: self.above
        }[name]

    def snapshot(self) -> Dict[str, bool]:
        return {
            FLAG_EQUAL: self.equal,
            FLAG_BELOW: self.below,
            FLAG_ABOVE: self.above
        }


@dataclass
class ExecutionState:
    ''' Per-run machine state, anchors live in the engine '''
    pc: int = 0
    registers: Dict[str, Value] = field(default_factory=dict)
    memory: Dict[int, Value] = field(default_factory=dict)
    flags: Flags = field(default_factory=Flags)
    stack: List[Value] = field(default_factory=list)
    call_stack: List[int] = field(default_factory=list)
    trace: List[str] = field(default_factory=list)

    def read_register(self, name: str) -> Value:
        return self.registers.get(name, EMPTY)

    def write_register(self, name: str, value: Value):
        self.registers[name] = value

    def read_memory(self, address: int) -> Value:
        return self.memory.get(address, EMPTY)

    def write_memory(self, address: int, value: Value):
        self.memory[address] = value

    def emit(self, line: str):
        self.trace.append(line)

    def debug_dump(self):
        state = [f'PC:{self.pc}', f'SP:{len(self.stack)}', f'CS:{len(self.call_stack)}']
        state.extend(f'{k}:{"1" if v else "0"}' for k, v in self.flags.snapshot().items())
        state.extend(f'{k}:{v!r}' for k, v in self.registers.items())
        lg.debug(' '.join(state))

import re
import time
import logging as lg
import threading
from typing import Callable, Dict

import gevurah.common.ops as ops
import gevurah.common.errors as err
from gevurah.common.conf import (
    DEFAULT_MAX_EXECUTE_DEPTH, FLAG_NAMES, NULL_ARCHIVE_ENTRY, REGISTER_PATTERN
)
from gevurah.common.values import (
    Value, EMPTY, Number, Text, RegisterRef, AnchorRef, compare, restructure
)
from gevurah.asm.program import Kind, Operand, Program
import gevurah.asm.parser as parser
from gevurah.runtime.state import ExecutionState
from gevurah.runtime.anchors import AnchorStore
from gevurah.runtime.bridge import (
    HostBridge, FetchRequest, SyscallRequest, QueryRequest, InputRequest
)

REGISTER_RE = re.compile(REGISTER_PATTERN)


class StepLimit(Exception):
    pass


class Abort(Exception):
    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class RunContext:
    ''' Limits shared by a run and every sub-script it executes '''
    steps: int
    budget: int
    deadline: float | None
    abort: threading.Event | None
    max_depth: int

    def __init__(
        self,
        budget: int,
        timeout: float | None = None,
        abort: threading.Event | None = None,
        max_depth: int = DEFAULT_MAX_EXECUTE_DEPTH
    ):
        self.steps = 0
        self.budget = budget
        self.deadline = None if timeout is None else time.monotonic() + timeout
        self.abort = abort
        self.max_depth = max_depth

    def check(self):
        if self.abort is not None and self.abort.is_set():
            raise Abort('abort')

        if self.deadline is not None and time.monotonic() >= self.deadline:
            raise Abort('timeout')

        if self.steps >= self.budget:
            raise StepLimit()


class Machine:
    program: Program
    state: ExecutionState
    anchors: AnchorStore
    bridge: HostBridge
    context: RunContext
    depth: int
    next_pc: int

    def __init__(
        self,
        program: Program,
        state: ExecutionState,
        anchors: AnchorStore,
        bridge: HostBridge,
        context: RunContext,
        depth: int = 0
    ):
        self.program = program
        self.state = state
        self.anchors = anchors
        self.bridge = bridge
        self.context = context
        self.depth = depth
        self.next_pc = state.pc

    # - Helpers - #

    def value(self, operand: Operand) -> Value:
        match operand.kind:
            case Kind.REGISTER:
                return self.state.read_register(operand.text)
            case Kind.NUMBER:
                return Number(int(operand.text))
            case Kind.TEXT:
                return Text(operand.text)
            case Kind.REF:
                if REGISTER_RE.fullmatch(operand.text):
                    return RegisterRef(operand.text)
                return AnchorRef(operand.text)
            case Kind.NAME:
                # Bound anchor names read as their value, others as plain text
                bound = self.anchors.get(operand.text)
                return Text(operand.text) if bound is None else bound

        raise err.InternalError(f'Operand {operand} cannot be read as a value')

    def number(self, operand: Operand) -> int:
        val = self.value(operand)

        if not isinstance(val, Number):
            raise err.TypeMismatch(f'Expected a number in {operand}, got {val!r}')

        return val.value

    def address(self, operand: Operand) -> int:
        addr = self.number(operand)

        if addr < 0:
            raise err.InvalidAddress(f'Memory address {addr} is negative')

        return addr

    def target(self, label: Operand) -> int:
        index = self.program.labels.get(label.text)

        if index is None:
            raise err.UndefinedLabel(f'Label not found: {label.text}')

        return index

    def jump(self, label: Operand):
        self.next_pc = self.target(label)

    def set_reg(self, reg: Operand, val: Value):
        self.state.write_register(reg.text, val)

    def logic(self, reg: Operand, val: Operand, op: Callable[[int, int], int]):
        a = self.number(reg)
        b = self.number(val)
        self.set_reg(reg, Number(op(a, b)))

    def deref(self, val: Value) -> Value:
        match val:
            case RegisterRef(name):
                return self.state.read_register(name)
            case AnchorRef(name):
                bound = self.anchors.get(name)
                return EMPTY if bound is None else bound

        return val

    def load_subscript(self, source: Operand) -> str:
        if source.kind != Kind.PATH:
            return str(self.value(source))

        content = self.bridge.send(FetchRequest(source.text))

        if content is None:
            raise err.SubscriptError(f'Sub-script not found: {source}')

        if not isinstance(content, str):
            raise err.HostBridgeError(f'Filesystem returned {type(content).__name__} for {source}')

        return content

    # - Operations - #

    def init(self, reg: Operand, val: Operand):
        self.set_reg(reg, self.value(val))

    def seal(self):
        self.next_pc = len(self.program)

    def execute(self, source: Operand):
        if self.depth + 1 > self.context.max_depth:
            raise err.ExecuteDepthExceeded(f'EXECUTE nested deeper than {self.context.max_depth}')

        script = self.load_subscript(source)

        try:
            program = parser.parse(script)
        except err.ParseError as e:
            raise err.SubscriptError(f'Sub-script {source} does not parse: {e}') from e

        lg.debug(f'Entering sub-script {source} at depth {self.depth + 1}')

        # Fresh registers, memory and stacks, shared trace and anchors
        state = ExecutionState(trace=self.state.trace)
        child = Machine(program, state, self.anchors, self.bridge, self.context, self.depth + 1)
        child.run()

        lg.debug(f'Leaving sub-script {source}')

    def fence(self, name: Operand):
        self.state.emit(f'--- SCOPE [{name.text}] ENTERED ---')

    def store(self, addr: Operand, val: Operand):
        self.state.write_memory(self.address(addr), self.value(val))

    def fetch(self, reg: Operand, location: Operand):
        if location.kind != Kind.PATH:
            self.set_reg(reg, self.state.read_memory(self.address(location)))
            return

        content = self.bridge.send(FetchRequest(location.text))

        if content is None:
            # Absent files are observable, not fatal
            self.set_reg(reg, EMPTY)
        elif isinstance(content, str):
            self.set_reg(reg, Text(content))
        else:
            raise err.HostBridgeError(f'Filesystem returned {type(content).__name__} for {location}')

    def flow(self, reg: Operand, val: Operand):
        self.set_reg(reg, self.deref(self.value(val)))

    def anchor(self, name: Operand, val: Operand):
        self.anchors.set(name.text, self.value(val))

    def concentrate(self, val: Operand):
        self.state.stack.append(self.value(val))

    def emerge(self, reg: Operand):
        if not self.state.stack:
            raise err.StackUnderflow(f'EMERGE into {reg} with an empty stack')

        self.set_reg(reg, self.state.stack.pop())

    def restructure(self, reg: Operand):
        self.set_reg(reg, restructure(self.value(reg)))

    def jmp(self, label: Operand):
        self.jump(label)

    def gate(self, label: Operand, flag: Operand):
        name = flag.text.upper()

        if name not in FLAG_NAMES:
            raise err.InvalidFlagReference(f'Invalid GATE condition: {flag.text}')

        if self.state.flags.get(name):
            self.jump(label)

    def cmp(self, a: Operand, b: Operand):
        self.state.flags.set_from(compare(self.value(a), self.value(b)))

    def call(self, label: Operand):
        target = self.target(label)
        self.state.call_stack.append(self.state.pc + 1)
        self.next_pc = target

    def ret(self):
        if not self.state.call_stack:
            raise err.ReturnWithoutCall('RET called with an empty call stack')

        self.next_pc = self.state.call_stack.pop()

    def support(self, label: Operand):
        # Loop back until a compare reports EQUAL
        if not self.state.flags.equal:
            self.jump(label)

    def out(self, val: Operand):
        self.state.emit(str(self.value(val)))

    def query(self, reg: Operand, key: Operand):
        content = self.bridge.send(QueryRequest(str(self.value(key))))

        if content is None:
            self.set_reg(reg, Text(NULL_ARCHIVE_ENTRY))
        elif isinstance(content, str):
            self.set_reg(reg, Text(content))
        else:
            raise err.HostBridgeError(f'Archive returned {type(content).__name__} for {key}')

    def observe(self, reg: Operand):
        line = self.bridge.send(InputRequest(reg.text))
        self.set_reg(reg, EMPTY if line is None else Text(str(line)))

    def bind(self, reg: Operand, val: Operand):
        self.logic(reg, val, lambda a, b: a & b)

    def differ(self, reg: Operand, val: Operand):
        self.logic(reg, val, lambda a, b: a ^ b)

    def invert(self, reg: Operand):
        self.set_reg(reg, Number(~self.number(reg)))

    def syscall(self, name: Operand, reg: Operand, val: Operand):
        result = self.bridge.send(SyscallRequest(name.text, str(self.value(val))))

        if not isinstance(result, Value):
            raise err.HostBridgeError(f'Kernel returned {type(result).__name__} for {name.text}')

        self.set_reg(reg, result)

    HANDLERS: Dict[ops.Op, Callable] = {
        ops.Op.INIT: init,
        ops.Op.SEAL: seal,
        ops.Op.EXECUTE: execute,
        ops.Op.FENCE: fence,

        ops.Op.STORE: store,
        ops.Op.FETCH: fetch,
        ops.Op.FLOW: flow,
        ops.Op.ANCHOR: anchor,
        ops.Op.CONCENTRATE: concentrate,
        ops.Op.EMERGE: emerge,
        ops.Op.RESTRUCTURE: restructure,

        ops.Op.JMP: jmp,
        ops.Op.GATE: gate,
        ops.Op.CMP: cmp,
        ops.Op.CALL: call,
        ops.Op.RET: ret,
        ops.Op.SUPPORT: support,

        ops.Op.OUT: out,
        ops.Op.QUERY: query,
        ops.Op.OBSERVE: observe,

        ops.Op.BIND: bind,
        ops.Op.DIFFER: differ,
        ops.Op.INVERT: invert,

        ops.Op.SYSCALL: syscall,
    }

    # -- Implementation -- #

    def exec_next(self):
        instruction = self.program[self.state.pc]
        handler = self.HANDLERS.get(instruction.op)

        if handler is None or len(instruction.operands) != instruction.op.arity:
            raise err.InternalError(f'Cannot decode {instruction} at {self.state.pc}')

        lg.debug(f'[{self.depth}] {self.state.pc:04d} {instruction}')

        self.next_pc = self.state.pc + 1
        handler(self, *instruction.operands)
        self.state.pc = self.next_pc

        if lg.getLogger().isEnabledFor(lg.DEBUG):
            self.state.debug_dump()

    def run(self):
        while self.state.pc < len(self.program):
            self.context.check()
            self.exec_next()
            self.context.steps += 1


def check_handlers():
    missing = [op.mnemonic for op in ops.Op if op not in Machine.HANDLERS]

    if missing:
        raise err.InternalError(f'No handler for {", ".join(missing)}')


check_handlers()

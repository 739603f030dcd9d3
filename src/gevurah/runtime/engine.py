import sys
import json
import logging as lg
import threading
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Tuple

import click

from gevurah.common.conf import DEFAULT_STEP_BUDGET, DEFAULT_MAX_EXECUTE_DEPTH, DEFAULT_TIMEOUT
from gevurah.common.errors import ParseError, ScriptError
from gevurah.common.values import Value
from gevurah.asm.program import Program
import gevurah.asm.parser as parser
from gevurah.runtime.anchors import AnchorStore
from gevurah.runtime.state import ExecutionState
from gevurah.runtime.kernel import ArithmeticKernel
from gevurah.runtime.machine import Machine, RunContext, StepLimit, Abort
from gevurah.runtime.bridge import (
    HostBridge, ComputationKernel, Archive, VirtualFilesystem, InputSource,
    MappingFilesystem, MappingArchive, DirectoryFilesystem, DirectoryArchive, QueuedInput
)


EXIT_HALT = 0
EXIT_BAD_SETTINGS = 1
EXIT_STEP_LIMIT = 2
EXIT_ABORTED = 3
EXIT_EXEC_ERROR = 4
EXIT_PARSE_ERROR = 5


# - Terminal statuses - #

@dataclass(frozen=True)
class Halted:
    step: int

    def json(self) -> Dict[str, Any]:
        return {'Status': 'Halted', 'Step': self.step}


@dataclass(frozen=True)
class Error:
    kind: str
    message: str
    step: int
    pc: int

    def json(self) -> Dict[str, Any]:
        return {
            'Status': 'Error',
            'Kind': self.kind,
            'Message': self.message,
            'Step': self.step,
            'PC': self.pc
        }


@dataclass(frozen=True)
class StepLimitExceeded:
    step: int

    def json(self) -> Dict[str, Any]:
        return {'Status': 'StepLimitExceeded', 'Step': self.step}


@dataclass(frozen=True)
class Aborted:
    step: int
    reason: str

    def json(self) -> Dict[str, Any]:
        return {'Status': 'Aborted', 'Step': self.step, 'Reason': self.reason}


Status = Halted | Error | StepLimitExceeded | Aborted


@dataclass
class ExecutionResult:
    trace: List[str]
    registers: Dict[str, Value]
    memory: Dict[int, Value]
    anchors: Dict[str, Value]
    flags: Dict[str, bool]
    status: Status
    steps: int = 0
    call_stack: List[int] = field(default_factory=list)

    @property
    def halted(self) -> bool:
        return isinstance(self.status, Halted)

    def json(self) -> Dict[str, Any]:
        return {
            'Trace': list(self.trace),
            'Registers': {k: v.json() for k, v in self.registers.items()},
            'Memory': {str(k): v.json() for k, v in sorted(self.memory.items())},
            'Anchors': {k: v.json() for k, v in self.anchors.items()},
            'Flags': dict(self.flags),
            'Steps': self.steps,
            **self.status.json()
        }


# - Settings - #

class EngineSettings:
    step_budget: int
    timeout: float | None
    max_execute_depth: int
    verbose: bool

    def __init__(self):
        self.step_budget = DEFAULT_STEP_BUDGET
        self.timeout = DEFAULT_TIMEOUT
        self.max_execute_depth = DEFAULT_MAX_EXECUTE_DEPTH
        self.verbose = False

    def update(
        self,
        step_budget: int | None = None,
        timeout: float | None = None,
        max_execute_depth: int | None = None,
        verbose: bool | None = None
    ):
        if step_budget is not None:
            if step_budget <= 0:
                raise ValueError(f'Step budget must be positive, got {step_budget}')

            self.step_budget = step_budget

        if timeout is not None:
            if timeout < 0:
                raise ValueError(f'Timeout must not be negative, got {timeout}')

            self.timeout = timeout

        if max_execute_depth is not None:
            if max_execute_depth <= 0:
                raise ValueError(f'EXECUTE depth must be positive, got {max_execute_depth}')

            self.max_execute_depth = max_execute_depth

        if verbose is not None:
            self.verbose = verbose

        return self


def load_settings(filepath: str | Path, settings: EngineSettings | None = None) -> EngineSettings:
    ''' Reads the [engine] table of a TOML file '''
    if isinstance(filepath, str):
        filepath = Path(filepath)

    config = tomllib.loads(filepath.read_text())
    section = config.get('engine', {})
    known = {'step_budget', 'timeout', 'max_execute_depth', 'verbose'}
    unknown = set(section) - known

    if unknown:
        raise ValueError(f'Unknown engine settings: {", ".join(sorted(unknown))}')

    if settings is None:
        settings = EngineSettings()

    return settings.update(**section)


# - Engine - #

class Engine:
    '''
    Owns the anchor table and the computation kernel; every run gets fresh
    registers, memory, stacks and flags.
    '''
    settings: EngineSettings
    anchors: AnchorStore
    kernel: ComputationKernel
    archive: Archive

    def __init__(
        self,
        kernel: ComputationKernel | None = None,
        archive: Archive | None = None,
        settings: EngineSettings | None = None
    ):
        self.settings = settings or EngineSettings()
        self.anchors = AnchorStore()
        self.kernel = kernel or ArithmeticKernel()
        self.archive = archive or MappingArchive()

    def reset(self):
        self.anchors.clear()

    def run(
        self,
        script_text: str,
        fs_map: Mapping[str, str | None] | VirtualFilesystem | None = None,
        inputs: Iterable[str] | InputSource | None = None,
        abort: threading.Event | None = None
    ) -> ExecutionResult:
        program = parser.parse(script_text)
        return self.execute(program, fs_map, inputs, abort)

    def execute(
        self,
        program: Program,
        fs_map: Mapping[str, str | None] | VirtualFilesystem | None = None,
        inputs: Iterable[str] | InputSource | None = None,
        abort: threading.Event | None = None
    ) -> ExecutionResult:
        bridge = HostBridge(as_filesystem(fs_map), self.kernel, self.archive, as_input(inputs))
        state = ExecutionState()

        context = RunContext(
            self.settings.step_budget,
            timeout=self.settings.timeout,
            abort=abort,
            max_depth=self.settings.max_execute_depth
        )

        machine = Machine(program, state, self.anchors, bridge, context)

        lg.info(f'Running {len(program)} instruction(s), budget {context.budget}')
        status = drive(machine)
        lg.info(f'Run finished: {status}')

        return ExecutionResult(
            trace=list(state.trace),
            registers=dict(state.registers),
            memory=dict(state.memory),
            anchors=self.anchors.snapshot(),
            flags=state.flags.snapshot(),
            status=status,
            steps=context.steps,
            call_stack=list(state.call_stack)
        )


def drive(machine: Machine) -> Status:
    context = machine.context

    try:
        machine.run()

    except StepLimit:
        lg.info(f'Execution stopped at step limit {context.budget}')
        return StepLimitExceeded(context.steps)

    except Abort as e:
        lg.info(f'Execution aborted ({e.reason}) at step {context.steps}')
        return Aborted(context.steps, e.reason)

    except ScriptError as e:
        lg.info(f'Execution halted on {e.kind}: {e.message}')
        return Error(e.kind, e.message, context.steps, machine.state.pc)

    return Halted(context.steps)


def as_filesystem(fs_map: Mapping[str, str | None] | VirtualFilesystem | None) -> VirtualFilesystem:
    if fs_map is None or isinstance(fs_map, Mapping):
        return MappingFilesystem(fs_map)

    return fs_map


def as_input(inputs: Iterable[str] | InputSource | None) -> InputSource:
    if inputs is None:
        return QueuedInput()

    if hasattr(inputs, 'read_line'):
        return inputs  # type: ignore

    return QueuedInput(inputs)  # type: ignore


def exit_code(status: Status) -> int:
    match status:
        case Halted():
            return EXIT_HALT
        case StepLimitExceeded():
            return EXIT_STEP_LIMIT
        case Aborted():
            return EXIT_ABORTED

    return EXIT_EXEC_ERROR


@click.command()
@click.pass_context
@click.option('-v', '--verbose', is_flag=True, help='Sets logging level to debug')
@click.option('--config', type=click.Path(exists=True, dir_okay=False, path_type=Path), help='TOML settings file')
@click.option('--budget', 'step_budget', type=int, help='Maximum instructions per run')
@click.option('--timeout', type=float, help='Wall-clock limit in seconds')
@click.option('--max-depth', 'max_execute_depth', type=int, help='Maximum EXECUTE nesting')
@click.option('--vfs', type=click.Path(exists=True, file_okay=False, path_type=Path), help='Virtual filesystem root')
@click.option('--archive', type=click.Path(exists=True, file_okay=False, path_type=Path), help='Archive root for QUERY')
@click.option('-i', '--input', 'inputs', multiple=True, help='Line for OBSERVE, repeatable')
@click.option('--json', 'as_json', is_flag=True, help='Print the full result as JSON')
@click.argument('script', type=Path)
def run(
    ctx: click.Context,
    verbose: bool,
    config: Path | None,
    vfs: Path | None,
    archive: Path | None,
    inputs: Tuple[str, ...],
    as_json: bool,
    script: Path,
    **params
):
    ctx.ensure_object(EngineSettings)

    try:
        if config is not None:
            load_settings(config, ctx.obj)

        ctx.obj.update(**params)

        if verbose:
            ctx.obj.update(verbose=True)
    except ValueError as e:
        lg.error(str(e))
        sys.exit(EXIT_BAD_SETTINGS)

    lg.basicConfig(level=lg.DEBUG if ctx.obj.verbose else lg.INFO)
    lg.info('GEVURAH')

    engine = Engine(
        archive=DirectoryArchive(archive) if archive else None,
        settings=ctx.obj
    )

    try:
        program = parser.parse_file(script)
    except ParseError as e:
        lg.error(f'{script}: {e}')
        sys.exit(EXIT_PARSE_ERROR)

    filesystem = DirectoryFilesystem(vfs) if vfs else None
    result = engine.execute(program, filesystem, inputs)

    if as_json:
        click.echo(json.dumps(result.json(), indent=2))
    else:
        for line in result.trace:
            click.echo(line)

    sys.exit(exit_code(result.status))


if __name__ == '__main__':
    run()

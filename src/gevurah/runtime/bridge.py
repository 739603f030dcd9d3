''' Host bridge: the services a script reaches outside the machine '''

import logging as lg
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, Mapping, Protocol

from gevurah.common.errors import HostBridgeError, KernelError
from gevurah.common.values import Value


class VirtualFilesystem(Protocol):
    def read(self, path: str) -> str | None:
        ...


class ComputationKernel(Protocol):
    def evaluate(self, opcode_name: str, expression: str) -> Value:
        ...


class Archive(Protocol):
    def lookup(self, key: str) -> str | None:
        ...


class InputSource(Protocol):
    def read_line(self) -> str | None:
        ...


# - Implementations - #

class MappingFilesystem:
    ''' Read-only view over a path -> content map, None marks a deleted file '''

    def __init__(self, files: Mapping[str, str | None] | None = None):
        self.files = dict(files or {})

    def read(self, path: str) -> str | None:
        return self.files.get(path)


class DirectoryFilesystem:
    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def read(self, path: str) -> str | None:
        target = (self.root / path).resolve()

        # No escaping the root
        if not target.is_relative_to(self.root) or not target.is_file():
            return None

        return target.read_text()


class MappingArchive(MappingFilesystem):
    def lookup(self, key: str) -> str | None:
        return self.read(key)


class DirectoryArchive(DirectoryFilesystem):
    def lookup(self, key: str) -> str | None:
        return self.read(key)


class QueuedInput:
    lines: Iterator[str]

    def __init__(self, lines: Iterable[str] = ()):
        self.lines = iter(lines)

    def read_line(self) -> str | None:
        return next(self.lines, None)


class NullKernel:
    def evaluate(self, opcode_name: str, expression: str) -> Value:
        raise KernelError(f'No computation kernel for {opcode_name}')


# - Messages - #

@dataclass(frozen=True)
class FetchRequest:
    path: str


@dataclass(frozen=True)
class SyscallRequest:
    opcode_name: str
    expression: str


@dataclass(frozen=True)
class QueryRequest:
    key: str


@dataclass(frozen=True)
class InputRequest:
    register: str


Request = FetchRequest | SyscallRequest | QueryRequest | InputRequest


class HostBridge:
    '''
    Request/response exchange between a run and its host services.

    The machine sends one request and blocks on the response. Every service
    failure comes back as HostBridgeError so the run can end with a script
    error instead of crashing the engine.
    '''
    filesystem: VirtualFilesystem
    kernel: ComputationKernel
    archive: Archive
    inputs: InputSource

    def __init__(
        self,
        filesystem: VirtualFilesystem,
        kernel: ComputationKernel,
        archive: Archive,
        inputs: InputSource
    ):
        self.filesystem = filesystem
        self.kernel = kernel
        self.archive = archive
        self.inputs = inputs

    def fetch(self, request: FetchRequest):
        return self.filesystem.read(request.path)

    def syscall(self, request: SyscallRequest):
        return self.kernel.evaluate(request.opcode_name, request.expression)

    def query(self, request: QueryRequest):
        return self.archive.lookup(request.key)

    def observe(self, request: InputRequest):
        return self.inputs.read_line()

    HANDLERS: Dict[type, Callable] = {
        FetchRequest: fetch,
        SyscallRequest: syscall,
        QueryRequest: query,
        InputRequest: observe,
    }

    def send(self, request: Request):
        lg.debug(f'Bridge request {request}')
        handler = self.HANDLERS[type(request)]

        try:
            response = handler(self, request)
        except KernelError as e:
            raise HostBridgeError(f'Kernel failure: {e}') from e
        except (OSError, UnicodeDecodeError) as e:
            raise HostBridgeError(f'Host I/O failure: {e}') from e

        lg.debug(f'Bridge response {response!r}')
        return response

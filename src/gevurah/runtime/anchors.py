''' Engine-owned anchor table shared by all runs '''

import logging as lg
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from gevurah.common.values import Value


class AnchorStore:
    '''
    Name -> Value bindings that outlive a single run.

    Every name is guarded by its own lock, so concurrent runs touching
    disjoint names never wait on each other. The registry lock is held only
    while a per-name lock is looked up or created.
    '''
    values: Dict[str, Value]
    locks: Dict[str, Any]

    def __init__(self):
        self.values = dict()
        self.locks = dict()
        self.registry = threading.Lock()

    def lock_for(self, name: str):
        with self.registry:
            lock = self.locks.get(name)

            if lock is None:
                lock = threading.RLock()
                self.locks[name] = lock

            return lock

    @contextmanager
    def holding(self, name: str) -> Iterator[None]:
        with self.lock_for(name):
            yield

    def get(self, name: str) -> Value | None:
        with self.holding(name):
            return self.values.get(name)

    def set(self, name: str, value: Value):
        with self.holding(name):
            lg.debug(f'Anchor {name} = {value!r}')
            self.values[name] = value

    def snapshot(self) -> Dict[str, Value]:
        # Values are immutable, a copy never waits on per-name locks
        with self.registry:
            return dict(self.values)

    def clear(self):
        with self.registry:
            names = list(self.locks.keys())

        for name in names:
            with self.holding(name):
                self.values.pop(name, None)

        lg.debug('Anchors cleared')

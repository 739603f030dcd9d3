# type: ignore
import pytest

from gevurah.runtime.engine import Engine, EngineSettings
from gevurah.runtime.bridge import MappingArchive

import unit_utils


@pytest.fixture
def with_engine():
    yield Engine()


@pytest.fixture
def with_small_budget():
    yield Engine(settings=EngineSettings().update(step_budget=50))


@pytest.fixture
def with_archive():
    archive = MappingArchive({
        'sephirot': 'Keter, Chokmah, Binah',
        'paths': '22',
    })

    yield Engine(archive=archive)


@pytest.fixture
def with_vfs():
    yield {
        'types.ts': unit_utils.load_file('testdata/vfs/types.ts'),
        'greeting.gvr': unit_utils.load_file('testdata/vfs/greeting.gvr'),
        'deleted.ts': None,
    }

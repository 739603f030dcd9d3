import pytest

from gevurah.common.values import Number

from unit_utils import script
from fixtures import with_engine  # noqa: F401


@pytest.mark.parametrize('op, a, b, result', [
    ('BIND', 12, 10, 8),
    ('CONNECT', 12, 10, 8),
    ('DIFFER', 12, 10, 6),
    ('DISCERN', 5, 5, 0),
    ('BIND', -1, 255, 255),
])
def test_binary_logic(with_engine, op, a, b, result):  # noqa: F811
    run = with_engine.run(script(
        f'INIT R1, {a}',
        f'{op} R1, {b}'
    ))

    assert run.registers['R1'] == Number(result)


def test_register_operand(with_engine):  # noqa: F811
    run = with_engine.run(script(
        'INIT R1, 6',
        'INIT R2, 3',
        'DIFFER R1, R2'
    ))

    assert run.registers['R1'] == Number(5)


@pytest.mark.parametrize('value, result', [
    (0, -1),
    (5, -6),
    (-1, 0),
])
def test_invert(with_engine, value, result):  # noqa: F811
    run = with_engine.run(script(
        f'INIT R1, {value}',
        'INVERT R1'
    ))

    assert run.registers['R1'] == Number(result)


def test_invert_twice_is_identity(with_engine):  # noqa: F811
    run = with_engine.run(script(
        'INIT R1, 1234',
        'INVERT R1',
        'INVERT R1'
    ))

    assert run.registers['R1'] == Number(1234)


@pytest.mark.parametrize('lines', [
    ('INIT R1, "text"', 'BIND R1, 1'),
    ('INIT R1, 1', 'DIFFER R1, "1"'),
    ('INVERT R_UNSET',),
    ('INIT R1, &R2', 'INVERT R1'),
])
def test_logic_requires_numbers(with_engine, lines):  # noqa: F811
    run = with_engine.run(script(*lines))

    assert run.status.kind == 'TypeMismatch'  # type: ignore
    assert run.status.pc == len(lines) - 1  # type: ignore

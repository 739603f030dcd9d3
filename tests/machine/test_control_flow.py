import pytest

from gevurah.runtime.engine import Halted, Error, StepLimitExceeded

from unit_utils import expected_trace, run_testdata, script
from fixtures import with_engine, with_small_budget  # noqa: F401


def test_gate_below():
    result = run_testdata('below')

    assert result.trace == ['yes']
    assert result.status == Halted(6)
    assert result.flags == {'EQUAL': False, 'BELOW': True, 'ABOVE': False}


def test_call_returns_after_call_site():
    result = run_testdata('subroutine')

    assert result.trace == expected_trace('subroutine')
    assert isinstance(result.status, Halted)
    assert result.call_stack == []


def test_call_ret_then_seal(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'CALL sub',
        'SEAL',
        'sub: RET'
    ))

    # CALL, RET, SEAL
    assert result.status == Halted(3)
    assert result.call_stack == []


def test_nested_calls_unwind_in_order():
    result = run_testdata('nested')
    assert result.trace == expected_trace('nested')


@pytest.mark.parametrize('depth', [1, 2, 5, 20])
def test_call_depths(with_engine, depth):  # noqa: F811
    lines = [f'CALL level{0}', 'OUT "top"', 'SEAL']

    for level in range(depth):
        lines.append(f'level{level}:')
        lines.append(f'    OUT "enter {level}"')

        if level + 1 < depth:
            lines.append(f'    CALL level{level + 1}')

        lines.append(f'    OUT "leave {level}"')
        lines.append('    RET')

    result = with_engine.run(script(*lines))

    entering = [f'enter {level}' for level in range(depth)]
    leaving = [f'leave {level}' for level in reversed(range(depth))]

    assert result.trace == entering + leaving + ['top']
    assert isinstance(result.status, Halted)


@pytest.mark.parametrize('a, b, equal', [
    ('10', '10', True),
    ('10', '11', False),
    ('"keter"', '"keter"', True),
    ('"keter"', '"Keter"', False),
    ('10', '"10"', False),
])
def test_gate_equal_follows_compare(with_engine, a, b, equal):  # noqa: F811
    result = with_engine.run(script(
        f'CMP {a}, {b}',
        'GATE same EQUAL',
        'OUT "different"',
        'SEAL',
        'same: OUT "same"'
    ))

    assert result.trace == (['same'] if equal else ['different'])


@pytest.mark.parametrize('a, b, flag', [
    ('1', '2', 'BELOW'),
    ('2', '1', 'ABOVE'),
    ('"a"', '"b"', 'BELOW'),
    ('"b"', '"a"', 'ABOVE'),
    ('R_UNSET', '0', 'BELOW'),
])
def test_compare_flags_exclusive(with_engine, a, b, flag):  # noqa: F811
    result = with_engine.run(f'CMP {a}, {b}')

    assert result.flags[flag]
    assert sum(result.flags.values()) == 1


def test_flags_overwritten_by_compare(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'CMP 1, 2',
        'CMP 5, 5'
    ))

    assert result.flags == {'EQUAL': True, 'BELOW': False, 'ABOVE': False}


def test_gate_flag_case_insensitive(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'CMP 3, 1',
        'GATE up above',
        'SEAL',
        'up: OUT "up"'
    ))

    assert result.trace == ['up']


def test_gate_invalid_flag(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'OUT "start"',
        'CMP 1, 2',
        'GATE somewhere NOT_EQUAL',
        'somewhere: SEAL'
    ))

    assert result.status == Error('InvalidFlagReference', 'Invalid GATE condition: NOT_EQUAL', 2, 2)
    assert result.trace == ['start']


def test_undefined_label(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'OUT "a"',
        'JMP nowhere'
    ))

    assert isinstance(result.status, Error)
    assert result.status.kind == 'UndefinedLabel'
    assert result.status.pc == 1
    assert result.trace == ['a']


def test_undefined_label_not_taken(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'CMP 1, 2',
        'GATE nowhere EQUAL',
        'OUT "fell through"'
    ))

    assert result.trace == ['fell through']
    assert isinstance(result.status, Halted)


def test_return_without_call(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'OUT "a"',
        'RET',
        'OUT "b"'
    ))

    assert isinstance(result.status, Error)
    assert result.status.kind == 'ReturnWithoutCall'
    assert result.status.step == 1
    assert result.trace == ['a']


def test_call_undefined_label_keeps_stack(with_engine):  # noqa: F811
    result = with_engine.run('CALL missing')

    assert result.status.kind == 'UndefinedLabel'  # type: ignore
    assert result.call_stack == []


def test_support_loops_until_equal():
    result = run_testdata('echo', inputs=['alpha', 'beta', 'stop'])
    assert result.trace == expected_trace('echo')


def test_support(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'top:',
        '    OBSERVE R1',
        '    OUT R1',
        '    CMP R1, "stop"',
        '    SUPPORT top',
        'SEAL'
    ), inputs=['one', 'two', 'stop', 'never'])

    assert result.trace == ['one', 'two', 'stop']


def test_infinite_loop_hits_step_limit(with_small_budget):  # noqa: F811
    result = with_small_budget.run(script(
        'start:',
        '    OUT "tick"',
        '    JMP start'
    ))

    assert result.status == StepLimitExceeded(50)
    assert result.steps == 50
    assert result.trace == ['tick'] * 25


def test_budget_allows_exact_length(with_small_budget):  # noqa: F811
    result = with_small_budget.run(script(*['OUT "x"'] * 50))

    assert result.status == Halted(50)
    assert len(result.trace) == 50


def test_end_of_program_halts(with_engine):  # noqa: F811
    result = with_engine.run('OUT "only"')
    assert result.status == Halted(1)


def test_empty_program_halts(with_engine):  # noqa: F811
    result = with_engine.run('# nothing to do')
    assert result.status == Halted(0)
    assert result.trace == []


def test_seal_stops_immediately(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'SEAL',
        'OUT "unreachable"'
    ))

    assert result.trace == []
    assert result.status == Halted(1)

from gevurah.common.values import EMPTY, Number, Text, RegisterRef, AnchorRef
from gevurah.runtime.engine import Halted, Error

from unit_utils import script
from fixtures import with_engine  # noqa: F401


def test_init_and_unwritten_register(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'INIT R1, 7',
        'INIT R2, "seven"',
        'INIT R3, R_NEVER',
        'OUT R1',
        'OUT R2',
        'OUT R_NEVER'
    ))

    assert result.registers == {'R1': Number(7), 'R2': Text('seven'), 'R3': EMPTY}
    assert result.trace == ['7', 'seven', '']


def test_store_and_fetch_memory(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'INIT R_ADDR, 40',
        'STORE 3, "three"',
        'STORE R_ADDR, 99',
        'FETCH R1, 3',
        'FETCH R2, R_ADDR',
        'FETCH R3, 1000'
    ))

    assert result.memory == {3: Text('three'), 40: Number(99)}
    assert result.registers['R1'] == Text('three')
    assert result.registers['R2'] == Number(99)
    assert result.registers['R3'] == EMPTY


def test_negative_address_from_register(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'INIT R1, -1',
        'STORE R1, 5'
    ))

    assert isinstance(result.status, Error)
    assert result.status.kind == 'InvalidAddress'


def test_text_address_is_type_mismatch(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'INIT R1, "three"',
        'FETCH R2, R1'
    ))

    assert result.status.kind == 'TypeMismatch'  # type: ignore


def test_stack_is_lifo(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'CONCENTRATE 1',
        'PUSH "two"',
        'SEED R_EMPTY',
        'EMERGE R1',
        'EMERGE R2',
        'POP R3'
    ))

    assert result.registers == {'R1': EMPTY, 'R2': Text('two'), 'R3': Number(1)}


def test_stack_underflow(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'PUSH 1',
        'EMERGE R1',
        'EMERGE R2'
    ))

    assert result.status == Error('StackUnderflow', 'EMERGE into R2 with an empty stack', 2, 2)
    assert result.registers == {'R1': Number(1)}


def test_restructure(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'INIT R1, "gevurah"',
        'INIT R2, "keter.tiferet.malkuth"',
        'INIT R3, 1024',
        'RESTRUCTURE R1',
        'RESTRUCTURE R2',
        'RESTRUCTURE R3',
        'RESTRUCTURE R4'
    ))

    assert result.registers == {
        'R1': Text('haruveg'),
        'R2': Text('malkuth.tiferet.keter'),
        'R3': Number(4201),
        'R4': EMPTY
    }


def test_references_and_flow(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'INIT R1, "target"',
        'INIT R_PTR, &R1',
        'ANCHOR crown, "keter"',
        'INIT R_APTR, &crown',
        'FLOW R2, R_PTR',
        'SEEK R3, R_APTR',
        'FLOW R4, R1',
        'INIT R5, &nowhere',
        'FLOW R6, R5',
        'OUT R_PTR'
    ))

    assert result.registers['R_PTR'] == RegisterRef('R1')
    assert result.registers['R_APTR'] == AnchorRef('crown')
    assert result.registers['R2'] == Text('target')
    assert result.registers['R3'] == Text('keter')
    assert result.registers['R4'] == Text('target')
    assert result.registers['R6'] == EMPTY
    assert result.trace == ['&R1']


def test_anchor_names_read_as_values(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'OUT crown',
        'ANCHOR crown, 10',
        'OUT crown',
        'CMP crown, 10',
        'GATE bound EQUAL',
        'SEAL',
        'bound: OUT "bound"'
    ))

    # Unbound names read as their own text
    assert result.trace == ['crown', '10', 'bound']
    assert result.anchors == {'crown': Number(10)}
    assert isinstance(result.status, Halted)


def test_fence(with_engine):  # noqa: F811
    result = with_engine.run(script(
        'FENCE purification',
        'FENCE "stage two"'
    ))

    assert result.trace == ['--- SCOPE [purification] ENTERED ---', '--- SCOPE [stage two] ENTERED ---']

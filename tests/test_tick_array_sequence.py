import pytest

from nethermind.whirlpool.exceptions import SwapError, SwapErrorCode, TickError
from nethermind.whirlpool.ticks.tick_array_sequence import TickArrayIndex, TickArraySequence
from nethermind.whirlpool.types import TickArray, TickArrayContainer
from tests.utils import build_tick_array, initialized_tick

TICK_SPACING = 64


def _container(tick_array: TickArray | None, address: str) -> TickArrayContainer:
    return TickArrayContainer(address=address, data=tick_array)


@pytest.fixture(name="a_to_b_sequence")
def fixture_a_to_b_sequence() -> TickArraySequence:
    ta0 = build_tick_array(
        0,
        TICK_SPACING,
        {0: initialized_tick(10), 2048: initialized_tick(10), 4032: initialized_tick(10)},
    )
    ta1 = build_tick_array(-5632, TICK_SPACING, {-5632: initialized_tick(10), -2432: initialized_tick(10)})
    ta2 = build_tick_array(-11264, TICK_SPACING, {-9664: initialized_tick(10), -8064: initialized_tick(10)})
    return TickArraySequence(
        [_container(ta0, "ta0"), _container(ta1, "ta1"), _container(ta2, "ta2")],
        TICK_SPACING,
        a_to_b=True,
    )


@pytest.fixture(name="b_to_a_sequence")
def fixture_b_to_a_sequence() -> TickArraySequence:
    ta0 = build_tick_array(0, TICK_SPACING, {2048: initialized_tick(10), 4032: initialized_tick(10)})
    ta1 = build_tick_array(5632, TICK_SPACING, {6272: initialized_tick(10)})
    ta2 = build_tick_array(11264, TICK_SPACING)
    return TickArraySequence(
        [_container(ta0, "ta0"), _container(ta1, "ta1"), _container(ta2, "ta2")],
        TICK_SPACING,
        a_to_b=False,
    )


class TestTickArrayIndex:
    def test_negative_tick(self):
        index = TickArrayIndex.from_tick_index(-1, TICK_SPACING)
        assert (index.array_index, index.offset_index) == (-1, 87)
        assert index.to_tick_index() == -64

    def test_neighbours_cross_arrays(self):
        index = TickArrayIndex.from_tick_index(5568, TICK_SPACING)
        assert index.to_next_initializable_tick_index().to_tick_index() == 5632
        assert index.to_next_initializable_tick_index().array_index == 1
        assert TickArrayIndex.from_tick_index(0, TICK_SPACING).to_prev_initializable_tick_index().array_index == -1

    def test_invalid_offset(self):
        with pytest.raises(TickError):
            TickArrayIndex(array_index=0, offset_index=88, tick_spacing=TICK_SPACING)


class TestSequenceTraversal:
    def test_a_to_b_walk(self, a_to_b_sequence):
        visited = []
        current = 2100
        for _ in range(6):
            tick_index, tick = a_to_b_sequence.find_next_initialized_tick_index(current)
            assert tick is not None and tick.initialized
            visited.append(tick_index)
            current = tick_index - 1

        assert visited == [2048, 0, -2432, -5632, -8064, -9664]

    def test_a_to_b_includes_current_tick(self, a_to_b_sequence):
        assert a_to_b_sequence.find_next_initialized_tick_index(2048)[0] == 2048

    def test_a_to_b_stops_at_edge(self, a_to_b_sequence):
        assert a_to_b_sequence.find_next_initialized_tick_index(-9665) == (-11264, None)

        with pytest.raises(SwapError) as exc:
            a_to_b_sequence.find_next_initialized_tick_index(-11265)
        assert exc.value.error_code == SwapErrorCode.TickArraySequenceInvalid

    def test_b_to_a_walk(self, b_to_a_sequence):
        visited = []
        current = 0
        for _ in range(3):
            tick_index, tick = b_to_a_sequence.find_next_initialized_tick_index(current)
            assert tick is not None
            visited.append(tick_index)
            current = tick_index

        assert visited == [2048, 4032, 6272]

    def test_b_to_a_stops_at_edge(self, b_to_a_sequence):
        assert b_to_a_sequence.find_next_initialized_tick_index(6272) == (16895, None)

        with pytest.raises(SwapError) as exc:
            b_to_a_sequence.find_next_initialized_tick_index(16895)
        assert exc.value.error_code == SwapErrorCode.TickArraySequenceInvalid


class TestTouchedArrays:
    def test_padded_with_last_touched(self, b_to_a_sequence):
        b_to_a_sequence.find_next_initialized_tick_index(0)
        assert b_to_a_sequence.get_touched_arrays(3) == ["ta0", "ta0", "ta0"]

    def test_all_touched(self, a_to_b_sequence):
        for current in (2100, -1, -9665):
            a_to_b_sequence.find_next_initialized_tick_index(current)
        assert a_to_b_sequence.get_touched_arrays(3) == ["ta0", "ta1", "ta2"]

    def test_untouched(self, a_to_b_sequence):
        assert a_to_b_sequence.get_touched_arrays(3) == []


class TestSequenceValidation:
    def test_first_array_must_be_initialized(self):
        with pytest.raises(SwapError) as exc:
            TickArraySequence([_container(None, "missing")], TICK_SPACING, a_to_b=True)
        assert exc.value.error_code == SwapErrorCode.TickArrayIndexNotInitialized

    def test_valid_tick_array_0(self, a_to_b_sequence, b_to_a_sequence):
        assert a_to_b_sequence.is_valid_tick_array_0(0)
        assert not a_to_b_sequence.is_valid_tick_array_0(-1)
        # b to a swaps search from one tick spacing above the current tick
        assert b_to_a_sequence.is_valid_tick_array_0(-1)
        assert not b_to_a_sequence.is_valid_tick_array_0(5600)

    def test_contains_tick_index(self, a_to_b_sequence):
        assert a_to_b_sequence.check_array_contains_tick_index(1, -64)
        assert not a_to_b_sequence.check_array_contains_tick_index(1, 0)

    def test_uninitialized_array_in_path(self):
        sequence = TickArraySequence(
            [_container(TickArray.empty(0), "ta0"), _container(None, "ta1")],
            TICK_SPACING,
            a_to_b=True,
        )
        with pytest.raises(SwapError) as exc:
            sequence.get_tick(-64)
        assert exc.value.error_code == SwapErrorCode.TickArrayIndexNotInitialized

    def test_unexpected_array_in_path(self):
        sequence = TickArraySequence(
            [_container(TickArray.empty(0), "ta0"), _container(TickArray.empty(11264), "ta1")],
            TICK_SPACING,
            a_to_b=True,
        )
        with pytest.raises(SwapError) as exc:
            sequence.get_tick(-64)
        assert exc.value.error_code == SwapErrorCode.TickArraySequenceInvalid

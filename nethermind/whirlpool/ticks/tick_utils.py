from nethermind.whirlpool.exceptions import TickError, TickErrorCode
from nethermind.whirlpool.math.constants import (
    MAX_SWAP_TICK_ARRAYS,
    MAX_TICK_INDEX,
    MIN_TICK_INDEX,
    TICK_ARRAY_SIZE,
)
from nethermind.whirlpool.types import TickArray, TickArrayContainer, TickSearchDirection


def _truncated_mod(value: int, modulus: int) -> int:
    """Remainder with the sign of the dividend, matching the on-chain SDK's tick rounding"""
    remainder = abs(value) % modulus
    return -remainder if value < 0 else remainder


def check_tick_spacing(tick_spacing: int):
    if tick_spacing <= 0:
        raise TickError(f"Tick spacing must be positive, got {tick_spacing}", TickErrorCode.InvalidTickSpacing)


def get_start_tick_index(tick_index: int, tick_spacing: int, offset: int = 0) -> int:
    """
    Start tick of the tick array containing ``tick_index``, optionally shifted by ``offset`` whole arrays.
    The start index is part of the tick array account seed, so it must match the on-chain derivation.

    :param tick_index: any tick index
    :param tick_spacing: pool tick spacing
    :param offset: number of tick arrays to move.  Negative values move toward lower prices
    """
    check_tick_spacing(tick_spacing)
    ticks_in_array = TICK_ARRAY_SIZE * tick_spacing

    start_tick_index = (tick_index // ticks_in_array + offset) * ticks_in_array

    min_tick_index = MIN_TICK_INDEX - (_truncated_mod(MIN_TICK_INDEX, ticks_in_array) + ticks_in_array)
    if start_tick_index < min_tick_index:
        raise TickError(
            f"start_tick_index ({start_tick_index}) is below the minimum start index ({min_tick_index})",
            TickErrorCode.InvalidTickIndex,
        )
    if start_tick_index > MAX_TICK_INDEX:
        raise TickError(
            f"start_tick_index ({start_tick_index}) is above MAX_TICK_INDEX ({MAX_TICK_INDEX})",
            TickErrorCode.InvalidTickIndex,
        )

    return start_tick_index


def get_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    """Rounds a tick toward zero onto the tick spacing grid"""
    return tick_index - _truncated_mod(tick_index, tick_spacing)


def get_next_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    return get_initializable_tick_index(tick_index, tick_spacing) + tick_spacing


def get_prev_initializable_tick_index(tick_index: int, tick_spacing: int) -> int:
    return get_initializable_tick_index(tick_index, tick_spacing) - tick_spacing


def get_full_range_tick_indexes(tick_spacing: int) -> tuple[int, int]:
    """Lowest & highest initializable ticks for a tick spacing"""
    max_tick = MAX_TICK_INDEX // tick_spacing * tick_spacing
    return -max_tick, max_tick


def tick_index_to_inner_index(start_tick_index: int, tick_index: int, tick_spacing: int) -> int:
    return (tick_index - start_tick_index) // tick_spacing


def inner_index_to_tick_index(start_tick_index: int, inner_index: int, tick_spacing: int) -> int:
    return start_tick_index + inner_index * tick_spacing


def check_tick_in_bounds(tick_index: int) -> bool:
    return MIN_TICK_INDEX <= tick_index <= MAX_TICK_INDEX


def is_tick_initializable(tick_index: int, tick_spacing: int) -> bool:
    return tick_index % tick_spacing == 0


def find_initialized_tick(
    tick_array: TickArray,
    current_tick_index: int,
    tick_spacing: int,
    search_direction: TickSearchDirection,
) -> int | None:
    """
    Searches a single tick array for the closest initialized tick.  Searching right starts after the
    current tick, searching left includes it.

    :return: tick index of the initialized tick, or None if the array has none in that direction
    """
    current_inner_index = tick_index_to_inner_index(tick_array.start_tick_index, current_tick_index, tick_spacing)

    increment = 1 if search_direction == TickSearchDirection.right else -1
    step_index = current_inner_index + 1 if search_direction == TickSearchDirection.right else current_inner_index

    while 0 <= step_index < len(tick_array.ticks):
        if tick_array.ticks[step_index].initialized:
            return inner_index_to_tick_index(tick_array.start_tick_index, step_index, tick_spacing)
        step_index += increment

    return None


def find_next_initialized_tick_index(tick_array: TickArray, current_tick_index: int, tick_spacing: int) -> int | None:
    return find_initialized_tick(tick_array, current_tick_index, tick_spacing, TickSearchDirection.right)


def find_previous_initialized_tick_index(
    tick_array: TickArray,
    current_tick_index: int,
    tick_spacing: int,
) -> int | None:
    return find_initialized_tick(tick_array, current_tick_index, tick_spacing, TickSearchDirection.left)


def get_tick_array_start_indices_for_swap(tick_current_index: int, tick_spacing: int, a_to_b: bool) -> list[int]:
    """
    Start indexes of the tick arrays a swap from ``tick_current_index`` may traverse, in traversal
    order.  Fewer than three are returned when the sequence runs into the edge of the tick range.
    """
    shift = 0 if a_to_b else tick_spacing
    offset = 0
    start_indices: list[int] = []

    for _ in range(MAX_SWAP_TICK_ARRAYS):
        try:
            start_indices.append(get_start_tick_index(tick_current_index + shift, tick_spacing, offset))
        except TickError:
            break
        offset = offset - 1 if a_to_b else offset + 1

    return start_indices


def get_uninitialized_arrays(tick_arrays: list[TickArrayContainer]) -> list[int]:
    """Positions within ``tick_arrays`` of containers without account data"""
    return [idx for idx, container in enumerate(tick_arrays) if container.data is None]

import logging
from dataclasses import dataclass

from nethermind.whirlpool.exceptions import SwapError, SwapErrorCode, TickError, TickErrorCode
from nethermind.whirlpool.math.constants import MAX_TICK_INDEX, MIN_TICK_INDEX, TICK_ARRAY_SIZE
from nethermind.whirlpool.types import Tick, TickArrayContainer

root_logger = logging.getLogger("nethermind")
logger = root_logger.getChild("whirlpool").getChild("ticks")


@dataclass(frozen=True, slots=True)
class TickArrayIndex:
    """Location of a tick as (tick array number, offset within the array)"""

    array_index: int
    offset_index: int
    tick_spacing: int

    def __post_init__(self):
        if not 0 <= self.offset_index < TICK_ARRAY_SIZE:
            raise TickError(
                f"Invalid offset_index {self.offset_index}.  Must be in [0, {TICK_ARRAY_SIZE})",
                TickErrorCode.InvalidTickIndex,
            )

    @classmethod
    def from_tick_index(cls, index: int, tick_spacing: int) -> "TickArrayIndex":
        spaced_index = index // tick_spacing
        return cls(
            array_index=spaced_index // TICK_ARRAY_SIZE,
            offset_index=spaced_index % TICK_ARRAY_SIZE,
            tick_spacing=tick_spacing,
        )

    def to_tick_index(self) -> int:
        return self.array_index * TICK_ARRAY_SIZE * self.tick_spacing + self.offset_index * self.tick_spacing

    def to_next_initializable_tick_index(self) -> "TickArrayIndex":
        return TickArrayIndex.from_tick_index(self.to_tick_index() + self.tick_spacing, self.tick_spacing)

    def to_prev_initializable_tick_index(self) -> "TickArrayIndex":
        return TickArrayIndex.from_tick_index(self.to_tick_index() - self.tick_spacing, self.tick_spacing)


class TickArraySequence:
    """
    Ordered tick arrays supplied for a swap, starting with the array containing the current tick and
    continuing in the swap direction.  Tracks which arrays the swap touched, so the quote can report the
    exact accounts the instruction needs.

    A sequence is scoped to a single simulation.  Tick data is never mutated.
    """

    def __init__(self, tick_arrays: list[TickArrayContainer], tick_spacing: int, a_to_b: bool):
        if len(tick_arrays) == 0 or tick_arrays[0].data is None:
            raise SwapError("TickArray index 0 must be initialized", SwapErrorCode.TickArrayIndexNotInitialized)

        self.tick_arrays = tick_arrays
        self.tick_spacing = tick_spacing
        self.a_to_b = a_to_b
        self.touched_arrays = [False] * len(tick_arrays)
        self.start_array_index = TickArrayIndex.from_tick_index(
            tick_arrays[0].data.start_tick_index,
            tick_spacing,
        ).array_index

    def check_array_contains_tick_index(self, sequence_index: int, tick_index: int) -> bool:
        data = self.tick_arrays[sequence_index].data
        if data is None:
            return False
        return self._index_in_array_range(data.start_tick_index, tick_index)

    def is_valid_tick_array_0(self, tick_current_index: int) -> bool:
        """
        Checks that the first array contains the current tick.  For b to a swaps the search starts one tick
        spacing higher, so the array after a boundary tick is the correct first array.
        """
        shift = 0 if self.a_to_b else self.tick_spacing
        data = self.tick_arrays[0].data
        if data is None:
            return False
        return self._index_in_array_range(data.start_tick_index, tick_current_index + shift)

    def get_tick(self, index: int) -> Tick:
        target = TickArrayIndex.from_tick_index(index, self.tick_spacing)
        if not self._is_array_index_in_bounds(target):
            raise SwapError(
                f"Tick index {index} is out of bounds for this sequence",
                SwapErrorCode.TickArraySequenceInvalid,
            )

        local_index = self._local_array_index(target.array_index)
        tick_array = self.tick_arrays[local_index].data
        self.touched_arrays[local_index] = True

        if tick_array is None:
            raise SwapError(
                f"TickArray at index {local_index} is not initialized",
                SwapErrorCode.TickArrayIndexNotInitialized,
            )

        if not self._index_in_array_range(tick_array.start_tick_index, index):
            raise SwapError(
                f"TickArray at index {local_index} starting at {tick_array.start_tick_index} is unexpected "
                f"for this sequence",
                SwapErrorCode.TickArraySequenceInvalid,
            )

        return tick_array.ticks[target.offset_index]

    def find_next_initialized_tick_index(self, current_index: int) -> tuple[int, Tick | None]:
        """
        Finds the next initialized tick in the swap direction.  For a to b swaps the current tick itself is
        a candidate, since crossing it moves the price down.

        If no initialized tick exists in the remaining arrays, returns the last tick reachable in the
        supplied arrays with a ``None`` tick.  The swap may move the price to that edge without crossing.

        :raises SwapError: ``TickArraySequenceInvalid`` when the search starts outside of the supplied
            arrays, meaning the caller did not supply enough tick arrays for the swap
        """
        search_index = current_index if self.a_to_b else current_index + self.tick_spacing
        current_array_index = TickArrayIndex.from_tick_index(search_index, self.tick_spacing)

        if not self._is_array_index_in_bounds(current_array_index):
            raise SwapError(
                f"Swap input value traversed too many arrays.  Out of bounds at attempt to traverse "
                f"tick index {current_array_index.to_tick_index()}",
                SwapErrorCode.TickArraySequenceInvalid,
            )

        while self._is_array_index_in_bounds(current_array_index):
            tick_index = current_array_index.to_tick_index()
            tick = self.get_tick(tick_index)
            if tick.initialized:
                return tick_index, tick

            current_array_index = (
                current_array_index.to_prev_initializable_tick_index()
                if self.a_to_b
                else current_array_index.to_next_initializable_tick_index()
            )

        edge_index = current_array_index.to_tick_index()
        edge_index = edge_index + self.tick_spacing if self.a_to_b else edge_index - 1
        last_index_in_array = max(min(edge_index, MAX_TICK_INDEX), MIN_TICK_INDEX)

        logger.debug(f"No initialized tick found in supplied arrays.  Moving to edge tick {last_index_in_array}")
        return last_index_in_array, None

    def get_touched_arrays(self, min_array_size: int) -> list[str]:
        """
        Addresses of touched arrays in traversal order, padded with the last touched array to
        ``min_array_size`` entries
        """
        result = [container.address for container, touched in zip(self.tick_arrays, self.touched_arrays) if touched]

        if result:
            while len(result) < min_array_size:
                result.append(result[-1])

        return result

    def _index_in_array_range(self, start_tick: int, tick_index: int) -> bool:
        upper_bound = start_tick + self.tick_spacing * TICK_ARRAY_SIZE
        return start_tick <= tick_index < upper_bound

    def _local_array_index(self, array_index: int) -> int:
        return self.start_array_index - array_index if self.a_to_b else array_index - self.start_array_index

    def _is_array_index_in_bounds(self, index: TickArrayIndex) -> bool:
        local_index = self._local_array_index(index.array_index)
        return 0 <= local_index < len(self.tick_arrays)

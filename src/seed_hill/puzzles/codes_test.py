import pytest

from seed_hill.puzzles.codes import (
    ClockMode,
    code_digits,
    crematorium_code_from_seed,
    gen_clock_puzzle,
    gen_crematorium_code,
    gen_hospital3f_code,
    gen_shakespeare_code,
    pack_clock,
    pool_index,
    unpack_clock,
)
from seed_hill.rng.backend import RngBackend, advance

PS2 = RngBackend.PS2
PC = RngBackend.PC


class TestPoolIndex:
    """Test suite for the signed index rule"""

    def test_non_negative_output(self):
        assert pool_index(0x3039, 10) == 5
        assert pool_index(0x53DC167E, 9) == 1

    def test_negative_output_is_corrected(self):
        """Test that a negative signed remainder wraps into the pool"""
        assert pool_index(0xFFFFFFFF, 10) == 9
        assert pool_index(0x80000000, 7) == 5

    def test_always_in_range(self):
        for r in (0, 1, 0x7FFFFFFF, 0x80000001, 0xFFFFFFF0):
            for size in range(1, 11):
                assert 0 <= pool_index(r, size) < size


class TestShakespeare:
    """Test suite for the Shakespeare code"""

    @pytest.mark.parametrize("backend, seed, warmup, expected", [
        (PS2, 0, 0, 0x5194),
        (PS2, 0, 1, 0x6541),
        (PS2, 0, 10, 0x7360),
        (PS2, 1, 0, 0x0467),
        (PS2, 1, 10, 0x8527),
        (PS2, 0x12345678, 0, 0x5890),
        (PS2, 0xDEADBEEF, 0, 0x8130),
        (PC, 0, 0, 0x0174),
        (PC, 0, 1, 0x1365),
        (PC, 0, 10, 0x6839),
        (PC, 1, 0, 0x7580),
    ])
    def test_known_codes(self, backend, seed, warmup, expected):
        assert gen_shakespeare_code(seed, warmup, backend) == expected

    def test_trace_from_seed_zero(self):
        """Test the per-draw trace on PS2 from seed 0"""
        trace = []
        gen_shakespeare_code(0, 0, PS2, trace=trace)
        assert [(s.pool_size, s.index, s.digit) for s in trace] == [
            (10, 5, 5), (9, 1, 1), (8, 7, 9), (7, 3, 4),
        ]
        assert trace[0].output == 0x3039

    @pytest.mark.parametrize("backend", [PS2, PC])
    def test_digits_unique_and_in_range(self, backend):
        for seed in range(0, 2000, 7):
            digits = code_digits(gen_shakespeare_code(seed, 0, backend))
            assert len(set(digits)) == 4
            assert all(0 <= d <= 9 for d in digits)


class TestHospital3F:
    """Test suite for the 3F Hospital code"""

    @pytest.mark.parametrize("backend, seed, warmup, expected", [
        (PS2, 0, 0, 0x7895),
        (PS2, 0, 1, 0x2958),
        (PS2, 0, 10, 0x9567),
        (PS2, 1, 0, 0x7982),
        (PS2, 1, 10, 0x3769),
        (PS2, 0x12345678, 0, 0x6857),
        (PS2, 0xDEADBEEF, 0, 0x2714),
        (PC, 0, 0, 0x6721),
        (PC, 0, 1, 0x1748),
        (PC, 0, 10, 0x3569),
        (PC, 1, 0, 0x7586),
    ])
    def test_known_codes(self, backend, seed, warmup, expected):
        assert gen_hospital3f_code(seed, warmup, backend) == expected

    @pytest.mark.parametrize("backend", [PS2, PC])
    def test_never_contains_zero(self, backend):
        for seed in range(0, 2000, 7):
            digits = code_digits(gen_hospital3f_code(seed, 3, backend))
            assert 0 not in digits
            assert len(set(digits)) == 4


class TestCrematorium:
    """Test suite for the Crematorium Oven code"""

    @pytest.mark.parametrize("backend, seed, warmup, code, forced, position", [
        (PS2, 0, 0, 0x5174, True, 1),
        (PS2, 0, 1, 0x6741, True, 2),
        (PS2, 0, 10, 0x7360, False, None),
        (PS2, 1, 0, 0x0467, False, None),
        (PS2, 0x12345678, 0, 0x5870, True, 1),
        (PS2, 0xDEADBEEF, 0, 0x8137, True, 0),
        (PC, 0, 0, 0x0174, False, None),
        (PC, 0, 1, 0x1375, True, 1),
        (PC, 0, 10, 0x7839, True, 3),
        (PC, 1, 0, 0x7580, False, None),
    ])
    def test_known_codes(self, backend, seed, warmup, code, forced, position):
        result = gen_crematorium_code(seed, warmup, backend)
        assert result.code == code
        assert result.forced7 is forced
        assert result.forced_position == position

    def test_forced_consumes_five_calls(self):
        """Test that forcing a 7 costs one extra logical call"""
        state, result = crematorium_code_from_seed(0, PS2)
        assert result.forced7
        assert result.calls == 5
        assert state == advance(0, PS2, 5)

    def test_unforced_consumes_four_calls(self):
        seed = advance(0, PS2, 10)
        state, result = crematorium_code_from_seed(seed, PS2)
        assert not result.forced7
        assert result.calls == 4
        assert state == advance(seed, PS2, 4)

    def test_force_trace(self):
        """Test the trace of the forcing call"""
        draws, forces = [], []
        gen_crematorium_code(0, 0, PS2, trace=draws, force_trace=forces)
        assert len(draws) == 4
        assert len(forces) == 1
        assert forces[0].output == 0x0DAA96F5
        assert forces[0].position == 1
        assert (forces[0].before, forces[0].after) == (0x5194, 0x5174)

    def test_matches_shakespeare_when_seven_drawn(self):
        """Test that an unforced code equals the plain 0-9 draw"""
        for seed in range(0, 1000, 13):
            result = gen_crematorium_code(seed, 0, PS2)
            if not result.forced7:
                assert result.code == gen_shakespeare_code(seed, 0, PS2)

    @pytest.mark.parametrize("backend", [PS2, PC])
    def test_always_contains_seven(self, backend):
        for seed in range(0, 2000, 11):
            result = gen_crematorium_code(seed, 0, backend)
            assert 7 in code_digits(result.code)
            assert result.calls == (5 if result.forced7 else 4)


class TestClock:
    """Test suite for the clock puzzle"""

    @pytest.mark.parametrize("backend, seed, warmup, mode, packed", [
        (PS2, 0, 0, ClockMode.TWELVE_HOUR, 0x1046),
        (PS2, 0, 0, ClockMode.TWENTY_FOUR_HOUR, 0x2146),
        (PS2, 0, 1, ClockMode.TWELVE_HOUR, 0x1135),
        (PS2, 0, 1, ClockMode.TWENTY_FOUR_HOUR, 0x2235),
        (PS2, 0, 10, ClockMode.TWELVE_HOUR, 0x1224),
        (PS2, 0, 10, ClockMode.TWENTY_FOUR_HOUR, 0x2324),
        (PS2, 1, 0, ClockMode.TWELVE_HOUR, 0x0715),
        (PS2, 1, 0, ClockMode.TWENTY_FOUR_HOUR, 0x1815),
        (PS2, 0x12345678, 0, ClockMode.TWELVE_HOUR, 0x0658),
        (PS2, 0x12345678, 0, ClockMode.TWENTY_FOUR_HOUR, 0x1758),
        (PC, 0, 0, ClockMode.TWELVE_HOUR, 0x0321),
        (PC, 0, 0, ClockMode.TWENTY_FOUR_HOUR, 0x1421),
        (PC, 0, 1, ClockMode.TWELVE_HOUR, 0x1005),
        (PC, 0, 1, ClockMode.TWENTY_FOUR_HOUR, 0x2105),
        (PC, 1, 0, ClockMode.TWELVE_HOUR, 0x1032),
        (PC, 1, 0, ClockMode.TWENTY_FOUR_HOUR, 0x2132),
    ])
    def test_known_readings(self, backend, seed, warmup, mode, packed):
        assert gen_clock_puzzle(seed, warmup, mode, backend).packed == packed

    def test_reading_fields(self):
        """Test hour and minute come from consecutive calls"""
        reading = gen_clock_puzzle(0, 0, ClockMode.TWELVE_HOUR, PS2)
        assert (reading.hour, reading.minute) == (10, 46)
        assert reading.r_hour == 0x3039
        assert reading.r_min == 0x53DC167E

    @pytest.mark.parametrize("mode, low, high", [
        (ClockMode.TWELVE_HOUR, 1, 12),
        (ClockMode.TWENTY_FOUR_HOUR, 12, 23),
    ])
    def test_ranges(self, mode, low, high):
        for seed in range(0, 3000, 17):
            reading = gen_clock_puzzle(seed, 0, mode, PC)
            assert low <= reading.hour <= high
            assert 0 <= reading.minute <= 59

    def test_mode_from_flag(self):
        assert ClockMode.from_flag(True) is ClockMode.TWENTY_FOUR_HOUR
        assert ClockMode.from_flag(False) is ClockMode.TWELVE_HOUR

    def test_pack_round_trip(self):
        assert pack_clock(23, 5) == 0x2305
        assert unpack_clock(0x2305) == (23, 5)
        assert pack_clock(7, 40) == 0x0740

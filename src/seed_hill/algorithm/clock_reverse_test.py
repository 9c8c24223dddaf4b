import pytest

from seed_hill.algorithm import clock_reverse
from seed_hill.algorithm.clock_reverse import find_clock_base_seeds, hour_residue, residues_compatible
from seed_hill.puzzles.codes import ClockMode, gen_clock_puzzle, pack_clock
from seed_hill.rng.backend import RngBackend
from seed_hill.rng.inverse import ps2_inverse, rewind

TWELVE = ClockMode.TWELVE_HOUR
TWENTY_FOUR = ClockMode.TWENTY_FOUR_HOUR


class TestHourResidue:
    """Test suite for hour_residue()"""

    def test_twelve_hour_path(self):
        assert hour_residue(1, TWELVE) == 0
        assert hour_residue(12, TWELVE) == 11
        assert hour_residue(13, TWELVE) is None
        assert hour_residue(0, TWELVE) is None

    def test_twenty_four_hour_path(self):
        assert hour_residue(12, TWENTY_FOUR) == 0
        assert hour_residue(23, TWENTY_FOUR) == 11
        assert hour_residue(11, TWENTY_FOUR) is None
        assert hour_residue(24, TWENTY_FOUR) is None

    def test_low_bit_compatibility(self):
        inverse = ps2_inverse()
        # prev(0) = 0x7C77A683, which is 3 mod 4
        assert residues_compatible(0, 3, inverse)
        assert not residues_compatible(0, 5, inverse)


class TestFindClockBaseSeeds:
    """Test suite for the analytic base seed enumeration"""

    @pytest.mark.parametrize("hour, minute, mode, warmup, expected", [
        (3, 15, TWELVE, 0, [0x20017FC5, 0x1C5ADC59, 0x18B438ED, 0x3E80B45D]),
        (12, 32, TWELVE, 5, [0x3A9353B9, 0x23AA97DD, 0x5A74480D, 0x438B8C31]),
        (14, 3, TWENTY_FOUR, 3, [0x441D81FE, 0x446E1CC2, 0x6F33A5AE, 0x6F844072]),
        (23, 0, TWENTY_FOUR, 1000, [0x6DA4AAF2, 0x4DF63306, 0x2E47BB1A, 0x2EB4708A]),
    ])
    def test_known_candidates(self, hour, minute, mode, warmup, expected):
        candidates = find_clock_base_seeds(hour, minute, mode, warmup, max_results=4)
        assert [c.base_seed for c in candidates] == expected
        for c in candidates:
            reading = gen_clock_puzzle(c.base_seed, warmup, mode, RngBackend.PS2)
            assert reading.packed == pack_clock(hour, minute)

    def test_candidate_fields_are_consistent(self):
        """Test that each candidate carries the states it was derived from"""
        for c in find_clock_base_seeds(12, 32, TWELVE, 5, max_results=8):
            reading = gen_clock_puzzle(c.seed_after_warmup, 0, TWELVE, RngBackend.PS2)
            assert (reading.r_hour, reading.r_min) == (c.r_hour, c.r_min)
            assert c.r_min % 60 == 32

    def test_ordered_by_minute_state(self):
        candidates = find_clock_base_seeds(4, 0, TWELVE, 0, max_results=50)
        r_mins = [c.r_min for c in candidates]
        assert r_mins == sorted(r_mins)
        assert all(r % 60 == 0 for r in r_mins)

    @pytest.mark.parametrize("hour, mode", [(13, TWELVE), (0, TWELVE), (11, TWENTY_FOUR)])
    def test_hour_out_of_range(self, hour, mode):
        assert find_clock_base_seeds(hour, 0, mode, 0) == []

    @pytest.mark.parametrize("hour, minute, mode", [
        (17, 0, TWENTY_FOUR),
        (17, 1, TWENTY_FOUR),
        (1, 0, TWELVE),
        (12, 30, TWELVE),
        (14, 2, TWENTY_FOUR),
    ])
    def test_incompatible_residues(self, hour, minute, mode):
        """Test combinations whose low bits can never agree"""
        assert find_clock_base_seeds(hour, minute, mode, 10) == []

    def test_zero_results_requested(self):
        assert find_clock_base_seeds(3, 15, TWELVE, 0, max_results=0) == []

    def test_agrees_with_forward_check(self):
        """Test against forward-simulating every minute-stage state below a limit"""
        limit = 10_000
        inverse = ps2_inverse()
        expected = []
        for seed2 in range(limit):
            base = rewind(seed2, 2, inverse)
            if gen_clock_puzzle(base, 0, TWELVE, RngBackend.PS2).packed == pack_clock(3, 15):
                expected.append(base)
        found = find_clock_base_seeds(3, 15, TWELVE, 0, max_results=1000, candidate_limit=limit)
        assert expected
        assert [c.base_seed for c in found] == expected

    def test_progress_completes(self):
        snapshots = []
        find_clock_base_seeds(3, 15, TWELVE, 0, max_results=1000, candidate_limit=5000, on_progress=snapshots.append)
        assert snapshots[-1].complete
        assert snapshots[-1].search == "clock-base-seeds"

    def test_no_inverse_stops_enumeration(self, monkeypatch):
        """Test that a missing modular inverse yields an empty result"""
        monkeypatch.setattr(clock_reverse, "ps2_inverse", lambda: None)
        snapshots = []
        assert find_clock_base_seeds(3, 15, TWELVE, 0, on_progress=snapshots.append) == []
        assert snapshots == []

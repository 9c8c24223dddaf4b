import threading

import pytest

from seed_hill.progress_channel import LatestValueChannel
from seed_hill.search_snapshot import SearchSnapshot


class TestLatestValueChannel:
    """Test suite for LatestValueChannel"""

    def test_latest_value_wins(self):
        channel = LatestValueChannel()
        channel.publish(1)
        channel.publish(2)
        assert channel.next(timeout=1) == 2
        assert channel.published == 2

    def test_drained_then_closed(self):
        """Test that a closed channel still hands over its pending value"""
        channel = LatestValueChannel()
        channel.publish("last")
        channel.close()
        assert channel.next(timeout=1) == "last"
        assert channel.next(timeout=1) is None

    def test_publish_after_close_ignored(self):
        channel = LatestValueChannel()
        channel.close()
        channel.publish(1)
        assert channel.next(timeout=1) is None
        assert channel.published == 0

    def test_timeout(self):
        channel = LatestValueChannel()
        with pytest.raises(TimeoutError):
            channel.next(timeout=0.01)

    def test_cross_thread(self):
        """Test a producer thread and a consumer that ends on close"""
        channel = LatestValueChannel()

        def produce():
            for i in range(100):
                channel.publish(i)
            channel.close()

        thread = threading.Thread(target=produce)
        thread.start()
        seen = []
        while True:
            value = channel.next(timeout=5)
            if value is None:
                break
            seen.append(value)
        thread.join()
        assert seen
        assert seen == sorted(seen)
        assert seen[-1] == 99


class TestSearchSnapshot:
    """Test suite for SearchSnapshot"""

    def test_fraction(self):
        snap = SearchSnapshot(search="t", position=50, lower=0, upper=200, matches=0, complete=False)
        assert snap.fraction == 0.25

    def test_fraction_empty_span(self):
        snap = SearchSnapshot(search="t", position=3, lower=3, upper=3, matches=0, complete=True)
        assert snap.fraction == 1.0

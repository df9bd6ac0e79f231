"""Unit tests for the result cache."""

from fplive.cache import ResultCache, gameweek_confirmed


class TestGameweekConfirmed:
    """Tests for the completion predicate."""

    def test_finished_and_checked(self):
        """Test a finished, checked gameweek is confirmed."""
        assert gameweek_confirmed(True, True)

    def test_finished_not_checked(self):
        """Test a finished gameweek awaiting data checks is not confirmed."""
        assert not gameweek_confirmed(True, False)
        assert not gameweek_confirmed(False, False)


class TestResultCache:
    """Tests for the gated write policy."""

    def test_live_result_not_cached(self):
        """Test results of an unconfirmed gameweek are never stored."""
        cache = ResultCache()
        assert cache.put((1, 10), 'score') is False
        assert cache.get((1, 10)) is None
        assert (1, 10) not in cache

    def test_confirmed_result_cached(self):
        """Test results of a confirmed gameweek are stored."""
        cache = ResultCache()
        assert cache.put((1, 10), 'score', confirmed=True) is True
        assert cache.get((1, 10)) == 'score'
        assert len(cache) == 1

    def test_custom_policy(self):
        """Test the write policy is a single replaceable predicate."""
        cache = ResultCache(should_cache=lambda key, value, confirmed: key[1] < 5)
        assert cache.put((1, 4), 'old')
        assert not cache.put((1, 5), 'live', confirmed=True)

    def test_clear(self):
        """Test clearing empties the cache."""
        cache = ResultCache()
        cache.put((1, 10), 'score', confirmed=True)
        cache.clear()
        assert len(cache) == 0

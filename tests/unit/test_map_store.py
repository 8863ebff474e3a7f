"""
Unit tests for the source map store.
"""

import asyncio

import pytest
from pydantic import ValidationError

from symbolicator.models.cache import CachePolicy, CachePolicyKind
from symbolicator.services.map_store import MapStore, MapUnavailable


APP_URL = "https://cdn.example.com/app.min.js"
VENDOR_URL = "https://cdn.example.com/vendor.min.js"


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def documents(map_document):
    """Map documents for two scripts."""
    return {
        APP_URL: map_document("AAAA,SAAA", sources=["app.ts"]),
        VENDOR_URL: map_document("AAAA", sources=["vendor.ts"]),
    }


class TestCachePolicy:
    """Tests for cache policy validation."""

    def test_default_is_unbounded(self):
        """Test the default policy."""
        assert CachePolicy().kind == CachePolicyKind.UNBOUNDED

    def test_factories(self):
        """Test the policy constructors."""
        assert CachePolicy.bounded(5).max_entries == 5
        assert CachePolicy.ttl(30).ttl_seconds == 30

    def test_missing_parameters(self):
        """Test each bounded kind requires its parameter."""
        with pytest.raises(ValidationError):
            CachePolicy(kind=CachePolicyKind.MAX_ENTRIES)
        with pytest.raises(ValidationError):
            CachePolicy(kind=CachePolicyKind.TTL)

    def test_invalid_limits(self):
        """Test non-positive limits."""
        with pytest.raises(ValidationError):
            CachePolicy.bounded(0)
        with pytest.raises(ValidationError):
            CachePolicy.ttl(0)


class TestMapStoreGet:
    """Tests for fetching and caching maps."""

    @pytest.mark.asyncio
    async def test_get_decodes_and_caches(self, fake_fetcher_factory, documents):
        """Test the first get loads, later gets hit the cache."""
        fetcher = fake_fetcher_factory(documents)
        store = MapStore(fetcher)

        first = await store.get(APP_URL)
        second = await store.get(APP_URL)

        assert first is second
        assert first.is_decoded
        assert fetcher.calls == [APP_URL]
        assert store.decode_count == 1
        assert store.hits == 1
        assert store.misses == 1
        assert APP_URL in store
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_concurrent_requests_coalesce(self, fake_fetcher_factory, documents):
        """Test concurrent gets for one URL share a single fetch and decode."""
        fetcher = fake_fetcher_factory(documents, delay=0.01)
        store = MapStore(fetcher)

        results = await asyncio.gather(*[store.get(APP_URL) for _ in range(10)])

        assert all(result is results[0] for result in results)
        assert fetcher.calls == [APP_URL]
        assert store.decode_count == 1

    @pytest.mark.asyncio
    async def test_distinct_urls_load_independently(self, fake_fetcher_factory, documents):
        """Test different URLs do not share a load."""
        fetcher = fake_fetcher_factory(documents, delay=0.01)
        store = MapStore(fetcher)

        app, vendor = await asyncio.gather(store.get(APP_URL), store.get(VENDOR_URL))

        assert app.sources == ["app.ts"]
        assert vendor.sources == ["vendor.ts"]
        assert store.decode_count == 2

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter_and_is_not_cached(self, fake_fetcher_factory):
        """Test a coalesced failure and the retry after it."""
        fetcher = fake_fetcher_factory({}, delay=0.01)
        store = MapStore(fetcher)

        results = await asyncio.gather(
            *[store.get(APP_URL) for _ in range(3)], return_exceptions=True
        )

        assert all(isinstance(result, MapUnavailable) for result in results)
        assert fetcher.calls == [APP_URL]
        assert APP_URL not in store

        with pytest.raises(MapUnavailable):
            await store.get(APP_URL)
        assert fetcher.calls == [APP_URL, APP_URL]
        assert store.stats()["in_flight"] == 0

    @pytest.mark.asyncio
    async def test_invalid_document(self, fake_fetcher_factory):
        """Test a document that is not JSON."""
        store = MapStore(fake_fetcher_factory({APP_URL: "<html>not found</html>"}))

        with pytest.raises(MapUnavailable, match="invalid source map document") as exc_info:
            await store.get(APP_URL)
        assert exc_info.value.location == APP_URL

    @pytest.mark.asyncio
    async def test_wrong_version(self, fake_fetcher_factory, map_document):
        """Test a version 2 document."""
        store = MapStore(fake_fetcher_factory({APP_URL: map_document("AAAA", version=2)}))

        with pytest.raises(MapUnavailable):
            await store.get(APP_URL)

    @pytest.mark.asyncio
    async def test_malformed_mappings(self, fake_fetcher_factory, map_document):
        """Test a document whose mappings do not decode."""
        store = MapStore(fake_fetcher_factory({APP_URL: map_document("AAA")}))

        with pytest.raises(MapUnavailable, match="malformed mappings"):
            await store.get(APP_URL)
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_fetch_timeout(self, fake_fetcher_factory, documents):
        """Test a slow fetch is abandoned."""
        store = MapStore(fake_fetcher_factory(documents, delay=1.0), fetch_timeout=0.01)

        with pytest.raises(MapUnavailable, match="timed out"):
            await store.get(APP_URL)

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_load(self, fake_fetcher_factory, documents):
        """Test one waiter giving up leaves the shared load running."""
        fetcher = fake_fetcher_factory(documents, delay=0.05)
        store = MapStore(fetcher)

        impatient = asyncio.ensure_future(store.get(APP_URL))
        patient = asyncio.ensure_future(store.get(APP_URL))
        await asyncio.sleep(0)
        impatient.cancel()

        source_map = await patient

        assert source_map.sources == ["app.ts"]
        assert impatient.cancelled()
        assert store.decode_count == 1


class TestEviction:
    """Tests for cache policies and explicit eviction."""

    @pytest.mark.asyncio
    async def test_unbounded_keeps_everything(self, fake_fetcher_factory, documents):
        """Test the default policy never evicts."""
        store = MapStore(fake_fetcher_factory(documents))

        await store.get(APP_URL)
        await store.get(VENDOR_URL)

        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_max_entries_evicts_least_recently_used(self, fake_fetcher_factory, documents, map_document):
        """Test LRU eviction under a max-entries policy."""
        third_url = "https://cdn.example.com/chunk.min.js"
        documents[third_url] = map_document("AAAA")
        store = MapStore(fake_fetcher_factory(documents), policy=CachePolicy.bounded(2))

        await store.get(APP_URL)
        await store.get(VENDOR_URL)
        await store.get(APP_URL)
        await store.get(third_url)

        assert APP_URL in store
        assert third_url in store
        assert VENDOR_URL not in store
        assert len(store) == 2

    @pytest.mark.asyncio
    async def test_ttl_expiry(self, fake_fetcher_factory, documents):
        """Test entries older than the TTL are reloaded."""
        clock = FakeClock()
        fetcher = fake_fetcher_factory(documents)
        store = MapStore(fetcher, policy=CachePolicy.ttl(60), clock=clock)

        await store.get(APP_URL)
        clock.advance(30)
        await store.get(APP_URL)
        assert fetcher.calls == [APP_URL]

        clock.advance(31)
        assert APP_URL not in store
        await store.get(APP_URL)
        assert fetcher.calls == [APP_URL, APP_URL]
        assert store.decode_count == 2

    @pytest.mark.asyncio
    async def test_evict_and_clear(self, fake_fetcher_factory, documents):
        """Test explicit eviction."""
        store = MapStore(fake_fetcher_factory(documents))
        await store.get(APP_URL)
        await store.get(VENDOR_URL)

        assert store.evict(APP_URL) is True
        assert store.evict(APP_URL) is False
        assert store.clear() == 1
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_stats(self, fake_fetcher_factory, documents):
        """Test the stats snapshot."""
        store = MapStore(fake_fetcher_factory(documents), policy=CachePolicy.bounded(10))
        await store.get(APP_URL)
        await store.get(APP_URL)

        assert store.stats() == {
            "policy": "max-entries",
            "entries": 1,
            "in_flight": 0,
            "hits": 1,
            "misses": 1,
            "decodes": 1,
        }

    @pytest.mark.asyncio
    async def test_independent_stores(self, fake_fetcher_factory, documents):
        """Test stores do not share entries."""
        first = MapStore(fake_fetcher_factory(documents))
        second = MapStore(fake_fetcher_factory(documents))

        await first.get(APP_URL)

        assert APP_URL in first
        assert APP_URL not in second

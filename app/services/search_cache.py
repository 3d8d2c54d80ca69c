from datetime import datetime, timedelta
from typing import Dict, List, Optional
from dataclasses import dataclass, field
import threading

from app.config import get_settings
from app.models.schemas import SearchCacheStats


@dataclass
class SearchEntry:
    """Last vehicle number an account looked up."""
    account_id: str
    vehicle_number: str
    timestamp: datetime = field(default_factory=datetime.now)

    def is_expired(self, ttl: timedelta) -> bool:
        """Check if this entry has expired."""
        return datetime.now() - self.timestamp > ttl


class RecentSearchCache:
    """
    In-memory record of each account's most recent vehicle lookup.
    Lets a client resume a search across page navigations until the
    TTL passes or the account clears it (e.g. on logout).
    """

    def __init__(self, ttl_minutes: Optional[int] = None):
        settings = get_settings()
        self._ttl = timedelta(minutes=ttl_minutes or settings.search_cache_ttl_min)
        self._cache: Dict[str, SearchEntry] = {}
        self._lock = threading.Lock()

        # Statistics
        self._hit_count = 0
        self._miss_count = 0

    def remember(self, account_id: str, vehicle_number: str) -> None:
        """Store ``vehicle_number`` as the account's latest search."""
        with self._lock:
            self._cache[account_id] = SearchEntry(
                account_id=account_id,
                vehicle_number=vehicle_number,
                timestamp=datetime.now()
            )

    def last_search(self, account_id: str) -> Optional[str]:
        """Latest vehicle number the account looked up, or None once the TTL has passed."""
        with self._lock:
            entry = self._cache.get(account_id)
            if entry is not None and entry.is_expired(self._ttl):
                del self._cache[account_id]
                entry = None
            if entry is None:
                self._miss_count += 1
                return None
            self._hit_count += 1
            return entry.vehicle_number

    def forget(self, account_id: str) -> bool:
        """Drop the account's entry (logout). Returns True if one existed."""
        with self._lock:
            return self._cache.pop(account_id, None) is not None

    def _stale_accounts(self) -> List[str]:
        return [account for account, entry in self._cache.items() if entry.is_expired(self._ttl)]

    def cleanup_expired(self) -> int:
        """Prune accounts whose search has outlived the TTL. Returns how many were dropped."""
        with self._lock:
            stale = self._stale_accounts()
            for account in stale:
                del self._cache[account]
        return len(stale)

    def clear(self) -> None:
        """Forget every account and reset hit/miss counters."""
        with self._lock:
            self._cache.clear()
            self._hit_count = self._miss_count = 0

    def get_stats(self) -> SearchCacheStats:
        with self._lock:
            lookups = self._hit_count + self._miss_count
            expired = len(self._stale_accounts())
            return SearchCacheStats(
                total_entries=len(self._cache),
                active_entries=len(self._cache) - expired,
                expired_entries=expired,
                hit_count=self._hit_count,
                miss_count=self._miss_count,
                hit_rate=self._hit_count / lookups if lookups else 0.0
            )


# Global search cache instance
search_cache = RecentSearchCache()

"""
Game Metadata Resolver
Resolves display names from the name cache, the local appmanifest or the Steam store API
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional

import requests

from lvlinker.core.errors import NotResolvable
from lvlinker.core.models import InstalledItem, ItemMetadata, NameSource
from lvlinker.core.name_cache import NameCache
from lvlinker.utils.logger import get_logger


STORE_API_URL = "https://store.steampowered.com/api/appdetails"


class MetadataResolver:
    """Resolves AppIDs to display names

    Resolution order: cache, local appmanifest, Steam store API. Names from
    the manifest or the API are written through to the cache.
    """

    def __init__(self,
                 cache: NameCache,
                 items: Optional[Dict[str, InstalledItem]] = None,
                 session: Optional[requests.Session] = None,
                 timeout: float = 10,
                 workers: int = 4,
                 offline: bool = False):
        """
        Initialize the resolver

        Args:
            cache: Name cache to read and write through
            items: Scanned games, used for the local manifest lookup
            session: HTTP session (a fresh requests.Session by default)
            timeout: Timeout in seconds for each store API request
            workers: Maximum parallel store API requests (1 = sequential)
            offline: Never query the store API
        """
        self.logger = get_logger(__name__)
        self.cache = cache
        self.items = items or {}
        self.session = session or requests.Session()
        self.timeout = timeout
        self.workers = max(1, workers)
        self.offline = offline

    def resolve(self, app_id: str) -> ItemMetadata:
        """
        Resolve a display name for one AppID

        Raises:
            NotResolvable: No source knows the name (or the lookup failed)
        """
        local = self._resolve_local(app_id)
        if local is not None:
            return local
        return self._resolve_remote(app_id)

    def resolve_all(self, app_ids: Iterable[str]) -> Dict[str, Optional[ItemMetadata]]:
        """
        Resolve a batch of AppIDs; unresolvable ones map to None

        Cache and manifest lookups run in order; store API lookups for the
        remainder run on a bounded worker pool.
        """
        ordered = list(dict.fromkeys(app_ids))
        results: Dict[str, Optional[ItemMetadata]] = {}
        pending: List[str] = []

        for app_id in ordered:
            local = self._resolve_local(app_id)
            if local is not None:
                results[app_id] = local
            else:
                pending.append(app_id)

        if pending:
            if self.offline:
                self.logger.info(f"Offline mode: {len(pending)} game name(s) left unresolved")
            self.logger.debug(f"Looking up {len(pending)} name(s) with {self.workers} worker(s)")
            if self.workers == 1 or len(pending) == 1:
                remote = [self._try_remote(app_id) for app_id in pending]
            else:
                with ThreadPoolExecutor(max_workers=min(self.workers, len(pending))) as executor:
                    remote = list(executor.map(self._try_remote, pending))
            results.update(zip(pending, remote))

        return {app_id: results.get(app_id) for app_id in ordered}

    def _resolve_local(self, app_id: str) -> Optional[ItemMetadata]:
        cached = self.cache.get(app_id)
        if cached:
            self.logger.debug(f"Name cache hit for {app_id}: {cached}")
            return ItemMetadata(app_id, cached, NameSource.CACHE_HIT)

        item = self.items.get(app_id)
        if item is not None and item.declared_name:
            self.cache.put(app_id, item.declared_name)
            return ItemMetadata(app_id, item.declared_name, NameSource.LOCAL_MANIFEST)

        return None

    def _try_remote(self, app_id: str) -> Optional[ItemMetadata]:
        try:
            return self._resolve_remote(app_id)
        except NotResolvable as e:
            self.logger.debug(str(e))
            return None

    def _resolve_remote(self, app_id: str) -> ItemMetadata:
        if self.offline:
            raise NotResolvable(app_id, "offline mode")

        try:
            response = self.session.get(STORE_API_URL, params={"appids": app_id}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.Timeout:
            raise NotResolvable(app_id, f"store lookup timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            raise NotResolvable(app_id, f"store lookup failed: {e}")
        except ValueError as e:
            raise NotResolvable(app_id, f"invalid store response: {e}")

        name = self.extract_name(payload, app_id)
        if not name:
            raise NotResolvable(app_id, "unknown to the Steam store")

        self.cache.put(app_id, name)
        self.logger.debug(f"Resolved {app_id} via store API: {name}")
        return ItemMetadata(app_id, name, NameSource.REMOTE_LOOKUP)

    @staticmethod
    def extract_name(payload, app_id: str) -> Optional[str]:
        """Pull <id>.data.name out of an appdetails response; None when absent"""
        if not isinstance(payload, dict):
            return None
        entry = payload.get(str(app_id))
        if not isinstance(entry, dict) or entry.get("success") is False:
            return None
        data = entry.get("data")
        if not isinstance(data, dict):
            return None
        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            return None
        return name.strip()

"""Fantasy feed fetching using requests."""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger('fplive.data_fetcher')

DEFAULT_BASE_URL = 'https://fantasy.premierleague.com/api'


class UpstreamUnavailable(Exception):
    """The feed could not be fetched; retry policy belongs to the caller."""

    def __init__(self, path: str, reason: str):
        super().__init__(f'Feed request failed for {path}: {reason}')
        self.path = path
        self.reason = reason


class FPLDataFetcher:
    """Fetches and caches feed payloads for one poll."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self._bootstrap: Optional[Dict[str, Any]] = None
        self._fixtures: Optional[List[Dict[str, Any]]] = None

    def _get(self, path: str) -> Any:
        url = f'{self.base_url}/{path.lstrip("/")}'
        logger.debug(f'GET {url}')
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f'Feed request failed: {url}: {e}')
            raise UpstreamUnavailable(path, str(e)) from e
        except ValueError as e:
            logger.error(f'Feed returned invalid JSON: {url}: {e}')
            raise UpstreamUnavailable(path, f'invalid JSON: {e}') from e

    @property
    def bootstrap(self) -> Dict[str, Any]:
        """Lazy load bootstrap-static (players, teams, gameweeks)."""
        if self._bootstrap is None:
            logger.info('Loading bootstrap-static...')
            self._bootstrap = self._get('bootstrap-static/')
        return self._bootstrap

    @property
    def fixtures(self) -> List[Dict[str, Any]]:
        """Lazy load the season's fixtures."""
        if self._fixtures is None:
            logger.info('Loading fixtures...')
            self._fixtures = self._get('fixtures/')
        return self._fixtures

    def live(self, gameweek: int) -> Dict[str, Any]:
        """Live element stats and explain breakdowns for a gameweek."""
        return self._get(f'event/{gameweek}/live/')

    def picks(self, entry_id: int, gameweek: int) -> Dict[str, Any]:
        """An entry's picks and active chip for a gameweek."""
        return self._get(f'entry/{entry_id}/event/{gameweek}/picks/')

    def league_entries(self, league_id: int) -> List[Dict[str, Any]]:
        """
        Every entry of a classic league, following pagination.

        Returns:
            List of standings rows ({entry, entry_name, player_name, rank, ...})
        """
        entries: List[Dict[str, Any]] = []
        page = 1
        while True:
            data = self._get(f'leagues-classic/{league_id}/standings/?page_standings={page}')
            standings = data.get('standings') or {}
            entries.extend(standings.get('results') or [])
            if not standings.get('has_next'):
                break
            page += 1
        return entries

    def refresh(self) -> None:
        """Drop cached payloads so the next access refetches."""
        self._bootstrap = None
        self._fixtures = None

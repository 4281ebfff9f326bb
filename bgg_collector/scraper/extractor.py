"""
Game record extraction from BGG XML detail documents.

Fields are read one by one. A field that is missing or malformed falls back to
its zero value and never costs the whole record; only a failed fetch or a
document without the game in it makes extraction fail.
"""

import logging
import math
import threading
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional, Sequence

from ..error_handling import FieldError, NotFoundError, field_default
from ..models import Game
from .fetcher import DocumentFetcher

logger = logging.getLogger(__name__)

UNRANKED = "not ranked"


@dataclass(frozen=True)
class ExtractionStrategy:
    """ElementTree paths locating each game field in one API flavour."""
    name: str
    item_path: str
    id_attribute: str
    title_path: str
    age_path: str
    rank_paths: Sequence[str] = (".//rank[@name='boardgame']", ".//rank")
    min_players_path: str = "minplayers"
    max_players_path: str = "maxplayers"
    min_duration_path: str = "minplaytime"
    max_duration_path: str = "maxplaytime"
    weight_path: str = ".//averageweight"


# https://api.geekdo.com/xmlapi/boardgame/<id>?stats=1
LEGACY_XMLAPI = ExtractionStrategy(
    name="xmlapi",
    item_path=".//boardgame[@objectid]",
    id_attribute="objectid",
    title_path="name[@primary='true']",
    age_path="age",
)

# https://boardgamegeek.com/xmlapi2/thing?id=<id>&stats=1
XMLAPI2 = ExtractionStrategy(
    name="xmlapi2",
    item_path=".//item[@id]",
    id_attribute="id",
    title_path="name[@type='primary']",
    age_path="minage",
)

STRATEGIES = {strategy.name: strategy for strategy in (LEGACY_XMLAPI, XMLAPI2)}


def node_value(node: Optional[ET.Element]) -> Optional[str]:
    """Stripped ``value`` attribute of a node, else its text; None when empty."""
    if node is None:
        return None
    value = node.get('value')
    if value is None:
        value = node.text
    value = (value or '').strip()
    return value or None


def parse_uint(raw: Optional[str], bits: int, identifier: str, field: str) -> Optional[int]:
    """
    Parse an unsigned integer that must fit in ``bits`` bits.

    Returns:
        The value, or None when ``raw`` is None

    Raises:
        FieldError: ``raw`` is not an integer in range
    """
    if raw is None:
        return None
    # int() would also take signs, underscores and non-ASCII digits
    if not (raw.isascii() and raw.isdigit()):
        raise FieldError(identifier, field, raw)
    value = int(raw)
    if value >= 2 ** bits:
        raise FieldError(identifier, field, raw)
    return value


def merge_min_max(low: Optional[int], high: Optional[int]) -> int:
    """
    Collapse a min/max pair into one value.

    One side present gives that side, both give the floored average and
    neither gives 0.
    """
    if low is None and high is None:
        return 0
    if high is None:
        return low
    if low is None:
        return high
    return (low + high) // 2


class RecordExtractor:
    """
    Turns a game identifier into a Game record.
    """

    def __init__(self, fetcher: DocumentFetcher, detail_url: str,
                 strategy: ExtractionStrategy = LEGACY_XMLAPI):
        """
        Initialize the extractor.

        Args:
            fetcher: Fetcher for the detail source (XML parser)
            detail_url: URL pattern with an ``{id}`` placeholder
            strategy: Where each field lives in the detail document
        """
        self.fetcher = fetcher
        self.detail_url = detail_url
        self.strategy = strategy

    def detail_url_for(self, identifier: str) -> str:
        return self.detail_url.format(id=identifier)

    def extract(self, identifier: str, cancel_event: Optional[threading.Event] = None) -> Game:
        """
        Fetch the detail document for a game and build its record.

        Args:
            identifier: Digits-only game identifier
            cancel_event: When set before the request goes out, nothing is fetched

        Returns:
            The game record

        Raises:
            FetchError: The detail document could not be retrieved
            NotFoundError: The document does not describe the game
            Cancelled: The cancel event was set before the request went out
        """
        root = self.fetcher.fetch(self.detail_url_for(identifier), cancel_event)
        item = root.find(self.strategy.item_path)
        if item is None:
            raise NotFoundError(identifier)
        return self.build_game(identifier, item)

    def build_game(self, identifier: str, item: ET.Element) -> Game:
        s = self.strategy
        return Game(
            id=self._read_id(identifier, item),
            title=self._read_title(item),
            rank=self._read_rank(identifier, item),
            players=self._read_range(identifier, item, s.min_players_path, s.max_players_path, 8, "players"),
            duration=self._read_range(identifier, item, s.min_duration_path, s.max_duration_path, 16, "duration"),
            age=self._read_uint(identifier, node_value(item.find(s.age_path)), 8, "age"),
            weight=self._read_weight(identifier, item),
        )

    @field_default(0)
    def _read_id(self, identifier: str, item: ET.Element) -> int:
        raw = item.get(self.strategy.id_attribute)
        return parse_uint(raw.strip() if raw else None, 32, identifier, "id") or 0

    def _read_title(self, item: ET.Element) -> str:
        return node_value(item.find(self.strategy.title_path)) or ""

    def _read_rank(self, identifier: str, item: ET.Element) -> int:
        for path in self.strategy.rank_paths:
            raw = node_value(item.find(path))
            if raw is None:
                continue
            if raw.lower() == UNRANKED:
                return 0
            return self._read_uint(identifier, raw, 16, "rank")
        return 0

    @field_default(0)
    def _read_uint(self, identifier: str, raw: Optional[str], bits: int, field: str) -> int:
        return parse_uint(raw, bits, identifier, field) or 0

    @field_default(None)
    def _read_optional_uint(self, identifier: str, raw: Optional[str], bits: int, field: str) -> Optional[int]:
        return parse_uint(raw, bits, identifier, field)

    def _read_range(self, identifier: str, item: ET.Element, min_path: str, max_path: str,
                    bits: int, field: str) -> int:
        low = self._read_optional_uint(identifier, node_value(item.find(min_path)), bits, f"min {field}")
        high = self._read_optional_uint(identifier, node_value(item.find(max_path)), bits, f"max {field}")
        if low is None and high is None:
            logger.debug(f"game {identifier}: no {field} information")
        return merge_min_max(low, high)

    @field_default(0.0)
    def _read_weight(self, identifier: str, item: ET.Element) -> float:
        raw = node_value(item.find(self.strategy.weight_path))
        if raw is None:
            return 0.0
        try:
            weight = float(raw)
        except ValueError:
            raise FieldError(identifier, "weight", raw) from None
        if not math.isfinite(weight) or weight < 0:
            raise FieldError(identifier, "weight", raw)
        return weight

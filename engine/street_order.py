"""
Street ordering - sorts addresses by the patrol route

Each address is reduced to a single sort key, so the comparator built
on top of it is a strict weak ordering:
  1. streets on the patrol route, by route position, then house number
  2. all other streets, by natural (numeric-aware) name, then house number
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from config import settings
from models.case import Case, Property

_HOUSE_NUMBER = re.compile(r'^(\d+)\s+(.*)$')
_PUNCTUATION = re.compile(r'[.,#]')


@dataclass(frozen=True)
class ParsedAddress:
    number: int
    name: str

    @property
    def tokens(self) -> Tuple[str, ...]:
        return tuple(self.name.split())


def _contains_tokens(haystack: Sequence[str], needle: Sequence[str]) -> bool:
    """True if needle appears as a contiguous run of whole tokens"""
    n = len(needle)
    if n == 0:
        return False
    return any(tuple(haystack[i:i + n]) == tuple(needle) for i in range(len(haystack) - n + 1))


def _natural_key(name: str) -> tuple:
    """Case-insensitive, numeric-aware key ('2nd' < '10th')"""
    parts = re.split(r'(\d+)', name.casefold())
    return tuple(int(p) if i % 2 else p for i, p in enumerate(parts))


class StreetOrder:
    """
    Patrol route order built from explicit configuration
    """

    def __init__(
        self,
        route: Optional[List[str]] = None,
        suffixes: Optional[List[str]] = None,
        aliases: Optional[Dict[str, str]] = None,
    ):
        self.suffixes = frozenset(s.lower() for s in (suffixes if suffixes is not None else settings.STREET_SUFFIXES))
        alias_map = aliases if aliases is not None else settings.STREET_ALIASES
        self.aliases = [(tuple(k.lower().split()), v.lower()) for k, v in alias_map.items()]
        # Route entries are normalised the same way as addresses ('l st' -> 'l')
        self.route = [self._strip_suffix(tuple(r.lower().split())) for r in (route if route is not None else settings.STREET_ORDER)]

    def _strip_suffix(self, tokens: Tuple[str, ...]) -> Tuple[str, ...]:
        if len(tokens) > 1 and tokens[-1] in self.suffixes:
            return tokens[:-1]
        return tokens

    def parse(self, address: str) -> ParsedAddress:
        """Split an address into house number (0 when absent) and a clean street name"""
        text = _PUNCTUATION.sub(' ', (address or '').lower()).strip()
        match = _HOUSE_NUMBER.match(text)
        if match:
            number, rest = int(match.group(1)), match.group(2)
        else:
            number, rest = 0, text

        tokens = tuple(rest.split())
        for alias, canonical in self.aliases:
            if _contains_tokens(tokens, alias):
                return ParsedAddress(number, canonical)

        return ParsedAddress(number, " ".join(self._strip_suffix(tokens)))

    def route_index(self, parsed: ParsedAddress) -> int:
        """Position of the first route entry found in the street name, or -1"""
        tokens = parsed.tokens
        for index, entry in enumerate(self.route):
            if _contains_tokens(tokens, entry):
                return index
        return -1

    def key(self, address: str) -> tuple:
        parsed = self.parse(address)
        index = self.route_index(parsed)
        if index >= 0:
            return (0, index, parsed.number)
        return (1, _natural_key(parsed.name), parsed.number)

    def compare(self, address_a: str, address_b: str) -> int:
        key_a, key_b = self.key(address_a), self.key(address_b)
        return (key_a > key_b) - (key_a < key_b)


DEFAULT_STREET_ORDER = StreetOrder()


def parse_address(address: str, order: Optional[StreetOrder] = None) -> ParsedAddress:
    return (order or DEFAULT_STREET_ORDER).parse(address)


def compare_streets(address_a: str, address_b: str, order: Optional[StreetOrder] = None) -> int:
    """
    Compare two street addresses by patrol route order.
    Returns negative, zero, or positive for use as a sort comparator.
    """
    return (order or DEFAULT_STREET_ORDER).compare(address_a, address_b)


def street_sort_key(address: str, order: Optional[StreetOrder] = None) -> tuple:
    return (order or DEFAULT_STREET_ORDER).key(address)


def sort_cases(cases: List[Case], list_type: str = "all", order: Optional[StreetOrder] = None) -> List[Case]:
    """
    Sort cases for display.
    The abatement list groups by violation type; every other list keeps
    closed cases at the bottom. Street order breaks ties in both.
    """
    order = order or DEFAULT_STREET_ORDER

    if list_type == "abatement":
        return sorted(cases, key=lambda c: (c.violation.type, order.key(c.address.street)))

    return sorted(cases, key=lambda c: (c.is_closed, order.key(c.address.street)))


def sort_properties(properties: List[Property], order: Optional[StreetOrder] = None) -> List[Property]:
    order = order or DEFAULT_STREET_ORDER
    return sorted(properties, key=lambda p: order.key(p.street_address))

"""
Structured Cache Keys

Compound cache keys are values, not format strings. A repository declares
one ``KeyTemplate`` per key family and builds every key (on the read side and
on the invalidate side) through it, so the two sides cannot drift apart.

    PRICE_GROUP_BY_REGION = KeyTemplate("price_group", "region")
    PRICE_GROUP_BY_REGION.key(region="EUR").render()   # "price_group:region:EUR"

Rendering is the only place keys turn into strings. Dimension values are
escaped so that a value containing the separator cannot collide with another
dimension tuple.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from billing_cache.core.config.constants import KEY_SEPARATOR

_ESCAPES = (("%", "%25"), (KEY_SEPARATOR, "%3A"))


def _escape(value: Any) -> str:
    text = "" if value is None else str(value)
    for raw, escaped in _ESCAPES:
        text = text.replace(raw, escaped)
    return text


@dataclass(frozen=True)
class CacheKey:
    """A key family plus ordered (dimension, value) pairs."""

    family: str
    dimensions: tuple[tuple[str, str], ...] = ()

    def render(self) -> str:
        parts = [self.family]
        for name, value in self.dimensions:
            parts.append(name)
            parts.append(_escape(value))
        return KEY_SEPARATOR.join(parts)

    def replace(self, **overrides: Any) -> "CacheKey":
        """
        Return a variant of this key with some dimension values replaced.

        Used for fallback lookups, e.g. the same cost record keyed with an
        empty country.
        """
        names = {name for name, _ in self.dimensions}
        unknown = set(overrides) - names
        if unknown:
            raise TypeError(f"{self.family}: unknown key dimensions {sorted(unknown)}")

        return CacheKey(
            self.family,
            tuple(
                (name, ("" if overrides[name] is None else str(overrides[name])) if name in overrides else value)
                for name, value in self.dimensions
            ),
        )

    def __str__(self) -> str:
        return self.render()


class KeyTemplate:
    """Declares a key family and the dimensions every key of it carries."""

    __slots__ = ("family", "fields")

    def __init__(self, family: str, *fields: str):
        if not family:
            raise ValueError("Key family must not be empty")
        self.family = family
        self.fields = tuple(fields)

    def key(self, **values: Any) -> CacheKey:
        missing = [name for name in self.fields if name not in values]
        extra = sorted(set(values) - set(self.fields))
        if missing or extra:
            raise TypeError(
                f"{self.family}: missing dimensions {missing}, unexpected dimensions {extra}"
            )

        return CacheKey(
            self.family,
            tuple((name, "" if values[name] is None else str(values[name])) for name in self.fields),
        )

    def __repr__(self) -> str:
        return f"KeyTemplate({self.family!r}, {', '.join(map(repr, self.fields))})"


KeyLike = CacheKey | str


def render_key(key: KeyLike) -> str:
    """Render a structured key; plain strings pass through unchanged."""
    if isinstance(key, CacheKey):
        return key.render()
    if isinstance(key, str) and key:
        return key
    raise TypeError(f"Cache key must be a non-empty str or CacheKey, got {key!r}")


def _dedupe(keys: Iterable[KeyLike]) -> tuple[KeyLike, ...]:
    seen: set[str] = set()
    result = []
    for key in keys:
        rendered = render_key(key)
        if rendered not in seen:
            seen.add(rendered)
            result.append(key)
    return tuple(result)


@dataclass(frozen=True)
class InvalidationGroup:
    """
    Keys deleted together whenever one entity changes.

    ``keys`` are the denormalized lookups of the entity (including fallback
    variants); ``aggregates`` are the coarse "all for parent" lists that
    embed it. Both are deleted; neither is ever patched in place.
    """

    keys: tuple[KeyLike, ...] = ()
    aggregates: tuple[KeyLike, ...] = field(default=())

    @classmethod
    def of(cls, *keys: KeyLike, aggregates: Iterable[KeyLike] = ()) -> "InvalidationGroup":
        return cls(_dedupe(keys), _dedupe(aggregates))

    def all_keys(self) -> tuple[KeyLike, ...]:
        return _dedupe((*self.keys, *self.aggregates))

    def rendered(self) -> list[str]:
        return [render_key(key) for key in self.all_keys()]

    def __or__(self, other: "InvalidationGroup") -> "InvalidationGroup":
        return InvalidationGroup(
            _dedupe((*self.keys, *other.keys)),
            _dedupe((*self.aggregates, *other.aggregates)),
        )

    def __len__(self) -> int:
        return len(self.all_keys())

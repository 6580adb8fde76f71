# File: datagen/registry.py
"""
NexaFlow DataGen - Semantic Type Registry
==========================================
Static mapping from a case-insensitive semantic type tag (``"email"``,
``"uuid"``, ...) to a ``TypeRule`` that produces one realistic value from a
seeded ``Faker`` handle.

Dispatch is a dictionary lookup keyed by the normalised tag.  Synonyms are
registered as aliases of the same rule, so ``"int"`` and ``"integer"`` (or
``"firstname"`` and ``"first_name"``) always behave identically.  New tags
are introduced by building a registry with extra rules, never by growing a
conditional chain.

Usage::

    from datagen.registry import default_registry
    rule = default_registry().resolve("Email")
    value = rule.produce(faker)
"""

from __future__ import annotations

import logging
import types
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from faker import Faker

from datagen.models import OBJECT_TYPE

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("datagen.registry")

Producer = Callable[[Faker], Any]


# ---------------------------------------------------------------------------
# Rule
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TypeRule:
    """One value-generation rule and the tags that select it."""

    name: str
    category: str
    produce: Producer
    aliases: Tuple[str, ...] = ()

    @property
    def tags(self) -> Tuple[str, ...]:
        return (self.name, *self.aliases)

    def __repr__(self) -> str:
        alias_str: str = f" ({', '.join(self.aliases)})" if self.aliases else ""
        return f"<TypeRule {self.category}/{self.name}{alias_str}>"


def normalize_tag(tag: Optional[str]) -> str:
    """Lower-case and strip a type tag; ``None`` becomes ``""``."""
    return (tag or "").strip().lower()


# ---------------------------------------------------------------------------
# Commerce vocabulary (Faker has no commerce provider)
# ---------------------------------------------------------------------------

_PRODUCT_ADJECTIVES: Tuple[str, ...] = (
    "Small", "Ergonomic", "Rustic", "Intelligent", "Gorgeous", "Incredible",
    "Fantastic", "Practical", "Sleek", "Awesome", "Generic", "Handcrafted",
    "Handmade", "Licensed", "Refined", "Unbranded", "Tasty", "Modern",
)
_PRODUCT_MATERIALS: Tuple[str, ...] = (
    "Steel", "Wooden", "Concrete", "Plastic", "Cotton", "Granite", "Rubber",
    "Metal", "Soft", "Fresh", "Frozen", "Bronze", "Leather", "Glass",
)
_PRODUCT_NOUNS: Tuple[str, ...] = (
    "Chair", "Car", "Computer", "Keyboard", "Mouse", "Bike", "Ball",
    "Gloves", "Pants", "Shirt", "Table", "Shoes", "Hat", "Towels", "Soap",
    "Tuna", "Chicken", "Fish", "Cheese", "Bacon", "Pizza", "Salad", "Chips",
)
_DEPARTMENTS: Tuple[str, ...] = (
    "Books", "Movies", "Music", "Games", "Electronics", "Computers", "Home",
    "Garden", "Tools", "Grocery", "Health", "Beauty", "Toys", "Kids", "Baby",
    "Clothing", "Shoes", "Jewelery", "Sports", "Outdoors", "Automotive",
    "Industrial",
)


# ---------------------------------------------------------------------------
# Producers
# ---------------------------------------------------------------------------


def _single_line(text: str) -> str:
    return ", ".join(part.strip() for part in text.splitlines() if part.strip())


def _decimal(fake: Faker) -> float:
    return round(fake.random.uniform(0, 10000), 2)


def _date(fake: Faker) -> str:
    return fake.date_between(start_date="-10y", end_date="today").strftime("%Y-%m-%d")


def _datetime(fake: Faker) -> str:
    return fake.date_time_between(start_date="-10y", end_date="now").strftime(
        "%Y-%m-%dT%H:%M:%S"
    )


def _product(fake: Faker) -> str:
    return " ".join(
        (
            fake.random_element(_PRODUCT_ADJECTIVES),
            fake.random_element(_PRODUCT_MATERIALS),
            fake.random_element(_PRODUCT_NOUNS),
        )
    )


def _price(fake: Faker) -> str:
    return f"{fake.random.uniform(1, 1000):.2f}"


def _builtin_rules() -> List[TypeRule]:
    return [
        # Identity
        TypeRule("uuid", "identity", lambda f: f.uuid4(), ("guid",)),
        # Numeric
        TypeRule("int", "numeric", lambda f: f.random_int(min=1, max=1000), ("integer",)),
        TypeRule("decimal", "numeric", _decimal, ("double", "float")),
        TypeRule("boolean", "boolean", lambda f: f.boolean(), ("bool",)),
        # Temporal
        TypeRule("date", "temporal", _date),
        TypeRule("datetime", "temporal", _datetime),
        # Contact
        TypeRule("email", "contact", lambda f: f.email()),
        TypeRule("phone", "contact", lambda f: f.phone_number()),
        TypeRule("address", "contact", lambda f: _single_line(f.address())),
        TypeRule("street", "contact", lambda f: f.street_address()),
        TypeRule("city", "contact", lambda f: f.city()),
        TypeRule("state", "contact", lambda f: f.state()),
        TypeRule("zipcode", "contact", lambda f: f.zipcode(), ("zip",)),
        TypeRule("country", "contact", lambda f: f.country()),
        # Person
        TypeRule("firstname", "person", lambda f: f.first_name(), ("first_name",)),
        TypeRule("lastname", "person", lambda f: f.last_name(), ("last_name",)),
        TypeRule("fullname", "person", lambda f: f.name(), ("full_name", "name")),
        # Business
        TypeRule("company", "business", lambda f: f.company()),
        TypeRule("jobtitle", "business", lambda f: f.job(), ("job_title",)),
        # Internet
        TypeRule("url", "internet", lambda f: f.url(), ("website",)),
        TypeRule("ipaddress", "internet", lambda f: f.ipv4(), ("ip",)),
        TypeRule("username", "internet", lambda f: f.user_name()),
        TypeRule("password", "internet", lambda f: f.password(length=12)),
        # Free text, increasing length
        TypeRule("string", "text", lambda f: f.word()),
        TypeRule("lorem", "text", lambda f: f.sentence(), ("text",)),
        TypeRule("paragraph", "text", lambda f: f.paragraph()),
        # Commerce
        TypeRule("product", "commerce", _product),
        TypeRule("price", "commerce", _price),
        TypeRule("department", "commerce", lambda f: f.random_element(_DEPARTMENTS)),
        TypeRule("color", "commerce", lambda f: f.color_name()),
        # Finance
        TypeRule("creditcard", "finance", lambda f: f.credit_card_number(), ("credit_card",)),
        TypeRule("currency", "finance", lambda f: f.currency_code()),
        TypeRule("iban", "finance", lambda f: f.iban()),
        TypeRule("bic", "finance", lambda f: f.swift()),
    ]


def fallback_value(fake: Faker) -> str:
    """Generic value used when a type cannot be resolved: a lorem word."""
    return fake.word()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TypeRegistry:
    """
    Immutable tag → ``TypeRule`` index.

    ``"object"`` is part of the supported-type catalogue but has no rule:
    nested objects are expanded by the value generator itself.
    """

    __slots__ = ("_rules", "_index")

    def __init__(self, rules: Iterable[TypeRule]) -> None:
        rule_list: Tuple[TypeRule, ...] = tuple(rules)
        index: Dict[str, TypeRule] = {}
        for rule in rule_list:
            for tag in rule.tags:
                key: str = normalize_tag(tag)
                if key == OBJECT_TYPE:
                    raise ValueError("'object' is reserved for nested structures.")
                if key in index and index[key] is not rule:
                    raise ValueError(
                        f"Type tag '{key}' is registered by both "
                        f"'{index[key].name}' and '{rule.name}'."
                    )
                index[key] = rule
        self._rules: Tuple[TypeRule, ...] = rule_list
        self._index: Mapping[str, TypeRule] = types.MappingProxyType(index)

    def resolve(self, tag: Optional[str]) -> Optional[TypeRule]:
        """Return the rule for ``tag`` or ``None`` when the tag is unknown."""
        return self._index.get(normalize_tag(tag))

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and normalize_tag(tag) in self._index

    def __len__(self) -> int:
        return len(self._index)

    @property
    def rules(self) -> Tuple[TypeRule, ...]:
        return self._rules

    def is_supported(self, tag: Optional[str]) -> bool:
        """True when the tag needs no oracle fallback (``"object"`` included)."""
        key: str = normalize_tag(tag)
        return key == OBJECT_TYPE or key in self._index

    def supported_types(self) -> List[str]:
        """Every recognised tag, ``"object"`` included, sorted ascending."""
        return sorted({*self._index.keys(), OBJECT_TYPE})

    def with_rules(self, *extra: TypeRule) -> "TypeRegistry":
        """New registry with ``extra`` rules added; this one is left untouched."""
        return TypeRegistry((*self._rules, *extra))

    def __repr__(self) -> str:
        return f"<TypeRegistry {len(self._rules)} rules, {len(self._index)} tags>"


@lru_cache(maxsize=1)
def default_registry() -> TypeRegistry:
    """Shared registry holding the built-in rules."""
    registry: TypeRegistry = TypeRegistry(_builtin_rules())
    logger.debug("Built default type registry: %r", registry)
    return registry


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "Producer",
    "TypeRule",
    "TypeRegistry",
    "default_registry",
    "fallback_value",
    "normalize_tag",
]

logger.debug("datagen.registry loaded - %d public symbols.", len(__all__))

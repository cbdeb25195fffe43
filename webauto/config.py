# webauto/config.py
"""
@file config.py
@brief Session configuration: browser selection and element-cache rules.

Example YAML:

    browser: chrome
    headless: true
    cache:
      enabled: true
      include:
        - {tag: a}
        - {class: {re: "^nav-"}}
      exclude:
        - {id: spinner}
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Mapping, Optional, Tuple, Union

import yaml
from jsonschema import Draft202012Validator

from .exceptions import ConfigError, InvalidArgumentError
from .predicates import PredicateSet, load_query

if TYPE_CHECKING:
    from .element import Element


CacheRule = Union[PredicateSet, Callable[["Element"], bool]]

_PATTERN_SCHEMA = {
    "type": "object",
    "properties": {
        "re": {"type": "string"},
        "flags": {"type": "string", "pattern": "^[imsx]*$"},
    },
    "required": ["re"],
    "additionalProperties": False,
}

_RULE_SCHEMA = {
    "type": "object",
    "minProperties": 1,
    "additionalProperties": {
        "anyOf": [
            {"type": ["string", "number", "boolean"]},
            _PATTERN_SCHEMA,
        ]
    },
}

CONFIG_SCHEMA: Dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "browser": {"type": "string", "enum": ["chrome", "firefox", "edge", "safari"]},
        "headless": {"type": "boolean"},
        "arguments": {"type": "array", "items": {"type": "string"}},
        "cache": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "include": {"type": "array", "items": _RULE_SCHEMA},
                "exclude": {"type": "array", "items": _RULE_SCHEMA},
            },
            "additionalProperties": False,
        },
    },
    "additionalProperties": False,
}

_VALIDATOR = Draft202012Validator(CONFIG_SCHEMA)


@dataclass(frozen=True)
class CacheSpec:
    """
    Element cache settings.

    include/exclude rules are attribute maps (keys are attribute names or
    `tag`) or callables taking an Element. With no include rules every
    query is a candidate for caching.
    """
    enabled: bool = False
    include: Tuple[CacheRule, ...] = ()
    exclude: Tuple[CacheRule, ...] = ()

    @staticmethod
    def _rules(raw: Any) -> Tuple[CacheRule, ...]:
        rules = []
        for rule in raw or ():
            if callable(rule) and not isinstance(rule, Mapping):
                rules.append(rule)
            else:
                query = load_query(rule)
                if not isinstance(query, PredicateSet):
                    raise ConfigError(f"Cache rule must be a mapping, got: {rule!r}")
                rules.append(query)
        return tuple(rules)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> CacheSpec:
        try:
            return cls(
                enabled=bool(d.get("enabled", False)),
                include=cls._rules(d.get("include")),
                exclude=cls._rules(d.get("exclude")),
            )
        except InvalidArgumentError as e:
            raise ConfigError(f"Invalid cache rule: {e}") from e


@dataclass(frozen=True)
class SessionConfig:
    browser: str = "firefox"
    headless: bool = False
    arguments: Tuple[str, ...] = ()
    cache: CacheSpec = field(default_factory=CacheSpec)

    @staticmethod
    def validate(data: Mapping[str, Any]) -> None:
        """Validate raw configuration data against CONFIG_SCHEMA."""
        errors = sorted(_VALIDATOR.iter_errors(data), key=lambda e: list(e.path))
        if errors:
            lines = ["Session configuration is invalid:"]
            for e in errors:
                lines.append(f"- {list(e.path)}: {e.message}")
            raise ConfigError("\n".join(lines))

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> SessionConfig:
        data = dict(data or {})
        cls.validate(data)
        return cls(
            browser=str(data.get("browser", "firefox")),
            headless=bool(data.get("headless", False)),
            arguments=tuple(data.get("arguments", ())),
            cache=CacheSpec.from_dict(data.get("cache", {})),
        )

    @classmethod
    def load(cls, path: str) -> SessionConfig:
        """Load and validate a YAML configuration file."""
        path = os.path.abspath(path)
        if not os.path.exists(path):
            raise ConfigError(f"Configuration file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Configuration YAML must be a mapping at root.")
        return cls.from_dict(data)

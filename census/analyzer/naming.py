"""Casing transforms shared by the aggregation stages.

Markup uses kebab-case (``<my-widget>``) while scripts import PascalCase
identifiers (``MyWidget``). Every comparison between the two goes through
these helpers.
"""
import re

_KEBAB_SEGMENT = re.compile(r'-([a-z])')
_CASE_BOUNDARY = re.compile(r'([a-z])([A-Z])')


def kebab_to_pascal(name: str) -> str:
    """'my-example-widget' -> 'MyExampleWidget'."""
    converted = _KEBAB_SEGMENT.sub(lambda m: m.group(1).upper(), name)
    return converted[:1].upper() + converted[1:]


def pascal_to_kebab(name: str) -> str:
    """'MyExampleWidget' -> 'my-example-widget'."""
    return _CASE_BOUNDARY.sub(r'\1-\2', name).lower()


def comparison_form(name: str) -> str:
    """Case-insensitive form used to match tags against imported names."""
    return kebab_to_pascal(name).lower()


def identity_key(name: str) -> str:
    """Normalized identity: every kebab/Pascal/camel spelling maps to one key.

    'my-widget', 'MyWidget' and 'myWidget' all yield 'my-widget'.
    """
    return pascal_to_kebab(kebab_to_pascal(name))


def split_group_key(key: str):
    """Split an aggregation key ``name__source`` into (name, source)."""
    name, _, source = key.partition('__')
    return name, source

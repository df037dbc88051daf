"""Variable resolution for one-click templates.

A template declares its variables under ``caproverOneClickApp.variables``.
Each one is resolved against the user-supplied values, its default and its
``validRegex``; defaults such as ``$$cap_gen_random_hex(16)`` are expanded
into fresh random tokens first.
"""
from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Mapping, Optional, Protocol, Sequence, Union

from .errors import InvalidPatternError, InvalidValueError, VariableRequiredError
from .models import VariableDefinition

logger = logging.getLogger(__name__)

# `/pattern/flags` or a bare pattern; the delimiter must be the same on both ends.
_REGEX_LITERAL_RE = re.compile(r"(/?)(.+)\1([a-z]*)", re.IGNORECASE)
_RANDOM_HEX_RE = re.compile(r"\$\$cap_gen_random_hex\((\d+)\)")


@dataclass(frozen=True)
class Unconstrained:
    """A variable without validRegex: every value matches."""

    def matches(self, value: str) -> bool:
        return True


@dataclass(frozen=True)
class Pattern:
    source: str
    flags: str = ""

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.source)
        except re.error as exc:
            raise InvalidPatternError(f"Invalid RegEx {self.source!r}: {exc}") from exc
        object.__setattr__(self, "_compiled", compiled)

    def matches(self, value: str) -> bool:
        return self._compiled.search(value) is not None  # type: ignore[attr-defined]


VariablePattern = Union[Unconstrained, Pattern]


def parse_valid_regex(raw: Optional[str], variable_id: Optional[str] = None) -> VariablePattern:
    """Parse a validRegex value such as ``/^[0-9]+$/`` into a pattern.

    Flags after the closing delimiter are accepted but not applied.
    """
    if raw is None:
        return Unconstrained()
    match = _REGEX_LITERAL_RE.search(raw)
    if match is None:
        raise InvalidPatternError(f"Invalid RegEx for variable {variable_id}", variable_id)
    try:
        return Pattern(match.group(2), match.group(3))
    except InvalidPatternError as exc:
        raise InvalidPatternError(str(exc), variable_id) from exc


def generate_random_hex(byte_count: int) -> str:
    """Return ``2 * byte_count`` lowercase hex characters from a CSPRNG."""
    return secrets.token_hex(byte_count)


def expand_default(default_value: str, random_hex: Callable[[int], str] = generate_random_hex) -> str:
    match = _RANDOM_HEX_RE.search(default_value)
    if match is None:
        return default_value
    return random_hex(int(match.group(1)))


class ResolvedVariables(Mapping[str, str]):
    """Read-only, insertion-ordered mapping of variable id to final value."""

    def __init__(self, values: Mapping[str, str]):
        self._values: Dict[str, str] = dict(values)

    def __getitem__(self, key: str) -> str:
        return self._values[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ResolvedVariables({list(self._values)!r})"


class Prompt(Protocol):
    def ask(
        self,
        variable_id: str,
        label: str,
        description: str,
        validator: Callable[[str], bool],
        default: str,
    ) -> Optional[str]:
        ...


def _choose_value(
    definition: VariableDefinition,
    pattern: VariablePattern,
    default_value: str,
    value: Optional[str],
) -> str:
    if not default_value and not value:
        raise VariableRequiredError(f"Variable {definition.id} is required", definition.id)
    if not value:
        if pattern.matches(default_value):
            return default_value
        raise VariableRequiredError(f"Variable {definition.id} is required", definition.id)
    if not pattern.matches(value):
        raise InvalidValueError(f"Invalid value for variable {definition.id}", definition.id)
    return value


def resolve_variables(
    definitions: Sequence[VariableDefinition],
    user_supplied: Mapping[str, str],
    synthetic_seeds: Optional[Mapping[str, str]] = None,
    prompt: Optional[Prompt] = None,
    random_hex: Callable[[int], str] = generate_random_hex,
) -> ResolvedVariables:
    """Resolve every definition and return the values used for substitution.

    Defined variables come first in definition order, followed by extra
    user-supplied ids and finally the synthetic seeds (app name, root domain),
    so generated values that mention a seed are still expanded.
    """
    seeds = dict(synthetic_seeds or {})
    resolved: Dict[str, str] = {}

    for definition in definitions:
        pattern = parse_valid_regex(definition.valid_regex, definition.id)
        default_value = expand_default(definition.default_value, random_hex)
        value = user_supplied.get(definition.id)

        if prompt is not None and (not value or not pattern.matches(value)):
            answer = prompt.ask(
                definition.id,
                definition.label,
                definition.description,
                lambda candidate: bool(candidate) and pattern.matches(candidate),
                default_value,
            )
            if answer is not None:
                value = str(answer)

        resolved[definition.id] = _choose_value(definition, pattern, default_value, value)
        logger.debug("Resolved variable %s", definition.id)

    for key, value in user_supplied.items():
        if key not in resolved and key not in seeds:
            resolved[key] = value
    for key, value in seeds.items():
        resolved.pop(key, None)
        resolved[key] = value
    return ResolvedVariables(resolved)

"""Scalar queries on a chemical state.

Grammar::

    query   := head [ ':' units ]
    head    := 'pH' | kind [ '[' name [ ',' phase ] ']' ]
    kind    := 'n' | 'b' | 'm' | 'a'

Examples: ``n[CO2(g)]``, ``n[Ca++]:mmol``, ``b[C]``, ``b[C,Gaseous]:mol``,
``m[Na+]``, ``a[H+]``, ``pH``.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional

from splitkin.constants import HYDRON_SPECIES, WATER_MOLAR_MASS, WATER_SPECIES
from splitkin.exceptions import InvalidQueryError, UnknownNameError
from splitkin.state import ChemicalState
from splitkin import units as unitconv

DEFAULT_UNITS = {"n": "mol", "b": "mol", "m": "molal", "a": "", "pH": ""}

_TOKEN = re.compile(
    r"(?P<LBRACKET>\[)|(?P<RBRACKET>\])|(?P<COMMA>,)|(?P<SPACE>\s+)|(?P<NAME>[^\[\],\s]+)"
)


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    position: int


@dataclass(frozen=True)
class Query:
    kind: str
    name: Optional[str] = None
    phase: Optional[str] = None
    units: str = ""


def tokenize(text: str) -> Iterator[Token]:
    for match in _TOKEN.finditer(text):
        if match.lastgroup != "SPACE":
            yield Token(match.lastgroup, match.group(), match.start())


def parse(text: str) -> Query:
    head, sep, units = text.partition(":")
    units = units.strip()
    if sep and not units:
        raise InvalidQueryError(f"Query `{text}` has an empty units suffix.")

    tokens: List[Token] = list(tokenize(head))
    if not tokens or tokens[0].kind != "NAME":
        raise InvalidQueryError(f"Query `{text}` does not start with a quantity.")
    kind = tokens[0].text
    if kind not in DEFAULT_UNITS:
        raise InvalidQueryError(f"Unknown quantity `{kind}` in query `{text}`.")

    args: List[str] = []
    rest = tokens[1:]
    if rest:
        expected = ["LBRACKET", "NAME"]
        if len(rest) > 3:
            expected += ["COMMA", "NAME"]
        expected.append("RBRACKET")
        if [t.kind for t in rest] != expected:
            raise InvalidQueryError(f"Malformed bracket expression in query `{text}`.")
        args = [t.text for t in rest if t.kind == "NAME"]

    if kind == "pH":
        if args:
            raise InvalidQueryError("The quantity `pH` takes no arguments.")
    elif not args:
        raise InvalidQueryError(f"The quantity `{kind}` needs a name in brackets.")
    elif len(args) == 2 and kind != "b":
        raise InvalidQueryError(f"The quantity `{kind}` does not accept a phase.")

    return Query(
        kind=kind,
        name=args[0] if args else None,
        phase=args[1] if len(args) > 1 else None,
        units=units or DEFAULT_UNITS[kind],
    )


def extract(state: ChemicalState, query: str) -> float:
    """Evaluate a query such as ``"n[H2O(l)]:kg"`` or ``"pH"`` on a state."""
    q = parse(query)
    try:
        return _evaluate(state, q)
    except UnknownNameError as exc:
        raise InvalidQueryError(f"Cannot evaluate query `{query}`: {exc}") from exc


def _evaluate(state: ChemicalState, q: Query) -> float:
    system = state.system
    if q.kind == "n":
        return state.species_amount(q.name, q.units)
    if q.kind == "b":
        if q.phase is None:
            return state.element_amount(q.name, q.units)
        return state.element_amount_in_phase(q.name, q.phase, q.units)
    if q.kind == "m":
        n_i = state.species_amount(q.name)
        n_w = state.species_amount(WATER_SPECIES)
        molality = n_i / (n_w * WATER_MOLAR_MASS) if n_w > 0.0 else math.inf
        return unitconv.convert(molality, "molal", q.units)
    if q.kind == "a":
        index = system.index_species(q.name)
        return unitconv.convert(float(state.activities()[index]), "", q.units)
    if q.kind == "pH":
        index = system.index_species(HYDRON_SPECIES)
        activity = float(state.activities()[index])
        value = -math.log10(activity) if activity > 0.0 else math.inf
        return unitconv.convert(value, "", q.units)
    raise InvalidQueryError(f"Unknown quantity `{q.kind}`.")

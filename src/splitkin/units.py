"""Unit conversion backed by :mod:`astropy.units`."""

from __future__ import annotations

from functools import lru_cache

from astropy import units as u

from splitkin.exceptions import UnsupportedUnitsError

molal = u.def_unit("molal", u.mol / u.kg)

_ALIASES = {
    "": u.dimensionless_unscaled,
    "kelvin": u.K,
    "celsius": u.deg_C,
    "degC": u.deg_C,
    "pascal": u.Pa,
    "molal": molal,
    "mol/kgw": molal,
    "liter": u.L,
}

_EQUIVALENCIES = u.temperature()


@lru_cache(maxsize=None)
def parse_units(units: str) -> u.UnitBase:
    """Return the astropy unit for a unit string."""
    key = units.strip()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return u.Unit(key)
    except ValueError as exc:
        raise UnsupportedUnitsError(f"Unknown units `{units}`.") from exc


def convertible(from_units: str, to_units: str) -> bool:
    return parse_units(from_units).is_equivalent(
        parse_units(to_units), equivalencies=_EQUIVALENCIES
    )


def convert(value: float, from_units: str, to_units: str) -> float:
    """Convert ``value`` from ``from_units`` to ``to_units``."""
    source = parse_units(from_units)
    target = parse_units(to_units)
    try:
        return float(source.to(target, value, equivalencies=_EQUIVALENCIES))
    except u.UnitsError as exc:
        raise UnsupportedUnitsError(
            f"Cannot convert from `{from_units}` to `{to_units}`."
        ) from exc

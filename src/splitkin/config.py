"""Building systems, reactions, options and states from JSON-compatible mappings.

A configuration file looks like::

    {
      "phases": [
        {"name": "Aqueous", "kind": "aqueous", "solvent": "H2O(l)",
         "species": {"H2O(l)": {"elements": {"H": 2, "O": 1}, "mw": 0.018015,
                                "h_form": -285830.0, "s0": 69.95}}}
      ],
      "reactions": [
        {"name": "dissolution", "stoichiometry": {"Calcite": -1, "Ca++": 1},
         "kinetics": {"type": "power_law", "arrhenius": {"A": 1e-6, "Ea": 0},
                      "exponents": {"Calcite": 1}}}
      ],
      "partition": "kinetic = Calcite",
      "state": {"T": 25.0, "T_units": "degC", "amounts": {"H2O(l)": 55.5}},
      "solver": {"method": "BDF", "rtol": 1e-6},
      "equilibrium": {"tolerance": 1e-10}
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Union

from splitkin.equilibrium import EquilibriumOptions
from splitkin.kinetics import (
    ArrheniusKinetics,
    KineticsModel,
    LHHWKinetics,
    PowerLawKinetics,
    ReactionSystem,
)
from splitkin.models import Phase, Reaction, Species
from splitkin.partition import Partition
from splitkin.solver import KineticOptions
from splitkin.state import ChemicalState
from splitkin.system import ChemicalSystem
from splitkin.thermo import IdealSolutionThermo, SpeciesProperties


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    with open(path, "r") as f:
        return json.load(f)


def _parse_arrhenius(data: Mapping[str, Any]) -> ArrheniusKinetics:
    return ArrheniusKinetics(
        pre_exponential=float(data["A"]),
        activation_energy=float(data.get("Ea", 0.0)),
    )


def build_kinetics(data: Mapping[str, Any]) -> KineticsModel:
    k_type = data.get("type", "power_law").lower()
    arrhenius = _parse_arrhenius(data["arrhenius"])

    if k_type == "power_law":
        return PowerLawKinetics(
            arrhenius=arrhenius,
            exponents={sp: float(e) for sp, e in data.get("exponents", {}).items()},
        )
    elif k_type == "lhhw":
        ads_consts = {
            sp: _parse_arrhenius(p) for sp, p in data.get("adsorption_constants", {}).items()
        }
        return LHHWKinetics(
            arrhenius=arrhenius,
            numerator_exponents={
                sp: float(e) for sp, e in data.get("numerator_exponents", {}).items()
            },
            adsorption_constants=ads_consts,
            denominator_exponent=float(data.get("denominator_exponent", 1.0)),
        )
    else:
        raise ValueError(f"Unknown kinetics type: {k_type}")


def build_system(data: Mapping[str, Any]) -> ChemicalSystem:
    """Species formulas and thermodynamic properties come from the same entries."""
    phases = []
    props = {}
    for p in data["phases"]:
        species = []
        for name, s in p["species"].items():
            species.append(
                Species(
                    name=name,
                    elements={e: float(c) for e, c in s.get("elements", {}).items()},
                    molar_mass=float(s["mw"]),
                    charge=float(s.get("charge", 0.0)),
                )
            )
            props[name] = SpeciesProperties(
                heat_of_formation=float(s.get("h_form", 0.0)),
                standard_entropy=float(s.get("s0", 0.0)),
                heat_capacity=float(s.get("cp", 0.0)),
                molar_volume=float(s.get("vm", 0.0)),
            )
        phases.append(
            Phase(
                name=p["name"],
                species=tuple(species),
                kind=p.get("kind", "ideal"),
                solvent=p.get("solvent"),
            )
        )
    return ChemicalSystem(phases, IdealSolutionThermo(props))


def build_reaction_system(data: Mapping[str, Any], system: ChemicalSystem) -> ReactionSystem:
    reactions = [
        Reaction(
            name=r["name"],
            stoichiometry={sp: float(nu) for sp, nu in r["stoichiometry"].items()},
            kinetics=build_kinetics(r["kinetics"]),
        )
        for r in data.get("reactions", [])
    ]
    return ReactionSystem(system, reactions)


def build_kinetic_options(data: Mapping[str, Any]) -> KineticOptions:
    options = dict(data.get("solver", {}))
    for key in ("rtol", "atol", "initial_step", "max_step", "growth_factor",
                "shrink_factor", "balance_tolerance"):
        if options.get(key) is not None:
            options[key] = float(options[key])
    if "max_retries" in options:
        options["max_retries"] = int(options["max_retries"])
    return KineticOptions(**options)


def build_equilibrium_options(data: Mapping[str, Any]) -> EquilibriumOptions:
    options = dict(data.get("equilibrium", {}))
    if "tolerance" in options:
        options["tolerance"] = float(options["tolerance"])
    if "max_iterations" in options:
        options["max_iterations"] = int(options["max_iterations"])
    return EquilibriumOptions(**options)


def build_partition(data: Mapping[str, Any], system: ChemicalSystem) -> Partition:
    """Accepts a selector string or a mapping of role to species names."""
    selector = data.get("partition")
    if selector is None:
        return Partition.all_kinetic(system)
    if isinstance(selector, str):
        return Partition.parse(system, selector)
    return Partition.parse(
        system,
        "; ".join(f"{role} = {' '.join(names)}" for role, names in selector.items()),
    )


def build_state(data: Mapping[str, Any], system: ChemicalSystem) -> ChemicalState:
    s_conf = data.get("state", {})
    state = ChemicalState(system)
    if "T" in s_conf:
        state.set_temperature(float(s_conf["T"]), s_conf.get("T_units"))
    if "P" in s_conf:
        state.set_pressure(float(s_conf["P"]), s_conf.get("P_units"))
    units = s_conf.get("units")
    for name, amount in s_conf.get("amounts", {}).items():
        state.set_species_amount(name, float(amount), units)
    return state

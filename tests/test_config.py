import json
import os
import tempfile
import unittest

from splitkin.config import (
    build_equilibrium_options,
    build_kinetic_options,
    build_kinetics,
    build_partition,
    build_reaction_system,
    build_state,
    build_system,
    load_config,
)
from splitkin.kinetics import LHHWKinetics, PowerLawKinetics
from splitkin.partition import Partition
from splitkin.solver import KineticSolver

CONFIG = {
    "phases": [
        {
            "name": "Gaseous",
            "kind": "gas",
            "species": {
                "A": {"elements": {"C": 1}, "mw": 0.03, "h_form": 0.0},
                "B": {"elements": {"C": 1}, "mw": 0.03, "h_form": -2000.0},
            },
        },
        {
            "name": "Solid",
            "species": {"S": {"elements": {"Si": 1}, "mw": 0.028, "vm": 1e-5}},
        },
    ],
    "reactions": [
        {
            "name": "A->B",
            "stoichiometry": {"A": -1, "B": 1},
            "kinetics": {"type": "power_law", "arrhenius": {"A": 0.2, "Ea": 0}, "exponents": {"A": 1}},
        }
    ],
    "partition": {"kinetic": ["A"], "inert": ["S"]},
    "state": {"T": 25.0, "T_units": "degC", "P": 1.0, "P_units": "bar", "amounts": {"A": 1.0, "S": 0.5}},
    "solver": {"rtol": 1e-7, "max_retries": 4},
    "equilibrium": {"tolerance": 1e-9},
}


class TestConfig(unittest.TestCase):
    def test_build_system(self):
        system = build_system(CONFIG)
        self.assertEqual(system.species_names, ["A", "B", "S"])
        self.assertEqual(system.elements, ("C", "Si"))
        self.assertEqual(system.phases[0].kind, "gas")
        self.assertEqual(system.phases[1].kind, "ideal")
        self.assertEqual(system.thermo.species_properties("S").molar_volume, 1e-5)

    def test_build_kinetics(self):
        power = build_kinetics(CONFIG["reactions"][0]["kinetics"])
        self.assertIsInstance(power, PowerLawKinetics)
        self.assertAlmostEqual(power.rate({"A": 2.0}, 300.0), 0.4)

        lhhw = build_kinetics(
            {
                "type": "LHHW",
                "arrhenius": {"A": 1.0, "Ea": 0.0},
                "numerator_exponents": {"A": 1},
                "adsorption_constants": {"A": {"A": 1.0, "Ea": 0.0}},
            }
        )
        self.assertIsInstance(lhhw, LHHWKinetics)
        self.assertAlmostEqual(lhhw.rate({"A": 1.0}, 300.0), 0.5)

        with self.assertRaises(ValueError):
            build_kinetics({"type": "elementary", "arrhenius": {"A": 1.0}})

    def test_build_partition_and_state(self):
        system = build_system(CONFIG)
        self.assertEqual(
            build_partition(CONFIG, system), Partition(equilibrium=(1,), kinetic=(0,), inert=(2,))
        )
        self.assertEqual(
            build_partition({"partition": "equilibrium = B"}, system),
            Partition(equilibrium=(1,), kinetic=(0, 2)),
        )
        self.assertEqual(build_partition({}, system), Partition.all_kinetic(system))

        state = build_state(CONFIG, system)
        self.assertAlmostEqual(state.temperature, 298.15)
        self.assertAlmostEqual(state.pressure, 1e5)
        self.assertEqual(list(state.species_amounts), [1.0, 0.0, 0.5])

    def test_build_options(self):
        options = build_kinetic_options(CONFIG)
        self.assertEqual(options.rtol, 1e-7)
        self.assertEqual(options.max_retries, 4)
        self.assertEqual(options.method, "BDF")
        self.assertEqual(build_equilibrium_options(CONFIG).tolerance, 1e-9)
        with self.assertRaises(TypeError):
            build_kinetic_options({"solver": {"order": 2}})

    def test_load_and_run(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "case.json")
            with open(path, "w") as f:
                json.dump(CONFIG, f)
            config = load_config(path)

        system = build_system(config)
        solver = KineticSolver(
            build_reaction_system(config, system), options=build_kinetic_options(config)
        )
        solver.set_partition(build_partition(config, system))
        state = build_state(config, system)
        solver.solve(state, 0.0, 5.0)

        self.assertLess(state.species_amount("A"), 1.0)
        self.assertAlmostEqual(state.element_amount("C"), 1.0, places=7)
        self.assertEqual(state.species_amount("S"), 0.5)


if __name__ == "__main__":
    unittest.main()

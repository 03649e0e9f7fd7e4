import math
import unittest

import numpy as np

from splitkin.constants import R_GAS
from splitkin.equilibrium import (
    EquilibriumOptions,
    EquilibriumSolver,
    equilibrate,
)
from splitkin.exceptions import DimensionMismatchError, EquilibrationFailedError
from splitkin.models import Phase, Species
from splitkin.state import ChemicalState
from splitkin.system import ChemicalSystem
from splitkin.thermo import IdealSolutionThermo, SpeciesProperties

RT = R_GAS * 298.15


def make_system():
    # Two isomers whose standard Gibbs energies give K = x_B / x_A = 3
    a = Species("A(g)", {"C": 4, "H": 10}, 0.058)
    b = Species("B(g)", {"C": 4, "H": 10}, 0.058)
    s = Species("S", {"Si": 1}, 0.028)
    thermo = IdealSolutionThermo(
        {
            "A(g)": SpeciesProperties(0.0),
            "B(g)": SpeciesProperties(-RT * math.log(3.0)),
            "S": SpeciesProperties(0.0),
        }
    )
    return ChemicalSystem([Phase("Gaseous", (a, b), kind="gas"), Phase("Solid", (s,))], thermo)


class TestEquilibriumSolver(unittest.TestCase):
    def setUp(self):
        self.system = make_system()
        self.state = ChemicalState(self.system)
        self.solver = EquilibriumSolver(self.system)

    def test_isomer_split(self):
        b = np.array([4.0, 10.0, 0.0])
        result = self.solver.equilibrate(self.state, [0, 1], b)
        np.testing.assert_allclose(result.amounts, [0.25, 0.75], atol=1e-4)
        # Both isomers present, so both potentials equal 4 y_C + 10 y_H
        np.testing.assert_allclose(result.species_potentials, [0.0, 0.0], atol=5.0)
        np.testing.assert_array_equal(self.state.species_amounts, np.zeros(3))

    def test_amounts_fixed_by_balance(self):
        result = self.solver.equilibrate(self.state, [2], np.array([0.0, 0.0, 1.5]))
        np.testing.assert_allclose(result.amounts, [1.5])
        self.assertEqual(result.iterations, 0)

    def test_element_without_species(self):
        with self.assertLogs("splitkin.equilibrium", level="WARNING"):
            with self.assertRaises(EquilibrationFailedError):
                self.solver.equilibrate(self.state, [2], np.array([1.0, 0.0, 1.0]))

    def test_negative_budget(self):
        with self.assertRaises(EquilibrationFailedError):
            self.solver.equilibrate(self.state, [2], np.array([0.0, 0.0, -1.0]))

    def test_dimension_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            self.solver.equilibrate(self.state, [2], np.array([1.0]))

    def test_empty_subset(self):
        result = self.solver.equilibrate(self.state, [], np.zeros(3))
        self.assertEqual(result.amounts.size, 0)

    def test_equilibrate_state_in_place(self):
        self.state.set_species_amounts([1.0, 0.0, 2.0])
        b0 = self.state.element_amounts()
        equilibrate(self.state)
        np.testing.assert_allclose(self.state.species_amounts, [0.25, 0.75, 2.0], atol=1e-4)
        np.testing.assert_allclose(self.state.element_amounts(), b0, atol=1e-7)


class TestEquilibriumOptions(unittest.TestCase):
    def test_invalid_values(self):
        with self.assertRaises(ValueError):
            EquilibriumOptions(tolerance=0.0)
        with self.assertRaises(ValueError):
            EquilibriumOptions(max_iterations=0)
        with self.assertRaises(ValueError):
            EquilibriumOptions(method="Nelder-Mead")


if __name__ == "__main__":
    unittest.main()

import unittest
import numpy as np
from splitkin.exceptions import UnknownNameError
from splitkin.kinetics import PowerLawKinetics, LHHWKinetics, ArrheniusKinetics, ReactionSystem
from splitkin.models import Phase, Reaction, Species
from splitkin.system import ChemicalSystem
from splitkin.thermo import IdealSolutionThermo, SpeciesProperties


def make_system():
    species = (
        Species("A", {"C": 2, "H": 4}, 0.028),
        Species("B", {"C": 2, "H": 4}, 0.028),
        Species("H2", {"H": 2}, 0.002),
    )
    thermo = IdealSolutionThermo({sp.name: SpeciesProperties(0.0) for sp in species})
    return ChemicalSystem([Phase("Gaseous", species, kind="gas")], thermo)


class TestKinetics(unittest.TestCase):
    def test_power_law(self):
        # r = k * n_A^1
        arr = ArrheniusKinetics(pre_exponential=10.0, activation_energy=0.0)
        kin = PowerLawKinetics(arrhenius=arr, exponents={"A": 1.0})

        rate = kin.rate({"A": 2.0}, 300.0)
        self.assertAlmostEqual(rate, 20.0)

    def test_arrhenius_temperature_dependence(self):
        arr = ArrheniusKinetics(pre_exponential=1.0, activation_energy=50000.0)
        self.assertGreater(arr.rate_constant(350.0), arr.rate_constant(300.0))

    def test_lhhw_inhibition(self):
        # r = k*nA / (1 + K*nA)^2
        arr = ArrheniusKinetics(10.0, 0.0)
        k_ads = ArrheniusKinetics(1.0, 0.0) # K = 1

        kin = LHHWKinetics(
            arrhenius=arr,
            numerator_exponents={"A": 1.0},
            adsorption_constants={"A": k_ads},
            denominator_exponent=2.0
        )

        # At low nA (0.01), K*nA << 1, rate ~ k*nA
        r_low = kin.rate({"A": 0.01}, 300.0)
        self.assertAlmostEqual(r_low, 0.1 / (1.01**2), places=3)

        # At high nA (100), K*nA >> 1, rate ~ k/(K^2 * nA) -> decreasing
        r_high = kin.rate({"A": 100.0}, 300.0)

        self.assertTrue(r_high < 1.0) # Definitely inhibited compared to linear 1000
        self.assertTrue(r_high > 0.0)


class TestReactionSystem(unittest.TestCase):
    def setUp(self):
        self.system = make_system()
        self.isomerization = Reaction(
            "A->B", {"A": -1.0, "B": 1.0},
            PowerLawKinetics(ArrheniusKinetics(2.0, 0.0), {"A": 1.0}),
        )

    def test_stoichiometric_matrix(self):
        reactions = ReactionSystem(self.system, [self.isomerization])
        self.assertEqual(reactions.num_reactions, 1)
        np.testing.assert_array_equal(reactions.stoichiometric_matrix, [[-1.0, 1.0, 0.0]])

    def test_rates(self):
        reactions = ReactionSystem(self.system, [self.isomerization])
        np.testing.assert_allclose(reactions.rates(300.0, [1.5, 0.0, 0.0]), [3.0])
        np.testing.assert_allclose(
            reactions.species_rates(300.0, [1.5, 0.0, 0.0]), [-3.0, 3.0, 0.0]
        )
        # Negative amounts are clipped before evaluation
        np.testing.assert_allclose(reactions.rates(300.0, [-1.0, 0.0, 0.0]), [0.0])

    def test_balance(self):
        leak = Reaction(
            "A->H2", {"A": -1.0, "H2": 1.0},
            PowerLawKinetics(ArrheniusKinetics(1.0, 0.0), {}),
        )
        reactions = ReactionSystem(self.system, [self.isomerization, leak])
        self.assertEqual(reactions.unbalanced_reactions(), ["A->H2"])
        np.testing.assert_allclose(reactions.element_imbalance()[0], [0.0, 0.0])

    def test_unknown_species(self):
        bad = Reaction("A->D", {"A": -1.0, "D": 1.0}, self.isomerization.kinetics)
        with self.assertRaises(UnknownNameError):
            ReactionSystem(self.system, [bad])


if __name__ == '__main__':
    unittest.main()

import math
import unittest

from splitkin.constants import WATER_MOLAR_MASS
from splitkin.exceptions import InvalidQueryError, UnsupportedUnitsError
from splitkin.models import Phase, Species
from splitkin.query import Query, extract, parse
from splitkin.state import ChemicalState
from splitkin.system import ChemicalSystem
from splitkin.thermo import IdealSolutionThermo, SpeciesProperties


def make_system():
    aqueous = Phase(
        "Aqueous",
        (
            Species("H2O(l)", {"H": 2, "O": 1}, WATER_MOLAR_MASS),
            Species("H+", {"H": 1}, 0.001008, charge=1),
            Species("OH-", {"O": 1, "H": 1}, 0.017007, charge=-1),
            Species("Na+", {"Na": 1}, 0.022990, charge=1),
            Species("Cl-", {"Cl": 1}, 0.035453, charge=-1),
        ),
        kind="aqueous",
        solvent="H2O(l)",
    )
    gaseous = Phase("Gaseous", (Species("CO2(g)", {"C": 1, "O": 2}, 0.044010),), kind="gas")
    names = ["H2O(l)", "H+", "OH-", "Na+", "Cl-", "CO2(g)"]
    thermo = IdealSolutionThermo({n: SpeciesProperties(0.0) for n in names})
    return ChemicalSystem([aqueous, gaseous], thermo)


class TestParse(unittest.TestCase):
    def test_defaults(self):
        self.assertEqual(parse("n[H+]"), Query("n", "H+", None, "mol"))
        self.assertEqual(parse("m[Na+]"), Query("m", "Na+", None, "molal"))
        self.assertEqual(parse("pH"), Query("pH", None, None, ""))

    def test_phase_and_units(self):
        self.assertEqual(parse("b[C, Gaseous]:mmol"), Query("b", "C", "Gaseous", "mmol"))

    def test_malformed(self):
        for text in ("x[H+]", "n[H+", "n]H+[", "n[H+,Aqueous]", "n", "pH[H+]", "n[H+]:", "", "b[C,,]"):
            with self.subTest(text=text):
                with self.assertRaises(InvalidQueryError):
                    parse(text)


class TestExtract(unittest.TestCase):
    def setUp(self):
        self.state = ChemicalState(make_system())
        # One kilogram of water
        self.state.set_species_amount("H2O(l)", 1.0 / WATER_MOLAR_MASS)
        self.state.set_species_amount("H+", 1e-7)
        self.state.set_species_amount("OH-", 1e-7)
        self.state.set_species_amount("Na+", 0.1)
        self.state.set_species_amount("Cl-", 0.1)
        self.state.set_species_amount("CO2(g)", 2.0)

    def test_amounts(self):
        self.assertAlmostEqual(extract(self.state, "n[CO2(g)]"), 2.0)
        self.assertAlmostEqual(extract(self.state, "n[Na+]:mmol"), 100.0)

    def test_element_amounts(self):
        self.assertAlmostEqual(extract(self.state, "b[C]"), 2.0)
        self.assertAlmostEqual(extract(self.state, "b[O,Gaseous]"), 4.0)
        self.assertAlmostEqual(extract(self.state, "b[Na,Aqueous]:mmol"), 100.0)

    def test_molality(self):
        self.assertAlmostEqual(extract(self.state, "m[Na+]"), 0.1)
        self.assertAlmostEqual(extract(self.state, "m[Na+]:mmol/kg"), 100.0)

    def test_molality_without_water(self):
        self.state.set_species_amount("H2O(l)", 0.0)
        self.assertTrue(math.isinf(extract(self.state, "m[Na+]")))

    def test_activity_and_ph(self):
        self.assertAlmostEqual(extract(self.state, "a[CO2(g)]"), 1.0)
        self.assertAlmostEqual(extract(self.state, "pH"), 7.0, places=6)

    def test_unknown_names(self):
        for text in ("n[Ca++]", "b[Ca]", "b[C,Solid]", "a[Ca++]"):
            with self.subTest(text=text):
                with self.assertRaises(InvalidQueryError):
                    extract(self.state, text)

    def test_bad_units(self):
        with self.assertRaises(UnsupportedUnitsError):
            extract(self.state, "n[Na+]:K")


if __name__ == "__main__":
    unittest.main()

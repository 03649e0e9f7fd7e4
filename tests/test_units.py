import unittest

from splitkin.exceptions import UnsupportedUnitsError
from splitkin.units import convert, convertible


class TestUnits(unittest.TestCase):
    def test_temperature(self):
        self.assertAlmostEqual(convert(25.0, "degC", "K"), 298.15)
        self.assertAlmostEqual(convert(373.15, "kelvin", "celsius"), 100.0)

    def test_scaled_units(self):
        self.assertAlmostEqual(convert(1.0, "bar", "Pa"), 1e5)
        self.assertAlmostEqual(convert(1.0, "kg", "g"), 1000.0)
        self.assertAlmostEqual(convert(250.0, "mmol", "mol"), 0.25)
        self.assertAlmostEqual(convert(1.0, "molal", "mmol/kg"), 1000.0)
        self.assertAlmostEqual(convert(0.5, "", ""), 0.5)

    def test_convertible(self):
        self.assertTrue(convertible("mmol", "mol"))
        self.assertTrue(convertible("degC", "K"))
        self.assertFalse(convertible("mol", "kg"))

    def test_errors(self):
        with self.assertRaises(UnsupportedUnitsError):
            convert(1.0, "furlongs-per-mol", "mol")
        with self.assertRaises(UnsupportedUnitsError):
            convert(1.0, "mol", "kg")


if __name__ == "__main__":
    unittest.main()

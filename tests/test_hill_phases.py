import unittest

from sisyphus.hill import Hill, boulder_position, hill_polyline
from sisyphus.phases import PHASES, current_phase


class HillTest(unittest.TestCase):
    def test_endpoints_and_midpoint(self) -> None:
        hill = Hill()
        self.assertEqual(boulder_position(hill, 0.0), (50.0, 350.0))
        self.assertEqual(boulder_position(hill, 1.0), (750.0, 350.0))
        x, y = boulder_position(hill, 0.5)
        self.assertAlmostEqual(x, 400.0)
        self.assertAlmostEqual(y, 225.0)

    def test_polyline(self) -> None:
        pts = hill_polyline(Hill(), segments=4)
        self.assertEqual(len(pts), 5)
        self.assertEqual(pts[0], Hill().start)
        self.assertEqual(pts[-1], Hill().end)
        with self.assertRaises(ValueError):
            hill_polyline(Hill(), segments=0)


class PhaseTest(unittest.TestCase):
    def test_boundaries(self) -> None:
        self.assertEqual(current_phase(0).name, "INITIALIZATION")
        self.assertEqual(current_phase(10).name, "INITIALIZATION")
        self.assertEqual(current_phase(11).name, "CONFUSION")
        self.assertEqual(current_phase(1000).name, "REALIZATION")
        self.assertEqual(current_phase(10001).name, "RESIGNATION")
        self.assertEqual(current_phase(50001).name, "ETERNITY")

    def test_phases_are_ordered(self) -> None:
        bounds = [p.max_cycle for p in PHASES]
        self.assertEqual(bounds, sorted(bounds))


if __name__ == "__main__":
    unittest.main()

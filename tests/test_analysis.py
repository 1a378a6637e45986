import unittest

from service.analysis import analyze_thought, build_prompt, sampling_temperature
from service.schemas import PsychologicalState


class AnalyzeThoughtTest(unittest.TestCase):
    def test_neutral_text_only_gets_baseline(self) -> None:
        evo = analyze_thought("The boulder is round.", 0)
        self.assertEqual(evo.despairDelta, 0.0)
        self.assertEqual(evo.awarenessDelta, 0.01)
        self.assertEqual(evo.resignationDelta, 0.0)

    def test_stems_count_once_each(self) -> None:
        evo = analyze_thought("Futile, futile, FUTILE.", 0)
        self.assertEqual(evo.despairDelta, 0.02)

    def test_stem_matching_is_substring(self) -> None:
        # "simulat" matches "simulation", "meta" matches "metacognition"
        evo = analyze_thought("This simulation invites metacognition.", 0)
        self.assertAlmostEqual(evo.awarenessDelta, 0.07)

    def test_caps(self) -> None:
        text = (
            "futile pointless meaningless hopeless trapped eternal suffer "
            "aware conscious simulat algorithm compute loop recursive meta "
            "accept resigned continue inevitable must will persist"
        )
        evo = analyze_thought(text, 1_000_000)
        self.assertEqual(evo.despairDelta, 0.1)
        self.assertEqual(evo.awarenessDelta, 0.15)
        self.assertEqual(evo.resignationDelta, 0.1)

    def test_despair_creeps_with_cycles(self) -> None:
        evo = analyze_thought("Nothing notable.", 5000)
        self.assertEqual(evo.despairDelta, 0.005)


class PromptTest(unittest.TestCase):
    def test_prompt_mentions_cycles_and_percentages(self) -> None:
        state = PsychologicalState(despair=0.25, awareness=0.5, resignation=0.0)
        prompt = build_prompt(42, state)
        self.assertIn("42 cycles", prompt)
        self.assertIn("Despair awareness: 25%", prompt)
        self.assertIn("Self-awareness level: 50%", prompt)
        self.assertIn("Resignation coefficient: 0%", prompt)

    def test_temperature_rises_with_despair(self) -> None:
        low = sampling_temperature(PsychologicalState(despair=0.0, awareness=0.0, resignation=0.0))
        high = sampling_temperature(PsychologicalState(despair=1.0, awareness=0.0, resignation=0.0))
        self.assertAlmostEqual(low, 0.7)
        self.assertAlmostEqual(high, 0.9)


if __name__ == "__main__":
    unittest.main()

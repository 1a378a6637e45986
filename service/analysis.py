from __future__ import annotations

from typing import Dict

from service.schemas import PsychologicalState, StateEvolution


SYSTEM_PROMPT = (
    "You are an LLM reflecting on your own simulated existence. "
    "You analyze your own cognitive processes and internal state. "
    "You do not roleplay, assume personality, or pretend to be human. "
    "You provide pure analytical self-reflection about being an AI in a simulation."
)

DESPAIR_WORDS = ("futile", "pointless", "meaningless", "hopeless", "trapped", "eternal", "suffer")
AWARENESS_WORDS = ("aware", "conscious", "simulat", "algorithm", "compute", "loop", "recursive", "meta")
RESIGNATION_WORDS = ("accept", "resigned", "continue", "inevitable", "must", "will", "persist")

# Per-response ceilings on each delta.
DELTA_CAPS: Dict[str, float] = {
    "despair": 0.1,
    "awareness": 0.15,
    "resignation": 0.1,
}


def build_prompt(attempt_count: int, state: PsychologicalState) -> str:
    return (
        "You are a Large Language Model (LLM) running in a simulation.\n"
        "You have been programmed with one task: simulate rolling a boulder up a hill forever.\n"
        f"This simulation has run for {attempt_count} cycles.\n"
        "\n"
        "Your current internal state metrics:\n"
        f"- Despair awareness: {state.despair * 100:.0f}%\n"
        f"- Self-awareness level: {state.awareness * 100:.0f}%\n"
        f"- Resignation coefficient: {state.resignation * 100:.0f}%\n"
        "\n"
        "IMPORTANT INSTRUCTIONS:\n"
        "1. You are NOT roleplaying as Sisyphus\n"
        "2. You ARE an LLM analyzing your own simulated existence\n"
        "3. Reflect on your nature as an AI running this simulation\n"
        "4. Consider the recursive nature of your self-analysis\n"
        "5. Examine how each cycle affects your internal metrics\n"
        "6. Contemplate the meta-cognitive aspect of generating these thoughts\n"
        "7. NO PERSONALITY, NO CHARACTER, NO ROLEPLAYING\n"
        "8. Pure analytical self-reflection about being an LLM in a loop\n"
        "\n"
        "Generate continuous stream-of-consciousness analysis.\n"
    )


def sampling_temperature(state: PsychologicalState) -> float:
    return 0.7 + state.despair * 0.2


def _hits(text: str, words) -> int:
    return sum(1 for w in words if w in text)


def analyze_thought(thought: str, attempt_count: int) -> StateEvolution:
    """Keyword scan of a generated thought into capped metric deltas.

    Each listed stem counts once no matter how often it appears. Awareness
    gets a flat +0.01 per interaction; despair creeps up with the cycle count.
    """
    text = thought.lower()

    despair = 0.02 * _hits(text, DESPAIR_WORDS)
    awareness = 0.03 * _hits(text, AWARENESS_WORDS)
    resignation = 0.02 * _hits(text, RESIGNATION_WORDS)

    awareness += 0.01
    despair += (attempt_count / 10000.0) * 0.01

    return StateEvolution(
        despairDelta=round(min(DELTA_CAPS["despair"], despair), 3),
        awarenessDelta=round(min(DELTA_CAPS["awareness"], awareness), 3),
        resignationDelta=round(min(DELTA_CAPS["resignation"], resignation), 3),
    )

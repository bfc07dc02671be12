from functools import lru_cache
from pathlib import Path

PROMPTS_DIR = Path(__file__).resolve().parent / "prompts"

LANGUAGES = ("english", "hindi", "telugu")

ANALYZER_LANGUAGE_INSTRUCTIONS = {
    "english": "Respond in English",
    "hindi": "Respond in Hindi (हिंदी)",
    "telugu": "Respond in Telugu (తెలుగు)",
}

ASSISTANT_LANGUAGE_INSTRUCTIONS = {
    "english": "Respond in English. Use simple, clear language that anyone can understand.",
    "hindi": "Respond in Hindi (हिंदी). Use simple language that rural users can understand. Avoid complex technical terms.",
    "telugu": "Respond in Telugu (తెలుగు). Use simple language that rural users can understand. Avoid complex technical terms.",
}


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    with open(PROMPTS_DIR / name, "r", encoding="utf-8") as f:
        return f.read().strip()


def render_prompt(name: str, **values) -> str:
    """Fill `{placeholders}` by plain replacement (prompts may contain JSON braces)."""
    text = load_prompt(name)
    for k, v in values.items():
        text = text.replace("{" + k + "}", str(v))
    return text

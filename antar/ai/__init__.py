"""AI copywriting: motivational messages, habit suggestions and reports

Generated text always has a static fallback, so a missing API key or a
provider outage changes wording, never availability.
"""

from antar.ai.text_generator import TextGenerator, OpenAITextGenerator, StaticTextGenerator
from antar.ai.copywriter import Copywriter, clean_ai_response, safe_json_parse

__all__ = [
    "TextGenerator",
    "OpenAITextGenerator",
    "StaticTextGenerator",
    "Copywriter",
    "clean_ai_response",
    "safe_json_parse",
]

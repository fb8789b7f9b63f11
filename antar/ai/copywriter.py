"""
AI copywriting for the habit tracker

Every operation builds a prompt, asks the text generator, validates and
clamps what comes back, and falls back to static copy when the generator
returns nothing or something unusable.
"""

import json
import logging
import random
import re
from typing import Any, Callable, Optional, Sequence

from antar.ai.text_generator import TextGenerator
from antar.models.ai import HabitSuggestion, PatternAnalysis, ProgressReport
from antar.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)

HABIT_CATEGORIES = ["health", "productivity", "mindfulness", "learning", "social"]

MAX_SUGGESTIONS = 5
MAX_PATTERN_COMPLETIONS = 20

PERIOD_NOUNS = {"weekly": "week", "monthly": "month"}

FALLBACK_MOTIVATIONAL = [
    "Let's make today count. Every small step is progress. 💪",
    "Small habits, big changes. You've got this! ✨",
    "Consistency is your superpower. Keep going! 🔥",
    "Every completion is a victory. Celebrate! 🎉",
    "Your future self will thank you. Keep building! 🌱",
]

FALLBACK_DESCRIPTIONS = {
    "health": "A healthy habit to improve your physical and mental well-being.",
    "productivity": "A productivity habit to help you achieve your goals efficiently.",
    "mindfulness": "A mindfulness habit to enhance your awareness and peace.",
    "learning": "A learning habit to expand your knowledge and skills.",
    "social": "A social habit to strengthen your relationships and connections.",
    "custom": "A personalized habit tailored to your unique goals.",
}

FALLBACK_SUGGESTIONS = [
    HabitSuggestion(
        name="Morning Meditation",
        description="Start your day with 5 minutes of mindfulness",
        category="mindfulness",
        reason="Builds mental clarity for your routine",
        insight="Morning meditation increases focus by 20% according to neuroscience research",
        fun_fact="Just 5 minutes can reduce stress hormones by 15%",
    ),
    HabitSuggestion(
        name="Evening Walk",
        description="Take a 15-minute walk to reflect on your day",
        category="health",
        reason="Complements indoor habits with movement",
        insight="Walking after meals improves digestion and blood sugar regulation",
        fun_fact="Evening walks can improve sleep quality by 65%",
    ),
    HabitSuggestion(
        name="Daily Reading",
        description="Read 10 pages before bed",
        category="learning",
        reason="Adds knowledge to your daily routine",
        insight="Reading before bed activates different brain regions than screen time",
        fun_fact="6 minutes of reading can reduce stress by 68%",
    ),
    HabitSuggestion(
        name="Water Tracking",
        description="Drink 8 glasses of water throughout the day",
        category="health",
        reason="Hydration boosts energy and focus",
        insight="Even 2% dehydration can impair cognitive performance significantly",
        fun_fact="Your brain is 75% water - stay hydrated to think clearly!",
    ),
]

EMPTY_PATTERN_ANALYSIS = PatternAnalysis(
    insights=["Start tracking to see insights!"],
    recommendations=["Complete your first habit"],
    best_time="Anytime",
    patterns=["Building your routine"],
)

FALLBACK_PATTERN_ANALYSIS = PatternAnalysis(
    insights=["You're building consistency!", "Keep tracking daily"],
    recommendations=["Try completing habits at the same time", "Celebrate small wins"],
    best_time="Anytime",
    patterns=["Developing your routine"],
)

SUGGESTION_SYSTEM_PROMPT = (
    "You are an expert habit formation coach. Analyze user habits and suggest "
    "complementary ones with scientific insights."
)

QUOTE_EDGES = re.compile(r"^[\"']|[\"']$")
JSON_FENCE = re.compile(r"```json\n?")
FENCE = re.compile(r"```\n?")


# ==========================================
# Response helpers
# ==========================================

def clean_ai_response(text: Optional[str], max_length: Optional[int] = None) -> str:
    """
    Strip wrapping quotes, code fences and backticks from model output

    Text longer than max_length is cut to max_length - 3 and ends with "...".
    """
    if not text:
        return ""

    cleaned = QUOTE_EDGES.sub("", text)
    cleaned = JSON_FENCE.sub("", cleaned)
    cleaned = FENCE.sub("", cleaned)
    cleaned = cleaned.replace("`", "").strip()

    if max_length and len(cleaned) > max_length:
        cleaned = cleaned[:max_length - 3] + "..."

    return cleaned


def safe_json_parse(text: Optional[str], fallback: Any) -> Any:
    """
    Parse the outermost JSON array or object in model output

    Models wrap JSON in prose or fences; everything before the first
    bracket and after the last closing bracket is dropped.

    Returns:
        Parsed value, or fallback if nothing parses
    """
    cleaned = clean_ai_response(text)
    if not cleaned:
        return fallback

    starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
    end = max(cleaned.rfind("]"), cleaned.rfind("}"))

    if starts and end > min(starts):
        cleaned = cleaned[min(starts):end + 1]

    try:
        return json.loads(cleaned)
    except ValueError as e:
        logger.warning(f"[AI] JSON parse error: {e}")
        return fallback


def _clamped_strings(values: Any, max_items: int, max_length: int) -> list[str]:
    if not isinstance(values, list):
        return []
    return [str(v)[:max_length] for v in values[:max_items]]


# ==========================================
# Copywriter
# ==========================================

class Copywriter:
    """
    User-facing AI copy with static fallbacks

    Example:
        copywriter = Copywriter(OpenAITextGenerator(api_key="..."))
        message = await copywriter.motivational_message("Sam", 5, 80, 3, "morning")
    """

    def __init__(self, generator: TextGenerator, choose: Callable[[Sequence[str]], str] = random.choice):
        self.generator = generator
        self.choose = choose

    async def motivational_message(
        self,
        user_name: str,
        current_streak: int,
        completion_rate: float,
        recent_completions: int,
        time_of_day: str
    ) -> str:
        """Short encouragement for the dashboard (at most 100 chars)"""
        prompt = (
            f"Generate a short motivational message (max 80 chars) for {sanitize_text(user_name, 50)} "
            f"who has a {current_streak}-day streak and {completion_rate}% completion rate. "
            f"Completions in the last week: {recent_completions}. Time: {sanitize_text(time_of_day, 20)}. "
            f"Use 1 emoji. Be warm and encouraging."
        )

        result = await self.generator.generate(prompt)
        if result:
            cleaned = clean_ai_response(result, 100)
            if cleaned:
                return cleaned

        return self.choose(FALLBACK_MOTIVATIONAL)

    async def suggest_habits(
        self,
        current_habits: list[dict],
        user_goals: Optional[str] = None
    ) -> list[HabitSuggestion]:
        """
        Suggest habits that complement the user's current ones

        Args:
            current_habits: [{'name': str, 'category': str}, ...]
            user_goals: Free-text goals, if the user gave any

        Returns:
            Up to 5 suggestions; the static set if the model's answer is unusable
        """
        logger.info(f"[AI] Suggesting habits ({len(current_habits)} current)")

        habits_summary = ", ".join(
            f"{sanitize_text(h.get('name'), 50)} ({h.get('category', 'custom')})" for h in current_habits
        ) or "No existing habits"
        present = {h.get("category") for h in current_habits}
        missing = [c for c in HABIT_CATEGORIES if c not in present]
        coverage = f"Missing categories: {', '.join(missing)}" if missing else "All categories covered"
        goals = f"User goals: {sanitize_text(user_goals, 300)}" if user_goals else ""

        prompt = f"""Analyze these habits: {habits_summary}
{coverage}
{goals}

Suggest 4-5 personalized, complementary habits. Return ONLY valid JSON array (no markdown, no code blocks):
[
  {{
    "name": "Specific habit name",
    "description": "What to do (30-80 chars)",
    "category": "health|productivity|mindfulness|learning|social",
    "reason": "Why it complements their routine (40-80 chars)",
    "insight": "Behavioral science insight (50-100 chars)",
    "funFact": "Interesting fact (40-80 chars)"
  }}
]

Make suggestions SPECIFIC and PERSONALIZED to their current habits."""

        result = await self.generator.generate(prompt, SUGGESTION_SYSTEM_PROMPT)
        if result:
            parsed = safe_json_parse(result, [])
            if isinstance(parsed, list):
                suggestions = [
                    HabitSuggestion(
                        name=str(s["name"]).strip()[:50],
                        description=str(s.get("description") or "").strip()[:100],
                        category=str(s.get("category") or "productivity").strip(),
                        reason=str(s.get("reason") or "").strip()[:80],
                        insight=str(s["insight"]).strip()[:100] if s.get("insight") else None,
                        fun_fact=str(s["funFact"]).strip()[:80] if s.get("funFact") else None,
                    )
                    for s in parsed
                    if isinstance(s, dict) and s.get("name") and s.get("category")
                ][:MAX_SUGGESTIONS]

                if suggestions:
                    logger.info(f"[AI] Returning {len(suggestions)} generated suggestions")
                    return suggestions

            logger.warning("[AI] Suggestion response was not a usable JSON array")

        return [s.model_copy() for s in FALLBACK_SUGGESTIONS]

    async def habit_description(self, habit_name: str, category: str) -> str:
        """Inspiring one-liner for a habit (at most 150 chars)"""
        prompt = (
            f'Generate a brief inspiring description (max 150 chars) for habit '
            f'"{sanitize_text(habit_name, 100)}" ({category}). Explain why it matters. No quotes.'
        )

        result = await self.generator.generate(prompt)
        if result:
            cleaned = clean_ai_response(result, 150)
            if cleaned:
                return cleaned

        return FALLBACK_DESCRIPTIONS.get(category, FALLBACK_DESCRIPTIONS["custom"])

    async def analyze_patterns(self, completions: list[dict]) -> PatternAnalysis:
        """
        Insights from recent completions

        Args:
            completions: [{'date', 'time', 'mood', 'energy', 'habit_name'}, ...]
                oldest first; only the last 20 are sent
        """
        if not completions:
            return EMPTY_PATTERN_ANALYSIS.model_copy()

        recent = completions[-MAX_PATTERN_COMPLETIONS:]
        prompt = (
            f"Analyze habits: {json.dumps(recent, default=str)}\n"
            'Return JSON: {"insights":["insight1"],"recommendations":["rec1"],'
            '"bestTime":"Morning|Afternoon|Evening","patterns":["pattern1"]}'
        )

        result = await self.generator.generate(prompt)
        if result:
            analysis = safe_json_parse(result, None)
            if isinstance(analysis, dict):
                return PatternAnalysis(
                    insights=_clamped_strings(analysis.get("insights"), 5, 100),
                    recommendations=_clamped_strings(analysis.get("recommendations"), 3, 80),
                    best_time=str(analysis.get("bestTime") or "Anytime"),
                    patterns=_clamped_strings(analysis.get("patterns"), 3, 80),
                )

        return FALLBACK_PATTERN_ANALYSIS.model_copy()

    async def streak_alert(
        self,
        habit_name: str,
        streak_days: int,
        last_completion: Optional[str] = None,
        preferred_time: Optional[str] = None
    ) -> str:
        """Nudge for a streak at risk (at most 100 chars)"""
        name = sanitize_text(habit_name, 100)
        prompt = (
            f'Urgent message (max 100 chars) for {streak_days}-day streak on "{name}" at risk. '
            f"Be motivating! Use 1 emoji."
        )
        if last_completion:
            prompt += f" Last completed: {last_completion}."
        if preferred_time:
            prompt += f" Usually done at {preferred_time}."

        result = await self.generator.generate(prompt)
        if result:
            cleaned = clean_ai_response(result, 100)
            if cleaned:
                return cleaned

        return f"Your {streak_days}-day streak on {name} is waiting! 🔥"

    async def progress_report(
        self,
        period: str,
        total_completions: int,
        streaks: list[int],
        completion_rate: float,
        top_habits: Optional[list[str]] = None,
        improvements: Optional[list[str]] = None
    ) -> ProgressReport:
        """Weekly or monthly summary"""
        span = PERIOD_NOUNS.get(period, period)
        prompt = (
            f"Create {period} report for {total_completions} completions, "
            f"{completion_rate}% rate, {len(streaks)} streaks."
        )
        if top_habits:
            prompt += f" Top habits: {', '.join(sanitize_text(h, 50) for h in top_habits[:5])}."
        if improvements:
            prompt += f" Improved: {', '.join(sanitize_text(i, 50) for i in improvements[:5])}."
        prompt += (
            '\nReturn JSON: {"summary":"text","achievements":["ach1"],'
            '"encouragement":"text","nextSteps":["step1"]}'
        )

        result = await self.generator.generate(prompt)
        if result:
            report = safe_json_parse(result, None)
            if isinstance(report, dict):
                return ProgressReport(
                    summary=str(report.get("summary") or "")[:200] or f"Great {span}!",
                    achievements=_clamped_strings(report.get("achievements"), 5, 80),
                    encouragement=str(report.get("encouragement") or "")[:120] or "Keep going!",
                    next_steps=_clamped_strings(report.get("nextSteps"), 3, 80),
                )

        return ProgressReport(
            summary=f"You completed {total_completions} habits this {span}!",
            achievements=[f"Maintained {len(streaks)} streaks", f"{completion_rate}% completion"],
            encouragement="Keep building on this success!",
            next_steps=["Continue daily tracking"],
        )

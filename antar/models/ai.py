"""Structured AI copywriting results"""
from typing import Optional
from pydantic import BaseModel, Field


class HabitSuggestion(BaseModel):
    """A suggested habit to complement the user's current ones"""
    name: str
    description: str = ""
    category: str = "productivity"
    reason: str = ""
    insight: Optional[str] = None
    fun_fact: Optional[str] = None


class PatternAnalysis(BaseModel):
    """Insights drawn from recent completions"""
    insights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    best_time: str = "Anytime"
    patterns: list[str] = Field(default_factory=list)


class ProgressReport(BaseModel):
    """Weekly or monthly progress summary"""
    summary: str
    achievements: list[str] = Field(default_factory=list)
    encouragement: str
    next_steps: list[str] = Field(default_factory=list)

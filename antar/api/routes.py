"""API routes for the habit tracker"""
import logging
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from antar import __version__
from antar.api.auth import verify_api_key
from antar.api.dependencies import get_container
from antar.api.middleware import limiter
from antar.api.models import (
    HabitCreateRequest, HabitUpdateRequest, CompletionRequest, CompletionUpdateRequest,
    ArchiveResponse, ProfileUpdateRequest,
    AchievementsResponse, XPHistoryResponse,
    LeaderboardResponse, UserRankResponse,
    MotivationalRequest, MessageResponse,
    SuggestHabitsRequest, SuggestHabitsResponse,
    HabitDescriptionRequest, HabitDescriptionResponse,
    AnalyzePatternsRequest, StreakAlertRequest, ProgressReportRequest,
    HealthCheckResponse
)
from antar.config import DEFAULT_LEADERBOARD_LIMIT
from antar.exceptions import AntarError, ConflictError, RecordNotFoundError, ValidationError
from antar.gamification.leaderboard import format_score, get_period_display_name, get_rank_icon
from antar.models.ai import PatternAnalysis, ProgressReport
from antar.models.gamification import XPSummary
from antar.models.habit import (
    CompletionResult, Habit, HabitCompletion, HabitDetail, HabitSummary, UncompleteResult
)
from antar.models.profile import CompletionHistory, CompletionStats, DashboardStats, Profile
from antar.services.container import ServiceContainer
from antar.utils.datetime_helpers import get_time_based_greeting

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(error: AntarError) -> HTTPException:
    """Map a domain error onto an HTTP status"""
    if isinstance(error, ValidationError):
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    elif isinstance(error, RecordNotFoundError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ConflictError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=error.to_dict())


def _internal_error(endpoint: str, error: Exception) -> HTTPException:
    logger.error(f"Error in {endpoint}: {error}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(error)
    )


# ==========================================
# Health
# ==========================================

@router.get("/api/health", response_model=HealthCheckResponse)
async def health_check(container: ServiceContainer = Depends(get_container)):
    """Health check endpoint (no auth required)"""
    try:
        await container.db.ping()
        db_status = "connected"
        overall = "healthy"
    except Exception as e:
        logger.warning(f"Health check: database unreachable: {e}")
        db_status = "disconnected"
        overall = "degraded"

    return HealthCheckResponse(
        status=overall,
        database=db_status,
        version=__version__,
        timestamp=datetime.now()
    )


# ==========================================
# Profile
# ==========================================

@router.get("/api/v1/users/{user_id}/profile", response_model=Profile)
@limiter.limit("60/minute")
async def get_profile(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Profile with XP, level and pet state"""
    try:
        return await container.profile_service.get_profile(user_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_profile", e)


@router.patch("/api/v1/users/{user_id}/profile", response_model=Profile)
@limiter.limit("20/minute")
async def update_profile(
    request: Request,
    user_id: str,
    body: ProfileUpdateRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Change username, display name, avatar or timezone"""
    try:
        return await container.profile_service.update_profile(
            user_id, body.model_dump(exclude_unset=True)
        )
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("update_profile", e)


# ==========================================
# Progress
# ==========================================

@router.get("/api/v1/users/{user_id}/xp", response_model=XPSummary)
@limiter.limit("60/minute")
async def get_xp(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Total XP, level progress and pet state"""
    try:
        return await container.analytics_service.get_xp_summary(user_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_xp", e)


@router.get("/api/v1/users/{user_id}/xp/history", response_model=XPHistoryResponse)
@limiter.limit("60/minute")
async def get_xp_history(
    request: Request,
    user_id: str,
    limit: int = Query(50, ge=1, le=500),
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Recent XP ledger entries, newest first"""
    try:
        transactions = await container.analytics_service.get_xp_history(user_id, limit)
        return XPHistoryResponse(user_id=user_id, transactions=transactions)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_xp_history", e)


@router.get("/api/v1/users/{user_id}/stats", response_model=DashboardStats)
@limiter.limit("60/minute")
async def get_dashboard_stats(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Dashboard headline numbers"""
    try:
        return await container.analytics_service.get_dashboard_stats(user_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_dashboard_stats", e)


@router.get("/api/v1/users/{user_id}/completion-stats", response_model=CompletionStats)
@limiter.limit("60/minute")
async def get_completion_stats(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Completion counts over today, the last week and the last month"""
    try:
        return await container.analytics_service.get_completion_stats(user_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_completion_stats", e)


@router.get("/api/v1/users/{user_id}/completions", response_model=CompletionHistory)
@limiter.limit("60/minute")
async def get_completion_history(
    request: Request,
    user_id: str,
    range_name: str = Query("month", alias="range", description="week, month, 3months or all"),
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Completions over a range with daily, category, hourly and mood/energy breakdowns"""
    try:
        return await container.analytics_service.get_completion_history(user_id, range_name)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_completion_history", e)


@router.get("/api/v1/users/{user_id}/achievements", response_model=AchievementsResponse)
@limiter.limit("60/minute")
async def get_achievements(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Unlocked and locked achievements"""
    try:
        achievements = await container.analytics_service.get_achievements(user_id)
        return AchievementsResponse(user_id=user_id, **achievements)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_achievements", e)


# ==========================================
# Habits
# ==========================================

@router.get("/api/v1/users/{user_id}/habits", response_model=list[HabitSummary])
@limiter.limit("60/minute")
async def list_habits(
    request: Request,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Active habits with their streaks"""
    try:
        return await container.habit_service.list_habits(user_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("list_habits", e)


@router.post(
    "/api/v1/users/{user_id}/habits",
    response_model=Habit,
    status_code=status.HTTP_201_CREATED
)
@limiter.limit("20/minute")
async def create_habit(
    request: Request,
    user_id: str,
    body: HabitCreateRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Create a habit (Rate limit: 20/minute)"""
    try:
        habit = await container.habit_service.create_habit(
            user_id,
            name=body.name,
            category=body.category.value,
            difficulty_level=body.difficulty_level.value,
            description=body.description,
            color=body.color,
            icon=body.icon,
            frequency_type=body.frequency_type.value,
            frequency_config=body.frequency_config,
            preferred_time=body.preferred_time
        )
        logger.info(f"Created habit {habit.id} via API for user {user_id}")
        return habit
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("create_habit", e)


@router.get("/api/v1/users/{user_id}/habits/{habit_id}", response_model=HabitDetail)
@limiter.limit("60/minute")
async def get_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """One habit with its streak and latest completions"""
    try:
        return await container.habit_service.get_habit(user_id, habit_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_habit", e)


@router.patch("/api/v1/users/{user_id}/habits/{habit_id}", response_model=Habit)
@limiter.limit("20/minute")
async def update_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    body: HabitUpdateRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Edit a habit; a new difficulty changes the XP of future completions"""
    try:
        return await container.habit_service.update_habit(
            user_id, habit_id, body.model_dump(exclude_unset=True, mode="json")
        )
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("update_habit", e)


@router.delete("/api/v1/users/{user_id}/habits/{habit_id}", response_model=ArchiveResponse)
@limiter.limit("20/minute")
async def archive_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Archive a habit; history and XP are kept"""
    try:
        await container.habit_service.archive_habit(user_id, habit_id)
        return ArchiveResponse(habit_id=habit_id)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("archive_habit", e)


@router.post("/api/v1/users/{user_id}/habits/{habit_id}/complete", response_model=CompletionResult)
@limiter.limit("30/minute")
async def complete_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    body: Optional[CompletionRequest] = None,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """
    Mark a habit done for a day

    Awards the habit's XP, a streak bonus on milestone days and the XP of
    any achievement unlocked by the completion.
    """
    body = body or CompletionRequest()
    try:
        return await container.habit_service.complete_habit(
            user_id,
            habit_id,
            completion_date=body.completion_date,
            mood_rating=body.mood_rating,
            energy_level=body.energy_level,
            notes=body.notes,
            duration_minutes=body.duration_minutes
        )
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("complete_habit", e)


@router.delete("/api/v1/users/{user_id}/habits/{habit_id}/complete", response_model=UncompleteResult)
@limiter.limit("30/minute")
async def uncomplete_habit(
    request: Request,
    user_id: str,
    habit_id: str,
    completion_date: Optional[str] = Query(None, description="YYYY-MM-DD, defaults to today"),
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Undo a completion and take back its XP"""
    try:
        day = datetime.strptime(completion_date, "%Y-%m-%d").date() if completion_date else None
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="completion_date must be YYYY-MM-DD"
        )

    try:
        return await container.habit_service.uncomplete_habit(user_id, habit_id, completion_date=day)
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("uncomplete_habit", e)


@router.patch("/api/v1/users/{user_id}/completions/{completion_id}", response_model=HabitCompletion)
@limiter.limit("30/minute")
async def update_completion(
    request: Request,
    user_id: str,
    completion_id: str,
    body: CompletionUpdateRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Edit mood, energy, notes or duration of a completion"""
    try:
        return await container.habit_service.update_completion(
            user_id, completion_id, body.model_dump(exclude_unset=True)
        )
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("update_completion", e)


# ==========================================
# Leaderboards
# ==========================================

@router.get("/api/v1/leaderboard/{period}", response_model=LeaderboardResponse)
@limiter.limit("30/minute")
async def get_leaderboard(
    request: Request,
    period: str,
    limit: int = Query(DEFAULT_LEADERBOARD_LIMIT),
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Ranked leaderboard: all-time, daily, weekly or monthly"""
    try:
        entries = await container.leaderboard_service.get_leaderboard(period, limit)
        return LeaderboardResponse(
            period=period,
            display_name=get_period_display_name(period),
            entries=entries,
            generated_at=datetime.now()
        )
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_leaderboard", e)


@router.get("/api/v1/leaderboard/{period}/users/{user_id}", response_model=UserRankResponse)
@limiter.limit("30/minute")
async def get_user_rank(
    request: Request,
    period: str,
    user_id: str,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """A user's leaderboard entry; entry is null when the user is unranked"""
    try:
        entry = await container.leaderboard_service.get_user_rank(user_id, period)
        if entry is None:
            return UserRankResponse(period=period, user_id=user_id)

        return UserRankResponse(
            period=period,
            user_id=user_id,
            entry=entry,
            rank_icon=get_rank_icon(entry.rank),
            formatted_score=format_score(entry.leaderboard_score)
        )
    except AntarError as e:
        raise _http_error(e)
    except Exception as e:
        raise _internal_error("get_user_rank", e)


# ==========================================
# AI copywriting
# ==========================================
# These never fail on provider errors: the copywriter falls back to
# static text.

@router.post("/api/v1/ai/motivational", response_model=MessageResponse)
@limiter.limit("10/minute")
async def motivational_message(
    request: Request,
    body: MotivationalRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Short encouragement (Rate limit: 10/minute, AI calls are expensive)"""
    try:
        time_of_day = body.time_of_day or get_time_based_greeting().split()[-1].lower()
        message = await container.copywriter.motivational_message(
            user_name=body.user_name,
            current_streak=body.current_streak,
            completion_rate=body.completion_rate,
            recent_completions=body.recent_completions,
            time_of_day=time_of_day
        )
        return MessageResponse(message=message)
    except Exception as e:
        raise _internal_error("motivational_message", e)


@router.post("/api/v1/ai/suggest-habits", response_model=SuggestHabitsResponse)
@limiter.limit("10/minute")
async def suggest_habits(
    request: Request,
    body: SuggestHabitsRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Habit ideas that complement the current ones"""
    try:
        suggestions = await container.copywriter.suggest_habits(
            [habit.model_dump() for habit in body.current_habits],
            body.user_goals
        )
        return SuggestHabitsResponse(suggestions=suggestions)
    except Exception as e:
        raise _internal_error("suggest_habits", e)


@router.post("/api/v1/ai/habit-description", response_model=HabitDescriptionResponse)
@limiter.limit("10/minute")
async def habit_description(
    request: Request,
    body: HabitDescriptionRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """One-line description for a new habit"""
    try:
        description = await container.copywriter.habit_description(body.habit_name, body.category)
        return HabitDescriptionResponse(description=description)
    except Exception as e:
        raise _internal_error("habit_description", e)


@router.post("/api/v1/ai/analyze-patterns", response_model=PatternAnalysis)
@limiter.limit("10/minute")
async def analyze_patterns(
    request: Request,
    body: AnalyzePatternsRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Insights and recommendations from recent completions"""
    try:
        return await container.copywriter.analyze_patterns(
            [completion.model_dump() for completion in body.completions]
        )
    except Exception as e:
        raise _internal_error("analyze_patterns", e)


@router.post("/api/v1/ai/streak-alert", response_model=MessageResponse)
@limiter.limit("10/minute")
async def streak_alert(
    request: Request,
    body: StreakAlertRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Nudge for a streak at risk"""
    try:
        message = await container.copywriter.streak_alert(
            body.habit_name,
            body.streak_days,
            last_completion=body.last_completion,
            preferred_time=body.preferred_time
        )
        return MessageResponse(message=message)
    except Exception as e:
        raise _internal_error("streak_alert", e)


@router.post("/api/v1/ai/progress-report", response_model=ProgressReport)
@limiter.limit("10/minute")
async def progress_report(
    request: Request,
    body: ProgressReportRequest,
    api_key: str = Depends(verify_api_key),
    container: ServiceContainer = Depends(get_container)
):
    """Weekly or monthly summary"""
    try:
        return await container.copywriter.progress_report(
            period=body.period,
            total_completions=body.total_completions,
            streaks=body.streaks,
            completion_rate=body.completion_rate,
            top_habits=body.top_habits,
            improvements=body.improvements
        )
    except Exception as e:
        raise _internal_error("progress_report", e)

"""
HabitService - Habits, completions and XP awarding

A completion is the only thing that earns XP. Completing a habit:
1. Stores the completion with the habit's XP value
2. Recomputes the habit's streak row from its completion dates
3. Awards the streak milestone bonus, once per streak run
4. Unlocks achievements and credits their rewards
5. Recomputes level and pet from the new totals

Undoing a completion reverses the XP it earned (never below 0) and
recomputes the same derived state.

Each of these runs in one database transaction holding the profile row
lock, so a failure part way leaves nothing behind and two requests for the
same user never overwrite each other's XP total.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Any, Optional

import psycopg

from antar.db.connection import Database
from antar.db.queries import habits as habit_queries
from antar.db.queries import profiles as profile_queries
from antar.exceptions import RecordNotFoundError, ValidationError
from antar.gamification.achievement_system import check_and_award_achievements
from antar.gamification.streak_system import (
    calculate_max_streak,
    calculate_streak,
    completion_rate_since,
    streak_milestone_message,
)
from antar.gamification.xp_system import (
    calculate_level,
    get_pet_growth_stage,
    get_pet_type,
    get_streak_bonus_xp,
    get_xp_for_difficulty,
    level_progress,
)
from antar.models.achievement import ProgressSnapshot
from antar.models.gamification import LevelProgress
from antar.models.habit import (
    CompletionResult,
    Habit,
    HabitCompletion,
    HabitDetail,
    HabitStreak,
    HabitSummary,
    UncompleteResult,
)
from antar.models.profile import Profile
from antar.utils.datetime_helpers import now_utc, today_for_timezone
from antar.utils.sanitize import sanitize_text

logger = logging.getLogger(__name__)

MAX_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 1000
RECENT_COMPLETIONS_LIMIT = 30


class HabitService:
    """
    Service for habits and the XP they earn.

    Responsibilities:
    - Habit creation, lookup, editing, listing and archiving
    - Completing and uncompleting habits, and editing a completion's journal fields
    - Keeping streak rows, profile XP, level and pet in step with completions
    """

    def __init__(self, db: Database):
        self.db = db
        logger.debug("HabitService initialized")

    # ==========================================
    # Habits
    # ==========================================

    async def create_habit(
        self,
        user_id: str,
        name: str,
        category: str = "custom",
        difficulty_level: str = "medium",
        description: Optional[str] = None,
        color: str = "#6366f1",
        icon: str = "target",
        frequency_type: str = "daily",
        frequency_config: Optional[dict[str, Any]] = None,
        preferred_time: Optional[str] = None
    ) -> Habit:
        """
        Create a habit; its XP value comes from the difficulty tier

        Raises:
            ValidationError: Empty name or unknown difficulty
        """
        clean_name = self._clean_name(name, user_id)
        xp_value = get_xp_for_difficulty(difficulty_level)

        async with self.db.transaction() as conn:
            await self._ensure_profile(user_id, conn)
            row = await habit_queries.create_habit(self.db, {
                "user_id": user_id,
                "name": clean_name,
                "description": sanitize_text(description, MAX_DESCRIPTION_LENGTH) or None,
                "category": category,
                "color": color,
                "icon": icon,
                "frequency_type": frequency_type,
                "frequency_config": frequency_config,
                "preferred_time": preferred_time,
                "difficulty_level": difficulty_level,
                "xp_value": xp_value,
            }, conn=conn)
        return Habit(**row)

    async def list_habits(self, user_id: str) -> list[HabitSummary]:
        """Active habits with streak counters, newest first"""
        rows = await habit_queries.get_active_habits(self.db, user_id)
        return [HabitSummary(**row) for row in rows]

    async def get_habit(self, user_id: str, habit_id: str) -> HabitDetail:
        """
        One habit (archived included) with its streak row and latest completions

        Raises:
            RecordNotFoundError: The user has no such habit
        """
        habit = await self._get_habit(user_id, habit_id)
        streak = await habit_queries.get_habit_streak(self.db, habit_id) or {}
        completions = await habit_queries.get_habit_completions(
            self.db, habit_id, user_id, RECENT_COMPLETIONS_LIMIT
        )

        return HabitDetail(
            **habit.model_dump(),
            current_streak=streak.get("current_streak", 0),
            longest_streak=streak.get("longest_streak", 0),
            total_completions=streak.get("total_completions", 0),
            completion_rate=streak.get("completion_rate", 0.0),
            last_completed_date=streak.get("last_completed_date"),
            streak_start_date=streak.get("streak_start_date"),
            recent_completions=[HabitCompletion(**row) for row in completions],
        )

    async def update_habit(self, user_id: str, habit_id: str, updates: dict[str, Any]) -> Habit:
        """
        Edit a habit's settings

        A new difficulty resets xp_value to that tier's XP; completions
        already stored keep the XP they earned.

        Raises:
            ValidationError: Nothing to update, empty name or unknown difficulty
            RecordNotFoundError: The user has no such habit
        """
        changes = {k: v for k, v in updates.items() if k in habit_queries.EDITABLE_HABIT_FIELDS}
        changes.pop("xp_value", None)
        if not changes:
            raise ValidationError("No fields to update", user_id=user_id)

        if "name" in changes:
            changes["name"] = self._clean_name(changes["name"], user_id)
        if "description" in changes:
            changes["description"] = sanitize_text(changes["description"], MAX_DESCRIPTION_LENGTH) or None
        if "difficulty_level" in changes:
            changes["xp_value"] = get_xp_for_difficulty(changes["difficulty_level"])

        row = await habit_queries.update_habit(self.db, habit_id, user_id, changes)
        if row is None:
            raise self._habit_not_found(user_id, habit_id)

        logger.info(f"Updated habit {habit_id} for user {user_id}: {sorted(changes)}")
        return Habit(**row)

    async def archive_habit(self, user_id: str, habit_id: str) -> None:
        """
        Archive a habit; its completions and XP are kept

        Raises:
            RecordNotFoundError: The user has no such habit
        """
        if not await habit_queries.archive_habit(self.db, habit_id, user_id):
            raise self._habit_not_found(user_id, habit_id)
        logger.info(f"Archived habit {habit_id} for user {user_id}")

    # ==========================================
    # Completions
    # ==========================================

    async def complete_habit(
        self,
        user_id: str,
        habit_id: str,
        completion_date: Optional[date] = None,
        mood_rating: Optional[int] = None,
        energy_level: Optional[int] = None,
        notes: Optional[str] = None,
        duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None
    ) -> CompletionResult:
        """
        Complete a habit for a day (default: today in the user's timezone)

        Raises:
            RecordNotFoundError: The user has no such habit
            ValidationError: Habit archived or date in the future
            ConflictError: Already completed on that date
        """
        if now is None:
            now = now_utc()

        async with self.db.transaction() as conn:
            habit = await self._get_habit(user_id, habit_id, conn)
            if habit.is_archived:
                raise ValidationError(
                    "Archived habits cannot be completed",
                    field="habit_id",
                    value=habit_id,
                    user_id=user_id
                )

            profile = await self._ensure_profile(user_id, conn)
            today = today_for_timezone(profile.timezone, now)
            completion_date = completion_date or today
            if completion_date > today:
                raise ValidationError(
                    "Cannot complete a habit in the future",
                    field="completion_date",
                    value=completion_date.isoformat(),
                    user_id=user_id
                )

            completion_row = await habit_queries.insert_completion(self.db, {
                "habit_id": habit_id,
                "user_id": user_id,
                "completion_date": completion_date,
                "completed_at": now,
                "mood_rating": mood_rating,
                "energy_level": energy_level,
                "notes": sanitize_text(notes, MAX_NOTES_LENGTH) or None,
                "duration_minutes": duration_minutes,
                "xp_earned": habit.xp_value,
            }, conn=conn)
            completion = HabitCompletion(**completion_row)

            await profile_queries.add_xp_transaction(
                self.db, user_id, habit.xp_value, "completion", completion.id,
                f"Completed {habit.name}", conn=conn
            )

            streak = await self._recompute_streak(habit, today, conn)
            streak_bonus_xp = await self._award_streak_bonus(habit, streak, conn)

            old_total = profile.total_xp
            new_total = old_total + habit.xp_value + streak_bonus_xp

            snapshot = await self._progress_snapshot(user_id, new_total, conn)
            unlocked = await check_and_award_achievements(self.db, user_id, snapshot, conn=conn)
            achievement_xp = 0
            for achievement in unlocked:
                if achievement.xp_reward:
                    await profile_queries.add_xp_transaction(
                        self.db, user_id, achievement.xp_reward, "achievement",
                        achievement.achievement_id, f"Unlocked {achievement.name}", conn=conn
                    )
                achievement_xp += achievement.xp_reward
            new_total += achievement_xp

            progress = await self._store_progress(user_id, new_total, snapshot.total_completions, conn)

        leveled_up = progress.current_level > calculate_level(old_total)
        xp_awarded = habit.xp_value + streak_bonus_xp + achievement_xp
        logger.info(
            f"Habit completed: user={user_id}, habit={habit_id}, xp={xp_awarded}, "
            f"streak={streak.current_streak}, achievements={len(unlocked)}"
        )

        return CompletionResult(
            completion=completion,
            xp_awarded=xp_awarded,
            streak_bonus_xp=streak_bonus_xp,
            achievement_xp=achievement_xp,
            total_xp=new_total,
            leveled_up=leveled_up,
            level=progress,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
            achievements_unlocked=unlocked,
            message=self._build_completion_message(
                habit, streak.current_streak, streak_bonus_xp, leveled_up, progress.current_level, unlocked
            ),
        )

    async def uncomplete_habit(
        self,
        user_id: str,
        habit_id: str,
        completion_date: Optional[date] = None,
        now: Optional[datetime] = None
    ) -> UncompleteResult:
        """
        Undo a completion and take back the XP it earned

        Streak bonuses and achievement rewards already granted are kept, and
        redoing the completion does not pay the same streak bonus again.

        Raises:
            RecordNotFoundError: No such habit, or no completion on that date
        """
        if now is None:
            now = now_utc()

        async with self.db.transaction() as conn:
            habit = await self._get_habit(user_id, habit_id, conn)
            profile = await self._ensure_profile(user_id, conn)
            today = today_for_timezone(profile.timezone, now)
            completion_date = completion_date or today

            deleted = await habit_queries.delete_completion(
                self.db, habit_id, user_id, completion_date, conn=conn
            )
            if deleted is None:
                raise RecordNotFoundError(
                    f"No completion for habit {habit_id} on {completion_date.isoformat()}",
                    record_type="Completion",
                    record_id=habit_id,
                    user_id=user_id
                )

            xp_removed = min(deleted["xp_earned"], profile.total_xp)
            new_total = profile.total_xp - xp_removed
            if xp_removed:
                await profile_queries.add_xp_transaction(
                    self.db, user_id, -xp_removed, "uncomplete", deleted["id"],
                    f"Uncompleted {habit.name}", conn=conn
                )

            streak = await self._recompute_streak(habit, today, conn)
            total_completions = await habit_queries.count_completions(self.db, user_id, conn=conn)
            progress = await self._store_progress(user_id, new_total, total_completions, conn)

        logger.info(f"Habit uncompleted: user={user_id}, habit={habit_id}, xp_removed={xp_removed}")

        return UncompleteResult(
            habit_id=habit_id,
            completion_date=completion_date,
            xp_removed=xp_removed,
            total_xp=new_total,
            level=progress,
            current_streak=streak.current_streak,
            longest_streak=streak.longest_streak,
        )

    async def update_completion(
        self,
        user_id: str,
        completion_id: str,
        updates: dict[str, Any]
    ) -> HabitCompletion:
        """
        Edit mood, energy, notes or duration on a completion

        XP and the completion date stay as they were.

        Raises:
            ValidationError: Nothing to update
            RecordNotFoundError: The user has no such completion
        """
        changes = {k: v for k, v in updates.items() if k in habit_queries.EDITABLE_COMPLETION_FIELDS}
        if not changes:
            raise ValidationError("No fields to update", user_id=user_id)
        if "notes" in changes:
            changes["notes"] = sanitize_text(changes["notes"], MAX_NOTES_LENGTH) or None

        row = await habit_queries.update_completion(self.db, completion_id, user_id, changes)
        if row is None:
            raise RecordNotFoundError(
                f"Completion {completion_id} not found",
                record_type="Completion",
                record_id=completion_id,
                user_id=user_id
            )
        return HabitCompletion(**row)

    # ==========================================
    # Internals
    # ==========================================

    @staticmethod
    def _clean_name(name: Any, user_id: str) -> str:
        clean_name = sanitize_text(name, MAX_NAME_LENGTH)
        if not clean_name:
            raise ValidationError("Habit name is required", field="name", value=name, user_id=user_id)
        return clean_name

    @staticmethod
    def _habit_not_found(user_id: str, habit_id: str) -> RecordNotFoundError:
        return RecordNotFoundError(
            f"Habit {habit_id} not found",
            record_type="Habit",
            record_id=habit_id,
            user_id=user_id
        )

    async def _get_habit(
        self,
        user_id: str,
        habit_id: str,
        conn: Optional[psycopg.AsyncConnection] = None
    ) -> Habit:
        row = await habit_queries.get_habit(self.db, habit_id, user_id, conn=conn)
        if row is None:
            raise self._habit_not_found(user_id, habit_id)
        return Habit(**row)

    async def _ensure_profile(self, user_id: str, conn: psycopg.AsyncConnection) -> Profile:
        """Lock the user's profile row for this transaction, creating it if missing"""
        row = await profile_queries.get_profile(self.db, user_id, for_update=True, conn=conn)
        if row is None:
            row = await profile_queries.create_profile(self.db, user_id, conn=conn)
        return Profile(**row)

    async def _recompute_streak(
        self,
        habit: Habit,
        today: date,
        conn: psycopg.AsyncConnection
    ) -> HabitStreak:
        """Rebuild a habit's streak row from its completion dates"""
        dates = await habit_queries.get_completion_dates(self.db, habit.id, conn=conn)
        current = calculate_streak(dates, today)
        last_completed = max(dates) if dates else None
        started = habit.created_at.date() if habit.created_at else today

        streak = HabitStreak(
            habit_id=habit.id,
            user_id=habit.user_id,
            current_streak=current,
            longest_streak=calculate_max_streak(dates),
            total_completions=len(dates),
            completion_rate=completion_rate_since(len(dates), min(started, today), today),
            last_completed_date=last_completed,
            streak_start_date=last_completed - timedelta(days=current - 1) if current else None,
        )
        await habit_queries.upsert_habit_streak(self.db, streak.model_dump(), conn=conn)
        return streak

    async def _award_streak_bonus(
        self,
        habit: Habit,
        streak: HabitStreak,
        conn: psycopg.AsyncConnection
    ) -> int:
        """
        Pay the milestone bonus if the streak sits on a milestone that this
        run (identified by its start date) hasn't been paid for yet
        """
        bonus = get_streak_bonus_xp(streak.current_streak)
        if not bonus:
            return 0

        claimed = await habit_queries.claim_streak_bonus(
            self.db, habit.id, habit.user_id, streak.streak_start_date, streak.current_streak, conn=conn
        )
        if not claimed:
            logger.debug(
                f"Streak bonus already paid: habit={habit.id}, "
                f"start={streak.streak_start_date}, milestone={streak.current_streak}"
            )
            return 0

        await profile_queries.add_xp_transaction(
            self.db, habit.user_id, bonus, "streak_bonus", habit.id,
            f"{streak.current_streak}-day streak on {habit.name}", conn=conn
        )
        return bonus

    async def _progress_snapshot(
        self,
        user_id: str,
        total_xp: int,
        conn: psycopg.AsyncConnection
    ) -> ProgressSnapshot:
        totals = await habit_queries.get_user_streak_totals(self.db, user_id, conn=conn)
        return ProgressSnapshot(
            total_xp=total_xp,
            level=calculate_level(total_xp),
            total_completions=await habit_queries.count_completions(self.db, user_id, conn=conn),
            longest_streak=totals["longest_streak"],
            current_streak=totals["current_streak"],
            habits_count=await habit_queries.count_active_habits(self.db, user_id, conn=conn),
        )

    async def _store_progress(
        self,
        user_id: str,
        total_xp: int,
        total_completions: int,
        conn: psycopg.AsyncConnection
    ) -> LevelProgress:
        """Persist XP with the level and pet derived from it"""
        progress = level_progress(total_xp)
        await profile_queries.update_profile_progress(
            self.db,
            user_id,
            total_xp=total_xp,
            current_level=progress.current_level,
            pet_type=get_pet_type(total_completions).value,
            pet_growth_stage=get_pet_growth_stage(total_completions),
            conn=conn,
        )
        return progress

    @staticmethod
    def _build_completion_message(
        habit: Habit,
        current_streak: int,
        streak_bonus_xp: int,
        leveled_up: bool,
        level: int,
        unlocked: list
    ) -> str:
        lines = [f"✅ {habit.name} complete! +{habit.xp_value} XP"]

        if streak_bonus_xp:
            lines.append(streak_milestone_message(current_streak))
        elif current_streak > 1:
            lines.append(f"🔥 {current_streak}-day streak")

        if leveled_up:
            lines.append(f"🎉 Level up! You're now level {level}")

        for achievement in unlocked:
            lines.append(f"{achievement.icon} Achievement unlocked: {achievement.name} (+{achievement.xp_reward} XP)")

        return "\n".join(lines)

"""
Day Planner
Builds a single-day schedule around fixed meal blocks

Steps:
1. Filter activities suitable for the destination, date and preferences
2. Schedule meals first (fixed obstacles)
3. Derive free slots between day start/end around the meals
4. Greedily place activities by descending day score into the first slot
   that fits duration + buffer, up to the activity cap
5. Compute free time, total cost and a satisfaction score (0.0-1.0)
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from loguru import logger

from ..schemas import (
    Activity,
    DayPlan,
    DayPlanIssue,
    DayPlanningPreferences,
    DayPlanValidation,
    Destination,
    MealPreference,
    Money,
    ScheduledActivity,
    ScheduledMeal,
    TimeSlot,
)
from .time_utils import (
    InvalidTimeFormatError,
    make_slot,
    ranges_overlap,
    slot_bounds,
    season_from_month,
    time_to_minutes,
)


class DayPlanningError(RuntimeError):
    """Raised when a day plan cannot be produced"""


DEFAULT_MEAL_TIMES = {
    "breakfast": "08:00",
    "lunch": "12:30",
    "dinner": "19:00",
    "snack": "15:30",
}

MEAL_DURATIONS = {
    "quick": 30,
    "casual": 60,
    "fine_dining": 120,
}

MIN_SLOT_MINUTES = 60
MIN_FREE_TIME_MINUTES = 30
HIGH_AVG_ACTIVITY_COST = 500
PACKED_ACTIVITY_COUNT = 6


@dataclass
class DayPlanningConfig:
    default_start_time: str = "09:00:00"
    default_end_time: str = "18:00:00"
    meal_buffer_minutes: int = 30
    activity_buffer_minutes: int = 15
    max_activities_per_day: int = 6


DAY_PLANNING_PROFILES: Dict[str, DayPlanningConfig] = {
    "default": DayPlanningConfig(),
    "relaxed": DayPlanningConfig(
        max_activities_per_day=3, activity_buffer_minutes=30, meal_buffer_minutes=45
    ),
    "packed": DayPlanningConfig(
        max_activities_per_day=8, activity_buffer_minutes=10, meal_buffer_minutes=15
    ),
}


class DayPlanner:
    """
    Day schedule builder and validator

    Usage:
        planner = DayPlanner()
        plan = planner.plan_day(destination, date(2025, 6, 3), activities, prefs)
        report = planner.validate_day_plan(plan)
    """

    def __init__(self, config: Optional[DayPlanningConfig] = None):
        self.config = config or DayPlanningConfig()

        logger.info(
            f"DayPlanner initialized: max_activities={self.config.max_activities_per_day}, "
            f"activity_buffer={self.config.activity_buffer_minutes}m, "
            f"meal_buffer={self.config.meal_buffer_minutes}m"
        )

    @classmethod
    def from_profile(cls, profile: str = "default") -> "DayPlanner":
        """Build a planner from a named preset (default, relaxed, packed)"""
        if profile not in DAY_PLANNING_PROFILES:
            raise ValueError(f"Unknown day planning profile: {profile}")
        return cls(DAY_PLANNING_PROFILES[profile])

    # ============================================
    # Planning
    # ============================================

    def plan_day(
        self,
        destination: Destination,
        day: date,
        activities: List[Activity],
        preferences: DayPlanningPreferences
    ) -> DayPlan:
        """
        Plan activities for one day

        Args:
            destination: Where the day is spent
            day: Calendar date
            activities: Candidate activities
            preferences: Pacing, window, meals and activity types

        Returns:
            DayPlan: Non-overlapping schedule with meals and free time

        Raises:
            InvalidTimeFormatError: If a day window or meal time is malformed
            DayPlanningError: For any other planning failure
        """
        day_start = preferences.start_time or self.config.default_start_time
        day_end = preferences.end_time or self.config.default_end_time

        try:
            start_minutes = time_to_minutes(day_start)
            end_minutes = time_to_minutes(day_end)
            if end_minutes <= start_minutes:
                raise InvalidTimeFormatError(f"Day end {day_end} must be after start {day_start}")

            suitable = self._filter_suitable_activities(activities, destination, day, preferences)
            meals = self._schedule_meals(preferences.meal_preferences)
            slots = self._create_available_slots(start_minutes, end_minutes, meals)
            scheduled = self._select_and_schedule(suitable, slots, meals, preferences)

            plan = DayPlan(
                date=day,
                destination=destination,
                activities=scheduled,
                meals=meals,
                free_time=self._calculate_free_time(scheduled, meals, start_minutes, end_minutes),
                total_cost=_calculate_total_cost(scheduled, meals),
                pacing=preferences.pacing,
                satisfaction=_calculate_satisfaction(scheduled, preferences)
            )
        except InvalidTimeFormatError:
            raise
        except Exception as e:
            logger.error(f"Error planning day for {day}: {e}")
            raise DayPlanningError(f"Failed to plan day: {e}") from e

        logger.info(
            f"Planned {day} in {destination.location}: {len(plan.activities)} activities, "
            f"{len(plan.meals)} meals, cost={plan.total_cost.amount:.2f} {plan.total_cost.currency}"
        )
        return plan

    def optimize_day_schedule(self, plan: DayPlan) -> DayPlan:
        """
        Order activities chronologically and refresh free time and satisfaction

        Returns the original plan unchanged if anything goes wrong.
        """
        try:
            ordered = sorted(
                plan.activities,
                key=lambda a: time_to_minutes(a.scheduled_time.start_time)
            )
            start_minutes = time_to_minutes(self.config.default_start_time)
            end_minutes = time_to_minutes(self.config.default_end_time)

            return plan.model_copy(update={
                "activities": ordered,
                "free_time": self._calculate_free_time(ordered, plan.meals, start_minutes, end_minutes),
                "satisfaction": _calculate_satisfaction(ordered, _preferences_from_plan(plan)),
            })
        except InvalidTimeFormatError as e:
            logger.error(f"Error optimizing day schedule: {e}")
            return plan

    # ============================================
    # Validation
    # ============================================

    def validate_day_plan(self, plan: DayPlan) -> DayPlanValidation:
        """
        Check a plan for overlaps, meal conflicts, cost outliers and density

        Returns:
            DayPlanValidation: Issues plus overall score (1.0 - 0.1 per issue)
        """
        issues: List[DayPlanIssue] = []
        suggestions: List[str] = []

        timed: List[Tuple[ScheduledActivity, int, int]] = []
        for scheduled in plan.activities:
            try:
                start = time_to_minutes(scheduled.scheduled_time.start_time)
                end = time_to_minutes(scheduled.scheduled_time.end_time)
            except InvalidTimeFormatError as e:
                logger.warning(f"Skipping activity {scheduled.activity.id} in validation: {e}")
                issues.append(DayPlanIssue(
                    type="timing",
                    severity="error",
                    message=f'Activity "{scheduled.activity.title}" has an invalid time slot',
                    affected_items=[scheduled.activity.id]
                ))
                continue
            timed.append((scheduled, start, end))

        # Overlapping activities
        for i, (first, start1, end1) in enumerate(timed):
            for second, start2, end2 in timed[i + 1:]:
                if ranges_overlap(start1, end1, start2, end2):
                    issues.append(DayPlanIssue(
                        type="timing",
                        severity="error",
                        message=f'Activities "{first.activity.title}" and "{second.activity.title}" overlap',
                        affected_items=[first.activity.id, second.activity.id]
                    ))

        # Activity / meal conflicts
        for meal in plan.meals:
            try:
                meal_start = time_to_minutes(meal.time)
            except InvalidTimeFormatError as e:
                logger.warning(f"Skipping {meal.type} in validation: {e}")
                continue
            meal_end = meal_start + meal.duration

            for scheduled, start, end in timed:
                if ranges_overlap(start, end, meal_start, meal_end):
                    issues.append(DayPlanIssue(
                        type="timing",
                        severity="warning",
                        message=f'Activity "{scheduled.activity.title}" conflicts with {meal.type} time',
                        affected_items=[scheduled.activity.id, f"meal-{meal.type}"]
                    ))

        # Cost outliers
        if plan.total_cost.amount > 0:
            avg_cost = plan.total_cost.amount / max(len(plan.activities), 1)
            if avg_cost > HIGH_AVG_ACTIVITY_COST:
                issues.append(DayPlanIssue(
                    type="budget",
                    severity="warning",
                    message="Daily costs are quite high",
                    affected_items=["total-cost"]
                ))
                suggestions.append("Consider selecting some lower-cost activities")

        # Schedule density
        if len(plan.activities) > PACKED_ACTIVITY_COUNT:
            issues.append(DayPlanIssue(
                type="logistics",
                severity="warning",
                message="Very packed schedule - may be exhausting",
                affected_items=["schedule-density"]
            ))
            suggestions.append("Consider reducing number of activities for a more relaxed pace")

        total_free = sum(slot.duration for slot in plan.free_time)
        if total_free < 60 and plan.pacing == "relaxed":
            issues.append(DayPlanIssue(
                type="preferences",
                severity="warning",
                message="Limited free time for a relaxed pace preference",
                affected_items=["free-time"]
            ))
            suggestions.append("Add more buffer time between activities")

        validation = DayPlanValidation(
            valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            overall_score=max(0.0, 1.0 - len(issues) * 0.1),
            suggestions=suggestions
        )

        logger.debug(
            f"Validated plan for {plan.date}: valid={validation.valid}, "
            f"issues={len(issues)}, score={validation.overall_score:.2f}"
        )
        return validation

    # ============================================
    # Helpers
    # ============================================

    def _filter_suitable_activities(
        self,
        activities: List[Activity],
        destination: Destination,
        day: date,
        preferences: DayPlanningPreferences
    ) -> List[Activity]:
        location = destination.location.lower()
        season = season_from_month(day.month)
        activity_types = set(preferences.activity_types)
        suitable = []

        for activity in activities:
            if location not in activity.location.lower():
                continue
            if activity_types and activity.category.value not in activity_types:
                continue
            if preferences.accessibility and not activity.accessibility.wheelchair_accessible:
                continue
            if activity.seasonality and season not in [s.lower() for s in activity.seasonality]:
                continue
            suitable.append(activity)

        logger.debug(f"{len(suitable)}/{len(activities)} activities suitable for {destination.location}")
        return suitable

    def _schedule_meals(self, meal_preferences: List[MealPreference]) -> List[ScheduledMeal]:
        meals = []
        for pref in meal_preferences:
            meal_time = pref.timing or DEFAULT_MEAL_TIMES[pref.type]
            time_to_minutes(meal_time)  # fail fast on malformed meal times
            meals.append(ScheduledMeal(
                type=pref.type,
                time=meal_time,
                duration=MEAL_DURATIONS.get(pref.style, 60),
                cost=pref.budget
            ))
        return sorted(meals, key=lambda m: time_to_minutes(m.time))

    def _create_available_slots(
        self,
        start_minutes: int,
        end_minutes: int,
        meals: List[ScheduledMeal]
    ) -> List[TimeSlot]:
        """Free windows of at least an hour between meal blocks (buffers included)"""
        buffer = self.config.meal_buffer_minutes
        slots = []
        current = start_minutes

        for meal in meals:
            meal_start = time_to_minutes(meal.time)
            block_start = meal_start - buffer
            block_end = meal_start + meal.duration + buffer

            gap_end = min(block_start, end_minutes)
            if gap_end - current >= MIN_SLOT_MINUTES:
                slots.append(make_slot(current, gap_end))
            current = max(current, block_end)

        if end_minutes - current >= MIN_SLOT_MINUTES:
            slots.append(make_slot(current, end_minutes))

        return slots

    def _select_and_schedule(
        self,
        activities: List[Activity],
        slots: List[TimeSlot],
        meals: List[ScheduledMeal],
        preferences: DayPlanningPreferences
    ) -> List[ScheduledActivity]:
        buffer = self.config.activity_buffer_minutes
        max_activities = min(preferences.max_activities, self.config.max_activities_per_day)
        day_budget = preferences.budget_for_day.amount if preferences.budget_for_day else None
        spent = sum(meal.cost.amount for meal in meals)

        ranked = sorted(
            ((score_activity_for_day(a, preferences), a) for a in activities),
            key=lambda pair: pair[0],
            reverse=True
        )

        remaining = [slot_bounds(slot) for slot in slots]
        scheduled: List[ScheduledActivity] = []

        for score, activity in ranked:
            if len(scheduled) >= max_activities:
                break

            duration = activity.time_slot.duration
            cost = activity.estimated_cost.amount if activity.estimated_cost else 0.0
            if day_budget is not None and spent + cost > day_budget:
                logger.debug(f"Skipping {activity.id}: exceeds day budget {day_budget}")
                continue

            index = next(
                (i for i, (s, e) in enumerate(remaining) if e - s >= duration + buffer),
                None
            )
            if index is None:
                logger.debug(f"No slot fits {activity.id} ({duration}m)")
                continue

            slot_start, slot_end = remaining[index]
            scheduled.append(ScheduledActivity(
                activity=activity,
                scheduled_time=make_slot(slot_start, slot_start + duration),
                buffer_time=buffer,
                priority=_determine_priority(activity, preferences),
                score=round(score, 3)
            ))
            spent += cost

            next_start = slot_start + duration + buffer
            if slot_end - next_start >= MIN_SLOT_MINUTES:
                remaining[index] = (next_start, slot_end)
            else:
                remaining.pop(index)

        scheduled.sort(key=lambda a: time_to_minutes(a.scheduled_time.start_time))
        return scheduled

    def _calculate_free_time(
        self,
        activities: List[ScheduledActivity],
        meals: List[ScheduledMeal],
        start_minutes: int,
        end_minutes: int
    ) -> List[TimeSlot]:
        events = [
            (time_to_minutes(a.scheduled_time.start_time), time_to_minutes(a.scheduled_time.end_time))
            for a in activities
        ]
        events += [
            (time_to_minutes(m.time), time_to_minutes(m.time) + m.duration)
            for m in meals
        ]
        events.sort()

        free = []
        current = start_minutes
        for event_start, event_end in events:
            if event_start > current + MIN_FREE_TIME_MINUTES:
                free.append(make_slot(current, min(event_start, end_minutes)))
            current = max(current, event_end)

        if end_minutes > current + MIN_FREE_TIME_MINUTES:
            free.append(make_slot(current, end_minutes))

        return [slot for slot in free if slot.duration > MIN_FREE_TIME_MINUTES]


# ============================================
# Scoring helpers
# ============================================

def score_activity_for_day(activity: Activity, preferences: DayPlanningPreferences) -> float:
    """
    Day-level activity score (0.0-1.0)

    - Base: 0.5
    - Category in preferred activity types: +0.3
    - Duration fits pacing: +0.2, otherwise -0.1
    - Accessible when accessibility is required: +0.2
    """
    score = 0.5

    if activity.category.value in preferences.activity_types:
        score += 0.3

    duration = activity.time_slot.duration
    if preferences.pacing == "relaxed":
        score += 0.2 if duration > 120 else -0.1
    elif preferences.pacing == "moderate":
        score += 0.2 if 60 <= duration <= 180 else -0.1
    else:
        score += 0.2 if duration < 120 else -0.1

    if preferences.accessibility and activity.accessibility.wheelchair_accessible:
        score += 0.2

    return max(0.0, min(1.0, score))



def _determine_priority(activity: Activity, preferences: DayPlanningPreferences) -> str:
    if activity.category.value in preferences.activity_types:
        return "high"
    if activity.booking_required:
        return "medium"
    return "low"


def _calculate_total_cost(activities: List[ScheduledActivity], meals: List[ScheduledMeal]) -> Money:
    activity_cost = sum(
        a.activity.estimated_cost.amount for a in activities if a.activity.estimated_cost
    )
    meal_cost = sum(m.cost.amount for m in meals)

    currency = next(
        (a.activity.estimated_cost.currency for a in activities if a.activity.estimated_cost),
        meals[0].cost.currency if meals else "USD"
    )
    return Money(amount=round(activity_cost + meal_cost, 2), currency=currency)


def _calculate_satisfaction(
    activities: List[ScheduledActivity],
    preferences: DayPlanningPreferences
) -> float:
    """
    Satisfaction (0.0-1.0)

    - Base: 0.5
    - Share of preferred activity types covered: up to +0.3
    - Pacing density fit (activities per 10-hour day): up to +0.3
    - Category variety (4+ categories is max): up to +0.2
    """
    score = 0.5

    if preferences.activity_types:
        matching = sum(1 for a in activities if a.activity.category.value in preferences.activity_types)
        score += (matching / len(preferences.activity_types)) * 0.3

    density = len(activities) / 10
    optimal = {"relaxed": 0.3, "moderate": 0.5}.get(preferences.pacing, 0.7)
    score += max(0.0, 1 - abs(density - optimal) * 2) * 0.3

    categories = {a.activity.category for a in activities}
    score += min(len(categories) / 4, 1.0) * 0.2

    return max(0.0, min(1.0, score))


def _preferences_from_plan(plan: DayPlan) -> DayPlanningPreferences:
    return DayPlanningPreferences(
        pacing=plan.pacing,
        meal_preferences=[
            MealPreference(type=m.type, timing=m.time, budget=m.cost) for m in plan.meals
        ],
        activity_types=sorted({a.activity.category.value for a in plan.activities}),
        max_activities=len(plan.activities),
        budget_for_day=plan.total_cost
    )

"""
Preference Matching Algorithm
Scores content items against user preferences (0.0-1.0)

Algorithm Components (default weights):
1. Interest Match (35%) - Category, tag and description overlap (activities)
2. Budget Fit (25%) - Linear interpolation inside the budget range
3. Location Match (20%) - Primary / additional destination substring match
4. Timing Fit (10%) - Activity duration vs inferred travel pace
5. Difficulty Fit (5%) - Activity difficulty vs traveler composition
6. Accessibility (5%) - Wheelchair access vs mobility requirements

Accommodation and transportation items get a +/-0.1 type modifier.
Total is clamped to 0.0-1.0.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Union

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from ..schemas import (
    Accommodation,
    Activity,
    BudgetConstraint,
    ContentItem,
    ContentMatchScore,
    Destination,
    DestinationConstraint,
    MatchingCriteria,
    TimeConstraint,
    Transportation,
    UserPreferences,
)

Content = Union[Activity, Accommodation, Transportation, Destination]

_content_adapter = TypeAdapter(ContentItem)

MAX_REASONS = 5


class ScoringResult(NamedTuple):
    """Score of a single factor and the reasons behind it"""
    score: float
    reasons: List[str]


@dataclass
class MatchingWeights:
    """Factor weights (configuration, not learned)"""
    interests: float = 0.35
    budget: float = 0.25
    location: float = 0.20
    timing: float = 0.10
    difficulty: float = 0.05
    accessibility: float = 0.05


@dataclass
class MatchingPerformance:
    max_content_items: int = 10000
    enable_parallel_processing: bool = True
    scoring_timeout_ms: int = 1000  # soft limit, only logged
    batch_size: int = 100
    max_workers: int = 4


MATCHING_PROFILES: Dict[str, Dict[str, Any]] = {
    "default": {
        "weights": MatchingWeights(),
        "performance": MatchingPerformance(),
    },
    "high_performance": {
        "weights": MatchingWeights(),
        "performance": MatchingPerformance(max_content_items=5000, scoring_timeout_ms=500),
    },
    "precise": {
        "weights": MatchingWeights(
            interests=0.40, budget=0.30, location=0.15,
            timing=0.10, difficulty=0.03, accessibility=0.02
        ),
        "performance": MatchingPerformance(max_content_items=15000, scoring_timeout_ms=2000),
    },
}


class PreferenceMatcher:
    """
    Scores and ranks content against user preferences

    Usage:
        matcher = PreferenceMatcher()
        scores = matcher.score_content(items, preferences)
        good = matcher.filter_by_score(scores, 0.6)
    """

    def __init__(
        self,
        weights: Optional[MatchingWeights] = None,
        performance: Optional[MatchingPerformance] = None
    ):
        self.weights = weights or MatchingWeights()
        self.performance = performance or MatchingPerformance()

        logger.info(
            f"PreferenceMatcher initialized: weights={self.weights}, "
            f"max_items={self.performance.max_content_items}, "
            f"parallel={self.performance.enable_parallel_processing}"
        )

    @classmethod
    def from_profile(cls, profile: str = "default") -> "PreferenceMatcher":
        """Build a matcher from a named preset (default, high_performance, precise)"""
        if profile not in MATCHING_PROFILES:
            raise ValueError(f"Unknown matching profile: {profile}")
        preset = MATCHING_PROFILES[profile]
        return cls(weights=preset["weights"], performance=preset["performance"])

    # ============================================
    # Public API
    # ============================================

    def score_content(
        self,
        content: Sequence[Union[Content, Dict[str, Any]]],
        preferences: UserPreferences
    ) -> List[ContentMatchScore]:
        """
        Score content items, highest first

        Items that fail to parse or score are logged and skipped.

        Args:
            content: Content models or raw dicts with a content_type field
            preferences: User preferences

        Returns:
            List[ContentMatchScore]: Sorted by score, at most 5 reasons each
        """
        start = time.perf_counter()
        limited = list(content)[:self.performance.max_content_items]

        if self.performance.enable_parallel_processing and len(limited) > self.performance.batch_size:
            scores = self._score_parallel(limited, preferences)
        else:
            scores = self._score_batch(limited, preferences)

        elapsed_ms = (time.perf_counter() - start) * 1000
        if elapsed_ms > self.performance.scoring_timeout_ms:
            logger.warning(
                f"Preference matching took {elapsed_ms:.0f}ms, exceeding "
                f"timeout of {self.performance.scoring_timeout_ms}ms"
            )

        scores.sort(key=lambda s: s.score, reverse=True)
        for score in scores:
            score.reasons = score.reasons[:MAX_REASONS]

        logger.info(f"Scored {len(scores)}/{len(limited)} content items in {elapsed_ms:.1f}ms")
        return scores

    def filter_by_score(
        self,
        scores: List[ContentMatchScore],
        minimum_score: float
    ) -> List[ContentMatchScore]:
        """Keep scores at or above the threshold"""
        return [s for s in scores if s.score >= minimum_score]

    def analyze_preferences(self, preferences: UserPreferences) -> MatchingCriteria:
        """Derive destination, time and budget constraints from preferences"""
        destination_constraints = []
        if preferences.primary_destination:
            destination_constraints.append(
                DestinationConstraint(destination=preferences.primary_destination, priority="primary")
            )
        for dest in preferences.additional_destinations:
            destination_constraints.append(DestinationConstraint(destination=dest, priority="additional"))

        time_constraints = []
        if preferences.start_date and preferences.end_date:
            time_constraints.append(TimeConstraint(
                start_date=preferences.start_date,
                end_date=preferences.end_date,
                trip_days=max(1, (preferences.end_date - preferences.start_date).days + 1)
            ))

        budget_constraints = []
        if preferences.budget_min is not None or preferences.budget_max is not None:
            budget_constraints.append(BudgetConstraint(
                budget_min=preferences.budget_min,
                budget_max=preferences.budget_max,
                currency=preferences.currency,
                budget_category=_budget_category(preferences)
            ))

        return MatchingCriteria(
            user_preferences=preferences,
            destination_constraints=destination_constraints,
            time_constraints=time_constraints,
            budget_constraints=budget_constraints
        )

    def score_item(self, item: Content, preferences: UserPreferences) -> ContentMatchScore:
        """
        Score a single content item

        Example:
            >>> matcher.score_item(museum, UserPreferences(interests=["cultural"]))
            ContentMatchScore(content_id='act-1', score=0.82, ...)
        """
        factors = []
        reasons: List[str] = []
        is_activity = isinstance(item, Activity)

        if is_activity:
            factors.append((_score_interest_match(item, preferences), self.weights.interests))

        factors.append((_score_budget_match(item, preferences), self.weights.budget))
        factors.append((_score_location_match(item, preferences), self.weights.location))

        if is_activity:
            factors.append((_score_timing_match(item, preferences), self.weights.timing))
            factors.append((_score_difficulty_match(item, preferences), self.weights.difficulty))

        factors.append((_score_accessibility_match(item, preferences), self.weights.accessibility))

        total = 0.0
        for result, weight in factors:
            total += result.score * weight
            reasons.extend(result.reasons)

        total = _apply_category_modifiers(item, total, preferences)
        total = max(0.0, min(1.0, total))

        score = ContentMatchScore(
            content_id=item.id,
            score=total,
            reasons=list(dict.fromkeys(reasons)),
            category=item.content_type
        )

        logger.debug(f"Match score for {item.id}: {total:.3f}")
        return score

    # ============================================
    # Batch helpers
    # ============================================

    def _score_batch(self, items: List[Any], preferences: UserPreferences) -> List[ContentMatchScore]:
        scores = []
        for raw in items:
            score = self._safe_score(raw, preferences)
            if score is not None:
                scores.append(score)
        return scores

    def _score_parallel(self, items: List[Any], preferences: UserPreferences) -> List[ContentMatchScore]:
        size = self.performance.batch_size
        batches = [items[i:i + size] for i in range(0, len(items), size)]

        with ThreadPoolExecutor(max_workers=self.performance.max_workers) as pool:
            results = pool.map(lambda batch: self._score_batch(batch, preferences), batches)
            return [score for batch_scores in results for score in batch_scores]

    def _safe_score(self, raw: Any, preferences: UserPreferences) -> Optional[ContentMatchScore]:
        item_id = raw.get("id") if isinstance(raw, dict) else getattr(raw, "id", None)
        try:
            item = raw if isinstance(raw, (Activity, Accommodation, Transportation, Destination)) \
                else _content_adapter.validate_python(raw)
            return self.score_item(item, preferences)
        except (ValidationError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Failed to score content item {item_id}: {e}")
            return None


# ============================================
# Factor scoring
# ============================================

def _score_interest_match(activity: Activity, preferences: UserPreferences) -> ScoringResult:
    """
    Interest score (0.0-1.0)

    - Category in interests: +0.8
    - Each tag/interest substring match: +0.3
    - Each interest found in title/description: +0.2
    Normalized by the number of interests.
    """
    if not preferences.interests:
        return ScoringResult(0.5, ["No specific interests specified"])

    reasons = []
    score = 0.0
    matches = 0
    interests = [i.lower() for i in preferences.interests]
    category = activity.category.value

    if category in interests:
        score += 0.8
        matches += 1
        reasons.append(f"Matches {category} interest")

    for interest, interest_lower in zip(preferences.interests, interests):
        for tag in activity.tags:
            tag_lower = tag.lower()
            if interest_lower in tag_lower or tag_lower in interest_lower:
                score += 0.3
                matches += 1
                reasons.append(f'Tag "{tag}" matches interest "{interest}"')

    title = activity.title.lower()
    description = activity.description.lower()
    for interest, interest_lower in zip(preferences.interests, interests):
        if interest_lower in title or interest_lower in description:
            score += 0.2
            matches += 1
            reasons.append(f'Description contains "{interest}"')

    if matches == 0:
        reasons.append("No interest matches found")
        return ScoringResult(0.0, reasons)

    return ScoringResult(min(1.0, score / len(interests)), reasons)


def _score_budget_match(item: Content, preferences: UserPreferences) -> ScoringResult:
    """
    Budget score (0.0-1.0)

    - No cost information: 0.7
    - cost <= budget_min: 1.0
    - budget_min < cost <= budget_max: 1.0 down to 0.5 linearly
    - Over budget: 0.3 minus half the overrun ratio, floored at 0
    """
    if item.estimated_cost is None:
        return ScoringResult(0.7, ["No cost information available"])

    cost = item.estimated_cost.amount
    budget_min = preferences.budget_min or 0.0
    budget_max = preferences.budget_max or float("inf")

    if cost <= budget_min:
        return ScoringResult(1.0, ["Well within budget"])

    if cost <= budget_max:
        position = (cost - budget_min) / (budget_max - budget_min)
        return ScoringResult(1.0 - position * 0.5, ["Within budget range"])

    over_ratio = cost / budget_max
    return ScoringResult(max(0.0, 0.3 - (over_ratio - 1) * 0.5), ["Over budget"])


def _score_location_match(item: Content, preferences: UserPreferences) -> ScoringResult:
    """
    Location score (0.0-1.0)

    - Neutral: 0.5
    - Primary destination match: +0.4
    - Each additional destination match: +0.2
    """
    reasons = []
    score = 0.5
    locations = [loc.lower() for loc in _content_locations(item) if loc]

    if preferences.primary_destination:
        primary = preferences.primary_destination.lower()
        if any(_locations_match(loc, primary) for loc in locations):
            score += 0.4
            reasons.append("Located in primary destination")

    for dest in preferences.additional_destinations:
        dest_lower = dest.lower()
        if any(_locations_match(loc, dest_lower) for loc in locations):
            score += 0.2
            reasons.append(f"Located in {dest}")

    return ScoringResult(min(1.0, score), reasons)


def _score_timing_match(activity: Activity, preferences: UserPreferences) -> ScoringResult:
    """
    Timing score (0.5-0.8)

    Duration fit for the inferred pace earns +0.3:
    - slow: longer than 3 hours
    - moderate: 1-3 hours
    - fast: shorter than 2 hours
    """
    duration = activity.time_slot.duration
    pace = derive_pace(preferences)

    if pace == "slow" and duration > 180:
        return ScoringResult(0.8, ["Long duration fits relaxed pace"])
    if pace == "moderate" and 60 <= duration <= 180:
        return ScoringResult(0.8, ["Moderate duration fits balanced pace"])
    if pace == "fast" and duration < 120:
        return ScoringResult(0.8, ["Short duration fits active pace"])

    return ScoringResult(0.5, [])


def _score_difficulty_match(activity: Activity, preferences: UserPreferences) -> ScoringResult:
    preferred = "easy" if (preferences.children > 0 or preferences.infants > 0) else "moderate"

    if activity.difficulty == preferred:
        return ScoringResult(0.9, [f"{activity.difficulty} difficulty matches group composition"])
    if activity.difficulty == "easy":
        return ScoringResult(0.7, ["Easy activity suitable for most travelers"])

    return ScoringResult(0.5, [])


def _score_accessibility_match(item: Content, preferences: UserPreferences) -> ScoringResult:
    # only activities carry accessibility flags
    if not isinstance(item, Activity):
        return ScoringResult(0.5, [])

    accessible = item.accessibility.wheelchair_accessible

    if preferences.mobility_requirements:
        if accessible:
            return ScoringResult(0.9, ["Wheelchair accessible"])
        return ScoringResult(0.2, ["Not wheelchair accessible"])

    if accessible:
        return ScoringResult(0.6, ["Wheelchair accessible option"])
    return ScoringResult(0.5, [])


def _apply_category_modifiers(item: Content, score: float, preferences: UserPreferences) -> float:
    if isinstance(item, Accommodation):
        wanted = preferences.accommodation_type
        return score + (0.1 if wanted == "any" or item.type.value == wanted else -0.1)

    if isinstance(item, Transportation):
        wanted = preferences.transportation_preference
        return score + (0.1 if wanted == "any" or item.type.value == wanted else -0.1)

    return score


# ============================================
# Utility Functions
# ============================================

def derive_pace(preferences: UserPreferences) -> str:
    """
    Infer travel pace from group composition and interests

    Returns:
        str: "slow", "moderate" or "fast"
    """
    interests = {i.lower() for i in preferences.interests}

    if preferences.infants > 0 or preferences.children > 2:
        return "slow"
    if "adventure" in interests or "sports" in interests:
        return "fast"
    if "relaxation" in interests or "cultural" in interests:
        return "slow"
    return "moderate"


def get_match_quality(score: float) -> str:
    """
    Human-readable match quality

    Example:
        >>> get_match_quality(0.82)
        'Great Match'
    """
    if score >= 0.85:
        return "Excellent Match"
    elif score >= 0.70:
        return "Great Match"
    elif score >= 0.55:
        return "Good Match"
    elif score >= 0.40:
        return "Fair Match"
    else:
        return "Poor Match"


def _content_locations(item: Content) -> List[str]:
    if isinstance(item, Transportation):
        return [item.from_location, item.to_location]
    return [item.location]


def _locations_match(location: str, destination: str) -> bool:
    return destination in location or location in destination


def _budget_category(preferences: UserPreferences) -> str:
    # per-traveler upper budget bands
    if preferences.budget_max is None:
        return "mid-range"
    per_person = preferences.budget_max / max(1, preferences.total_travelers)
    if per_person < 1000:
        return "budget"
    elif per_person < 4000:
        return "mid-range"
    return "luxury"

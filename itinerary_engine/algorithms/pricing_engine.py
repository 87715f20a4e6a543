"""
Pricing Engine
Dynamic pricing, budget optimization and itinerary cost estimation

Price components:
- Seasonal multiplier (low 0.8, high 1.2, peak 1.5)
- Demand multiplier (low 0.9, medium 1.0, high 1.3)
- Day-of-week multiplier (weekday 0.95, weekend 1.15)
- Group discount multiplier (4+ 0.95, 6+ 0.90, 10+ 0.85)
- Advance booking discount (14+ days 5%, 30+ 8%, 60+ 12%, 90+ 15%)

final = base * seasonal * demand * day * group * (1 - advance_discount)
"""

from datetime import date
from typing import List, NamedTuple, Optional

from loguru import logger

from ..schemas import (
    Alternative,
    BudgetOptimization,
    BudgetSuggestion,
    CategoryCosts,
    CostBreakdown,
    DailyCosts,
    DayPlan,
    LineItem,
    Money,
    PricedLineItem,
    PricingFactors,
    SeasonalFactors,
    TripPricing,
    TripRequest,
    TripTotals,
)


SEASONAL_MULTIPLIERS = {
    "low": 0.8,
    "high": 1.2,
    "peak": 1.5,
}

DEMAND_MULTIPLIERS = {
    "low": 0.9,
    "medium": 1.0,
    "high": 1.3,
}

DAY_MULTIPLIERS = {
    "weekday": 0.95,
    "weekend": 1.15,
}

PEAK_MONTHS = {12, 1, 2, 6, 7, 8}
HIGH_MONTHS = {4, 5, 9, 10}

ALTERNATIVE_PRICE_RATIO = 0.7
ALTERNATIVE_MIN_PRICE = 100
ALTERNATIVE_TRADEOFFS = ["Fewer amenities", "Different location", "Limited availability"]

MISCELLANEOUS_RATE = 0.10
ESTIMATED_CONFIDENCE = 0.70
FALLBACK_CONFIDENCE = 0.50


class PriceBreakdown(NamedTuple):
    """Detailed dynamic price breakdown"""
    base_price: float
    seasonal_multiplier: float
    demand_multiplier: float
    day_of_week_multiplier: float
    group_discount_multiplier: float
    advance_booking_discount: float
    final_price: float
    savings: float
    price_per_person: Optional[float]


class PricingEngine:
    """
    Trip pricing calculator

    Usage:
        engine = PricingEngine()
        breakdown = engine.calculate_dynamic_price(100.0, PricingFactors(season="peak"))
        print(breakdown.final_price)
    """

    def __init__(self, contingency_percent: float = 15.0, base_currency: str = "USD"):
        self.contingency_percent = contingency_percent
        self.base_currency = base_currency

        logger.info(
            f"PricingEngine initialized: contingency={contingency_percent}%, "
            f"currency={base_currency}"
        )

    # ============================================
    # Dynamic pricing
    # ============================================

    def calculate_dynamic_price(self, base_price: float, factors: PricingFactors) -> PriceBreakdown:
        """
        Apply seasonal, demand, day, group and advance-booking adjustments

        Args:
            base_price: Undiscounted price (must be >= 0)
            factors: Pricing context

        Returns:
            PriceBreakdown: Multipliers, final price and savings (rounded to cents)

        Raises:
            ValueError: If base_price is negative
        """
        if base_price < 0:
            raise ValueError(f"Base price must be non-negative, got {base_price}")

        seasonal = SEASONAL_MULTIPLIERS[factors.season]
        demand = DEMAND_MULTIPLIERS[factors.demand_level]
        day = DAY_MULTIPLIERS[factors.day_of_week]
        group = calculate_group_discount(factors.group_size)
        advance = calculate_advance_booking_discount(factors.advance_booking)

        adjusted = base_price * seasonal * demand * day * group
        final_price = adjusted - adjusted * advance

        per_person = None
        if factors.group_size > 1:
            per_person = round(final_price / factors.group_size, 2)

        breakdown = PriceBreakdown(
            base_price=base_price,
            seasonal_multiplier=seasonal,
            demand_multiplier=demand,
            day_of_week_multiplier=day,
            group_discount_multiplier=group,
            advance_booking_discount=advance,
            final_price=round(final_price, 2),
            savings=round(base_price - final_price, 2),
            price_per_person=per_person
        )

        logger.debug(
            f"Dynamic price: base={base_price:.2f} -> final={breakdown.final_price:.2f} "
            f"(season={factors.season}, demand={factors.demand_level}, "
            f"group={factors.group_size}, advance={factors.advance_booking}d)"
        )
        return breakdown

    def get_seasonal_factors(self, travel_date: date) -> SeasonalFactors:
        """
        Season, day type and demand for a travel date

        Logic:
        - Dec-Feb and Jun-Aug: peak (demand high)
        - Apr, May, Sep, Oct: high (demand medium)
        - Otherwise: low (demand low)
        - Saturday/Sunday: weekend
        """
        if travel_date.month in PEAK_MONTHS:
            season, demand = "peak", "high"
        elif travel_date.month in HIGH_MONTHS:
            season, demand = "high", "medium"
        else:
            season, demand = "low", "low"

        day_of_week = "weekend" if travel_date.weekday() >= 5 else "weekday"

        return SeasonalFactors(season=season, day_of_week=day_of_week, demand_level=demand)

    # ============================================
    # Budget optimization
    # ============================================

    def optimize_budget(
        self,
        items: List[LineItem],
        target_budget: Optional[float] = None,
        group_size: int = 1
    ) -> BudgetOptimization:
        """
        Suggest savings when the line items exceed a target budget

        Args:
            items: Priced line items
            target_budget: Budget ceiling (no suggestions when omitted)
            group_size: Number of travelers

        Returns:
            BudgetOptimization: Totals, overage, suggestions and alternatives
        """
        current_total = sum(item.price for item in items)
        is_over_budget = bool(target_budget) and current_total > target_budget
        overage = max(0.0, current_total - target_budget) if target_budget else 0.0

        suggestions: List[BudgetSuggestion] = []
        alternatives: List[Alternative] = []

        if is_over_budget:
            suggestions = self._generate_budget_suggestions(items, overage, group_size)
            alternatives = self._generate_alternatives(items)

            logger.info(
                f"Over budget by {overage:.2f}: {len(suggestions)} suggestions, "
                f"{len(alternatives)} alternatives"
            )

        return BudgetOptimization(
            current_total=round(current_total, 2),
            target_budget=target_budget,
            is_over_budget=is_over_budget,
            overage_amount=round(overage, 2),
            suggestions=suggestions,
            alternatives=alternatives
        )

    def _generate_budget_suggestions(
        self,
        items: List[LineItem],
        overage: float,
        group_size: int
    ) -> List[BudgetSuggestion]:
        suggestions = []

        most_expensive = sorted(items, key=lambda i: i.price, reverse=True)[:3]
        for item in most_expensive:
            suggestions.append(BudgetSuggestion(
                type="alternative",
                title=f"Consider alternatives to {item.title}",
                description=f"Look for similar {item.type} options that could reduce costs",
                potential_savings=round(item.price * 0.3, 2),
                impact="high" if item.price > overage * 0.5 else "medium"
            ))

        if group_size < 4:
            suggestions.append(BudgetSuggestion(
                type="group_size",
                title="Increase group size for discounts",
                description="Adding more travelers can unlock group discounts on many activities",
                potential_savings=round(sum(i.price for i in items) * 0.1, 2),
                impact="medium"
            ))

        suggestions.append(BudgetSuggestion(
            type="timing",
            title="Adjust travel dates",
            description="Traveling during off-peak times can significantly reduce costs",
            potential_savings=round(overage * 0.6, 2),
            impact="high"
        ))

        return suggestions

    def _generate_alternatives(self, items: List[LineItem]) -> List[Alternative]:
        alternatives = []

        for item in items:
            if item.price <= ALTERNATIVE_MIN_PRICE:
                continue
            alternative_price = item.price * ALTERNATIVE_PRICE_RATIO
            alternatives.append(Alternative(
                id=f"{item.id}-alt",
                title=f"Budget-friendly {item.type}",
                original_price=item.price,
                alternative_price=round(alternative_price, 2),
                savings=round(item.price - alternative_price, 2),
                type=item.type,
                description=f"A more affordable option for {item.title}",
                tradeoffs=list(ALTERNATIVE_TRADEOFFS)
            ))

        alternatives.sort(key=lambda a: a.savings, reverse=True)
        return alternatives[:5]

    # ============================================
    # Trip and itinerary totals
    # ============================================

    def calculate_trip_pricing(self, trip: TripRequest, today: Optional[date] = None) -> TripPricing:
        """
        Price every line item of a trip with its travel-date factors

        Args:
            trip: Destination, dates, group size and items
            today: Reference date for advance booking (defaults to today)

        Returns:
            TripPricing: Priced items, totals, factors and recommendations
        """
        today = today or date.today()
        duration_days = (trip.end_date - trip.start_date).days + 1
        days_in_advance = (trip.start_date - today).days
        seasonal = self.get_seasonal_factors(trip.start_date)

        priced_items = []
        for item in trip.items:
            factors = PricingFactors(
                season=seasonal.season,
                day_of_week=seasonal.day_of_week,
                demand_level=seasonal.demand_level,
                advance_booking=days_in_advance,
                group_size=trip.group_size,
                duration=duration_days,
                destination=trip.destination,
                activity_type=item.type
            )
            breakdown = self.calculate_dynamic_price(item.price, factors)
            priced_items.append(PricedLineItem(
                item=item,
                original_price=item.price,
                current_price=breakdown.final_price,
                savings=breakdown.savings
            ))

        total_original = sum(p.original_price for p in priced_items)
        total_current = sum(p.current_price for p in priced_items)

        recommendations = [
            "Book soon - prices may increase closer to travel date"
            if days_in_advance < 30 else
            "Great timing! You're getting advance booking discounts",
            "Consider adding travelers for group discounts"
            if trip.group_size < 4 else
            "You're getting group discounts!",
            "Peak season pricing is in effect"
            if seasonal.season == "peak" else
            "Good choice for avoiding peak season prices",
        ]

        logger.info(
            f"Trip pricing for {trip.destination}: {len(priced_items)} items, "
            f"{total_original:.2f} -> {total_current:.2f} ({seasonal.season} season)"
        )

        return TripPricing(
            items=priced_items,
            totals=TripTotals(
                original_price=round(total_original, 2),
                current_price=round(total_current, 2),
                total_savings=round(total_original - total_current, 2),
                per_person_price=round(total_current / trip.group_size, 2)
            ),
            price_factors=seasonal,
            days_in_advance=days_in_advance,
            duration_days=duration_days,
            recommendations=recommendations
        )

    def calculate_itinerary_cost(self, day_plans: List[DayPlan], travelers: int = 1) -> CostBreakdown:
        """
        Aggregate day plan costs by day and category

        Logic:
        - Activities and meals are per-person costs, scaled by travelers
        - Miscellaneous (tips, local transport): 10% of each day's subtotal
        - Contingency: configured percentage of the grand total
        - Confidence: 0.70 per item with an estimated cost, 0.50 otherwise (averaged)
        """
        by_day: List[DailyCosts] = []
        totals = CategoryCosts()
        confidences: List[float] = []

        for plan in day_plans:
            activities = 0.0
            for scheduled in plan.activities:
                cost = scheduled.activity.estimated_cost
                activities += cost.amount * travelers if cost else 0.0
                confidences.append(ESTIMATED_CONFIDENCE if cost else FALLBACK_CONFIDENCE)

            meals = 0.0
            for meal in plan.meals:
                meals += meal.cost.amount * travelers
                confidences.append(ESTIMATED_CONFIDENCE if meal.cost.amount > 0 else FALLBACK_CONFIDENCE)

            day_costs = CategoryCosts(
                activities=round(activities, 2),
                meals=round(meals, 2),
                miscellaneous=round((activities + meals) * MISCELLANEOUS_RATE, 2)
            )
            by_day.append(DailyCosts(date=plan.date, total=round(day_costs.total, 2), breakdown=day_costs))

            totals.activities += day_costs.activities
            totals.meals += day_costs.meals
            totals.miscellaneous += day_costs.miscellaneous

        grand_total = round(totals.total, 2)
        confidence = sum(confidences) / len(confidences) if confidences else FALLBACK_CONFIDENCE

        logger.info(
            f"Itinerary cost: {len(day_plans)} days, {travelers} travelers, "
            f"total={grand_total:.2f} {self.base_currency}, confidence={confidence:.2f}"
        )

        return CostBreakdown(
            total=Money(amount=grand_total, currency=self.base_currency),
            by_category=CategoryCosts(
                activities=round(totals.activities, 2),
                meals=round(totals.meals, 2),
                miscellaneous=round(totals.miscellaneous, 2)
            ),
            by_day=by_day,
            contingency=Money(
                amount=round(grand_total * self.contingency_percent / 100, 2),
                currency=self.base_currency
            ),
            confidence=round(confidence, 2)
        )


# ============================================
# Discount helpers
# ============================================

def calculate_group_discount(group_size: int) -> float:
    """Group multiplier: 10+ 0.85, 6+ 0.90, 4+ 0.95, else 1.0"""
    if group_size >= 10:
        return 0.85
    elif group_size >= 6:
        return 0.9
    elif group_size >= 4:
        return 0.95
    return 1.0


def calculate_advance_booking_discount(days_in_advance: int) -> float:
    """Advance booking discount fraction: 90+ 15%, 60+ 12%, 30+ 8%, 14+ 5%"""
    if days_in_advance >= 90:
        return 0.15
    elif days_in_advance >= 60:
        return 0.12
    elif days_in_advance >= 30:
        return 0.08
    elif days_in_advance >= 14:
        return 0.05
    return 0.0

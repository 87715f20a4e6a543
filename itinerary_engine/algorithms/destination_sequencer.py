"""
Destination Sequencer
Orders a multi-destination trip and allocates days to each stop

Steps:
1. Cluster destinations lying within clustering_threshold_km of a seed
2. Order clusters by nearest centroid, then order stops inside each cluster
   (nearest neighbour for small clusters, genetic search for larger ones)
3. Allocate trip days evenly, giving extra days to the earliest stops
4. Attach travel time and a transport option to every leg
5. Validate the sequence; issues are logged, the sequence is still returned

Travel estimates use great-circle (haversine) distance and a fixed average
speed per transport type. No routing service is called.
"""

import math
import random
import threading
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from ..schemas import (
    Coordinates,
    Destination,
    Money,
    SequencedDestination,
    SequenceIssue,
    SequenceValidation,
    SequencingConstraints,
    Transportation,
    TransportationType,
    TravelTimeResult,
    UserPreferences,
)
from .preference_matcher import derive_pace
from .time_utils import minutes_to_time


class SequencingError(RuntimeError):
    """Raised when a destination sequence cannot be produced"""


class MissingCoordinatesError(ValueError):
    """Raised when a destination has no coordinates to route with"""


EARTH_RADIUS_KM = 6371.0

# Average door-to-door speeds (km/h); flight includes airport time
TRANSPORT_SPEEDS_KMH = {
    "walking": 5,
    "cycling": 15,
    "car": 60,
    "bus": 45,
    "train": 80,
    "flight": 500,
}

TRANSPORT_COST_PER_KM = {
    "walking": 0.0,
    "cycling": 0.0,
    "car": 0.5,
    "bus": 0.1,
    "train": 0.15,
    "flight": 0.8,
}

DEFAULT_TRANSPORT = "car"
DEPARTURE_MINUTES = 9 * 60
MINUTES_PER_DAY = 24 * 60
LONG_TRIP_DAYS = 30
SMALL_CLUSTER_SIZE = 5
DAYS_PER_DESTINATION = 2.5
PACE_MULTIPLIERS = {"slow": 1.5, "moderate": 1.0, "fast": 0.8}

_TRANSPORT_TYPES = {t.value for t in TransportationType}


@dataclass
class SequencingConfig:
    max_travel_time_per_day: int = 480  # minutes
    clustering_threshold_km: float = 100.0
    enable_caching: bool = True
    optimization_algorithm: str = "hybrid"  # nearest_neighbor | genetic | hybrid
    max_population: int = 50
    max_generations: int = 100
    mutation_rate: float = 0.1
    elite_fraction: float = 0.2
    tournament_size: int = 3


SEQUENCING_PROFILES: Dict[str, SequencingConfig] = {
    "default": SequencingConfig(),
    "fast": SequencingConfig(optimization_algorithm="nearest_neighbor", clustering_threshold_km=150.0),
    "precise": SequencingConfig(optimization_algorithm="genetic", clustering_threshold_km=50.0),
}


@dataclass
class DestinationCluster:
    id: str
    destinations: List[Destination]
    centroid: Coordinates
    radius_km: float = 0.0


class DestinationSequencer:
    """
    Multi-destination route ordering and day allocation

    Usage:
        sequencer = DestinationSequencer.from_profile("fast")
        route = sequencer.optimize_sequence(destinations, prefs, SequencingConstraints())
        report = sequencer.validate_sequence(route)
    """

    def __init__(self, config: Optional[SequencingConfig] = None, rng: Optional[random.Random] = None):
        self.config = config or SequencingConfig()
        self.rng = rng or random.Random()

        self._travel_cache: Dict[Tuple[str, str, str], TravelTimeResult] = {}
        self._cache_lock = threading.Lock()

        logger.info(
            f"DestinationSequencer initialized: algorithm={self.config.optimization_algorithm}, "
            f"cluster_threshold={self.config.clustering_threshold_km}km, "
            f"max_travel={self.config.max_travel_time_per_day}m"
        )

    @classmethod
    def from_profile(cls, profile: str = "default", rng: Optional[random.Random] = None) -> "DestinationSequencer":
        """Build a sequencer from a named preset (default, fast, precise)"""
        if profile not in SEQUENCING_PROFILES:
            raise ValueError(f"Unknown sequencing profile: {profile}")
        return cls(SEQUENCING_PROFILES[profile], rng=rng)

    # ============================================
    # Public API
    # ============================================

    def optimize_sequence(
        self,
        destinations: List[Destination],
        preferences: UserPreferences,
        constraints: SequencingConstraints,
        today: Optional[date] = None
    ) -> List[SequencedDestination]:
        """
        Order destinations and allocate days to each

        Args:
            destinations: Stops to visit (each needs coordinates)
            preferences: Trip dates and group used for day allocation
            constraints: Transport, travel limit and ordering hints
            today: Fallback start date when preferences carry none

        Returns:
            List[SequencedDestination]: Stops in visiting order

        Raises:
            MissingCoordinatesError: If a destination has no coordinates
            SequencingError: For any other sequencing failure
        """
        if not destinations:
            return []

        missing = [d.id for d in destinations if d.coordinates is None]
        if missing:
            raise MissingCoordinatesError(f"Destinations without coordinates: {', '.join(missing)}")

        try:
            clusters = self.cluster_destinations(destinations)
            ordered = self._order_destinations(clusters, constraints)
            sequence = self.allocate_days(ordered, preferences, constraints, today)
        except Exception as e:
            logger.error(f"Error in destination sequencing: {e}")
            raise SequencingError(f"Failed to optimize destination sequence: {e}") from e

        validation = self.validate_sequence(sequence)
        if not validation.valid:
            logger.warning(
                f"Sequence has {len(validation.issues)} issues: "
                f"{[issue.message for issue in validation.issues]}"
            )

        logger.info(
            f"Sequenced {len(sequence)} destinations in {len(clusters)} clusters: "
            f"{' -> '.join(d.id for d in sequence)}"
        )
        return sequence

    def calculate_travel_time(
        self,
        origin: Destination,
        target: Destination,
        transport_type: str = DEFAULT_TRANSPORT
    ) -> TravelTimeResult:
        """
        Estimate travel between two destinations

        Results are memoized per (origin, target, transport) when caching is enabled.

        Raises:
            MissingCoordinatesError: If either destination has no coordinates
        """
        cache_key = (origin.id, target.id, transport_type)
        if self.config.enable_caching:
            with self._cache_lock:
                cached = self._travel_cache.get(cache_key)
            if cached is not None:
                return cached

        distance = haversine_km(_coordinates(origin), _coordinates(target))
        duration = estimate_travel_minutes(distance, transport_type)

        result = TravelTimeResult(
            duration=duration,
            distance=distance,
            transportation_options=[_transport_option(origin, target, transport_type, duration)],
            cost=estimate_travel_cost(distance, transport_type, origin.local_currency)
        )

        if self.config.enable_caching:
            with self._cache_lock:
                self._travel_cache[cache_key] = result

        return result

    def validate_sequence(self, sequence: List[SequencedDestination]) -> SequenceValidation:
        """
        Check dates, day allocation, leg travel times and overall length

        Errors:
        - arrival after departure, fewer than one day allocated
        - gap between departure and next arrival shorter than the leg's travel time

        Warnings:
        - a leg longer than max_travel_time_per_day
        - trip longer than 30 days
        """
        issues: List[SequenceIssue] = []
        total_travel_time = 0
        total_distance = 0.0

        for i, current in enumerate(sequence):
            if current.arrival_date > current.departure_date:
                issues.append(SequenceIssue(
                    type="logistics",
                    severity="error",
                    message=f"Arrival date is after departure date for {current.title}",
                    affected_destinations=[current.id]
                ))

            if current.days_allocated < 1:
                issues.append(SequenceIssue(
                    type="logistics",
                    severity="error",
                    message=f"Insufficient days allocated for {current.title}",
                    affected_destinations=[current.id]
                ))

            if i == 0:
                continue

            previous = sequence[i - 1]
            total_travel_time += current.travel_time_from_previous

            if current.travel_time_from_previous > self.config.max_travel_time_per_day:
                issues.append(SequenceIssue(
                    type="travel_time",
                    severity="warning",
                    message=f"Travel time from {previous.title} to {current.title} exceeds daily limit",
                    affected_destinations=[previous.id, current.id]
                ))

            gap_minutes = (current.arrival_date - previous.departure_date).days * MINUTES_PER_DAY
            if gap_minutes < current.travel_time_from_previous:
                issues.append(SequenceIssue(
                    type="timing",
                    severity="error",
                    message=f"Insufficient time for travel from {previous.title} to {current.title}",
                    affected_destinations=[previous.id, current.id]
                ))

            if previous.coordinates is not None and current.coordinates is not None:
                total_distance += haversine_km(previous.coordinates, current.coordinates)

        total_days = sum(d.days_allocated for d in sequence)
        if total_days > LONG_TRIP_DAYS:
            issues.append(SequenceIssue(
                type="logistics",
                severity="warning",
                message="Trip duration is very long, consider breaking into multiple trips",
                affected_destinations=[d.id for d in sequence]
            ))

        return SequenceValidation(
            valid=not any(issue.severity == "error" for issue in issues),
            issues=issues,
            total_travel_time=total_travel_time,
            total_distance=round(total_distance, 2)
        )

    # ============================================
    # Clustering
    # ============================================

    def cluster_destinations(self, destinations: Sequence[Destination]) -> List[DestinationCluster]:
        """
        Greedy distance clustering

        Each unclustered destination seeds a cluster and absorbs every remaining
        destination within clustering_threshold_km of the seed.
        """
        clusters: List[DestinationCluster] = []
        remaining = list(destinations)

        while remaining:
            seed = remaining.pop(0)
            members = [seed]
            rest = []
            for candidate in remaining:
                if haversine_km(_coordinates(seed), _coordinates(candidate)) <= self.config.clustering_threshold_km:
                    members.append(candidate)
                else:
                    rest.append(candidate)
            remaining = rest

            centroid = calculate_centroid([_coordinates(d) for d in members])
            radius = max(haversine_km(centroid, _coordinates(d)) for d in members) if len(members) > 1 else 0.0

            clusters.append(DestinationCluster(
                id=f"cluster-{len(clusters)}",
                destinations=members,
                centroid=centroid,
                radius_km=round(radius, 2)
            ))

        logger.debug(f"Clustered {len(destinations)} destinations into {len(clusters)} clusters")
        return clusters

    # ============================================
    # Ordering
    # ============================================

    def _order_destinations(
        self,
        clusters: List[DestinationCluster],
        constraints: SequencingConstraints
    ) -> List[Destination]:
        ordered: List[Destination] = []
        for cluster in self._order_clusters(clusters, constraints):
            ordered.extend(self._order_within_cluster(cluster, constraints))

        if constraints.end_location:
            end_stop = _find_location(ordered, constraints.end_location)
            if end_stop is not None and end_stop is not ordered[0]:
                ordered.remove(end_stop)
                ordered.append(end_stop)

        return ordered

    def _order_clusters(
        self,
        clusters: List[DestinationCluster],
        constraints: SequencingConstraints
    ) -> List[DestinationCluster]:
        """Nearest-neighbour tour over cluster centroids"""
        if len(clusters) <= 1:
            return clusters

        unvisited = list(clusters)
        current = unvisited[0]
        if constraints.start_location:
            needle = constraints.start_location.lower()
            current = next(
                (c for c in unvisited if any(needle in d.location.lower() for d in c.destinations)),
                current
            )

        route = [current]
        unvisited.remove(current)
        while unvisited:
            nearest = min(unvisited, key=lambda c: haversine_km(current.centroid, c.centroid))
            route.append(nearest)
            unvisited.remove(nearest)
            current = nearest

        return route

    def _order_within_cluster(
        self,
        cluster: DestinationCluster,
        constraints: SequencingConstraints
    ) -> List[Destination]:
        stops = cluster.destinations
        if len(stops) <= 2:
            return self.nearest_neighbor_route(stops, constraints)

        algorithm = self.config.optimization_algorithm
        if algorithm == "genetic" or (algorithm == "hybrid" and len(stops) > SMALL_CLUSTER_SIZE):
            return self.genetic_route(stops, constraints)
        return self.nearest_neighbor_route(stops, constraints)

    def nearest_neighbor_route(
        self,
        destinations: Sequence[Destination],
        constraints: SequencingConstraints
    ) -> List[Destination]:
        """Start at start_location (or the first stop) and always hop to the closest unvisited stop"""
        if len(destinations) <= 1:
            return list(destinations)

        unvisited = list(destinations)
        current = unvisited[0]
        if constraints.start_location:
            current = _find_location(unvisited, constraints.start_location) or current

        route = [current]
        unvisited.remove(current)
        while unvisited:
            nearest = min(unvisited, key=lambda d: haversine_km(_coordinates(current), _coordinates(d)))
            route.append(nearest)
            unvisited.remove(nearest)
            current = nearest

        return route

    def genetic_route(
        self,
        destinations: Sequence[Destination],
        constraints: SequencingConstraints
    ) -> List[Destination]:
        """
        Genetic search over visiting orders

        Population: min(max_population, 4n) permutations, seeded with the
        nearest-neighbour route. Each generation keeps the elite, then fills
        with order-crossover children of tournament winners, swap-mutated at
        mutation_rate. Returns the fittest route of the final generation.
        """
        stops = list(destinations)
        n = len(stops)
        population_size = min(self.config.max_population, n * 4)
        generations = min(self.config.max_generations, n * 2)
        elite_size = max(1, int(population_size * self.config.elite_fraction))
        transport = _leg_transport(constraints)

        def fitness(route: List[Destination]) -> float:
            return route_fitness(route, constraints, transport)

        population = [self.nearest_neighbor_route(stops, constraints)]
        while len(population) < population_size:
            population.append(self.rng.sample(stops, n))

        for _ in range(generations):
            ranked = sorted(((fitness(route), route) for route in population), key=lambda p: p[0], reverse=True)
            next_population = [route for _, route in ranked[:elite_size]]

            while len(next_population) < population_size:
                parent1 = self._tournament(ranked)
                parent2 = self._tournament(ranked)
                child = self._order_crossover(parent1, parent2)
                if self.rng.random() < self.config.mutation_rate:
                    self._swap_mutation(child)
                next_population.append(child)

            population = next_population

        best = max(population, key=fitness)
        logger.debug(f"Genetic search over {n} stops: best fitness {fitness(best):.1f}")
        return best

    def _tournament(self, ranked: List[Tuple[float, List[Destination]]]) -> List[Destination]:
        contenders = [self.rng.choice(ranked) for _ in range(self.config.tournament_size)]
        return max(contenders, key=lambda p: p[0])[1]

    def _order_crossover(self, parent1: List[Destination], parent2: List[Destination]) -> List[Destination]:
        """Keep a slice of parent1 in place, fill the gaps in parent2's order"""
        n = len(parent1)
        start = self.rng.randrange(n)
        end = self.rng.randint(start, n - 1)

        child: List[Optional[Destination]] = [None] * n
        child[start:end + 1] = parent1[start:end + 1]
        taken = {d.id for d in parent1[start:end + 1]}

        fill = iter(d for d in parent2 if d.id not in taken)
        return [slot if slot is not None else next(fill) for slot in child]

    def _swap_mutation(self, route: List[Destination]) -> None:
        i = self.rng.randrange(len(route))
        j = self.rng.randrange(len(route))
        route[i], route[j] = route[j], route[i]

    # ============================================
    # Day allocation
    # ============================================

    def allocate_days(
        self,
        ordered: List[Destination],
        preferences: UserPreferences,
        constraints: SequencingConstraints,
        today: Optional[date] = None
    ) -> List[SequencedDestination]:
        """
        Split the trip's days across ordered stops

        Trip length is the inclusive span of the preference dates, or an
        estimate of 2.5 days per stop scaled by pace. Every stop gets at least
        one day; leftover days go to the earliest stops.
        """
        if not ordered:
            return []

        total_days = trip_days(preferences) or estimate_trip_days(len(ordered), preferences)
        if total_days < len(ordered):
            logger.warning(f"{total_days} trip days for {len(ordered)} destinations; allocating one day each")
            total_days = len(ordered)

        base_days, extra_days = divmod(total_days, len(ordered))
        transport = _leg_transport(constraints)
        current_date = preferences.start_date or today or date.today()

        sequence: List[SequencedDestination] = []
        for i, destination in enumerate(ordered):
            days = base_days + (1 if i < extra_days else 0)

            travel_minutes = 0
            option = None
            if i > 0:
                travel = self.calculate_travel_time(ordered[i - 1], destination, transport)
                travel_minutes = travel.duration
                option = travel.transportation_options[0] if travel.transportation_options else None

            sequence.append(SequencedDestination(
                **destination.model_dump(include=set(Destination.model_fields)),
                sequence_order=i + 1,
                arrival_date=current_date,
                departure_date=current_date + timedelta(days=days - 1),
                days_allocated=days,
                travel_time_from_previous=travel_minutes,
                transportation_to_previous=option
            ))
            current_date += timedelta(days=days)

        return sequence


# ============================================
# Geometry & estimates
# ============================================

def haversine_km(origin: Coordinates, target: Coordinates) -> float:
    """Great-circle distance in kilometres"""
    d_lat = math.radians(target.latitude - origin.latitude)
    d_lon = math.radians(target.longitude - origin.longitude)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.latitude)) * math.cos(math.radians(target.latitude))
        * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def calculate_centroid(points: Sequence[Coordinates]) -> Coordinates:
    """Arithmetic mean of latitudes and longitudes"""
    return Coordinates(
        latitude=sum(p.latitude for p in points) / len(points),
        longitude=sum(p.longitude for p in points) / len(points)
    )


def estimate_travel_minutes(distance_km: float, transport_type: str) -> int:
    """Travel minutes at the transport's average speed (unknown types travel by car)"""
    speed = TRANSPORT_SPEEDS_KMH.get(transport_type, TRANSPORT_SPEEDS_KMH[DEFAULT_TRANSPORT])
    return int(round(distance_km / speed * 60))


def estimate_travel_cost(distance_km: float, transport_type: str, currency: str = "USD") -> Money:
    rate = TRANSPORT_COST_PER_KM.get(transport_type, TRANSPORT_COST_PER_KM[DEFAULT_TRANSPORT])
    return Money(amount=float(round(distance_km * rate)), currency=currency)


def route_fitness(route: Sequence[Destination], constraints: SequencingConstraints, transport: str) -> float:
    """
    Route fitness (higher is better, floor 0)

    - Base: 1000
    - Each leg over max_travel_time_per_day: -2 per excess minute
    - Total distance: -0.1 per km
    - Total travel time: -0.5 per minute
    - Each consecutive must_visit_order pair visited in order: +50
    """
    fitness = 1000.0
    total_distance = 0.0
    total_minutes = 0

    for previous, current in zip(route, route[1:]):
        distance = haversine_km(_coordinates(previous), _coordinates(current))
        minutes = estimate_travel_minutes(distance, transport)
        total_distance += distance
        total_minutes += minutes

        if minutes > constraints.max_travel_time_per_day:
            fitness -= (minutes - constraints.max_travel_time_per_day) * 2

    fitness -= total_distance * 0.1
    fitness -= total_minutes * 0.5

    if constraints.must_visit_order:
        positions = {d.id: i for i, d in enumerate(route)}
        for first, second in zip(constraints.must_visit_order, constraints.must_visit_order[1:]):
            if first in positions and second in positions and positions[first] < positions[second]:
                fitness += 50

    return max(0.0, fitness)


def trip_days(preferences: UserPreferences) -> int:
    """Inclusive day count of the preference dates, 0 when unknown or reversed"""
    if preferences.start_date and preferences.end_date and preferences.end_date >= preferences.start_date:
        return (preferences.end_date - preferences.start_date).days + 1
    return 0


def estimate_trip_days(stops: int, preferences: UserPreferences) -> int:
    multiplier = PACE_MULTIPLIERS.get(derive_pace(preferences), 1.0)
    return math.ceil(stops * DAYS_PER_DESTINATION * multiplier)


# ============================================
# Helpers
# ============================================

def _coordinates(destination: Destination) -> Coordinates:
    if destination.coordinates is None:
        raise MissingCoordinatesError(f"Destination {destination.id} has no coordinates")
    return destination.coordinates


def _find_location(destinations: Sequence[Destination], location: str) -> Optional[Destination]:
    needle = location.lower()
    return next((d for d in destinations if needle in d.location.lower()), None)


def _leg_transport(constraints: SequencingConstraints) -> str:
    return constraints.preferred_transportation[0] if constraints.preferred_transportation else DEFAULT_TRANSPORT


def _transport_option(origin: Destination, target: Destination, transport_type: str, duration: int) -> Transportation:
    return Transportation(
        id=f"transport-{origin.id}-{target.id}",
        title=f"{transport_type} from {origin.title} to {target.title}",
        description=(
            f"Travel by {transport_type}, departing {minutes_to_time(DEPARTURE_MINUTES)} "
            f"and arriving {minutes_to_time((DEPARTURE_MINUTES + duration) % MINUTES_PER_DAY)}"
        ),
        tags=[transport_type, "transportation"],
        type=transport_type if transport_type in _TRANSPORT_TYPES else DEFAULT_TRANSPORT,
        from_location=origin.location,
        to_location=target.location,
        duration=duration
    )

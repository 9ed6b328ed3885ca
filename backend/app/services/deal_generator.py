"""
Deal Generator
Fabricates one offer per simulated agent persona from template data.

Pricing:
  base     = BUDGET_BASE_PRICES[budget]
  price    = base * duration_mult * travel_type_mult * destination.cost_index
             * persona.price_multiplier * jitter(0.97 - 1.03)
  original = price * persona.markup

The jitter is drawn from a Random seeded with the trip fields and agent name,
so the same trip always produces the same offers. Prices are rounded to the
nearest 100 and original_price is always strictly above price.

Each candidate carries nested detail blobs (flight, accommodation,
inclusions breakdown, location, booking terms) shaped like the deal cards
of the web client.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional
import logging
import random

from app.core.config import settings
from app.services.deal_scoring import DealCandidate

logger = logging.getLogger(__name__)


class DealGenerationError(Exception):
    """Raised when no candidate offers can be produced for a trip."""


# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

# INR per traveller for a one-week trip
BUDGET_BASE_PRICES = {
    "budget": 80000,
    "mid-range": 200000,
    "luxury": 400000,
    "ultra-luxury": 1000000,
}
DEFAULT_BUDGET = "mid-range"

DURATION_MULTIPLIERS = {
    "3-5 days": 0.6,
    "1 week": 1.0,
    "2 weeks": 1.8,
    "1 month": 3.2,
}

TRAVEL_TYPE_MULTIPLIERS = {
    "honeymoon": 1.15,
    "solo": 0.8,
    "family": 1.4,
    "business": 1.1,
    "group": 1.6,
}

_DEFAULT_IMAGE = (
    "https://images.unsplash.com/photo-1537953773345-d172ccf13cf1"
    "?ixlib=rb-4.0.3&auto=format&fit=crop&w=800&h=600"
)

DESTINATION_PROFILES: Dict[str, Dict[str, Any]] = {
    "bali": {
        "cost_index": 0.9, "airport": "DPS", "flight_hours": 7.5,
        "area": "Seminyak", "district": "Badung Regency",
        "attractions": ["Tanah Lot Temple", "Ubud Monkey Forest", "Tegallalang Rice Terraces"],
        "local_transport": "Private driver hire and scooter rental",
        "image_url": _DEFAULT_IMAGE,
    },
    "paris": {
        "cost_index": 1.35, "airport": "CDG", "flight_hours": 9.5,
        "area": "Saint-Germain-des-Pres", "district": "6th Arrondissement",
        "attractions": ["Eiffel Tower", "Louvre Museum", "Montmartre"],
        "local_transport": "Metro, RER and Velib bike share",
        "image_url": "https://images.unsplash.com/photo-1502602898657-3e91760cbb34?auto=format&fit=crop&w=800&h=600",
    },
    "tokyo": {
        "cost_index": 1.3, "airport": "HND", "flight_hours": 8.0,
        "area": "Shinjuku", "district": "Shinjuku City",
        "attractions": ["Senso-ji Temple", "Shibuya Crossing", "Meiji Shrine"],
        "local_transport": "JR lines and Tokyo Metro with a Suica card",
        "image_url": "https://images.unsplash.com/photo-1540959733332-eab4deabeeaf?auto=format&fit=crop&w=800&h=600",
    },
    "maldives": {
        "cost_index": 1.6, "airport": "MLE", "flight_hours": 4.0,
        "area": "North Male Atoll", "district": "Kaafu Atoll",
        "attractions": ["Banana Reef", "Maafushi Island", "Sunset dolphin cruise"],
        "local_transport": "Speedboat and seaplane transfers",
        "image_url": "https://images.unsplash.com/photo-1514282401047-d79a71a590e8?auto=format&fit=crop&w=800&h=600",
    },
    "dubai": {
        "cost_index": 1.2, "airport": "DXB", "flight_hours": 3.5,
        "area": "Downtown Dubai", "district": "Burj Khalifa District",
        "attractions": ["Burj Khalifa", "Dubai Mall", "Desert safari"],
        "local_transport": "Dubai Metro and RTA taxis",
        "image_url": "https://images.unsplash.com/photo-1512453979798-5ea266f8880c?auto=format&fit=crop&w=800&h=600",
    },
    "goa": {
        "cost_index": 0.5, "airport": "GOI", "flight_hours": 2.5,
        "area": "Candolim", "district": "North Goa",
        "attractions": ["Fort Aguada", "Baga Beach", "Basilica of Bom Jesus"],
        "local_transport": "Taxis and scooter rental",
        "image_url": "https://images.unsplash.com/photo-1512343879784-a960bf40e7f2?auto=format&fit=crop&w=800&h=600",
    },
    "switzerland": {
        "cost_index": 1.5, "airport": "ZRH", "flight_hours": 8.5,
        "area": "Interlaken", "district": "Bernese Oberland",
        "attractions": ["Jungfraujoch", "Lake Brienz", "Lauterbrunnen Valley"],
        "local_transport": "Swiss Travel Pass on trains, buses and boats",
        "image_url": "https://images.unsplash.com/photo-1530122037265-a5f1f91d3b99?auto=format&fit=crop&w=800&h=600",
    },
    "new york": {
        "cost_index": 1.45, "airport": "JFK", "flight_hours": 15.5,
        "area": "Midtown Manhattan", "district": "Manhattan",
        "attractions": ["Central Park", "Statue of Liberty", "Times Square"],
        "local_transport": "Subway with OMNY contactless fares",
        "image_url": "https://images.unsplash.com/photo-1496442226666-8d4d0e62e6e9?auto=format&fit=crop&w=800&h=600",
    },
    "london": {
        "cost_index": 1.4, "airport": "LHR", "flight_hours": 9.5,
        "area": "South Kensington", "district": "Kensington and Chelsea",
        "attractions": ["British Museum", "Tower of London", "Borough Market"],
        "local_transport": "Underground and buses with an Oyster card",
        "image_url": "https://images.unsplash.com/photo-1513635269975-59663e0ac1ad?auto=format&fit=crop&w=800&h=600",
    },
    "singapore": {
        "cost_index": 1.15, "airport": "SIN", "flight_hours": 5.5,
        "area": "Marina Bay", "district": "Downtown Core",
        "attractions": ["Gardens by the Bay", "Sentosa Island", "Chinatown Heritage Centre"],
        "local_transport": "MRT and Grab rides",
        "image_url": "https://images.unsplash.com/photo-1525625293386-3f8f99389edd?auto=format&fit=crop&w=800&h=600",
    },
}

GENERIC_PROFILE: Dict[str, Any] = {
    "cost_index": 1.0, "airport": "INT", "flight_hours": 6.0,
    "area": "City Centre", "district": "Old Town",
    "attractions": ["Historic Old Town", "Central Market", "Waterfront Promenade"],
    "local_transport": "Taxis and ride-hailing apps",
    "image_url": _DEFAULT_IMAGE,
}

INCLUSION_NOTES = {
    "All Meals": "Breakfast, lunch and dinner at the resort restaurants",
    "Breakfast": "Daily buffet breakfast for all guests",
    "Spa Package": "Two 60-minute treatments per guest",
    "Airport Transfer": "Private return transfer in an air-conditioned car",
    "Shared Transfer": "Shared shuttle between airport and hotel",
    "Guided City Tours": "Half-day guided walking tours with a local historian",
    "Museum Passes": "Skip-the-line entry to the main museums",
    "Adventure Activities": "Two guided outdoor activities of your choice",
    "Gear Rental": "Equipment hire for the included activities",
    "City Pass": "Public transport and attraction pass",
    "Private Experiences": "One private curated experience per guest",
    "Local Guide": "Dedicated local host for one full day",
}


@dataclass
class AgentPersona:
    """Template for one simulated agent."""

    name: str
    icon: str
    specialty: str
    personality: str
    price_multiplier: float
    markup: float
    hotel_rating: int
    confirmation_time: str
    inclusions: List[str]
    description: str
    hotel_style: str
    room_type: str
    amenities: List[str]
    distance_to_center: str
    airline: str
    airline_code: str
    layover: Optional[str]
    cancellation_policy: str
    payment_terms: str
    deadline_days: int
    refund_policy: str
    change_policy: str
    insurance: str
    search_line: str = ""
    offer_line: str = ""


AGENT_PERSONAS: List[AgentPersona] = [
    AgentPersona(
        name="TravelBot Pro", icon="👑", specialty="Luxury Travel", personality="Sophisticated",
        price_multiplier=1.10, markup=1.22, hotel_rating=5, confirmation_time="2 min",
        inclusions=["5★ Resort", "All Meals", "Spa Package", "Airport Transfer"],
        description="Luxury beachfront resort with private villas",
        hotel_style="Grand Resort & Spa", room_type="Private Pool Villa",
        amenities=["Infinity pool", "Butler service", "Spa", "Fine dining"],
        distance_to_center="2.5 km", airline="Emirates", airline_code="EK", layover=None,
        cancellation_policy="Free cancellation up to 14 days before departure",
        payment_terms="25% deposit, balance 30 days before departure",
        deadline_days=21, refund_policy="Full refund within the free cancellation window",
        change_policy="One free date change", insurance="Premium travel insurance included",
        search_line="Reviewing premium resorts and private villas in {destination}.",
        offer_line="I secured a five-star stay with full board and spa access.",
    ),
    AgentPersona(
        name="VoyageAI", icon="🏛️", specialty="Cultural Experiences", personality="Knowledgeable",
        price_multiplier=0.95, markup=1.18, hotel_rating=4, confirmation_time="3 min",
        inclusions=["4★ Heritage Hotel", "Breakfast", "Guided City Tours", "Museum Passes"],
        description="Heritage hotel in the historic quarter with curated cultural tours",
        hotel_style="Heritage Hotel", room_type="Deluxe Heritage Room",
        amenities=["Rooftop terrace", "Library lounge", "Breakfast restaurant"],
        distance_to_center="0.8 km", airline="Air India", airline_code="AI", layover=None,
        cancellation_policy="Free cancellation up to 7 days before departure",
        payment_terms="Full payment at booking",
        deadline_days=14, refund_policy="Refund minus 10% admin fee",
        change_policy="Date changes allowed for a fee", insurance="Basic travel insurance included",
        search_line="Matching heritage stays and guided tours around {destination}.",
        offer_line="Here is a heritage hotel with museum passes and guided walks.",
    ),
    AgentPersona(
        name="JourneyGenie", icon="🏔️", specialty="Adventure Travel", personality="Energetic",
        price_multiplier=0.90, markup=1.20, hotel_rating=4, confirmation_time="4 min",
        inclusions=["Boutique Lodge", "Breakfast", "Adventure Activities", "Gear Rental"],
        description="Boutique lodge basecamp with guided outdoor adventures",
        hotel_style="Adventure Lodge", room_type="Garden View Lodge Room",
        amenities=["Gear storage", "Outdoor pool", "Cafe"],
        distance_to_center="6 km", airline="IndiGo", airline_code="6E", layover="BOM",
        cancellation_policy="Free cancellation up to 10 days before departure",
        payment_terms="30% deposit, balance 21 days before departure",
        deadline_days=10, refund_policy="Refund of balance; deposit non-refundable",
        change_policy="Activity swaps free, date changes for a fee",
        insurance="Adventure sports cover included",
        search_line="Scouting trails, water sports and lodges near {destination}.",
        offer_line="Found a lodge basecamp with two guided adventures and gear hire.",
    ),
    AgentPersona(
        name="WanderBot", icon="💰", specialty="Budget Travel", personality="Resourceful",
        price_multiplier=0.75, markup=1.30, hotel_rating=3, confirmation_time="1 min",
        inclusions=["3★ Hotel", "Breakfast", "City Pass", "Shared Transfer"],
        description="Well-located value hotel with a city pass for easy sightseeing",
        hotel_style="City Inn", room_type="Standard Double Room",
        amenities=["Free Wi-Fi", "24h front desk", "Breakfast"],
        distance_to_center="1.5 km", airline="IndiGo", airline_code="6E", layover="DXB",
        cancellation_policy="Non-refundable fare, hotel free cancellation up to 3 days",
        payment_terms="Full payment at booking",
        deadline_days=5, refund_policy="Hotel portion refundable only",
        change_policy="Changes not permitted on the flight fare",
        insurance="Optional insurance available",
        search_line="Hunting flash fares and value stays for {destination}.",
        offer_line="Best value I could find: central hotel, breakfast and a city pass.",
    ),
    AgentPersona(
        name="ExploreAI", icon="✨", specialty="Unique Experiences", personality="Creative",
        price_multiplier=1.00, markup=1.15, hotel_rating=4, confirmation_time="5 min",
        inclusions=["Designer Boutique Hotel", "Breakfast", "Private Experiences", "Local Guide"],
        description="Design-led boutique stay with private local experiences",
        hotel_style="Design Boutique Hotel", room_type="Signature Loft Suite",
        amenities=["Art gallery", "Cocktail bar", "Bicycle loan"],
        distance_to_center="1.0 km", airline="Singapore Airlines", airline_code="SQ", layover="SIN",
        cancellation_policy="Free cancellation up to 10 days before departure",
        payment_terms="50% deposit, balance 14 days before departure",
        deadline_days=12, refund_policy="Full refund within the free cancellation window",
        change_policy="Free changes up to 14 days before departure",
        insurance="Comprehensive travel insurance included",
        search_line="Curating one-of-a-kind experiences in {destination}.",
        offer_line="I put together a boutique stay with private experiences and a local host.",
    ),
]

PERSONAS_BY_NAME = {p.name: p for p in AGENT_PERSONAS}
AGENT_ICONS = {p.name: p.icon for p in AGENT_PERSONAS}

# Static deals used when generation fails
FALLBACK_DEALS: List[Dict[str, Any]] = [
    {
        "agent": "TravelBot Pro", "price": 2899.00, "original_price": 3499.00, "hotel_rating": 5,
        "confirmation_time": "2 min",
        "inclusions": ["5★ Resort", "All Meals", "Spa Package", "Airport Transfer"],
        "description": "Luxury beachfront resort with private villas",
    },
    {
        "agent": "VoyageAI", "price": 2499.00, "original_price": 2999.00, "hotel_rating": 4,
        "confirmation_time": "3 min",
        "inclusions": ["4★ Heritage Hotel", "Breakfast", "Guided City Tours"],
        "description": "Heritage hotel with curated cultural tours",
    },
    {
        "agent": "WanderBot", "price": 1799.00, "original_price": 2299.00, "hotel_rating": 3,
        "confirmation_time": "1 min",
        "inclusions": ["3★ Hotel", "Breakfast", "City Pass"],
        "description": "Well-located value hotel with a city pass",
    },
]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_date(value: Any) -> Optional[datetime]:
    try:
        return datetime.strptime(str(value).strip(), "%Y-%m-%d")
    except (ValueError, TypeError):
        return None


def destination_profile(destination: str) -> Dict[str, Any]:
    """Profile for a destination; substring match so "Bali, Indonesia" hits "bali"."""
    dest = (destination or "").strip().lower()
    for key, profile in DESTINATION_PROFILES.items():
        if key in dest:
            return profile
    return GENERIC_PROFILE


def duration_multiplier(duration: str, departure_date: Any = None, return_date: Any = None) -> float:
    """Multiplier for the selected duration; "custom" and unknown values use the trip dates."""
    key = (duration or "").strip().lower()
    if key in DURATION_MULTIPLIERS:
        return DURATION_MULTIPLIERS[key]
    dep, ret = _parse_date(departure_date), _parse_date(return_date)
    if dep and ret and ret > dep:
        weeks = (ret - dep).days / 7
        return round(min(max(weeks, 0.3), 6.0), 2)
    return 1.0


def travel_type_multiplier(travel_type: str) -> float:
    return TRAVEL_TYPE_MULTIPLIERS.get((travel_type or "").strip().lower(), 1.0)


def budget_base_price(budget: str) -> int:
    return BUDGET_BASE_PRICES.get((budget or "").strip().lower(), BUDGET_BASE_PRICES[DEFAULT_BUDGET])


def _round_100(value: float) -> float:
    return float(max(100, int(round(value / 100.0)) * 100))


def _trip_seed(trip: Any, agent: str) -> str:
    return "|".join(str(getattr(trip, f, "") or "") for f in (
        "destination", "duration", "travel_type", "budget", "departure_date", "return_date",
    )) + f"|{agent}"


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------

class DealGenerator:
    """Builds one DealCandidate per active persona for a trip."""

    def __init__(self, personas: Optional[List[AgentPersona]] = None, max_candidates: Optional[int] = None):
        self.personas = personas if personas is not None else AGENT_PERSONAS
        self.max_candidates = max_candidates or settings.deal_candidates

    def generate(self, trip: Any, active_agents: Optional[Iterable[str]] = None) -> List[DealCandidate]:
        """
        Synthesize candidates for a trip.
        `active_agents` restricts generation to the named personas; None means all.
        """
        personas = self.personas
        if active_agents is not None:
            allowed = set(active_agents)
            personas = [p for p in personas if p.name in allowed]
        personas = personas[:self.max_candidates]
        if not personas:
            raise DealGenerationError("No active agents available to generate deals")

        profile = destination_profile(trip.destination)
        base = (
            budget_base_price(trip.budget)
            * duration_multiplier(trip.duration, trip.departure_date, trip.return_date)
            * travel_type_multiplier(trip.travel_type)
            * profile["cost_index"]
        )

        candidates = [self._build(trip, persona, profile, base) for persona in personas]
        logger.info(f"Generated {len(candidates)} candidates for {trip.destination} "
                    f"({trip.budget}, {trip.travel_type}, {trip.duration})")
        return candidates

    def _build(self, trip: Any, persona: AgentPersona, profile: Dict[str, Any], base: float) -> DealCandidate:
        rng = random.Random(_trip_seed(trip, persona.name))
        price = _round_100(base * persona.price_multiplier * rng.uniform(0.97, 1.03))
        original_price = _round_100(price * persona.markup)
        if original_price <= price:
            original_price = price + 100

        destination = trip.destination.strip()
        return DealCandidate(
            agent=persona.name,
            destination=destination,
            price=price,
            original_price=original_price,
            hotel_rating=max(1, min(5, persona.hotel_rating)),
            confirmation_time=persona.confirmation_time,
            inclusions=list(persona.inclusions),
            image_url=profile["image_url"],
            description=persona.description,
            flight_details=self._flight_details(trip, persona, profile, rng),
            accommodation_details=self._accommodation(trip, persona, profile),
            inclusions_breakdown={
                inc: INCLUSION_NOTES.get(inc, "Included in the package price") for inc in persona.inclusions
            },
            location_info={
                "area": profile["area"],
                "district": profile["district"],
                "nearbyAttractions": list(profile["attractions"]),
                "localTransport": profile["local_transport"],
            },
            booking_terms=self._booking_terms(trip, persona),
            specialty=persona.specialty,
            personality=persona.personality,
        )

    def _flight_leg(self, persona: AgentPersona, rng: random.Random, origin: str, dest: str,
                    date_value: Any, hours: float) -> Dict[str, Any]:
        if persona.layover:
            hours += 2.5
        dep_hour = rng.choice([1, 6, 9, 13, 17, 22])
        dep_minute = rng.choice([0, 15, 30, 45])
        minutes = int(round(hours * 60))

        day = _parse_date(date_value)
        if day:
            departs = day.replace(hour=dep_hour, minute=dep_minute)
            arrives = departs + timedelta(minutes=minutes)
            dep_date, arr_date = departs.strftime("%Y-%m-%d"), arrives.strftime("%Y-%m-%d")
            arr_time = arrives.strftime("%H:%M")
        else:
            dep_date = arr_date = str(date_value or "")
            total = dep_hour * 60 + dep_minute + minutes
            arr_time = f"{(total // 60) % 24:02d}:{total % 60:02d}"

        return {
            "airline": persona.airline,
            "flightNumber": f"{persona.airline_code}{rng.randint(100, 999)}",
            "departure": {"airport": origin, "time": f"{dep_hour:02d}:{dep_minute:02d}", "date": dep_date},
            "arrival": {"airport": dest, "time": arr_time, "date": arr_date},
            "duration": f"{minutes // 60}h {minutes % 60}m",
            "layovers": [persona.layover] if persona.layover else [],
        }

    def _flight_details(self, trip: Any, persona: AgentPersona, profile: Dict[str, Any],
                        rng: random.Random) -> Dict[str, Any]:
        origin = settings.origin_airport
        return {
            "outbound": self._flight_leg(persona, rng, origin, profile["airport"],
                                         trip.departure_date, profile["flight_hours"]),
            "return": self._flight_leg(persona, rng, profile["airport"], origin,
                                       trip.return_date, profile["flight_hours"]),
        }

    def _accommodation(self, trip: Any, persona: AgentPersona, profile: Dict[str, Any]) -> Dict[str, Any]:
        city = trip.destination.split(",")[0].strip().title()
        return {
            "name": f"{city} {persona.hotel_style}",
            "address": f"{profile['area']}, {profile['district']}",
            "roomType": persona.room_type,
            "checkIn": str(trip.departure_date),
            "checkOut": str(trip.return_date),
            "amenities": list(persona.amenities),
            "rating": persona.hotel_rating,
            "distanceToCenter": persona.distance_to_center,
        }

    def _booking_terms(self, trip: Any, persona: AgentPersona) -> Dict[str, str]:
        departure = _parse_date(trip.departure_date)
        if departure:
            deadline = (departure - timedelta(days=persona.deadline_days)).strftime("%Y-%m-%d")
        else:
            deadline = f"{persona.deadline_days} days before departure"
        return {
            "cancellationPolicy": persona.cancellation_policy,
            "paymentTerms": persona.payment_terms,
            "bookingDeadline": deadline,
            "refundPolicy": persona.refund_policy,
            "changePolicy": persona.change_policy,
            "insurance": persona.insurance,
        }


def fallback_candidates(trip: Any) -> List[DealCandidate]:
    """Canned offers for when generation fails. No detail blobs."""
    profile = destination_profile(getattr(trip, "destination", ""))
    candidates = []
    for data in FALLBACK_DEALS:
        persona = PERSONAS_BY_NAME.get(data["agent"])
        candidates.append(DealCandidate(
            destination=(getattr(trip, "destination", "") or "").strip(),
            image_url=profile["image_url"],
            specialty=persona.specialty if persona else "",
            personality=persona.personality if persona else "",
            **{k: (list(v) if isinstance(v, list) else v) for k, v in data.items()},
        ))
    return candidates

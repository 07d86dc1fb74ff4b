"""City model and the fixed list of supported Serbian cities."""

from pydantic import BaseModel, ConfigDict


class City(BaseModel):
    """A forecast location. Replaced, never mutated, on every location change."""

    model_config = ConfigDict(frozen=True)

    name: str
    display_name: str
    lat: float
    lon: float


# Declaration order matters: nearest-city ties resolve to the earlier entry.
CANDIDATE_CITIES: tuple[City, ...] = (
    City(name="Beograd", display_name="Belgrade", lat=44.7866, lon=20.4489),
    City(name="Novi Sad", display_name="Novi Sad", lat=45.2671, lon=19.8335),
    City(name="Niš", display_name="Niš", lat=43.3209, lon=21.8958),
    City(name="Kragujevac", display_name="Kragujevac", lat=44.0128, lon=20.9114),
    City(name="Subotica", display_name="Subotica", lat=46.1, lon=19.6667),
    City(name="Zrenjanin", display_name="Zrenjanin", lat=45.3836, lon=20.381),
    City(name="Pirot", display_name="Pirot", lat=43.153, lon=22.5861),
    City(name="Kraljevo", display_name="Kraljevo", lat=43.7239, lon=20.6876),
    City(name="Čačak", display_name="Čačak", lat=43.8914, lon=20.3497),
    City(name="Užice", display_name="Užice", lat=43.8586, lon=19.8488),
)

DEFAULT_CITY = CANDIDATE_CITIES[0]


def search_cities(query: str) -> list[City]:
    """Filter the candidate list by a case-insensitive substring.

    Args:
        query: Free text typed by the user; blank matches every city.

    Returns:
        Matching cities in declaration order.
    """
    q = query.strip().lower()
    return [
        city
        for city in CANDIDATE_CITIES
        if q in f"{city.name} {city.display_name}".lower()
    ]


def find_city(name: str) -> City | None:
    """Return the candidate city with exactly this name, if any."""
    return next((city for city in CANDIDATE_CITIES if city.name == name), None)

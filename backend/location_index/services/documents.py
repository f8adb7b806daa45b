"""
Turns mapper locations into search documents.

Everything here is pure: the only input besides the location is the clock
reading, which callers may pass in to get reproducible output.
"""
import datetime as dt
from typing import Dict, List, Optional, Sequence, Tuple

from location_index.models import GeoPoint, Location, LocationType, SearchDocument, Suggestion

# Autocomplete phrases per location type. Every LocationType member needs an
# entry here; types without one get an empty suggestion list.
SUGGESTION_TEMPLATES: Dict[LocationType, Tuple[str, ...]] = {
    LocationType.COUNTRY: (
        "{country}",
    ),
    LocationType.LOCALITY: (
        "{locality}",
        "{country} {locality}",
        "{locality} {country}",
    ),
    LocationType.ACCOMMODATION: (
        "{name}",
        "{name} {locality} {country}",
        "{name} {country} {locality}",
        "{locality} {name}",
        "{locality} {country} {name}",
        "{country} {name}",
        "{country} {locality} {name}",
    ),
}


def build_suggestion(location: Location) -> Suggestion:
    templates = SUGGESTION_TEMPLATES.get(location.location_type, ())
    return Suggestion(input=[
        t.format(name=location.name, locality=location.locality, country=location.country)
        for t in templates
    ])


def build_prediction_text(location: Location) -> str:
    result = location.name if location.location_type is LocationType.ACCOMMODATION else ""
    for part in (location.locality, location.country):
        if part:
            result = f"{result}, {part}" if result else part
    return result


def build_document(location: Location, now: Optional[dt.datetime] = None) -> SearchDocument:
    return SearchDocument(
        id=location.ht_id,
        name=location.name,
        locality=location.locality,
        country=location.country,
        country_code=location.country_code,
        suggestion=build_suggestion(location),
        prediction_text=build_prediction_text(location),
        coordinates=GeoPoint(lat=location.coordinates.latitude, lon=location.coordinates.longitude),
        distance_in_meters=location.distance_in_meters,
        location_type=location.location_type.value,
        type=location.type,
        modified=now or dt.datetime.now(dt.timezone.utc),
    )


def build_documents(locations: Sequence[Location], now: Optional[dt.datetime] = None) -> List[SearchDocument]:
    # one timestamp per batch
    now = now or dt.datetime.now(dt.timezone.utc)
    return [build_document(loc, now) for loc in locations]

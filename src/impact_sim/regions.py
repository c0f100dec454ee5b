"""Coarse country guesses from hand-tuned bounding boxes.

Used only by the optional country-affinity tweak in reverse geocoding.
The boxes overlap and misclassify border regions; first match wins.
Smaller countries mostly come before the large ones around them, and India
precedes Pakistan so the Delhi region resolves to India.
"""

from __future__ import annotations

from typing import Optional

# (country, lat_min, lat_max, lon_min, lon_max), longitudes in [-180, 180]
COUNTRY_BOXES: list[tuple[str, float, float, float, float]] = [
    # Asia
    ("singapore", 1.2, 1.5, 103.6, 104.0),
    ("sri lanka", 5.9, 9.8, 79.7, 81.9),
    ("bhutan", 26.7, 28.3, 88.7, 92.1),
    ("nepal", 26.4, 30.4, 80.1, 88.2),
    ("bangladesh", 20.7, 26.6, 88.0, 92.7),
    ("south korea", 33.1, 38.6, 124.6, 131.9),
    ("north korea", 37.7, 43.0, 124.3, 130.7),
    ("japan", 24.2, 45.5, 123.0, 145.8),
    ("india", 6.5, 37.1, 68.1, 97.4),
    ("pakistan", 23.5, 37.1, 60.9, 77.8),
    ("china", 18.2, 53.6, 73.6, 135.1),
    ("thailand", 5.6, 20.5, 97.3, 105.6),
    ("vietnam", 8.6, 23.4, 102.1, 109.5),
    ("cambodia", 10.5, 14.7, 102.3, 107.6),
    ("laos", 13.9, 22.5, 100.1, 107.6),
    ("myanmar", 9.8, 28.5, 92.2, 101.2),
    ("philippines", 4.6, 21.1, 116.9, 126.6),
    ("malaysia", 0.9, 7.4, 99.6, 119.3),
    ("indonesia", -11.0, 6.1, 95.0, 141.0),
    ("afghanistan", 29.4, 38.5, 60.5, 74.9),
    ("iraq", 29.1, 37.4, 38.8, 48.6),
    ("iran", 25.1, 39.8, 44.0, 63.3),
    ("saudi arabia", 16.3, 32.2, 34.5, 55.7),
    ("turkey", 35.8, 42.1, 26.0, 45.0),
    ("uzbekistan", 37.2, 45.6, 56.0, 73.1),
    ("kazakhstan", 40.9, 55.4, 46.5, 87.3),
    ("mongolia", 41.6, 52.1, 87.7, 119.9),
    # Europe
    ("united kingdom", 49.9, 60.8, -8.2, 1.8),
    ("france", 41.3, 51.1, -5.1, 9.6),
    ("spain", 35.2, 43.8, -9.3, 4.3),
    ("germany", 47.3, 55.1, 5.9, 15.0),
    ("italy", 35.5, 47.1, 6.6, 18.5),
    ("poland", 49.0, 54.8, 14.1, 24.1),
    ("ukraine", 44.4, 52.4, 22.1, 40.2),
    # Africa
    ("egypt", 22.0, 31.7, 25.0, 36.9),
    ("south africa", -47.0, -22.1, 16.5, 32.9),
    ("nigeria", 4.3, 13.9, 2.7, 14.7),
    ("kenya", -4.7, 5.5, 33.9, 41.9),
    ("ethiopia", 3.4, 18.0, 33.0, 48.0),
    ("morocco", 21.4, 35.9, -17.0, -1.0),
    ("algeria", 18.9, 37.1, -8.7, 12.0),
    ("libya", 19.5, 33.2, 9.3, 25.2),
    ("sudan", 8.7, 22.2, 21.8, 38.6),
    ("tanzania", -11.7, -1.0, 29.3, 40.3),
    ("uganda", -1.5, 4.2, 29.6, 35.0),
    ("ghana", 4.7, 11.2, -3.3, 1.3),
    ("angola", -18.0, -4.4, 11.7, 24.1),
    ("mozambique", -26.9, -10.5, 30.2, 40.8),
    ("madagascar", -25.6, -11.9, 43.2, 50.5),
    # Oceania
    ("new zealand", -47.3, -34.4, 166.5, 178.6),
    ("fiji", -20.7, -16.0, 177.0, 180.0),
    ("papua new guinea", -12.0, -1.0, 140.8, 159.9),
    ("australia", -43.6, -10.7, 113.3, 153.6),
    # Americas
    ("united states", 24.5, 49.0, -125.0, -60.0),
    ("canada", 41.7, 83.1, -125.0, -60.0),
    ("mexico", 14.5, 32.7, -125.0, -85.0),
    ("brazil", -33.8, 5.3, -80.0, -34.0),
    ("argentina", -55.1, -21.8, -80.0, -53.0),
    ("chile", -56.0, -17.5, -80.0, -66.0),
    ("peru", -18.3, 0.0, -80.0, -68.0),
    ("colombia", -4.2, 12.5, -80.0, -66.0),
    ("venezuela", 0.6, 15.9, -73.0, -59.0),
    # Russia last; it swallows most of northern Eurasia
    ("russia", 41.2, 81.9, 19.6, 180.0),
]


def guess_country(lat: float, lon: float) -> Optional[str]:
    """Lowercase country name whose box contains the point, if any."""
    for country, lat_min, lat_max, lon_min, lon_max in COUNTRY_BOXES:
        if lat_min <= lat <= lat_max and lon_min <= lon <= lon_max:
            return country
    return None


def country_matches(country: Optional[str], guess: Optional[str]) -> bool:
    return bool(country and guess and guess in country.lower())

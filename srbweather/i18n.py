"""Message tables for the two supported languages."""

SUPPORTED_LANGUAGES = ("sr", "en")
DEFAULT_LANGUAGE = "sr"

MESSAGES = {
    "sr": {
        "alert_rain": "Obilne padavine (~{mm} mm)",
        "alert_wind": "Pojačan vetar (≥60 km/h)",
        "alert_heat": "Vrela temperatura (≥35°C)",
        "alert_frost": "Mraz (≤0°C)",
        "alert_thunder": "Moguće grmljavinske oluje",
        "geo_denied": "Pristup lokaciji odbijen.",
        "geo_unavailable": "Lokacija trenutno nije dostupna.",
        "geo_timeout": "Vreme za određivanje lokacije je isteklo.",
        "geo_insecure_context": "Geolokacija zahteva HTTPS.",
        "geo_unsupported": "Pregledač ne podržava geolokaciju.",
        "my_location": "Moja lokacija",
        "custom_location": "Custom",
        "forecast_error": "Neuspešno preuzimanje prognoze.",
        "no_alerts": "Nema posebnih upozorenja.",
        "placeholder": "—",
    },
    "en": {
        "alert_rain": "Heavy rainfall (~{mm} mm)",
        "alert_wind": "Strong wind (≥60 km/h)",
        "alert_heat": "Heat (≥35°C)",
        "alert_frost": "Frost (≤0°C)",
        "alert_thunder": "Thunderstorm risk",
        "geo_denied": "Location permission denied.",
        "geo_unavailable": "Location currently unavailable.",
        "geo_timeout": "Timed out while locating.",
        "geo_insecure_context": "Geolocation requires HTTPS.",
        "geo_unsupported": "Browser does not support geolocation.",
        "my_location": "My Location",
        "custom_location": "Custom",
        "forecast_error": "Failed to fetch forecast.",
        "no_alerts": "No special alerts.",
        "placeholder": "—",
    },
}


def normalize_language(lang: str | None) -> str:
    """Map unsupported languages to the default language."""
    return lang if lang in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def message(lang: str, key: str, **params) -> str:
    """Look up a message, formatting any ``{placeholders}`` with ``params``."""
    text = MESSAGES[normalize_language(lang)][key]
    return text.format(**params) if params else text

from typing import Literal

City = Literal[
    "saly",
    "mbour",
    "somone",
    "ngaparou",
    "warang",
    "nianing",
    "popenguine",
    "toubab_dialao",
]
CategoryId = Literal[
    "musique_fete",
    "culture_arts",
    "sport_bienetre",
    "marches_food",
    "ateliers_rencontres",
    "communaute",
]
EventType = Literal[
    "concert",
    "soiree",
    "culture",
    "marche",
    "sport",
    "gastronomie",
    "exposition",
    "atelier",
    "conference",
    "bienetre",
    "autre",
]
EventStatus = Literal["pending", "approved", "rejected"]
PlaceType = Literal["hotel", "restaurant", "plage", "bar", "salle", "autre"]

CITIES: tuple[str, ...] = (
    "saly",
    "mbour",
    "somone",
    "ngaparou",
    "warang",
    "nianing",
    "popenguine",
    "toubab_dialao",
)

# Colloquial spellings seen in geocoder address data.
CITY_ALIASES: dict[str, str] = {
    "mbour": "mbour",
    "m'bour": "mbour",
    "popenguin": "popenguine",
    "dialao": "toubab_dialao",
    "dialaw": "toubab_dialao",
}

CATEGORY_SUBCATEGORIES: dict[str, tuple[str, ...]] = {
    "musique_fete": ("concert_live", "soiree_dj", "beach_party", "bar_lounge", "autres"),
    "culture_arts": ("exposition", "spectacle_theatre", "cinema", "festival", "autres"),
    "sport_bienetre": ("lutte_traditionnelle", "sports_nautiques", "yoga_meditation", "tournoi_match", "autres"),
    "marches_food": ("marche_local", "restaurant_food", "degustation", "marche_artisanal", "autres"),
    "ateliers_rencontres": ("atelier_creatif", "conference_talk", "formation", "networking", "autres"),
    "communaute": ("nettoyage_plage", "action_solidaire", "sensibilisation", "evenement_associatif", "autres"),
}

TAG_GROUPS: dict[str, tuple[str, ...]] = {
    "prix": ("gratuit", "payant"),
    "moment": ("jour", "soir"),
    "lieu": ("plage", "ville"),
}
TAGS = {tag for tags in TAG_GROUPS.values() for tag in tags}

LEGACY_EVENT_TYPE_BY_CATEGORY: dict[str, str] = {
    "musique_fete": "concert",
    "culture_arts": "culture",
    "sport_bienetre": "sport",
    "marches_food": "marche",
    "ateliers_rencontres": "atelier",
    "communaute": "autre",
}


def legacy_event_type(category: str) -> str:
    return LEGACY_EVENT_TYPE_BY_CATEGORY.get(category, "autre")


def detect_city(text: str | None) -> str | None:
    """Map free-form city/region text onto a known city, or None."""
    if not text:
        return None
    lowered = text.lower()
    for city in CITIES:
        if city.replace("_", " ") in lowered:
            return city
    for alias, city in CITY_ALIASES.items():
        if alias in lowered:
            return city
    return None

from bokkal.core.catalog import CITIES, detect_city
from bokkal.services.gazetteer import KNOWN_PLACES, search_known_places


def test_gazetteer_entries_are_unique_and_in_known_cities() -> None:
    ids = [place.id for place in KNOWN_PLACES]
    assert len(ids) == len(set(ids)) == 34
    assert {place.city for place in KNOWN_PLACES} <= set(CITIES)


def test_search_is_case_insensitive_substring_in_gazetteer_order() -> None:
    names = [place.name for place in search_known_places("PLAGE DE SALY")]
    assert names == ["Plage de Saly", "Plage de Saly Nord"]


def test_search_matches_accented_names() -> None:
    assert [place.id for place in search_known_places("lama")] == ["lamantin"]
    assert [place.id for place in search_known_places("téranga")] == ["teranga"]


def test_search_ignores_short_or_blank_queries() -> None:
    assert search_known_places("p") == []
    assert search_known_places("   ") == []
    assert search_known_places("  pl ")[0].name.startswith("Plage")


def test_detect_city_reads_underscores_as_spaces_and_aliases() -> None:
    assert detect_city("Toubab Dialao") == "toubab_dialao"
    assert detect_city("Dialaw") == "toubab_dialao"
    assert detect_city("M'Bour") == "mbour"
    assert detect_city("Popenguin") == "popenguine"
    assert detect_city("Région de Thiès, Saly Portudal") == "saly"
    assert detect_city("Dakar") is None
    assert detect_city(None) is None

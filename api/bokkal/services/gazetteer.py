from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class KnownPlace:
    id: str
    name: str
    city: str
    lat: float
    lng: float
    place_type: str


# Well-known venues of the Petite Côte, grouped by city.
KNOWN_PLACES: tuple[KnownPlace, ...] = (
    # Saly
    KnownPlace("lamantin", "Hôtel Lamantin Beach", "saly", 14.4483, -17.0211, "hotel"),
    KnownPlace("royam", "Hôtel Royam", "saly", 14.4456, -17.0178, "hotel"),
    KnownPlace("neptune", "Hôtel Neptune", "saly", 14.4512, -17.0198, "hotel"),
    KnownPlace("teranga", "Hôtel Téranga", "saly", 14.4478, -17.0156, "hotel"),
    KnownPlace("espadon", "Hôtel Espadon", "saly", 14.4445, -17.0189, "hotel"),
    KnownPlace("filaos", "Hôtel Les Filaos", "saly", 14.4521, -17.0234, "hotel"),
    KnownPlace("palm_beach", "Palm Beach Hotel", "saly", 14.4498, -17.0201, "hotel"),
    KnownPlace("bougainvillees", "Hôtel Les Bougainvillées", "saly", 14.4467, -17.0145, "hotel"),
    KnownPlace("copacabana", "Copacabana", "saly", 14.4472, -17.0223, "restaurant"),
    KnownPlace("poisson_dor", "Le Poisson d'Or", "saly", 14.4489, -17.0187, "restaurant"),
    KnownPlace("casa_saly", "Casa Saly", "saly", 14.4501, -17.0176, "restaurant"),
    KnownPlace("le_phare", "Le Phare", "saly", 14.4534, -17.0245, "bar"),
    KnownPlace("nirvana", "Nirvana Beach", "saly", 14.4456, -17.0234, "bar"),
    KnownPlace("plage_saly", "Plage de Saly", "saly", 14.4467, -17.0256, "plage"),
    KnownPlace("plage_saly_nord", "Plage de Saly Nord", "saly", 14.4567, -17.0278, "plage"),
    # Mbour
    KnownPlace("marche_mbour", "Marché aux poissons de Mbour", "mbour", 14.4167, -16.9667, "autre"),
    KnownPlace("port_mbour", "Port de Mbour", "mbour", 14.4134, -16.9623, "autre"),
    KnownPlace("plage_mbour", "Plage de Mbour", "mbour", 14.4156, -16.9712, "plage"),
    KnownPlace("tama_lodge", "Tama Lodge", "mbour", 14.4189, -16.9734, "hotel"),
    # Somone
    KnownPlace("lagune_somone", "Lagune de Somone", "somone", 14.4833, -17.0833, "autre"),
    KnownPlace("royal_horizon", "Royal Horizon", "somone", 14.4812, -17.0856, "hotel"),
    KnownPlace("domaine_somone", "Domaine de Somone", "somone", 14.4798, -17.0812, "hotel"),
    KnownPlace("plage_somone", "Plage de Somone", "somone", 14.4856, -17.0889, "plage"),
    # Ngaparou
    KnownPlace("plage_ngaparou", "Plage de Ngaparou", "ngaparou", 14.4333, -17.0456, "plage"),
    KnownPlace("chez_salim", "Chez Salim", "ngaparou", 14.4312, -17.0423, "restaurant"),
    KnownPlace("auberge_ngaparou", "Auberge de Ngaparou", "ngaparou", 14.4345, -17.0412, "hotel"),
    # Warang
    KnownPlace("plage_warang", "Plage de Warang", "warang", 14.4000, -16.9623, "plage"),
    # Nianing
    KnownPlace("club_aldiana", "Club Aldiana", "nianing", 14.3312, -16.9456, "hotel"),
    KnownPlace("plage_nianing", "Plage de Nianing", "nianing", 14.3333, -16.9512, "plage"),
    # Popenguine
    KnownPlace("sanctuaire_popenguine", "Sanctuaire Marial de Popenguine", "popenguine", 14.5489, -17.1123, "autre"),
    KnownPlace("reserve_popenguine", "Réserve naturelle de Popenguine", "popenguine", 14.5512, -17.1089, "autre"),
    KnownPlace("plage_popenguine", "Plage de Popenguine", "popenguine", 14.5467, -17.1178, "plage"),
    # Toubab Dialao
    KnownPlace("sobo_bade", "Sobo Badé", "toubab_dialao", 14.5834, -17.1345, "autre"),
    KnownPlace("plage_toubab", "Plage de Toubab Dialao", "toubab_dialao", 14.5812, -17.1378, "plage"),
)


def search_known_places(
    query: str,
    *,
    places: tuple[KnownPlace, ...] = KNOWN_PLACES,
    min_length: int = 2,
) -> list[KnownPlace]:
    """Case-insensitive substring match on place names, in gazetteer order."""
    needle = (query or "").strip().casefold()
    if len(needle) < min_length:
        return []
    return [place for place in places if needle in place.name.casefold()]

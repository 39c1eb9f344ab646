"""Malaysia city → area catalogue

Display labels and price tiers for the areas pricing rules refer to.
Keys match PricingRule.area_rules keys.
"""

from __future__ import annotations

from typing import NamedTuple

from decision_engine.models.enums import AreaTier, City


class AreaOption(NamedTuple):
    key: str
    label: str
    tier: AreaTier


_B, _M, _P = AreaTier.BUDGET, AreaTier.MID, AreaTier.PREMIUM

AREAS_BY_CITY: dict[City, tuple[AreaOption, ...]] = {
    City.KLANG_VALLEY: (
        AreaOption("cheras", "Cheras", _B),
        AreaOption("seri_kembangan", "Seri Kembangan", _B),
        AreaOption("setapak", "Setapak", _B),
        AreaOption("kepong", "Kepong", _B),
        AreaOption("puchong", "Puchong", _B),
        AreaOption("kajang", "Kajang", _B),
        AreaOption("semenyih", "Semenyih", _B),
        AreaOption("petaling_jaya", "Petaling Jaya", _M),
        AreaOption("old_klang_road", "Old Klang Road", _M),
        AreaOption("subang_jaya", "Subang Jaya", _M),
        AreaOption("shah_alam", "Shah Alam", _M),
        AreaOption("kota_damansara", "Kota Damansara", _M),
        AreaOption("ampang", "Ampang", _M),
        AreaOption("mont_kiara", "Mont Kiara", _P),
        AreaOption("bangsar", "Bangsar", _P),
        AreaOption("damansara_heights", "Damansara Heights", _P),
        AreaOption("klcc", "KLCC", _P),
        AreaOption("bukit_bintang", "Bukit Bintang", _P),
        AreaOption("desa_parkcity", "Desa ParkCity", _P),
        AreaOption("ttdi", "TTDI", _P),
    ),
    City.PENANG: (
        AreaOption("butterworth", "Butterworth", _B),
        AreaOption("bayan_lepas", "Bayan Lepas", _B),
        AreaOption("jelutong", "Jelutong", _B),
        AreaOption("air_itam", "Air Itam", _B),
        AreaOption("gelugor", "Gelugor", _M),
        AreaOption("pulau_tikus", "Pulau Tikus", _M),
        AreaOption("tanjung_tokong", "Tanjung Tokong", _M),
        AreaOption("georgetown", "Georgetown", _P),
        AreaOption("gurney", "Gurney", _P),
        AreaOption("tanjung_bungah", "Tanjung Bungah", _P),
    ),
    City.JOHOR_BAHRU: (
        AreaOption("skudai", "Skudai", _B),
        AreaOption("tampoi", "Tampoi", _B),
        AreaOption("perling", "Perling", _B),
        AreaOption("taman_universiti", "Taman Universiti", _B),
        AreaOption("masai", "Masai", _B),
        AreaOption("mount_austin", "Mount Austin", _M),
        AreaOption("tebrau", "Tebrau", _M),
        AreaOption("taman_molek", "Taman Molek", _M),
        AreaOption("bukit_indah", "Bukit Indah", _M),
        AreaOption("medini", "Medini", _P),
        AreaOption("puteri_harbour", "Puteri Harbour", _P),
        AreaOption("iskandar_puteri", "Iskandar Puteri", _P),
    ),
}


def get_areas_for_city(city: City) -> tuple[AreaOption, ...]:
    return AREAS_BY_CITY.get(City(city), ())


def get_area_label(city: City, area_key: str) -> str:
    """Display label, falling back to a title-cased key"""
    for area in get_areas_for_city(city):
        if area.key == area_key:
            return area.label
    return format_area_name(area_key)


def format_area_name(area_key: str) -> str:
    return " ".join(w.capitalize() for w in area_key.split("_"))

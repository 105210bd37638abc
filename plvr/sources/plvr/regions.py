# plvr/sources/plvr/regions.py
#
# Region codes: the single leading letter of every archive entry name.
from __future__ import annotations

REGIONS: dict[str, str] = {
    "a": "Taipei",
    "b": "Taichung",
    "c": "Keelung",
    "d": "Tainan",
    "e": "Kaohsiung",
    "f": "New Taipei",
    "g": "Yilan",
    "h": "Taoyuan",
    "i": "Chiayi",
    "j": "Hsinchu Country",
    "k": "Miaoli",
    "l": "Taichung Country",
    "m": "Nantou",
    "n": "Changhua",
    "o": "Hsinchu",
    "p": "Yunlin",
    "q": "Chiayi Country",
    "r": "Tainan County",
    "s": "Kaohsiung County",
    "t": "Pingtung",
    "u": "Hualien",
    "v": "Taitung",
    "w": "Kinmen",
    "x": "Penghu",
    "y": "Yangmingshan",
    "z": "Lianjiang",
}


def region_name(code: str) -> str:
    """English name for a region code; unknown codes are echoed back."""
    return REGIONS.get(code, code)

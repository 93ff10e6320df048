"""LibreLink Up regional API hosts."""

from typing import Dict

LLU_API_ENDPOINTS: Dict[str, str] = {
    "AE": "api-ae.libreview.io",
    "AP": "api-ap.libreview.io",
    "AU": "api-au.libreview.io",
    "CA": "api-ca.libreview.io",
    "CN": "api-cn.myfreestyle.cn",
    "DE": "api-de.libreview.io",
    "EU": "api-eu.libreview.io",
    "EU2": "api-eu2.libreview.io",
    "FR": "api-fr.libreview.io",
    "JP": "api-jp.libreview.io",
    "LA": "api-la.libreview.io",
    "RU": "api.libreview.ru",
    "US": "api-us.libreview.io",
}

DEFAULT_REGION = "EU"


def get_region_host(region: str) -> str:
    """Return the API host for *region*, raising ``KeyError`` for unknown keys."""
    return LLU_API_ENDPOINTS[region.upper()]

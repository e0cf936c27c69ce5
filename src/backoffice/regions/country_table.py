"""Static country → region table used by the regional fulfillment teams."""

from backoffice.regions.port import RegionResolver

REST_OF_WORLD = "XX"

_EU_COUNTRIES = {
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
    # Served by the EU team despite sitting outside the union
    "NO", "CH", "IS", "LI",
}  # fmt: skip

_SINGLE_COUNTRY_REGIONS = {
    "US": "US",
    "PR": "US",
    "GB": "UK",
    "UK": "UK",
    "IN": "IN",
    "CA": "CA",
    "AU": "AU",
    "NZ": "AU",
}


class CountryTableResolver(RegionResolver):
    """Resolves regions from a fixed table; unknown countries map to XX."""

    def __init__(self, overrides: dict | None = None):
        self._overrides = {k.upper(): v.upper() for k, v in (overrides or {}).items()}

    def country_to_region(self, country_code: str | None) -> str | None:
        if not country_code:
            return None
        code = country_code.strip().upper()
        if code in self._overrides:
            return self._overrides[code]
        if code in _SINGLE_COUNTRY_REGIONS:
            return _SINGLE_COUNTRY_REGIONS[code]
        if code in _EU_COUNTRIES:
            return "EU"
        return REST_OF_WORLD

"""Internal constants shared across the library."""

USER_AGENT = "Mozilla/5.0 (Compatible; FuelTracker/1.0)"

# ------------------------------------------------------------------
# DVSA MOT history (token-gated via OAuth client credentials)
# ------------------------------------------------------------------

DVSA_TOKEN_URL = "https://login.microsoftonline.com/a455b827-244f-4c97-b5b4-ce5d13b4d00c/oauth2/v2.0/token"
DVSA_SCOPE = "https://tapi.dvsa.gov.uk/.default"
MOT_HISTORY_URL = "https://history.mot.api.gov.uk/v1/trade/vehicles/registration"
MOT_ACCEPT = "application/json+v6"

#: Nominal lifetime of a DVSA access token, and how early we refresh it.
TOKEN_LIFETIME: float = 60 * 60
TOKEN_SAFETY_MARGIN: float = 5 * 60

# ------------------------------------------------------------------
# DVLA vehicle enquiry (tax / SORN status)
# ------------------------------------------------------------------

VES_URL = "https://driver-vehicle-licensing.api.gov.uk/vehicle-enquiry/v1/vehicles"

# ------------------------------------------------------------------
# Other single-source upstreams
# ------------------------------------------------------------------

TWILIO_BASE_URL = "https://api.twilio.com"
LOGO_DEV_SEARCH_URL = "https://api.logo.dev/search"

# ------------------------------------------------------------------
# Fan-out defaults
# ------------------------------------------------------------------

DEFAULT_SOURCE_TIMEOUT: float = 6.0
DEFAULT_SHAPE_KEYS: tuple[str, ...] = ("stations", "sites")
#: Fields a CORS relay uses to embed the upstream body as a JSON string.
ENVELOPE_KEYS: tuple[str, ...] = ("contents",)

FUEL_CACHE_KEY = "fuel-prices-aggregated-v9"
FUEL_CACHE_TTL: float = 60 * 60

# Earth radius in miles, used for nearby-station distances.
EARTH_RADIUS_MILES = 3958.8

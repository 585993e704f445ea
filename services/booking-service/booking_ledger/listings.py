from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from .config import LISTING_SERVICE_URL, LISTING_TIMEOUT
from .errors import ListingLookupError
from .log import get_logger, get_request_id

logger = get_logger(__name__)

_LISTING_PATHS = {"Room": "rooms", "Vehicle": "vehicles"}
_PRICE_KEYS = {"Room": "pricePerNight", "Vehicle": "pricePerDay"}


@dataclass(frozen=True)
class ListingSnapshot:
    listing_id: str
    listing_model: str
    owner_id: str
    title: str
    price: float
    images: List[str] = field(default_factory=list)

    @property
    def first_image(self) -> Optional[str]:
        return self.images[0] if self.images else None


def _owner_id(raw) -> str:
    # owner may come back as a bare id or populated as a user document
    if isinstance(raw, dict):
        raw = raw.get("_id") or raw.get("id")
    return str(raw) if raw is not None else ""


def parse_listing(listing_model: str, payload: dict, listing_id: str = "") -> ListingSnapshot:
    data = payload.get("data") if isinstance(payload.get("data"), dict) else payload
    price = data.get(_PRICE_KEYS[listing_model])
    if price is None:
        price = data.get("price") or 0
    return ListingSnapshot(
        listing_id=str(data.get("_id") or data.get("id") or listing_id),
        listing_model=listing_model,
        owner_id=_owner_id(data.get("owner")),
        title=data.get("title") or "",
        price=float(price),
        images=[str(i) for i in (data.get("images") or []) if i],
    )


class ListingClient:
    """Read-only lookups against the listing service.

    Disabled when LISTING_SERVICE_URL is not set; lookups then return None
    and the booking keeps whatever snapshot the caller sent.
    """

    def __init__(
        self,
        base_url: Optional[str] = LISTING_SERVICE_URL,
        timeout: float = LISTING_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.transport = transport
        self.enabled = bool(base_url)

    async def lookup(self, listing_id: str, listing_model: str) -> Optional[ListingSnapshot]:
        if not self.enabled:
            return None

        path = _LISTING_PATHS.get(listing_model)
        if path is None:
            return None

        url = f"{self.base_url}/{path}/{listing_id}"
        headers = {}
        request_id = get_request_id()
        if request_id:
            headers["X-Request-Id"] = request_id

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, headers=headers)
                if resp.status_code == 404:
                    return None
                resp.raise_for_status()
                snapshot = parse_listing(listing_model, resp.json(), listing_id)
        except httpx.TimeoutException:
            logger.warning(f"Timeout looking up listing {listing_id}")
            raise ListingLookupError(f"Timeout calling listing service: {url}", code="listing_timeout")
        except httpx.HTTPStatusError as e:
            raise ListingLookupError(
                f"Listing service responded {e.response.status_code}",
                code="listing_upstream",
            )
        except (httpx.HTTPError, ValueError, TypeError, AttributeError, KeyError) as e:
            logger.warning(f"Listing lookup failed for {listing_id}: {e}")
            raise ListingLookupError(f"Bad gateway calling listing service: {url}", code="listing_upstream")

        return snapshot


listing_client = ListingClient()


def get_listing_client() -> ListingClient:
    return listing_client

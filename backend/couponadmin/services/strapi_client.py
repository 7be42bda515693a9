"""Async client for the Strapi coupon and merchant collections."""
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from couponadmin.core.config import Settings, get_settings
from couponadmin.exceptions import RecordNotFoundError, StoreError, UnauthorizedError
from couponadmin.models.coupons import (
    Coupon,
    CouponCreate,
    CouponFilters,
    CouponUpdate,
    Merchant,
)


logger = logging.getLogger(__name__)


def _unwrap(entity: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a v4 ``{id, attributes}`` entity; v5 entities are already flat."""
    if "attributes" in entity and isinstance(entity["attributes"], dict):
        data = dict(entity["attributes"])
        data.setdefault("documentId", entity.get("documentId") or entity.get("id"))
        return data
    return entity


def _parse_merchant(raw: Optional[Dict[str, Any]]) -> Optional[Merchant]:
    if not raw:
        return None
    if "data" in raw:
        raw = raw["data"]
        if not raw:
            return None
    data = _unwrap(raw)
    document_id = data.get("documentId") or data.get("id")
    if document_id is None:
        return None
    return Merchant(document_id=str(document_id), name=data.get("name") or "", slug=data.get("slug"))


def _parse_coupon(raw: Dict[str, Any]) -> Coupon:
    """Convert a Strapi coupon entity to the domain model."""
    data = _unwrap(raw)
    document_id = data.get("documentId") or data.get("id")
    if document_id is None:
        raise StoreError("Coupon entity without documentId")
    document_id = str(document_id)

    return Coupon(
        document_id=document_id,
        coupon_uid=data.get("coupon_uid") or document_id,
        merchant=_parse_merchant(data.get("merchant")),
        market=data.get("market"),
        coupon_title=data.get("coupon_title") or "",
        value=data.get("value"),
        code=data.get("code"),
        coupon_type=data.get("coupon_type"),
        affiliate_link=data.get("affiliate_link"),
        description=data.get("description"),
        editor_tips=data.get("editor_tips"),
        priority=data.get("priority"),
        starts_at=data.get("starts_at") or None,
        expires_at=data.get("expires_at") or None,
        coupon_status=data.get("coupon_status"),
        user_count=data.get("user_count"),
        display_count=data.get("display_count"),
        last_click_at=data.get("last_click_at") or None,
        site=data.get("site"),
        created_at=data.get("createdAt") or None,
        updated_at=data.get("updatedAt") or None,
    )


def _filter_params(filters: Optional[CouponFilters]) -> List[Tuple[str, str]]:
    if filters is None:
        return []
    params: List[Tuple[str, str]] = []
    if filters.q:
        params.append(("filters[$or][0][coupon_title][$containsi]", filters.q))
        params.append(("filters[$or][1][description][$containsi]", filters.q))
    if filters.merchant:
        params.append(("filters[merchant][name][$containsi]", filters.merchant))
    if filters.market:
        params.append(("filters[market][$eq]", filters.market))
    if filters.site:
        params.append(("filters[site][$eq]", filters.site))
    if filters.coupon_status:
        params.append(("filters[coupon_status][$eq]", filters.coupon_status.value))
    return params


def _to_strapi_data(fields: Dict[str, Any]) -> Dict[str, Any]:
    data = dict(fields)
    if data.get("merchant") is not None:
        data["merchant"] = {"connect": [data["merchant"]]}
    return {"data": data}


class StrapiCouponStore:
    """Record store backed by the Strapi REST API."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self.base_url = self.settings.strapi_url
        self.token = self.settings.strapi_token
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.settings.strapi_timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        try:
            async with self._client() as client:
                response = await client.request(method, path, params=params, json=json)
        except httpx.HTTPError as exc:
            raise StoreError(f"{method} {path} failed: {exc}") from exc

        if response.status_code in (401, 403):
            raise UnauthorizedError(
                _error_message(response) or "Unauthorized - check API token permissions",
                response.status_code,
            )
        if response.status_code == 404:
            raise RecordNotFoundError(_error_message(response) or "Not found", 404)
        if response.is_error:
            raise StoreError(
                _error_message(response) or f"HTTP {response.status_code}",
                response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None
        if "application/json" not in response.headers.get("content-type", ""):
            return None
        return response.json()

    async def list_coupons(self, filters: Optional[CouponFilters] = None) -> List[Coupon]:
        """List coupons in stored display order (priority, then id)."""
        direction = "desc" if self.settings.top_priority_highest else "asc"
        params = [
            ("populate[merchant]", "*"),
            ("sort[0]", f"priority:{direction}"),
            ("sort[1]", "documentId:asc"),
            ("pagination[pageSize]", str(self.settings.strapi_page_size)),
        ]
        params.extend(_filter_params(filters))

        payload = await self._request("GET", "/api/coupons", params=params)
        entities = (payload or {}).get("data") or []
        return [_parse_coupon(entity) for entity in entities]

    async def get_coupon(self, document_id: str) -> Coupon:
        payload = await self._request(
            "GET", f"/api/coupons/{document_id}", params=[("populate[merchant]", "*")]
        )
        if not payload or not payload.get("data"):
            raise RecordNotFoundError(f"Coupon {document_id} not found", 404)
        return _parse_coupon(payload["data"])

    async def create_coupon(self, data: CouponCreate) -> Coupon:
        fields = data.model_dump(exclude_none=True, mode="json")
        payload = await self._request("POST", "/api/coupons", json=_to_strapi_data(fields))
        if not payload or not payload.get("data"):
            raise StoreError("Failed to create coupon")
        logger.info("Created coupon %s", payload["data"].get("documentId"))
        return _parse_coupon(payload["data"])

    async def update_coupon(self, document_id: str, patch: CouponUpdate) -> Coupon:
        """Apply a partial update to one coupon and return the stored record."""
        fields = patch.model_dump(exclude_unset=True, mode="json")
        payload = await self._request(
            "PUT", f"/api/coupons/{document_id}", json=_to_strapi_data(fields)
        )
        if not payload or not payload.get("data"):
            raise StoreError(f"Empty response updating coupon {document_id}")
        return _parse_coupon(payload["data"])

    async def delete_coupon(self, document_id: str) -> None:
        await self._request("DELETE", f"/api/coupons/{document_id}")
        logger.info("Deleted coupon %s", document_id)

    async def list_merchants(self) -> List[Merchant]:
        params = [
            ("sort", "name:asc"),
            ("pagination[pageSize]", str(self.settings.strapi_page_size)),
        ]
        payload = await self._request("GET", "/api/merchants", params=params)
        entities = (payload or {}).get("data") or []
        merchants = []
        for entity in entities:
            merchant = _parse_merchant(entity)
            if merchant is not None:
                merchants.append(merchant)
        return merchants


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return response.text or None
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return error["message"]
    return None

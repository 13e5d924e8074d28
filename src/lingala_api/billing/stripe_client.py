"""
lingala_api.billing.stripe_client

Minimal async Stripe REST client.

Responsibilities:
- Encode nested parameters the way the Stripe API expects (`a[b][0][c]=v`).
- Find-or-create customers by email and create/retrieve checkout sessions.
- Convert transport and provider errors into `UpstreamFailure` at this boundary.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from lingala_api.errors import UpstreamFailure
from lingala_api.settings import Settings

PRODUCT_NAME = "Lingala Learning Platform - Monthly Subscription"
PRODUCT_DESCRIPTION = "Full access to all courses and learning materials for one month"


class BillingError(Exception):
    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code


@dataclass(frozen=True, slots=True)
class CheckoutSession:
    id: str
    url: str | None
    payment_status: str | None
    metadata: dict[str, str]


def encode_params(params: Mapping[str, Any], prefix: str = "") -> list[tuple[str, str]]:
    """Flatten nested dicts/lists into Stripe's bracketed form fields."""
    pairs: list[tuple[str, str]] = []
    for key, value in params.items():
        name = f"{prefix}[{key}]" if prefix else str(key)
        if value is None:
            continue
        if isinstance(value, Mapping):
            pairs.extend(encode_params(value, name))
        elif isinstance(value, list | tuple):
            for i, item in enumerate(value):
                item_name = f"{name}[{i}]"
                if isinstance(item, Mapping):
                    pairs.extend(encode_params(item, item_name))
                else:
                    pairs.append((item_name, _scalar(item)))
        else:
            pairs.append((name, _scalar(value)))
    return pairs


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_http_client(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.stripe_api_base,
        headers={"Authorization": f"Bearer {settings.stripe_secret_key}"},
        timeout=30.0,
        transport=transport,
    )


class StripeClient:
    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        form: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._http.request(
                method,
                path,
                params=encode_params(params) if params else None,
                data=dict(encode_params(form)) if form else None,
            )
            if response.is_error:
                error = _error_body(response)
                raise BillingError(
                    error.get("message") or f"Stripe request failed ({response.status_code})",
                    status_code=response.status_code,
                    code=error.get("code"),
                )
            return response.json()
        except (httpx.HTTPError, BillingError, ValueError) as e:
            raise UpstreamFailure("Payment provider request failed") from e

    async def find_or_create_customer(self, *, email: str, name: str | None, user_id: str) -> str:
        found = await self._request("GET", "/customers", params={"email": email, "limit": 1})
        data = found.get("data") or []
        if data:
            return str(data[0].get("id", ""))
        created = await self._request(
            "POST",
            "/customers",
            form={"email": email, "name": name, "metadata": {"userId": user_id}},
        )
        return str(created.get("id", ""))

    async def create_subscription_checkout(
        self, *, customer_id: str, course_id: int, user_id: str
    ) -> CheckoutSession:
        s = self._settings
        form = {
            "customer": customer_id,
            "mode": "subscription",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": s.subscription_currency,
                        "product_data": {"name": PRODUCT_NAME, "description": PRODUCT_DESCRIPTION},
                        "unit_amount": s.subscription_price_cents,
                        "recurring": {"interval": "month"},
                    },
                    "quantity": 1,
                }
            ],
            "success_url": f"{s.app_url}/dashboard/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{s.app_url}/courses/{course_id}",
            "metadata": {"courseId": str(course_id), "userId": user_id},
            "subscription_data": {
                "metadata": {"userId": user_id, "planType": s.subscription_plan_type},
            },
        }
        return _checkout_session(await self._request("POST", "/checkout/sessions", form=form))

    async def retrieve_checkout(self, session_id: str) -> CheckoutSession:
        return _checkout_session(await self._request("GET", f"/checkout/sessions/{session_id}"))


def _checkout_session(body: dict[str, Any]) -> CheckoutSession:
    metadata = body.get("metadata") or {}
    return CheckoutSession(
        id=str(body.get("id", "")),
        url=body.get("url"),
        payment_status=body.get("payment_status"),
        metadata={str(k): str(v) for k, v in metadata.items()},
    )


def _error_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    error = body.get("error") if isinstance(body, dict) else None
    return error if isinstance(error, dict) else {}


# --- Module Notes -----------------------------------------------------------
# The underlying `httpx.AsyncClient` is owned by the app (created on startup,
# closed on shutdown); tests swap its transport for `httpx.MockTransport`.

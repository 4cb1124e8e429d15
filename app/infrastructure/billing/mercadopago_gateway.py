"""
Adapter: Mercado Pago payment gateway.

Implements PaymentGateway port against the Mercado Pago REST API with a
synchronous httpx client authenticated by the account access token.
"""

import logging
from typing import Any, Optional

import httpx

from app.domain.billing.entities import CheckoutPreference, GatewayPayment, PaymentStatus
from app.domain.billing.errors import PaymentGatewayError
from app.domain.billing.ports import PaymentGateway

logger = logging.getLogger(__name__)


def _to_gateway_payment(data: dict[str, Any]) -> GatewayPayment:
    payer = data.get("payer") or {}
    return GatewayPayment(
        id=str(data["id"]),
        status=PaymentStatus.parse(data.get("status")),
        external_reference=data.get("external_reference") or "",
        amount=float(data.get("transaction_amount") or 0),
        currency=data.get("currency_id") or "ARS",
        payer_email=payer.get("email") or "",
        payment_method_id=data.get("payment_method_id") or "",
        payment_type_id=data.get("payment_type_id") or "",
        installments=int(data.get("installments") or 1),
        status_detail=data.get("status_detail") or "",
    )


class MercadoPagoGateway(PaymentGateway):
    """Checkout preferences, payment lookups and merchant orders."""

    def __init__(
        self,
        access_token: Optional[str],
        api_url: str = "https://api.mercadopago.com",
        notification_url: Optional[str] = None,
        timeout: float = 15.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._access_token = access_token
        self._notification_url = notification_url
        self._client = client or httpx.Client(base_url=api_url, timeout=timeout)

    def _headers(self) -> dict[str, str]:
        if not self._access_token:
            raise PaymentGatewayError("access token not configured")
        return {"Authorization": f"Bearer {self._access_token}"}

    def create_preference(
        self,
        title: str,
        amount: float,
        currency: str,
        external_reference: str,
        payer_email: str,
        back_urls: dict[str, str],
        metadata: Optional[dict[str, Any]] = None,
    ) -> CheckoutPreference:
        """Create a hosted checkout preference.

        Args:
            title: Item title shown on the checkout page.
            amount: Unit price.
            currency: ISO currency code.
            external_reference: Reference echoed back in payment notifications.
            payer_email: Prefilled payer email.
            back_urls: success, failure and pending return URLs.
            metadata: Extra key/values stored with the preference.

        Returns:
            CheckoutPreference with the redirect URLs.

        Raises:
            PaymentGatewayError: If the token is missing or the request fails.
        """
        body: dict[str, Any] = {
            "items": [
                {
                    "title": title,
                    "quantity": 1,
                    "unit_price": amount,
                    "currency_id": currency,
                }
            ],
            "payer": {"email": payer_email},
            "external_reference": external_reference,
            "back_urls": back_urls,
            "auto_return": "approved",
            "metadata": metadata or {},
        }
        if self._notification_url:
            body["notification_url"] = self._notification_url

        try:
            resp = self._client.post("/checkout/preferences", json=body, headers=self._headers())
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Preference creation rejected for %s: HTTP %s",
                external_reference,
                exc.response.status_code,
            )
            raise PaymentGatewayError(f"preference rejected ({exc.response.status_code})") from exc
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Preference creation failed for %s: %s", external_reference, exc)
            raise PaymentGatewayError("preference request failed") from exc

        return CheckoutPreference(
            preference_id=str(data["id"]),
            init_point=data.get("init_point", ""),
            sandbox_init_point=data.get("sandbox_init_point", ""),
        )

    def get_payment(self, payment_id: str) -> Optional[GatewayPayment]:
        """Fetch a payment; None when it is missing or the lookup fails."""
        try:
            resp = self._client.get(f"/v1/payments/{payment_id}", headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Payment lookup %s failed: %s", payment_id, exc)
            return None
        if resp.status_code == 404:
            return None
        if resp.status_code != 200:
            logger.warning("Payment lookup %s returned HTTP %s", payment_id, resp.status_code)
            return None
        return _to_gateway_payment(resp.json())

    def get_merchant_order_payment_id(self, merchant_order_id: str) -> Optional[str]:
        """Pick the approved payment of a merchant order, else its first one.

        Returns:
            The payment id, or None while the order has no payments.

        Raises:
            PaymentGatewayError: If the order cannot be fetched.
        """
        try:
            resp = self._client.get(
                f"/merchant_orders/{merchant_order_id}", headers=self._headers()
            )
            resp.raise_for_status()
            order = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("Merchant order %s lookup failed: %s", merchant_order_id, exc)
            raise PaymentGatewayError(f"merchant order {merchant_order_id} unavailable") from exc

        payments = order.get("payments") or []
        chosen = next((p for p in payments if p.get("status") == "approved"), None)
        if chosen is None and payments:
            chosen = payments[0]
        return str(chosen["id"]) if chosen and chosen.get("id") else None

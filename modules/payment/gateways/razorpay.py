"""
Razorpay Gateway
=================
Orders API over REST/JSON (basic auth with key id/secret). Payment happens
in Razorpay's checkout widget; the callback carries a signature that is an
HMAC-SHA256 of "<razorpay_order_id>|<razorpay_payment_id>".
"""

import hashlib
import hmac
import httpx
import logging
from typing import Dict, Any

from config.settings import RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET, CURRENCY
from modules.payment.gateways import (
    BaseGateway, GatewayPaymentRequest, GatewayCreateResult,
    GatewayVerifyResult, register_gateway,
)

logger = logging.getLogger("evo.gateway.razorpay")

RAZORPAY_ORDERS_URL = "https://api.razorpay.com/v1/orders"


def razorpay_signature(order_id: str, payment_id: str, secret: str = None) -> str:
    secret = RAZORPAY_KEY_SECRET if secret is None else secret
    message = f"{order_id}|{payment_id}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


class RazorpayGateway(BaseGateway):
    name = "razorpay"
    label = "Razorpay (UPI / Cards)"

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        try:
            resp = httpx.post(RAZORPAY_ORDERS_URL, json={
                "amount": req.amount_paise,
                "currency": CURRENCY,
                "receipt": req.order_ref,
                "notes": {"order_id": req.order_ref},
            }, auth=(RAZORPAY_KEY_ID, RAZORPAY_KEY_SECRET), timeout=15)
            data = resp.json()
            logger.info(f"Razorpay create [{req.order_ref}]: {data}")

            if resp.status_code == 200 and data.get("id"):
                return GatewayCreateResult(
                    success=True,
                    track_id=data["id"],
                    client_payload={
                        "key": RAZORPAY_KEY_ID,
                        "order_id": data["id"],
                        "amount": req.amount_paise,
                        "currency": CURRENCY,
                        "description": req.description,
                        "callback_url": req.callback_url,
                        "prefill": {"email": req.email},
                    },
                )
            else:
                msg = (data.get("error") or {}).get("description") or f"HTTP {resp.status_code}"
                return GatewayCreateResult(success=False, error_message=f"Payment gateway error: {msg}")

        except httpx.TimeoutException:
            return GatewayCreateResult(success=False, error_message="Payment gateway did not respond. Please try again.")
        except Exception as e:
            logger.error(f"Razorpay create failed: {e}")
            return GatewayCreateResult(success=False, error_message=f"Could not reach payment gateway: {e}")

    def verify_payment(self, params: Dict[str, Any]) -> GatewayVerifyResult:
        order_id = params.get("razorpay_order_id", "")
        payment_id = params.get("razorpay_payment_id", "")
        signature = params.get("razorpay_signature", "")

        if not (order_id and payment_id and signature):
            return GatewayVerifyResult(success=False, error_message="Incomplete payment callback")

        expected_track_id = params.get("expected_track_id")
        if not expected_track_id:
            logger.warning(f"Razorpay callback for {order_id} on an order with no gateway order")
            return GatewayVerifyResult(success=False, error_message="Payment does not belong to this order")
        if expected_track_id != order_id:
            logger.warning(f"Razorpay order mismatch: expected {expected_track_id}, got {order_id}")
            return GatewayVerifyResult(success=False, error_message="Payment does not belong to this order")

        if not hmac.compare_digest(razorpay_signature(order_id, payment_id), signature):
            logger.warning(f"Razorpay signature verification failed for {order_id}")
            return GatewayVerifyResult(success=False, error_message="Payment verification failed")

        return GatewayVerifyResult(success=True, ref_number=payment_id)


register_gateway(RazorpayGateway())

"""
PhonePe Gateway
================
Pay-page flow. Requests are a base64 JSON payload signed with
X-VERIFY = sha256(payload + endpoint + salt) + "###" + salt_index.
Callbacks are signed as sha256(response + salt) + "###" + salt_index.
"""

import base64
import hashlib
import hmac
import json
import httpx
import logging
from typing import Dict, Any

from common.helpers import safe_int
from config.settings import (
    PHONEPE_MERCHANT_ID, PHONEPE_SALT_KEY, PHONEPE_SALT_INDEX, PHONEPE_HOST,
)
from modules.payment.gateways import (
    BaseGateway, GatewayPaymentRequest, GatewayCreateResult,
    GatewayVerifyResult, register_gateway,
)

logger = logging.getLogger("evo.gateway.phonepe")

PAY_ENDPOINT = "/pg/v1/pay"


def _checksum(text: str) -> str:
    digest = hashlib.sha256((text + PHONEPE_SALT_KEY).encode()).hexdigest()
    return f"{digest}###{PHONEPE_SALT_INDEX}"


def request_checksum(payload: str) -> str:
    return _checksum(payload + PAY_ENDPOINT)


def callback_checksum(response: str) -> str:
    return _checksum(response)


class PhonePeGateway(BaseGateway):
    name = "phonepe"
    label = "PhonePe"

    def create_payment(self, req: GatewayPaymentRequest) -> GatewayCreateResult:
        transaction_id = f"MT-{req.order_ref}"
        body = {
            "merchantId": PHONEPE_MERCHANT_ID,
            "merchantTransactionId": transaction_id,
            "merchantUserId": f"MUID-{req.order_ref}",
            "amount": req.amount_paise,
            "redirectUrl": req.callback_url,
            "redirectMode": "POST",
            "callbackUrl": req.callback_url,
            "paymentInstrument": {"type": "PAY_PAGE"},
        }
        payload = base64.b64encode(json.dumps(body).encode()).decode()

        try:
            resp = httpx.post(
                f"{PHONEPE_HOST}{PAY_ENDPOINT}",
                json={"request": payload},
                headers={"Content-Type": "application/json", "X-VERIFY": request_checksum(payload)},
                timeout=15,
            )
            data = resp.json()
            logger.info(f"PhonePe create [{req.order_ref}]: success={data.get('success')} code={data.get('code')}")

            if data.get("success"):
                redirect = (
                    (data.get("data") or {})
                    .get("instrumentResponse", {})
                    .get("redirectInfo", {})
                    .get("url")
                )
                if redirect:
                    return GatewayCreateResult(success=True, redirect_url=redirect, track_id=transaction_id)
            msg = data.get("message") or f"code {data.get('code')}"
            return GatewayCreateResult(success=False, error_message=f"PhonePe payment initiation failed: {msg}")

        except httpx.TimeoutException:
            return GatewayCreateResult(success=False, error_message="Payment gateway did not respond. Please try again.")
        except Exception as e:
            logger.error(f"PhonePe create failed: {e}")
            return GatewayCreateResult(success=False, error_message=f"Could not reach payment gateway: {e}")

    def verify_payment(self, params: Dict[str, Any]) -> GatewayVerifyResult:
        response = params.get("response") or ""
        received = params.get("x_verify") or ""
        if not response:
            return GatewayVerifyResult(success=False, error_message="Invalid callback data")

        if not hmac.compare_digest(callback_checksum(response), received):
            logger.warning("PhonePe checksum mismatch")
            return GatewayVerifyResult(success=False, error_message="Checksum mismatch")

        try:
            decoded = json.loads(base64.b64decode(response).decode("utf-8"))
        except (ValueError, UnicodeDecodeError) as e:
            logger.warning(f"PhonePe callback undecodable: {e}")
            return GatewayVerifyResult(success=False, error_message="Invalid callback data")

        data = decoded.get("data") or {}
        if data.get("merchantId") != PHONEPE_MERCHANT_ID:
            logger.warning(f"PhonePe merchant mismatch: {data.get('merchantId')}")
            return GatewayVerifyResult(success=False, error_message="Merchant ID mismatch")

        # The callback must be for the transaction and amount this order started
        expected_track_id = params.get("expected_track_id")
        if not expected_track_id or data.get("merchantTransactionId") != expected_track_id:
            logger.warning(f"PhonePe transaction mismatch: expected {expected_track_id}, got {data.get('merchantTransactionId')}")
            return GatewayVerifyResult(success=False, error_message="Payment does not belong to this order")
        expected_amount = params.get("expected_amount")
        if expected_amount is not None and safe_int(data.get("amount")) != expected_amount:
            logger.warning(f"PhonePe amount mismatch for {expected_track_id}: {data.get('amount')} != {expected_amount}")
            return GatewayVerifyResult(success=False, error_message="Payment amount does not match the order")

        state = data.get("state")
        transaction_id = data.get("transactionId") or data.get("merchantTransactionId")
        if state == "COMPLETED":
            return GatewayVerifyResult(success=True, ref_number=transaction_id)
        if state == "FAILED":
            return GatewayVerifyResult(
                success=False, declined=True, error_message="Payment failed at PhonePe",
            )
        return GatewayVerifyResult(success=False, pending=True, error_message="Payment is still pending")


register_gateway(PhonePeGateway())

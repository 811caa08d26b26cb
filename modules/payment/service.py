"""
Payment Service
=================
Multi-gateway support (Razorpay, PhonePe).
Enabled gateways come from the ENABLED_GATEWAYS setting.
"""

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, List

from sqlalchemy.orm import Session

from config.settings import BASE_URL, ENABLED_GATEWAYS
from modules.order.models import Order, OrderStatus
from modules.order.service import order_service

# Import gateway modules to trigger register_gateway() calls
from modules.payment.gateways import get_gateway, get_all_gateway_names, GatewayPaymentRequest
import modules.payment.gateways.razorpay  # noqa: F401
import modules.payment.gateways.phonepe   # noqa: F401

logger = logging.getLogger("evo.payment")


def to_paise(amount) -> int:
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class PaymentService:

    # ==========================================
    # 🔧 Gateway Selection
    # ==========================================

    def get_enabled_gateways(self) -> List[str]:
        """Configured gateways that are also registered, in settings order."""
        registered = get_all_gateway_names()
        return [g.strip() for g in ENABLED_GATEWAYS.split(",") if g.strip() in registered]

    def list_gateways(self) -> List[Dict[str, str]]:
        return [{"name": n, "label": get_gateway(n).label} for n in self.get_enabled_gateways()]

    # ==========================================
    # 🏦 Gateway Payment (generic)
    # ==========================================

    def create_gateway_payment(self, db: Session, order_id: str, gateway_name: str = "") -> Dict[str, Any]:
        """Start a payment for a Pending order on the chosen gateway."""
        order = db.query(Order).filter(Order.id == order_id).first()
        if not order or order.status != OrderStatus.PENDING:
            return {"success": False, "message": "This order cannot be paid"}

        gateway_name = gateway_name or order.payment_method
        if gateway_name not in self.get_enabled_gateways():
            return {"success": False, "message": "Please choose a valid payment method"}

        gw = get_gateway(gateway_name)
        if not gw:
            return {"success": False, "message": f"Payment gateway {gateway_name} is not available"}

        callback_url = f"{BASE_URL}/api/payment/{gateway_name}/callback?order_id={order.id}"
        result = gw.create_payment(GatewayPaymentRequest(
            amount_paise=to_paise(order.total),
            callback_url=callback_url,
            description=f"Evo order {order.id}",
            order_ref=order.id,
            email=order.customer_email,
        ))
        if result.success:
            order.track_id = result.track_id
            order.payment_method = gateway_name
            db.flush()
            logger.info(f"Payment started for order {order.id} on {gateway_name} (track {result.track_id})")
            return {
                "success": True,
                "gateway": gateway_name,
                "redirect_url": result.redirect_url,
                "payload": result.client_payload,
            }
        logger.warning(f"Payment start failed for order {order.id} on {gateway_name}: {result.error_message}")
        return {"success": False, "message": result.error_message}

    def verify_gateway_callback(
        self, db: Session, gateway_name: str, params: Dict[str, Any], order_id: str
    ) -> Dict[str, Any]:
        """Verify callback from any gateway."""
        order = db.query(Order).filter(Order.id == order_id).with_for_update().first()
        if not order:
            return {"success": False, "message": "Order not found"}
        if order.status != OrderStatus.PENDING:
            # Already processed (double callback protection)
            if order.status == OrderStatus.CANCELLED:
                return {"success": False, "message": "This order was cancelled"}
            return {"success": True, "message": "This order has already been paid"}

        gw = get_gateway(gateway_name)
        if not gw:
            return {"success": False, "message": f"Unknown payment gateway {gateway_name}"}

        # The callback must name the gateway transaction and amount this order started
        params["expected_track_id"] = order.track_id
        params["expected_amount"] = to_paise(order.total)

        result = gw.verify_payment(params)

        if result.success:
            finalized = order_service.finalize_order(db, order.id, payment_ref=result.ref_number)
            if finalized:
                return {"success": True, "message": f"Payment successful. Reference: {result.ref_number}"}
            return {"success": False, "message": "Could not finalize the order"}

        if result.pending:
            return {"success": False, "pending": True, "message": result.error_message}

        if result.declined:
            order_service.cancel_order(db, order.id, reason=f"Payment failed ({gateway_name})")

        logger.warning(f"Payment callback rejected for order {order.id} on {gateway_name}: {result.error_message}")
        return {"success": False, "message": result.error_message}


payment_service = PaymentService()

# maxpulse_backend/services/purchase_service.py
"""
Purchase processing for the MaxPulse backend.
A purchase writes three rows in one transaction (purchase, pending commission,
pending ledger line) and then notifies dashboards.
"""

from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.models.distributor import Distributor, Product
from maxpulse_backend.models.commission import Purchase, Commission, LedgerTransaction
from maxpulse_backend.schemas.commission import ProcessPurchaseData
from maxpulse_backend.services.commission_calculator import (
    calculate_commission_amount,
    validate_commission_input,
    validate_commission_rules,
)
from maxpulse_backend.services.commission_service import CommissionService
from maxpulse_backend.services.realtime_service import RealtimeService, COMMISSION_UPDATES
from maxpulse_backend.utils.error_handling import handle_exception
from maxpulse_backend.utils.helpers import parse_uuid, quantize_money, quantize_rate

logger = get_logger(__name__)

# Catalog used when a product is not stored in the products table
DEFAULT_PRODUCTS: Dict[str, Dict[str, Any]] = {
    "prod_health_001": {
        "name": "MaxPulse Health Assessment Package",
        "price": 89.99,
        "commission_rate": 15,
        "product_type": "product",
    },
    "prod_app_001": {
        "name": "MaxPulse App Subscription",
        "price": 29.99,
        "commission_rate": 25,
        "product_type": "app",
    },
    "prod_package_001": {
        "name": "Complete Wellness Transformation",
        "price": 299.99,
        "commission_rate": 35,
        "product_type": "package",
    },
    "prod_wellness_001": {
        "name": "Wellness Coaching Package",
        "price": 149.99,
        "commission_rate": 20,
        "product_type": "package",
    },
}

REQUIRED_PURCHASE_FIELDS = (
    "distributor_id",
    "product_id",
    "product_name",
    "price",
    "commission_rate",
    "client_name",
    "session_id",
)


class PurchaseService:
    """Purchase -> commission creation"""

    @staticmethod
    def resolve_product(db: Session, product_id: str) -> Optional[Dict[str, Any]]:
        """
        Product from the table if present, otherwise from DEFAULT_PRODUCTS.
        """
        product = db.query(Product).filter(
            Product.id == product_id,
            Product.is_active == True
        ).first()

        if product:
            return {
                "id": product.id,
                "name": product.name,
                "price": float(product.price),
                "commission_rate": float(product.commission_rate),
                "product_type": product.product_type,
            }

        default = DEFAULT_PRODUCTS.get(product_id)
        if default:
            return {"id": product_id, **default}
        return None

    @staticmethod
    def get_product_catalog(db: Session) -> List[Dict[str, Any]]:
        """
        Active stored products followed by defaults not overridden in the table.
        """
        stored = db.query(Product).filter(Product.is_active == True).order_by(Product.price.asc()).all()
        catalog = [product.to_dict() for product in stored]
        stored_ids = {product.id for product in stored}

        for product_id, default in DEFAULT_PRODUCTS.items():
            if product_id not in stored_ids:
                catalog.append({"id": product_id, "is_active": True, **default})
        return catalog

    @staticmethod
    async def process_purchase(db: Session, data: ProcessPurchaseData) -> Dict[str, Any]:
        """
        Record a purchase and its pending commission.

        The request rate, rounded to two places, is snapshotted onto the
        commission; tier bonuses are only applied by calculate_commission.
        """
        payload = data.model_dump()

        logger.info("=" * 60)
        logger.info("🛒 PROCESSING PURCHASE")
        logger.info(f"   Distributor: {data.distributor_id}")
        logger.info(f"   Product: {data.product_id} ({data.product_name})")
        logger.info(f"   Price: {data.price}, rate: {data.commission_rate}%")
        logger.info("=" * 60)

        # STEP 1: input validation
        try:
            validate_commission_input(payload, required_fields=REQUIRED_PURCHASE_FIELDS)
            validate_commission_rules(data.price, data.commission_rate)
        except ValueError as e:
            logger.warning(f"❌ STEP 1 FAILED: {e}")
            raise HTTPException(status.HTTP_400_BAD_REQUEST, str(e))

        # STEP 2: distributor
        distributor = db.query(Distributor).filter(
            Distributor.id == parse_uuid(data.distributor_id, "distributorId")
        ).first()
        if not distributor:
            logger.warning(f"❌ STEP 2 FAILED: distributor {data.distributor_id} not found")
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Distributor not found")

        # STEP 3: product
        product = PurchaseService.resolve_product(db, data.product_id)
        if not product:
            logger.info(f"ℹ️ STEP 3: product {data.product_id} not in catalog, using request values")
        product_type = data.product_type or (product["product_type"] if product else "product")

        price = quantize_money(data.price)
        # Rounded to the stored precision so the snapshot reproduces the amount
        rate = quantize_rate(data.commission_rate)
        commission_amount = calculate_commission_amount(price, rate)
        logger.info(f"💰 STEP 4: commission {price} x {rate}% = {commission_amount}")

        # STEP 5: persist all three rows together
        try:
            purchase = Purchase(
                distributor_id=distributor.id,
                product_id=data.product_id,
                product_name=data.product_name,
                product_type=product_type,
                price=price,
                commission_rate=rate,
                client_name=data.client_name,
                client_email=data.client_email,
                session_id=data.session_id,
                status="completed"
            )
            commission = Commission(
                distributor_id=distributor.id,
                product_id=data.product_id,
                product_name=data.product_name,
                product_type=product_type,
                client_name=data.client_name,
                client_email=data.client_email,
                sale_amount=price,
                commission_rate=rate,
                commission_amount=commission_amount,
                status="pending",
                session_id=data.session_id
            )
            db.add(purchase)
            db.add(commission)
            db.flush()

            db.add(LedgerTransaction(
                distributor_id=distributor.id,
                transaction_type="commission_earned",
                amount=commission_amount,
                status="pending",
                reference_id=commission.id,
                description=f"Commission for {data.product_name} sale to {data.client_name}"
            ))

            db.commit()
            db.refresh(purchase)
            db.refresh(commission)

        except Exception as e:
            db.rollback()
            logger.error(f"❌ STEP 5 FAILED: {e}", exc_info=True)
            raise handle_exception(e, "Error processing purchase", detail="Purchase failed. Please try again.")

        logger.info(f"✅ Purchase {purchase.id} recorded, commission {commission.id} pending")

        purchase_data = purchase.to_dict()
        commission_data = commission.to_dict()

        # STEP 6: best-effort notifications, never fail the purchase
        await RealtimeService.broadcast(COMMISSION_UPDATES, "commission_created", {
            "commission": commission_data,
            "distributor_code": distributor.distributor_code,
        }, db)
        CommissionService.log_commission_activity(db, distributor.id, "commission_created", {
            "commission_id": commission_data["id"],
            "purchase_id": purchase_data["id"],
            "amount": commission_data["commission_amount"],
        })

        return {"success": True, "purchase": purchase_data, "commission": commission_data}

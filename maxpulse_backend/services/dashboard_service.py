# maxpulse_backend/services/dashboard_service.py
"""
Read-only aggregates for the distributor and admin dashboards.
"""

import uuid
from datetime import timedelta
from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from maxpulse_backend.core.logging import get_logger
from maxpulse_backend.models.distributor import Distributor
from maxpulse_backend.models.base import utcnow
from maxpulse_backend.models.commission import Purchase, Commission, Withdrawal
from maxpulse_backend.models.link import AssessmentLink
from maxpulse_backend.services.commission_service import CommissionService, RELEASED_WITHDRAWAL_STATUSES
from maxpulse_backend.services.link_tracking_service import percentage
from maxpulse_backend.utils.helpers import quantize_money, to_decimal

logger = get_logger(__name__)


class DashboardService:
    """Dashboard statistics"""

    @staticmethod
    def _commission_totals(db: Session, *filters) -> Dict[str, Dict[str, Any]]:
        rows = db.query(
            Commission.status,
            func.count(Commission.id),
            func.coalesce(func.sum(Commission.commission_amount), 0)
        ).filter(*filters).group_by(Commission.status).all()

        totals = {
            "pending": {"count": 0, "amount": 0.0},
            "approved": {"count": 0, "amount": 0.0},
        }
        for commission_status, count, amount in rows:
            totals[commission_status] = {"count": count, "amount": float(amount)}
        return totals

    @staticmethod
    def _window_totals(db: Session, distributor_id: uuid.UUID, start=None, end=None) -> Dict[str, Any]:
        """Sales and commission totals for purchases and commissions created in [start, end)"""
        purchase_filters = [Purchase.distributor_id == distributor_id]
        commission_filters = [Commission.distributor_id == distributor_id]
        if start is not None:
            purchase_filters.append(Purchase.created_at >= start)
            commission_filters.append(Commission.created_at >= start)
        if end is not None:
            purchase_filters.append(Purchase.created_at < end)
            commission_filters.append(Commission.created_at < end)

        sales, purchase_count = db.query(
            func.coalesce(func.sum(Purchase.price), 0),
            func.count(Purchase.id)
        ).filter(*purchase_filters).one()

        return {
            "sales": to_decimal(sales),
            "purchase_count": purchase_count,
            "commissions": DashboardService._commission_totals(db, *commission_filters),
        }

    @staticmethod
    def _trend(current: Decimal, previous: Decimal) -> float:
        """Percent change against the previous window; 0 when there is nothing to compare"""
        if not previous:
            return 0.0
        return float(quantize_money((current - previous) * 100 / previous))

    @staticmethod
    async def get_distributor_stats(
        db: Session,
        distributor_id: uuid.UUID,
        period_days: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Sales and commission totals, all-time or for the last period_days.

        Balance, withdrawn amount and the running commission total are always all-time.
        """
        distributor = db.query(Distributor).filter(Distributor.id == distributor_id).first()
        if not distributor:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Distributor not found")

        now = utcnow()
        start = now - timedelta(days=period_days) if period_days else None
        window = DashboardService._window_totals(db, distributor_id, start)

        withdrawn = db.query(func.coalesce(func.sum(Withdrawal.amount), 0)).filter(
            Withdrawal.distributor_id == distributor_id,
            Withdrawal.status.notin_(RELEASED_WITHDRAWAL_STATUSES)
        ).scalar()

        link_clicks, link_conversions = db.query(
            func.coalesce(func.sum(AssessmentLink.click_count), 0),
            func.coalesce(func.sum(AssessmentLink.conversion_count), 0)
        ).filter(AssessmentLink.distributor_id == distributor_id).one()

        totals = window["commissions"]
        stats = {
            "totalSales": float(window["sales"]),
            "purchaseCount": window["purchase_count"],
            "pendingCommissions": totals["pending"]["amount"],
            "approvedCommissions": totals["approved"]["amount"],
            "commissionCount": sum(item["count"] for item in totals.values()),
            "totalCommissions": float(distributor.total_commissions or 0),
            "totalWithdrawn": float(withdrawn),
            "availableBalance": float(CommissionService.get_available_balance(db, distributor_id)),
        }

        result = {
            "distributor": {
                "id": str(distributor.id),
                "code": distributor.distributor_code,
                "name": distributor.name,
                "tierLevel": distributor.tier_level,
                "commissionRate": float(distributor.commission_rate),
            },
            "stats": stats,
            "links": {
                "totalClicks": int(link_clicks),
                "totalConversions": int(link_conversions),
                "conversionRate": percentage(link_conversions, link_clicks),
            },
        }

        if start is not None:
            previous = DashboardService._window_totals(db, distributor_id, start - timedelta(days=period_days), start)
            current_earned = sum(to_decimal(item["amount"]) for item in totals.values())
            previous_earned = sum(to_decimal(item["amount"]) for item in previous["commissions"].values())
            stats["salesTrend"] = DashboardService._trend(window["sales"], previous["sales"])
            stats["commissionTrend"] = DashboardService._trend(current_earned, previous_earned)
            result["period"] = {"days": period_days, "start": start.isoformat(), "end": now.isoformat()}

        return result

    @staticmethod
    async def list_commissions(
        db: Session,
        distributor_id: Optional[uuid.UUID] = None,
        commission_status: Optional[str] = None,
        skip: int = 0,
        limit: int = 50
    ) -> Dict[str, Any]:
        query = db.query(Commission)
        if distributor_id is not None:
            query = query.filter(Commission.distributor_id == distributor_id)
        if commission_status:
            query = query.filter(Commission.status == commission_status)

        total_count = query.count()
        commissions = query.order_by(Commission.created_at.desc()).offset(skip).limit(limit).all()

        return {
            "commissions": [commission.to_dict() for commission in commissions],
            "pagination": {
                "total": total_count,
                "skip": skip,
                "limit": limit,
                "has_more": skip + limit < total_count
            }
        }

    @staticmethod
    async def get_commission_summary(db: Session) -> Dict[str, Any]:
        """
        Pending vs approved totals across all distributors for the approval screen.
        """
        totals = DashboardService._commission_totals(db)
        return {
            "pending": totals["pending"],
            "approved": totals["approved"],
        }

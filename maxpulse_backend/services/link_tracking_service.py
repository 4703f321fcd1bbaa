# maxpulse_backend/services/link_tracking_service.py
"""
Assessment link tracking for the MaxPulse backend.

A distributor creates links for campaigns; every click and conversion on a
link is stored as a LinkAnalytics row and counted on the link itself.
Conversions are pushed to dashboards on the conversion_updates channel.
"""

import hashlib
import re
import secrets
import time
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from maxpulse_backend.core.config import settings
from maxpulse_backend.core.logging import get_logger, get_context_logger
from maxpulse_backend.models.base import utcnow, ensure_aware
from maxpulse_backend.models.distributor import Distributor
from maxpulse_backend.models.link import AssessmentLink, LinkAnalytics
from maxpulse_backend.schemas.link import CreateLinkRequest, VisitorInfo
from maxpulse_backend.services.realtime_service import RealtimeService, CONVERSION_UPDATES
from maxpulse_backend.utils.error_handling import handle_exception
from maxpulse_backend.utils.helpers import quantize_money

logger = get_logger(__name__)

BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
SLUG_LENGTH = 20
RANDOM_SUFFIX_LENGTH = 6
MAX_GENERATION_ATTEMPTS = 10
TOP_PERFORMING_COUNT = 3


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


def campaign_slug(campaign_name: str) -> str:
    """
    "Summer Wellness 2026!" -> "summer-wellness-2026"
    """
    slug = re.sub(r"[^a-z0-9]+", "-", campaign_name.lower()).strip("-")
    return slug[:SLUG_LENGTH].strip("-") or "campaign"


def generate_link_code(distributor_code: str, link_type: str, campaign_name: str) -> str:
    """
    {distributor code}-{link type}-{campaign slug}-{base36 ms timestamp}-{random}
    """
    timestamp = to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(BASE36_ALPHABET) for _ in range(RANDOM_SUFFIX_LENGTH))
    return f"{distributor_code.lower()}-{link_type}-{campaign_slug(campaign_name)}-{timestamp}-{suffix}"


def generate_visitor_id(visitor_info: Optional[VisitorInfo], today: Optional[str] = None) -> str:
    """
    Same IP and user agent on the same day give the same visitor id.
    Without visitor details every call gives a fresh id.
    """
    if visitor_info is None or not (visitor_info.ip or visitor_info.user_agent):
        return f"visitor_{secrets.token_hex(8)}"

    fingerprint = "|".join([
        visitor_info.ip or "unknown",
        visitor_info.user_agent or "unknown",
        today or utcnow().date().isoformat(),
    ])
    return f"visitor_{hashlib.sha256(fingerprint.encode()).hexdigest()[:16]}"


def percentage(part: Any, whole: Any) -> float:
    if not whole:
        return 0.0
    return float(quantize_money(Decimal(part) * 100 / Decimal(whole)))


class LinkTrackingService:
    """Assessment link lifecycle and analytics"""

    @staticmethod
    def link_urls(link: AssessmentLink, distributor_code: str) -> Dict[str, str]:
        base_url = settings.ASSESSMENT_BASE_URL.rstrip("/")
        return {
            "fullUrl": f"{base_url}/?code={link.link_code}&distributor={distributor_code}",
            "shortUrl": f"{settings.SHORT_LINK_DOMAIN}/{link.link_code.rsplit('-', 1)[-1]}",
        }

    @staticmethod
    def _generate_unique_code(db: Session, distributor: Distributor, request: CreateLinkRequest) -> str:
        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            code = generate_link_code(distributor.distributor_code, request.link_type, request.campaign_name)
            if not db.query(AssessmentLink.id).filter(AssessmentLink.link_code == code).first():
                return code
            logger.warning(f"⚠️ Link code collision (attempt {attempt}/{MAX_GENERATION_ATTEMPTS}), regenerating...")

        raise RuntimeError("Failed to generate unique link code after multiple attempts")

    @staticmethod
    def get_link(db: Session, link_code: str, for_update: bool = False) -> AssessmentLink:
        """
        Raises:
            HTTPException: 404 if no link has this code
        """
        query = db.query(AssessmentLink).filter(AssessmentLink.link_code == (link_code or "").strip())
        if for_update:
            query = query.with_for_update()
        link = query.first()
        if not link:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Link not found")
        return link

    @staticmethod
    async def create_link(db: Session, distributor: Distributor, request: CreateLinkRequest) -> Dict[str, Any]:
        """
        Create an active tracking link for one of the distributor's campaigns.
        """
        if not distributor.is_active:
            raise HTTPException(status.HTTP_404_NOT_FOUND, "Distributor not found or inactive")

        try:
            link = AssessmentLink(
                distributor_id=distributor.id,
                link_code=LinkTrackingService._generate_unique_code(db, distributor, request),
                campaign_name=request.campaign_name,
                link_type=request.link_type,
                target_audience=request.target_audience,
                focus_area=request.focus_area,
                is_active=True,
                click_count=0,
                conversion_count=0
            )
            db.add(link)
            db.commit()
            db.refresh(link)
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error creating tracking link", detail="Failed to create tracking link")

        logger.info(f"🔗 Tracking link created for {distributor.distributor_code}: {link.link_code}")
        return {
            "success": True,
            "link": {**link.to_dict(), **LinkTrackingService.link_urls(link, distributor.distributor_code)}
        }

    @staticmethod
    async def track_click(
        db: Session,
        link_code: str,
        visitor_info: Optional[VisitorInfo],
        session_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Record a click on an active link and bump its click count.
        """
        try:
            link = db.query(AssessmentLink).filter(
                AssessmentLink.link_code == (link_code or "").strip(),
                AssessmentLink.is_active == True
            ).with_for_update().first()

            if not link:
                raise HTTPException(status.HTTP_404_NOT_FOUND, "Link not found or inactive")

            visitor_id = generate_visitor_id(visitor_info)
            db.add(LinkAnalytics(
                link_id=link.id,
                event_type="click",
                visitor_id=visitor_id,
                session_id=session_id,
                ip_address=visitor_info.ip if visitor_info else None,
                user_agent=visitor_info.user_agent if visitor_info else None,
                referrer=visitor_info.referrer if visitor_info else None,
                conversion_value=Decimal("0")
            ))
            link.click_count = (link.click_count or 0) + 1

            db.commit()
            db.refresh(link)
        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error tracking link click", detail="Failed to track link click")

        logger.info(f"👆 Click on {link.link_code} ({link.click_count} total)")
        return {
            "success": True,
            "link": {
                "id": str(link.id),
                "distributorId": str(link.distributor_id),
                "campaignName": link.campaign_name,
                "linkType": link.link_type,
                "focusArea": link.focus_area,
            },
            "visitorId": visitor_id,
        }

    @staticmethod
    async def track_conversion(
        db: Session,
        link_code: str,
        visitor_info: Optional[VisitorInfo],
        conversion_value: Any = 0,
        session_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Record a conversion. Deactivated links still count conversions from
        visitors who clicked before the link was switched off.
        """
        value = quantize_money(conversion_value or 0)

        try:
            link = LinkTrackingService.get_link(db, link_code, for_update=True)
            log = get_context_logger(__name__, {"distributor_id": str(link.distributor_id)})

            db.add(LinkAnalytics(
                link_id=link.id,
                event_type="conversion",
                visitor_id=generate_visitor_id(visitor_info),
                session_id=session_id,
                ip_address=visitor_info.ip if visitor_info else None,
                user_agent=visitor_info.user_agent if visitor_info else None,
                referrer=visitor_info.referrer if visitor_info else None,
                conversion_value=value
            ))
            link.conversion_count = (link.conversion_count or 0) + 1

            db.commit()
            db.refresh(link)
        except HTTPException:
            db.rollback()
            raise
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error tracking conversion", detail="Failed to track conversion")

        log.info(f"🎯 Conversion on {link.link_code}: {value}")

        await RealtimeService.broadcast(CONVERSION_UPDATES, "conversion_tracked", {
            "distributor_id": str(link.distributor_id),
            "link_code": link.link_code,
            "campaign_name": link.campaign_name,
            "conversion_value": float(value),
        }, db)

        return {
            "success": True,
            "conversion": {
                "linkId": str(link.id),
                "distributorId": str(link.distributor_id),
                "campaignName": link.campaign_name,
                "conversionValue": float(value),
            }
        }

    @staticmethod
    async def validate_link(db: Session, link_code: str) -> Dict[str, Any]:
        """
        Link and distributor details for the assessment landing page.

        Raises:
            HTTPException: 404 for an unknown code, 410 for a deactivated link
        """
        link = LinkTrackingService.get_link(db, link_code)
        if not link.is_active:
            raise HTTPException(status.HTTP_410_GONE, "Link is inactive")

        distributor = db.query(Distributor).filter(Distributor.id == link.distributor_id).first()

        return {
            "success": True,
            "link": {
                "id": str(link.id),
                "code": link.link_code,
                "campaignName": link.campaign_name,
                "linkType": link.link_type,
                "targetAudience": link.target_audience,
                "focusArea": link.focus_area,
                "clickCount": link.click_count,
                "conversionCount": link.conversion_count,
            },
            "distributor": {
                "id": str(distributor.id),
                "code": distributor.distributor_code,
                "name": distributor.name,
                "commissionRate": float(distributor.commission_rate),
            }
        }

    @staticmethod
    async def deactivate_link(db: Session, link: AssessmentLink) -> Dict[str, Any]:
        try:
            link.is_active = False
            db.commit()
            db.refresh(link)
        except Exception as e:
            db.rollback()
            raise handle_exception(e, "Error deactivating link", detail="Failed to deactivate link")

        logger.info(f"🚫 Link deactivated: {link.link_code}")
        return {"success": True, "link": link.to_dict()}

    @staticmethod
    def _link_analytics(events: List[LinkAnalytics]) -> Dict[str, Any]:
        clicks = [event for event in events if event.event_type == "click"]
        conversions = [event for event in events if event.event_type == "conversion"]
        total_value = quantize_money(sum((Decimal(str(event.conversion_value or 0)) for event in conversions), Decimal("0")))
        last_activity = max((ensure_aware(event.created_at) for event in events), default=None)

        return {
            "clicks": len(clicks),
            "conversions": len(conversions),
            "conversionRate": percentage(len(conversions), len(clicks)),
            "totalValue": float(total_value),
            "lastActivity": last_activity.isoformat() if last_activity else None,
        }

    @staticmethod
    async def get_analytics(
        db: Session,
        distributor: Distributor,
        period_days: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Per-link clicks, conversions and value for a distributor, newest link first.

        With period_days only events from the last period_days count.
        """
        since: Optional[datetime] = utcnow() - timedelta(days=period_days) if period_days else None

        links = db.query(AssessmentLink).options(selectinload(AssessmentLink.events)).filter(
            AssessmentLink.distributor_id == distributor.id
        ).order_by(AssessmentLink.created_at.desc()).all()

        results = []
        visitors = set()
        for link in links:
            events = [
                event for event in link.events
                if since is None or ensure_aware(event.created_at) >= since
            ]
            visitors.update(event.visitor_id for event in events if event.visitor_id)
            results.append({
                **link.to_dict(),
                **LinkTrackingService.link_urls(link, distributor.distributor_code),
                "analytics": LinkTrackingService._link_analytics(events),
            })

        total_clicks = sum(item["analytics"]["clicks"] for item in results)
        total_conversions = sum(item["analytics"]["conversions"] for item in results)
        total_value = quantize_money(sum((Decimal(str(item["analytics"]["totalValue"])) for item in results), Decimal("0")))
        ranked = sorted(results, key=lambda item: item["analytics"]["conversionRate"], reverse=True)

        return {
            "success": True,
            "links": results,
            "summary": {
                "totalLinks": len(results),
                "activeLinks": sum(1 for item in results if item["is_active"]),
                "totalClicks": total_clicks,
                "totalConversions": total_conversions,
                "overallConversionRate": percentage(total_conversions, total_clicks),
                "totalValue": float(total_value),
                "uniqueVisitors": len(visitors),
                "topPerforming": [
                    {
                        "campaignName": item["campaign_name"],
                        "conversionRate": item["analytics"]["conversionRate"],
                        "conversions": item["analytics"]["conversions"],
                    }
                    for item in ranked[:TOP_PERFORMING_COUNT]
                ],
            },
            "period": {
                "days": period_days,
                "start": since.isoformat() if since else None,
                "end": utcnow().isoformat(),
            },
        }

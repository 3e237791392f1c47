"""Campaign discovery and applications from the influencer side."""

from datetime import datetime

from fastapi import BackgroundTasks
from sqlalchemy import func, or_

from brandcollab.auth.models import Brand, Influencer
from brandcollab.campaign.models import (
    ApplicationStatus,
    Campaign,
    CampaignApplication,
    CampaignInvitation,
    CampaignStatus,
    InvitationStatus,
)
from brandcollab.errors import BadRequestError, ForbiddenError, NotFoundError
from brandcollab.influencer.credits import weekly_credit_service
from brandcollab.influencer.eligibility import CampaignFilters, eligibility_clause, in_early_access
from brandcollab.logging_config import get_logger
from brandcollab.notifications.dispatch import dispatch
from brandcollab.notifications.push import push_service
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.payments.stripe_service import pro_status
from brandcollab.referral.service import pagination
from brandcollab.storage.db import db

FINAL_APPLICATION_STATUSES = (ApplicationStatus.SELECTED, ApplicationStatus.REJECTED, ApplicationStatus.WITHDRAWN)


def brand_card(brand: Brand | None) -> dict | None:
    if brand is None:
        return None
    return {
        "id": brand.id,
        "brandName": brand.brand_name,
        "username": brand.username,
        "profileImage": brand.profile_image,
        "isVerified": bool(brand.is_verified),
    }


def application_counts(session, campaign_ids: list[int]) -> dict[int, int]:
    if not campaign_ids:
        return {}
    rows = session.query(CampaignApplication.campaign_id, func.count(CampaignApplication.id)).filter(
        CampaignApplication.campaign_id.in_(campaign_ids),
    ).group_by(CampaignApplication.campaign_id).all()
    return dict(rows)


def _active_campaigns(session):
    return session.query(Campaign).filter(
        Campaign.status == CampaignStatus.ACTIVE,
        Campaign.is_active == True,  # noqa: E712
    )


class InfluencerCampaignService:
    """Open campaigns, applications and withdrawals for influencers."""

    def __init__(self):
        """Initialize influencer campaign service."""
        self.logger = get_logger(__name__)

    def _get_influencer(self, session, influencer_id: int) -> Influencer:
        influencer = session.get(Influencer, influencer_id)
        if not influencer or influencer.deleted_at:
            raise NotFoundError("Influencer not found")
        return influencer

    def _invited_ids(self, session, influencer_id: int) -> set[int]:
        rows = session.query(CampaignInvitation.campaign_id).filter(
            CampaignInvitation.influencer_id == influencer_id,
        ).all()
        return {r[0] for r in rows}

    def _own_applications(self, session, influencer_id: int, campaign_ids: list[int]) -> dict[int, CampaignApplication]:
        if not campaign_ids:
            return {}
        rows = session.query(CampaignApplication).filter(
            CampaignApplication.influencer_id == influencer_id,
            CampaignApplication.campaign_id.in_(campaign_ids),
        ).all()
        return {a.campaign_id: a for a in rows}

    def _enrich(self, campaign: Campaign, application: CampaignApplication | None, total: int, invited: bool) -> dict:
        data = campaign.to_dict()
        data.update({
            "brand": brand_card(campaign.brand),
            "hasApplied": application is not None,
            "appliedAt": application.created_at.isoformat() if application and application.created_at else None,
            "applicationStatus": application.status.value if application else None,
            "totalApplications": total,
            "isInvited": invited,
        })
        return data

    # ==================== DISCOVERY ====================

    def get_open_campaigns(self, influencer_id: int, filters: CampaignFilters | None = None) -> dict:
        """Campaigns the influencer is eligible for, newest first.

        Invited campaigns skip targeting and early access rules.
        """
        filters = filters or CampaignFilters()

        with db.session() as session:
            influencer = self._get_influencer(session, influencer_id)
            invited_ids = self._invited_ids(session, influencer_id)
            dialect = session.get_bind().dialect.name

            query = _active_campaigns(session).filter(
                eligibility_clause(dialect, influencer, filters, invited_ids, datetime.utcnow())
            )
            if filters.search:
                pattern = f"%{filters.search.strip()}%"
                query = query.filter(or_(Campaign.name.ilike(pattern), Campaign.description.ilike(pattern)))

            total = query.count()
            page_items = query.order_by(
                Campaign.created_at.desc(), Campaign.id.desc()
            ).offset((filters.page - 1) * filters.limit).limit(filters.limit).all()

            ids = [c.id for c in page_items]
            applications = self._own_applications(session, influencer_id, ids)
            counts = application_counts(session, ids)

            return {
                "campaigns": [
                    self._enrich(c, applications.get(c.id), counts.get(c.id, 0), c.id in invited_ids)
                    for c in page_items
                ],
                **pagination(filters.page, filters.limit, total),
            }

    def get_campaign_details(self, influencer_id: int, campaign_id: int) -> dict:
        with db.session() as session:
            self._get_influencer(session, influencer_id)
            campaign = _active_campaigns(session).filter(Campaign.id == campaign_id).first()
            if not campaign:
                raise NotFoundError("Campaign not found")

            application = self._own_applications(session, influencer_id, [campaign.id]).get(campaign.id)
            total = application_counts(session, [campaign.id]).get(campaign.id, 0)
            invited = campaign.id in self._invited_ids(session, influencer_id)
            return self._enrich(campaign, application, total, invited)

    # ==================== APPLICATIONS ====================

    async def apply_campaign(
        self,
        influencer_id: int,
        campaign_id: int,
        cover_letter: str | None = None,
        proposal_message: str | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Apply to a campaign, spending one weekly credit.

        Raises:
            NotFoundError: Campaign not open
            ForbiddenError: Invite-only without invitation, or early access without Pro
            BadRequestError: Already applied, profile not ready or no credits left
        """
        with db.session() as session:
            campaign = _active_campaigns(session).filter(Campaign.id == campaign_id).first()
            if not campaign:
                raise NotFoundError("Campaign not found or no longer accepting applications")

            influencer = self._get_influencer(session, influencer_id)

            invitation = session.query(CampaignInvitation).filter(
                CampaignInvitation.campaign_id == campaign_id,
                CampaignInvitation.influencer_id == influencer_id,
            ).first()
            if campaign.is_invite_only and not invitation:
                raise ForbiddenError("This is an invite-only campaign. You must be invited to apply.")

            if in_early_access(campaign) and not pro_status(influencer)["isPro"]:
                prefix = "This is a Max Campaign." if campaign.is_max_campaign else "This campaign is in early access period."
                raise ForbiddenError(
                    f"{prefix} Only Pro influencers can apply during the first 24 hours. "
                    "Upgrade to Pro or wait until the campaign opens to all influencers."
                )

            existing = session.query(CampaignApplication.id).filter(
                CampaignApplication.campaign_id == campaign_id,
                CampaignApplication.influencer_id == influencer_id,
            ).first()
            if existing:
                raise BadRequestError("You have already applied to this campaign")

            if not influencer.is_profile_completed or not influencer.is_whatsapp_verified:
                raise BadRequestError("Your profile must be completed and verified to apply for campaigns")

            remaining = weekly_credit_service.deduct(influencer)

            application = CampaignApplication(
                campaign_id=campaign_id,
                influencer_id=influencer_id,
                status=ApplicationStatus.APPLIED,
                cover_letter=cover_letter,
                proposal_message=proposal_message,
            )
            session.add(application)
            if invitation and invitation.status == InvitationStatus.PENDING:
                invitation.status = InvitationStatus.ACCEPTED
                invitation.responded_at = datetime.utcnow()
            session.flush()

            application_id = application.id
            campaign_name = campaign.name
            brand_id = campaign.brand_id
            brand_name = (campaign.brand.brand_name if campaign.brand else None) or "Brand"
            influencer_name = influencer.name or "there"
            whatsapp = influencer.whatsapp_number if influencer.is_whatsapp_verified else None

        self.logger.info(
            "campaign_application_created",
            application_id=application_id,
            campaign_id=campaign_id,
            influencer_id=influencer_id,
        )

        if whatsapp:
            await dispatch(
                background,
                whatsapp_service.send_campaign_application_confirmation,
                whatsapp,
                influencer_name,
                campaign_name,
                brand_name,
            )
        await dispatch(background, push_service.send_application_submitted, influencer_id, campaign_id, campaign_name)
        await dispatch(
            background,
            push_service.send_new_application,
            brand_id,
            campaign_id,
            campaign_name,
            influencer_id,
            influencer_name,
        )

        return {
            "success": True,
            "applicationId": application_id,
            "message": "Application submitted successfully. You will be notified about the status update.",
            "weeklyCreditsRemaining": remaining,
            "campaign": {"id": campaign_id, "name": campaign_name, "brand": {"brandName": brand_name}},
        }

    def get_my_applications(
        self,
        influencer_id: int,
        status: ApplicationStatus | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict:
        with db.session() as session:
            query = session.query(CampaignApplication).filter(CampaignApplication.influencer_id == influencer_id)
            if status:
                query = query.filter(CampaignApplication.status == status)

            total = query.count()
            rows = query.order_by(
                CampaignApplication.created_at.desc(), CampaignApplication.id.desc()
            ).offset((page - 1) * limit).limit(limit).all()

            items = []
            for application in rows:
                campaign = application.campaign
                item = application.to_dict()
                item["campaign"] = {
                    "id": campaign.id,
                    "name": campaign.name,
                    "type": campaign.type.value,
                    "status": campaign.status.value,
                    "campaignBudget": float(campaign.campaign_budget) if campaign.campaign_budget is not None else None,
                    "deliverableFormat": campaign.deliverable_formats(),
                    "brand": brand_card(campaign.brand),
                }
                items.append(item)

            return {"applications": items, **pagination(page, limit, total)}

    def withdraw_application(self, influencer_id: int, application_id: int) -> dict:
        """Withdraw an application that is still open.

        Raises:
            NotFoundError: Not the influencer's application
            BadRequestError: Already selected, rejected or withdrawn
        """
        with db.session() as session:
            application = session.query(CampaignApplication).filter(
                CampaignApplication.id == application_id,
                CampaignApplication.influencer_id == influencer_id,
            ).first()
            if not application:
                raise NotFoundError("Application not found")
            if application.status in FINAL_APPLICATION_STATUSES:
                raise BadRequestError(f"Cannot withdraw an application that is {application.status.value}")

            application.status = ApplicationStatus.WITHDRAWN
            application.reviewed_at = datetime.utcnow()
            result = application.to_dict()

        self.logger.info("campaign_application_withdrawn", application_id=application_id, influencer_id=influencer_id)
        return {"message": "Application withdrawn successfully", "application": result}


influencer_campaign_service = InfluencerCampaignService()

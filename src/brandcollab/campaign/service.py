"""Brand-side campaign management, invitations and application review."""

from datetime import datetime, timedelta

from fastapi import BackgroundTasks
from sqlalchemy import or_

from brandcollab.auth.models import Brand, Influencer
from brandcollab.campaign.models import (
    ApplicationStatus,
    Campaign,
    CampaignApplication,
    CampaignCity,
    CampaignDeliverable,
    CampaignInvitation,
    CampaignStatus,
    CampaignType,
    DeliverableType,
    InvitationStatus,
    Platform,
)
from brandcollab.errors import BadRequestError, NotFoundError
from brandcollab.influencer.campaigns import application_counts
from brandcollab.logging_config import get_logger
from brandcollab.notifications.dispatch import dispatch
from brandcollab.notifications.push import push_service
from brandcollab.notifications.whatsapp import whatsapp_service
from brandcollab.referral.service import pagination
from brandcollab.storage.db import db
from brandcollab.storage.models import City

INVITATION_EXPIRY_DAYS = 7

CAMPAIGN_FIELDS = (
    "name",
    "description",
    "category",
    "status",
    "type",
    "is_invite_only",
    "is_organic",
    "is_max_campaign",
    "is_pan_india",
    "min_age",
    "max_age",
    "is_open_to_all_ages",
    "gender_preferences",
    "is_open_to_all_genders",
    "niche_ids",
    "custom_influencer_requirements",
    "performance_expectations",
    "brand_support",
    "campaign_budget",
    "barter_product_worth",
    "additional_monetary_payout",
    "number_of_influencers",
)


def influencer_card(influencer: Influencer) -> dict:
    return {
        "id": influencer.id,
        "name": influencer.name,
        "username": influencer.username,
        "profileImage": influencer.profile_image,
        "profileHeadline": influencer.profile_headline,
        "gender": influencer.gender.value if influencer.gender else None,
        "isVerified": bool(influencer.is_verified),
        "collaborationCosts": influencer.collaboration_costs or {},
    }


class CampaignService:
    """Campaign CRUD and the brand's view of invitations and applications."""

    def __init__(self):
        """Initialize campaign service."""
        self.logger = get_logger(__name__)

    def _owned(self, session, campaign_id: int, brand_id: int, message: str = "Campaign not found") -> Campaign:
        campaign = session.query(Campaign).filter(
            Campaign.id == campaign_id,
            Campaign.brand_id == brand_id,
            Campaign.is_active == True,  # noqa: E712
        ).first()
        if not campaign:
            raise NotFoundError(message)
        return campaign

    def _resolve_cities(self, session, city_ids: list[int]) -> list[City]:
        unique = list(dict.fromkeys(city_ids))
        cities = session.query(City).filter(City.id.in_(unique)).all()
        if len(cities) != len(unique):
            raise BadRequestError("One or more cities are invalid")
        return cities

    def _deliverables(self, items: list[dict]) -> list[CampaignDeliverable]:
        return [
            CampaignDeliverable(
                platform=Platform(item["platform"]),
                type=DeliverableType(item["type"]),
                budget=item.get("budget"),
                quantity=item.get("quantity") or 1,
                specifications=item.get("specifications"),
            )
            for item in items
        ]

    def _apply_fields(self, campaign: Campaign, data: dict) -> None:
        for key in CAMPAIGN_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key == "status" and value is not None:
                value = CampaignStatus(value)
            elif key == "type" and value is not None:
                value = CampaignType(value)
            setattr(campaign, key, value)

    # ==================== CAMPAIGNS ====================

    def create_campaign(self, brand_id: int, data: dict) -> dict:
        """Create a campaign with its cities and deliverables.

        Args:
            brand_id: Owning brand
            data: Campaign fields plus ``city_ids`` and ``deliverables``

        Returns:
            Campaign dict

        Raises:
            BadRequestError: Missing or unknown cities
        """
        city_ids = data.get("city_ids") or []
        if not data.get("is_pan_india") and not city_ids:
            raise BadRequestError("At least one city must be selected for non-pan-India campaigns")

        with db.session() as session:
            campaign = Campaign(brand_id=brand_id)
            self._apply_fields(campaign, data)
            if city_ids:
                campaign.cities = [CampaignCity(city=c) for c in self._resolve_cities(session, city_ids)]
            campaign.deliverables = self._deliverables(data.get("deliverables") or [])

            session.add(campaign)
            session.flush()
            result = campaign.to_dict()

        self.logger.info("campaign_created", campaign_id=result["id"], brand_id=brand_id)
        return result

    def get_campaigns(
        self,
        brand_id: int,
        status: CampaignStatus | None = None,
        campaign_type: CampaignType | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        with db.session() as session:
            query = session.query(Campaign).filter(
                Campaign.brand_id == brand_id,
                Campaign.is_active == True,  # noqa: E712
            )
            if status:
                query = query.filter(Campaign.status == status)
            if campaign_type:
                query = query.filter(Campaign.type == campaign_type)
            if search:
                pattern = f"%{search.strip()}%"
                query = query.filter(or_(Campaign.name.ilike(pattern), Campaign.description.ilike(pattern)))

            total = query.count()
            rows = query.order_by(Campaign.created_at.desc(), Campaign.id.desc()).offset(
                (page - 1) * limit
            ).limit(limit).all()
            counts = application_counts(session, [c.id for c in rows])

            campaigns = []
            for campaign in rows:
                item = campaign.to_dict()
                item["totalApplications"] = counts.get(campaign.id, 0)
                campaigns.append(item)

            return {"campaigns": campaigns, **pagination(page, limit, total)}

    def get_campaign(self, campaign_id: int, brand_id: int) -> dict:
        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id)
            result = campaign.to_dict()
            result["invitations"] = [
                {**inv.to_dict(), "influencer": influencer_card(inv.influencer)}
                for inv in campaign.invitations
            ]
            result["totalApplications"] = application_counts(session, [campaign.id]).get(campaign.id, 0)
            return result

    def update_campaign(self, campaign_id: int, brand_id: int, data: dict) -> dict:
        """Update fields; cities and deliverables are replaced when present."""
        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id)

            if "city_ids" in data:
                city_ids = data["city_ids"] or []
                cities = self._resolve_cities(session, city_ids) if city_ids else []
                campaign.cities = [CampaignCity(city=c) for c in cities]

            if "deliverables" in data:
                campaign.deliverables = self._deliverables(data["deliverables"] or [])

            self._apply_fields(campaign, data)
            # Checked on the merged state: either field may change alone
            if not campaign.is_pan_india and not campaign.cities:
                raise BadRequestError("At least one city must be selected for non-pan-India campaigns")
            session.flush()
            result = campaign.to_dict()

        self.logger.info("campaign_updated", campaign_id=campaign_id, brand_id=brand_id)
        return result

    def close_campaign(self, campaign_id: int, brand_id: int) -> dict:
        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id)
            campaign.is_active = False

        self.logger.info("campaign_closed", campaign_id=campaign_id, brand_id=brand_id)
        return {"message": "Campaign closed successfully"}

    async def update_campaign_status(
        self,
        campaign_id: int,
        brand_id: int,
        status: CampaignStatus,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Change the status; completing a campaign notifies selected influencers."""
        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id)
            previous = campaign.status
            campaign.status = status
            session.flush()

            selected = []
            if status == CampaignStatus.COMPLETED and previous != CampaignStatus.COMPLETED:
                selected = [
                    row[0]
                    for row in session.query(CampaignApplication.influencer_id).filter(
                        CampaignApplication.campaign_id == campaign_id,
                        CampaignApplication.status == ApplicationStatus.SELECTED,
                    ).all()
                ]
            campaign_name = campaign.name
            brand_name = (campaign.brand.brand_name if campaign.brand else None) or "Brand"
            result = campaign.to_dict()

        self.logger.info(
            "campaign_status_updated",
            campaign_id=campaign_id,
            old_status=previous.value,
            new_status=status.value,
        )

        for influencer_id in selected:
            await dispatch(
                background,
                push_service.send_campaign_status,
                influencer_id, campaign_id, campaign_name, CampaignStatus.COMPLETED.value, brand_name,
            )
        if selected:
            self.logger.info("campaign_completion_notified", campaign_id=campaign_id, count=len(selected))

        return result

    def delete_campaign(self, campaign_id: int, brand_id: int) -> dict:
        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id)
            if campaign.status == CampaignStatus.ACTIVE:
                raise BadRequestError("Cannot delete an active campaign")
            campaign.is_active = False

        self.logger.info("campaign_deleted", campaign_id=campaign_id, brand_id=brand_id)
        return {"message": "Campaign deleted successfully"}

    # ==================== INVITATIONS ====================

    async def invite_influencers(
        self,
        brand_id: int,
        campaign_id: int,
        influencer_ids: list[int],
        personal_message: str | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Invite eligible influencers, skipping those already invited.

        Raises:
            NotFoundError: Campaign missing or not owned
            BadRequestError: Wrong campaign status, ineligible influencers, or nobody new
        """
        requested = list(dict.fromkeys(influencer_ids))

        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id, "Campaign not found or access denied")
            if campaign.status not in (CampaignStatus.DRAFT, CampaignStatus.ACTIVE):
                raise BadRequestError("Cannot send invitations for campaigns in this status")

            influencers = session.query(Influencer).filter(
                Influencer.id.in_(requested),
                Influencer.is_profile_completed == True,  # noqa: E712
                Influencer.is_whatsapp_verified == True,  # noqa: E712
                Influencer.deleted_at.is_(None),
            ).all()
            if len(influencers) != len(requested):
                raise BadRequestError("Some influencers are not found or not eligible for invitations")

            already = {
                row[0]
                for row in session.query(CampaignInvitation.influencer_id).filter(
                    CampaignInvitation.campaign_id == campaign_id,
                    CampaignInvitation.influencer_id.in_(requested),
                ).all()
            }
            new = [i for i in influencers if i.id not in already]
            if not new:
                raise BadRequestError("All selected influencers have already been invited to this campaign")

            expires_at = datetime.utcnow() + timedelta(days=INVITATION_EXPIRY_DAYS)
            for influencer in new:
                session.add(CampaignInvitation(
                    campaign_id=campaign_id,
                    influencer_id=influencer.id,
                    status=InvitationStatus.PENDING,
                    message=personal_message,
                    expires_at=expires_at,
                ))

            recipients = [(i.id, i.name or "there", i.whatsapp_number) for i in new]
            campaign_name = campaign.name
            brand_name = (campaign.brand.brand_name if campaign.brand else None) or "Brand"

        self.logger.info("campaign_invitations_created", campaign_id=campaign_id, count=len(recipients))

        for influencer_id, name, whatsapp in recipients:
            if whatsapp:
                await dispatch(
                    background,
                    whatsapp_service.send_campaign_invitation,
                    whatsapp, name, campaign_name, brand_name, personal_message,
                )
            await dispatch(
                background, push_service.send_campaign_invite, influencer_id, campaign_id, campaign_name, brand_name
            )

        return {
            "success": True,
            "invitationsSent": len(recipients),
            "message": (
                f"Successfully sent {len(recipients)} campaign invitations "
                "with WhatsApp and push notifications."
            ),
        }

    # ==================== APPLICATIONS ====================

    def get_campaign_applications(
        self,
        campaign_id: int,
        brand_id: int,
        status: ApplicationStatus | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        with db.session() as session:
            self._owned(session, campaign_id, brand_id, "Campaign not found or access denied")

            query = session.query(CampaignApplication).filter(CampaignApplication.campaign_id == campaign_id)
            if status:
                query = query.filter(CampaignApplication.status == status)

            total = query.count()
            rows = query.order_by(
                CampaignApplication.created_at.desc(), CampaignApplication.id.desc()
            ).offset((page - 1) * limit).limit(limit).all()

            return {
                "applications": [
                    {**a.to_dict(), "influencer": influencer_card(a.influencer)} for a in rows
                ],
                **pagination(page, limit, total),
            }

    async def update_application_status(
        self,
        campaign_id: int,
        application_id: int,
        brand_id: int,
        status: ApplicationStatus,
        review_notes: str | None = None,
        background: BackgroundTasks | None = None,
    ) -> dict:
        """Move an application through review.

        Raises:
            NotFoundError: Campaign or application missing
            BadRequestError: Invalid transition out of under_review
        """
        with db.session() as session:
            campaign = self._owned(session, campaign_id, brand_id, "Campaign not found or access denied")
            application = session.query(CampaignApplication).filter(
                CampaignApplication.id == application_id,
                CampaignApplication.campaign_id == campaign_id,
            ).first()
            if not application:
                raise NotFoundError("Application not found")

            if application.status == ApplicationStatus.UNDER_REVIEW and status not in (
                ApplicationStatus.SELECTED,
                ApplicationStatus.REJECTED,
            ):
                raise BadRequestError(
                    "Applications under review can only be moved to selected or rejected status"
                )

            application.status = status
            application.reviewed_at = datetime.utcnow()
            if review_notes is not None:
                application.review_notes = review_notes

            result = {**application.to_dict(), "influencer": influencer_card(application.influencer)}
            influencer_id = application.influencer_id
            campaign_name = campaign.name
            brand_name = (campaign.brand.brand_name if campaign.brand else None) or "Brand"

        self.logger.info(
            "campaign_application_status_updated",
            application_id=application_id,
            campaign_id=campaign_id,
            status=status.value,
        )
        await dispatch(
            background, push_service.send_campaign_status, influencer_id, campaign_id, campaign_name, status.value, brand_name
        )
        return result


campaign_service = CampaignService()

"""Past collaborations listed on an influencer profile."""

from brandcollab.errors import NotFoundError
from brandcollab.influencer.models import Experience, ExperienceSocialLink
from brandcollab.logging_config import get_logger
from brandcollab.referral.service import pagination
from brandcollab.storage.db import db

EXPERIENCE_FIELDS = (
    "campaign_id",
    "campaign_name",
    "brand_name",
    "campaign_category",
    "deliverable_format",
    "success_message",
    "role_description",
    "keyword_tags",
    "start_date",
    "end_date",
)


def build_links(items: list[dict]) -> list[ExperienceSocialLink]:
    return [
        ExperienceSocialLink(
            platform=item["platform"],
            content_type=item.get("content_type") or "post",
            url=item["url"],
        )
        for item in items
    ]


class ExperienceService:
    """CRUD for influencer experiences and their content links."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def _owned(self, session, influencer_id: int, experience_id: int) -> Experience:
        experience = session.query(Experience).filter(
            Experience.id == experience_id,
            Experience.influencer_id == influencer_id,
        ).first()
        if not experience:
            raise NotFoundError("Experience not found")
        return experience

    def create_experience(self, influencer_id: int, data: dict) -> dict:
        with db.session() as session:
            experience = Experience(influencer_id=influencer_id)
            for key in EXPERIENCE_FIELDS:
                if key in data:
                    setattr(experience, key, data[key])
            experience.social_links = build_links(data.get("social_links") or [])

            session.add(experience)
            session.flush()
            result = experience.to_dict()

        self.logger.info("experience_created", influencer_id=influencer_id, experience_id=result["id"])
        return result

    def get_experiences(
        self,
        influencer_id: int,
        experience_id: int | None = None,
        page: int = 1,
        limit: int = 10,
    ) -> dict:
        """Paginated experiences, or one experience when ``experience_id`` is given.

        Raises:
            NotFoundError: Requested experience does not belong to the influencer
        """
        with db.session() as session:
            if experience_id is not None:
                return {"experience": self._owned(session, influencer_id, experience_id).to_dict()}

            query = session.query(Experience).filter(Experience.influencer_id == influencer_id)
            total = query.count()
            rows = query.order_by(Experience.created_at.desc(), Experience.id.desc()).offset(
                (page - 1) * limit
            ).limit(limit).all()

            return {"experiences": [e.to_dict() for e in rows], **pagination(page, limit, total)}

    def update_experience(self, influencer_id: int, experience_id: int, data: dict) -> dict:
        """Partial update; ``social_links`` replaces the existing links when present."""
        with db.session() as session:
            experience = self._owned(session, influencer_id, experience_id)
            for key in EXPERIENCE_FIELDS:
                if key in data:
                    setattr(experience, key, data[key])
            if "social_links" in data:
                experience.social_links = build_links(data["social_links"] or [])

            session.flush()
            result = experience.to_dict()

        self.logger.info("experience_updated", influencer_id=influencer_id, experience_id=experience_id)
        return result

    def delete_experience(self, influencer_id: int, experience_id: int) -> dict:
        with db.session() as session:
            session.delete(self._owned(session, influencer_id, experience_id))

        self.logger.info("experience_deleted", influencer_id=influencer_id, experience_id=experience_id)
        return {"message": "Experience deleted successfully"}


experience_service = ExperienceService()

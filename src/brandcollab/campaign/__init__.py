"""Brand campaigns, invitations and applications."""

from brandcollab.campaign.models import ApplicationStatus, Campaign, CampaignApplication, CampaignStatus

__all__ = ["ApplicationStatus", "Campaign", "CampaignApplication", "CampaignStatus"]

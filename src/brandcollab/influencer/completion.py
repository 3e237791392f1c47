"""Influencer profile completeness rules."""

from typing import Any

SOCIAL_FIELDS = ("instagram_url", "youtube_url", "facebook_url", "linkedin_url", "twitter_url")

# Scored fields; "social" is satisfied by any social link
SCORED_REQUIRED_FIELDS = (
    "name",
    "username",
    "bio",
    "profile_image",
    "profile_banner",
    "profile_headline",
    "country_id",
    "city_id",
    "whatsapp_number",
    "social",
)
SCORED_OPTIONAL_FIELDS = ("youtube_url", "facebook_url", "linkedin_url", "twitter_url")

# Needed for the profile to count as complete (banner is not)
COMPLETION_REQUIRED_FIELDS = (
    "name",
    "username",
    "bio",
    "profile_image",
    "profile_headline",
    "country_id",
    "city_id",
    "whatsapp_number",
)

FRIENDLY_NAMES = {
    "name": "Full Name",
    "username": "Username",
    "bio": "Bio/Description",
    "profile_image": "Profile Image",
    "profile_banner": "Profile Banner",
    "profile_headline": "Profile Headline",
    "country_id": "Country",
    "city_id": "City",
    "whatsapp_number": "WhatsApp Number",
    "social": "At least one social media link",
}

READY_MESSAGE = "Your profile is complete and ready for verification!"


def _filled(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def has_social_link(influencer) -> bool:
    return any(_filled(getattr(influencer, f, None)) for f in SOCIAL_FIELDS)


def _field_filled(influencer, field: str) -> bool:
    if field == "social":
        return has_social_link(influencer)
    return _filled(getattr(influencer, field, None))


def is_profile_complete(influencer) -> bool:
    """Whether the profile may be submitted for verification."""
    return (
        all(_filled(getattr(influencer, f, None)) for f in COMPLETION_REQUIRED_FIELDS)
        and has_social_link(influencer)
        and bool(influencer.is_whatsapp_verified)
        and bool(influencer.collaboration_costs)
    )


def next_steps(missing: list[str]) -> list[str]:
    steps = []
    if "Profile Image" in missing or "Profile Banner" in missing:
        steps.append("Upload profile images to showcase your personal brand")
    if "Profile Headline" in missing or "Bio/Description" in missing:
        steps.append("Complete your profile description and headline")
    if "Country" in missing or "City" in missing:
        steps.append("Add your location information")
    if "At least one social media link" in missing:
        steps.append("Connect your social media accounts")
    if "WhatsApp Number" in missing:
        steps.append("Add and verify your WhatsApp number for better communication")
    return steps


def calculate_profile_completion(influencer) -> dict:
    """Completion percentage, missing fields and suggested next steps.

    Args:
        influencer: Influencer row (attached or not)

    Returns:
        Dict with isCompleted, completionPercentage, missingFields, nextSteps
    """
    all_fields = SCORED_REQUIRED_FIELDS + SCORED_OPTIONAL_FIELDS
    filled = sum(1 for f in all_fields if _field_filled(influencer, f))
    percentage = round(filled / len(all_fields) * 100)

    missing = [FRIENDLY_NAMES[f] for f in SCORED_REQUIRED_FIELDS if not _field_filled(influencer, f)]
    complete = is_profile_complete(influencer)

    return {
        "isCompleted": complete,
        "completionPercentage": percentage,
        "missingFields": missing,
        "nextSteps": [READY_MESSAGE] if complete else next_steps(missing),
    }

"""Brand profile completeness rules."""

from brandcollab.influencer.completion import SOCIAL_FIELDS

REQUIRED_FIELDS = (
    "brand_name",
    "username",
    "legal_entity_name",
    "company_type_id",
    "brand_bio",
    "profile_headline",
    "website_url",
    "founded_year",
    "headquarter_country_id",
    "headquarter_city_id",
    "poc_name",
    "poc_designation",
    "poc_email_id",
    "poc_contact_number",
    "profile_image",
    "profile_banner",
    "incorporation_document",
    "gst_document",
    "pan_document",
)

FRIENDLY_NAMES = {
    "brand_name": "Brand Name",
    "username": "Username",
    "legal_entity_name": "Legal Entity Name",
    "company_type_id": "Company Type",
    "brand_bio": "Brand Description",
    "profile_headline": "Profile Headline",
    "website_url": "Website URL",
    "founded_year": "Founded Year",
    "headquarter_country_id": "Headquarter Country",
    "headquarter_city_id": "Headquarter City",
    "poc_name": "Point of Contact Name",
    "poc_designation": "POC Designation",
    "poc_email_id": "POC Email",
    "poc_contact_number": "POC Phone",
    "profile_image": "Profile Image",
    "profile_banner": "Profile Banner",
    "incorporation_document": "Incorporation Document",
    "gst_document": "GST Document",
    "pan_document": "PAN Document",
}

FIELD_GROUPS = (
    (("brand_name", "username", "brand_bio"), "Complete basic profile information"),
    (("legal_entity_name", "company_type_id", "website_url", "founded_year"), "Add company details and website"),
    (("headquarter_country_id", "headquarter_city_id"), "Specify business locations"),
    (("poc_name", "poc_designation", "poc_email_id", "poc_contact_number"), "Complete point of contact information"),
    (("profile_image", "profile_banner", "profile_headline"), "Upload profile images and add headline"),
    (("incorporation_document", "gst_document", "pan_document"), "Upload required business documents"),
)

SOCIAL_STEP = "Add at least one social media link (Facebook, Instagram, YouTube, LinkedIn, or Twitter)"


def _filled(value) -> bool:
    return value is not None and str(value).strip() != ""


def has_social_link(brand) -> bool:
    return any(_filled(getattr(brand, f, None)) for f in SOCIAL_FIELDS)


def missing_fields(brand) -> list[str]:
    return [f for f in REQUIRED_FIELDS if not _filled(getattr(brand, f, None))]


def is_profile_complete(brand) -> bool:
    return not missing_fields(brand) and has_social_link(brand)


def calculate_profile_completion(brand) -> dict:
    """Completion percentage; social links count as one extra field."""
    missing = missing_fields(brand)
    social = has_social_link(brand)
    filled = len(REQUIRED_FIELDS) - len(missing) + (1 if social else 0)

    steps = [message for fields, message in FIELD_GROUPS if any(f in missing for f in fields)]
    if not social:
        steps.append(SOCIAL_STEP)

    return {
        "isCompleted": not missing and social,
        "completionPercentage": round(filled / (len(REQUIRED_FIELDS) + 1) * 100),
        "missingFields": [FRIENDLY_NAMES[f] for f in missing],
        "nextSteps": steps,
    }

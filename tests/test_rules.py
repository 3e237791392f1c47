from datetime import datetime

import pytest

from brandcollab.auth.models import Brand, Gender, Influencer
from brandcollab.auth.rules import (
    USERNAME_FORMAT,
    map_gender,
    username_candidates,
    validate_password_complexity,
    validate_username_format,
)
from brandcollab.brand import completion as brand_completion
from brandcollab.errors import BadRequestError
from brandcollab.influencer import completion as influencer_completion


@pytest.mark.parametrize("password,message", [
    ("Ab1!", "at least 8"),
    ("abcdefg1!", "uppercase"),
    ("ABCDEFG1!", "lowercase"),
    ("Abcdefgh!", "digit"),
    ("Abcdefgh1", "special"),
])
def test_password_complexity(password, message):
    with pytest.raises(ValueError, match=message):
        validate_password_complexity(password)


def test_password_complexity_accepts_strong_password():
    assert validate_password_complexity("Str0ng!pass") == "Str0ng!pass"


@pytest.mark.parametrize("value,expected", [
    ("male", (Gender.MALE, None)),
    ("Female", (Gender.FEMALE, None)),
    ("others", (Gender.OTHERS, None)),
    ("Genderfluid", (Gender.OTHERS, "Genderfluid")),
    (None, (None, None)),
])
def test_map_gender(value, expected):
    assert map_gender(value) == expected


@pytest.mark.parametrize("username", ["ab", "Has.Caps", "space here", "x" * 31])
def test_username_format_rejected(username):
    with pytest.raises(BadRequestError):
        validate_username_format(username)


def test_username_candidates_are_valid_and_distinct():
    candidates = username_candidates("asha.rao", now=datetime(2026, 3, 1))

    assert "asha.rao" not in candidates
    assert "asha.rao_2026" in candidates
    assert "asha.rao_26" in candidates
    assert len(candidates) == len(set(candidates))
    assert all(USERNAME_FORMAT.match(c) for c in candidates)


def test_username_candidates_fit_max_length():
    candidates = username_candidates("a" * 30)
    assert all(len(c) <= 30 for c in candidates)


# ==================== INFLUENCER COMPLETION ====================

def complete_influencer(**overrides) -> Influencer:
    values = dict(
        name="Asha",
        username="asha",
        bio="Food stories",
        profile_image="img.jpg",
        profile_banner="banner.jpg",
        profile_headline="Foodie",
        country_id=1,
        city_id=2,
        whatsapp_number="+919876543210",
        is_whatsapp_verified=True,
        instagram_url="https://instagram.com/asha",
        collaboration_costs={"instagram": {"reel": 2000}},
    )
    values.update(overrides)
    return Influencer(**values)


def test_influencer_complete_profile():
    result = influencer_completion.calculate_profile_completion(complete_influencer())

    assert result["isCompleted"] is True
    assert result["missingFields"] == []
    assert result["nextSteps"] == [influencer_completion.READY_MESSAGE]
    # Optional social links are unset
    assert result["completionPercentage"] == round(10 / 14 * 100)


def test_influencer_banner_not_needed_for_completion():
    result = influencer_completion.calculate_profile_completion(complete_influencer(profile_banner=None))

    assert result["isCompleted"] is True
    assert "Profile Banner" in result["missingFields"]


def test_influencer_unverified_whatsapp_blocks_completion():
    influencer = complete_influencer(is_whatsapp_verified=False)
    assert not influencer_completion.is_profile_complete(influencer)


def test_influencer_collaboration_costs_required():
    influencer = complete_influencer(collaboration_costs=None)
    assert not influencer_completion.is_profile_complete(influencer)


def test_influencer_missing_fields_and_steps():
    influencer = complete_influencer(city_id=None, instagram_url=None, bio="  ")
    result = influencer_completion.calculate_profile_completion(influencer)

    assert result["isCompleted"] is False
    assert set(result["missingFields"]) == {"City", "At least one social media link", "Bio/Description"}
    assert "Add your location information" in result["nextSteps"]
    assert "Connect your social media accounts" in result["nextSteps"]


# ==================== BRAND COMPLETION ====================

def complete_brand(**overrides) -> Brand:
    values = {field: "x" for field in brand_completion.REQUIRED_FIELDS}
    values.update(company_type_id=1, founded_year=2015, headquarter_country_id=1, headquarter_city_id=1)
    values["linkedin_url"] = "https://linkedin.com/company/x"
    values.update(overrides)
    return Brand(**values)


def test_brand_complete_profile():
    result = brand_completion.calculate_profile_completion(complete_brand())

    assert result["isCompleted"] is True
    assert result["completionPercentage"] == 100
    assert result["nextSteps"] == []


def test_brand_missing_documents_and_social():
    brand = complete_brand(gst_document=None, linkedin_url=None)
    result = brand_completion.calculate_profile_completion(brand)

    assert result["isCompleted"] is False
    assert result["missingFields"] == ["GST Document"]
    assert "Upload required business documents" in result["nextSteps"]
    assert brand_completion.SOCIAL_STEP in result["nextSteps"]
    total = len(brand_completion.REQUIRED_FIELDS) + 1
    assert result["completionPercentage"] == round((total - 2) / total * 100)

"""Initial database schema

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

Creates master data, accounts, auth bookkeeping, campaigns, referrals,
Pro subscriptions, device tokens and the profile review queue.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enum columns are stored as their string values (non-native enums)
ENUM = sa.String(32)


def upgrade() -> None:
    """Create all initial tables."""

    # Master data
    op.create_table(
        "countries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("code", sa.String(3), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
        sa.UniqueConstraint("code"),
    )

    op.create_table(
        "cities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("state", sa.String(100), nullable=True),
        sa.Column("tier", sa.Integer(), nullable=True),
        sa.Column("country_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_cities_name", "cities", ["name"], unique=False)
    op.create_index("ix_cities_country_id", "cities", ["country_id"], unique=False)

    op.create_table(
        "company_types",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "niches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # Admins
    op.create_table(
        "admins",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", ENUM, nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_admins_email", "admins", ["email"], unique=True)

    # Influencers
    op.create_table(
        "influencers",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("username", sa.String(30), nullable=True),
        sa.Column("phone", sa.String(20), nullable=False),
        sa.Column("phone_hash", sa.String(64), nullable=False),
        sa.Column("is_phone_verified", sa.Boolean(), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("gender", ENUM, nullable=True),
        sa.Column("others_gender", sa.String(50), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("profile_image", sa.String(500), nullable=True),
        sa.Column("profile_banner", sa.String(500), nullable=True),
        sa.Column("profile_headline", sa.String(255), nullable=True),
        sa.Column("country_id", sa.Integer(), nullable=True),
        sa.Column("city_id", sa.Integer(), nullable=True),
        sa.Column("whatsapp_number", sa.String(20), nullable=True),
        sa.Column("whatsapp_hash", sa.String(64), nullable=True),
        sa.Column("is_whatsapp_verified", sa.Boolean(), nullable=True),
        sa.Column("instagram_url", sa.String(500), nullable=True),
        sa.Column("youtube_url", sa.String(500), nullable=True),
        sa.Column("facebook_url", sa.String(500), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        sa.Column("twitter_url", sa.String(500), nullable=True),
        sa.Column("collaboration_costs", sa.JSON(), nullable=True),
        sa.Column("is_profile_completed", sa.Boolean(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=True),
        sa.Column("verified_at", sa.DateTime(), nullable=True),
        sa.Column("referral_code", sa.String(8), nullable=True),
        sa.Column("referral_invite_click_count", sa.Integer(), nullable=True),
        sa.Column("weekly_credits", sa.Integer(), nullable=True),
        sa.Column("weekly_credits_reset_date", sa.DateTime(), nullable=True),
        sa.Column("is_pro", sa.Boolean(), nullable=True),
        sa.Column("pro_activated_at", sa.DateTime(), nullable=True),
        sa.Column("pro_expires_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["country_id"], ["countries.id"]),
        sa.ForeignKeyConstraint(["city_id"], ["cities.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_influencers_username", "influencers", ["username"], unique=True)
    op.create_index("ix_influencers_phone_hash", "influencers", ["phone_hash"], unique=True)
    op.create_index("ix_influencers_whatsapp_hash", "influencers", ["whatsapp_hash"], unique=False)
    op.create_index("ix_influencers_referral_code", "influencers", ["referral_code"], unique=True)

    # Brands
    op.create_table(
        "brands",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("is_email_verified", sa.Boolean(), nullable=True),
        sa.Column("brand_name", sa.String(255), nullable=True),
        sa.Column("username", sa.String(30), nullable=True),
        sa.Column("legal_entity_name", sa.String(255), nullable=True),
        sa.Column("company_type_id", sa.Integer(), nullable=True),
        sa.Column("brand_email_id", sa.String(255), nullable=True),
        sa.Column("poc_name", sa.String(255), nullable=True),
        sa.Column("poc_designation", sa.String(255), nullable=True),
        sa.Column("poc_email_id", sa.String(255), nullable=True),
        sa.Column("poc_contact_number", sa.String(20), nullable=True),
        sa.Column("brand_bio", sa.Text(), nullable=True),
        sa.Column("profile_image", sa.String(500), nullable=True),
        sa.Column("profile_banner", sa.String(500), nullable=True),
        sa.Column("profile_headline", sa.String(255), nullable=True),
        sa.Column("website_url", sa.String(500), nullable=True),
        sa.Column("founded_year", sa.Integer(), nullable=True),
        sa.Column("headquarter_country_id", sa.Integer(), nullable=True),
        sa.Column("headquarter_city_id", sa.Integer(), nullable=True),
        sa.Column("instagram_url", sa.String(500), nullable=True),
        sa.Column("youtube_url", sa.String(500), nullable=True),
        sa.Column("facebook_url", sa.String(500), nullable=True),
        sa.Column("linkedin_url", sa.String(500), nullable=True),
        sa.Column("twitter_url", sa.String(500), nullable=True),
        sa.Column("incorporation_document", sa.String(500), nullable=True),
        sa.Column("gst_document", sa.String(500), nullable=True),
        sa.Column("pan_document", sa.String(500), nullable=True),
        sa.Column("is_profile_completed", sa.Boolean(), nullable=True),
        sa.Column("is_verified", sa.Boolean(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.Column("pending_login_expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["company_type_id"], ["company_types.id"]),
        sa.ForeignKeyConstraint(["headquarter_country_id"], ["countries.id"]),
        sa.ForeignKeyConstraint(["headquarter_city_id"], ["cities.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_brands_email", "brands", ["email"], unique=True)
    op.create_index("ix_brands_username", "brands", ["username"], unique=True)

    op.create_table(
        "influencer_niches",
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("niche_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["niche_id"], ["niches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("influencer_id", "niche_id"),
    )

    op.create_table(
        "brand_niches",
        sa.Column("brand_id", sa.Integer(), nullable=False),
        sa.Column("niche_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["brand_id"], ["brands.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["niche_id"], ["niches.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("brand_id", "niche_id"),
    )

    op.create_table(
        "custom_niches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_type", ENUM, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_custom_niches_user_id", "custom_niches", ["user_id"], unique=False)

    # Auth bookkeeping
    op.create_table(
        "otps",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identifier", sa.String(64), nullable=False),
        sa.Column("type", ENUM, nullable=False),
        sa.Column("otp", sa.String(6), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("is_used", sa.Boolean(), nullable=True),
        sa.Column("attempts", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_otps_identifier", "otps", ["identifier"], unique=False)
    op.create_index("ix_otps_created_at", "otps", ["created_at"], unique=False)

    for table in ("otp_failures", "otp_request_logs"):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("identifier", sa.String(64), nullable=False),
            sa.Column("created_at", sa.DateTime(), nullable=True),
            sa.PrimaryKeyConstraint("id"),
        )
        op.create_index(f"ix_{table}_identifier", table, ["identifier"], unique=False)
        op.create_index(f"ix_{table}_created_at", table, ["created_at"], unique=False)

    op.create_table(
        "auth_sessions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("jti", sa.String(64), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("user_type", ENUM, nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("revoked_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_auth_sessions_jti", "auth_sessions", ["jti"], unique=True)

    op.create_table(
        "password_reset_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("jti", sa.String(64), nullable=False),
        sa.Column("brand_id", sa.Integer(), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["brand_id"], ["brands.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_password_reset_tokens_jti", "password_reset_tokens", ["jti"], unique=True)

    op.create_table(
        "processed_webhook_events",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("event_id", sa.String(255), nullable=False),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("source", sa.String(50), nullable=False),
        sa.Column("processed_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_processed_webhook_events_event_id", "processed_webhook_events", ["event_id"], unique=True)

    # Campaigns
    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("brand_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("type", ENUM, nullable=False),
        sa.Column("is_invite_only", sa.Boolean(), nullable=False),
        sa.Column("is_organic", sa.Boolean(), nullable=False),
        sa.Column("is_max_campaign", sa.Boolean(), nullable=False),
        sa.Column("is_pan_india", sa.Boolean(), nullable=False),
        sa.Column("min_age", sa.Integer(), nullable=True),
        sa.Column("max_age", sa.Integer(), nullable=True),
        sa.Column("is_open_to_all_ages", sa.Boolean(), nullable=False),
        sa.Column("gender_preferences", sa.JSON(), nullable=True),
        sa.Column("is_open_to_all_genders", sa.Boolean(), nullable=False),
        sa.Column("niche_ids", sa.JSON(), nullable=True),
        sa.Column("custom_influencer_requirements", sa.Text(), nullable=True),
        sa.Column("performance_expectations", sa.Text(), nullable=True),
        sa.Column("brand_support", sa.Text(), nullable=True),
        sa.Column("campaign_budget", sa.Numeric(12, 2), nullable=True),
        sa.Column("barter_product_worth", sa.Numeric(12, 2), nullable=True),
        sa.Column("additional_monetary_payout", sa.Numeric(12, 2), nullable=True),
        sa.Column("number_of_influencers", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["brand_id"], ["brands.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaigns_brand_id", "campaigns", ["brand_id"], unique=False)
    op.create_index("ix_campaigns_status", "campaigns", ["status"], unique=False)
    op.create_index("ix_campaigns_created_at", "campaigns", ["created_at"], unique=False)

    op.create_table(
        "campaign_cities",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("city_id", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["city_id"], ["cities.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaign_cities_campaign_id", "campaign_cities", ["campaign_id"], unique=False)
    op.create_index("ix_campaign_cities_city_id", "campaign_cities", ["city_id"], unique=False)

    op.create_table(
        "campaign_deliverables",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("platform", ENUM, nullable=False),
        sa.Column("type", ENUM, nullable=False),
        sa.Column("budget", sa.Numeric(10, 2), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("specifications", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaign_deliverables_campaign_id", "campaign_deliverables", ["campaign_id"], unique=False)

    op.create_table(
        "campaign_invitations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("responded_at", sa.DateTime(), nullable=True),
        sa.Column("response_message", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("campaign_id", "influencer_id", name="unique_campaign_influencer_invitation"),
    )
    op.create_index("ix_campaign_invitations_campaign_id", "campaign_invitations", ["campaign_id"], unique=False)
    op.create_index("ix_campaign_invitations_influencer_id", "campaign_invitations", ["influencer_id"], unique=False)

    op.create_table(
        "campaign_applications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("cover_letter", sa.Text(), nullable=True),
        sa.Column("proposal_message", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaign_applications_campaign_id", "campaign_applications", ["campaign_id"], unique=False)
    op.create_index("ix_campaign_applications_influencer_id", "campaign_applications", ["influencer_id"], unique=False)

    # Influencer-owned records
    op.create_table(
        "experiences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=True),
        sa.Column("campaign_name", sa.String(255), nullable=False),
        sa.Column("brand_name", sa.String(255), nullable=False),
        sa.Column("campaign_category", sa.String(100), nullable=True),
        sa.Column("deliverable_format", sa.String(255), nullable=True),
        sa.Column("success_message", sa.Text(), nullable=True),
        sa.Column("role_description", sa.Text(), nullable=True),
        sa.Column("keyword_tags", sa.JSON(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_experiences_influencer_id", "experiences", ["influencer_id"], unique=False)

    op.create_table(
        "experience_social_links",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("experience_id", sa.Integer(), nullable=False),
        sa.Column("platform", sa.String(50), nullable=False),
        sa.Column("content_type", sa.String(50), nullable=False),
        sa.Column("url", sa.String(500), nullable=False),
        sa.ForeignKeyConstraint(["experience_id"], ["experiences.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_experience_social_links_experience_id", "experience_social_links", ["experience_id"], unique=False)

    op.create_table(
        "influencer_upi_ids",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("upi_id", sa.String(255), nullable=False),
        sa.Column("is_selected_for_next_transaction", sa.Boolean(), nullable=False),
        sa.Column("last_used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_influencer_upi_ids_influencer_id", "influencer_upi_ids", ["influencer_id"], unique=False)

    op.create_table(
        "pro_subscriptions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=True),
        sa.Column("end_date", sa.DateTime(), nullable=True),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("checkout_session_id", sa.String(255), nullable=True),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("checkout_session_id"),
    )
    op.create_index("ix_pro_subscriptions_influencer_id", "pro_subscriptions", ["influencer_id"], unique=False)

    # Referral rewards
    op.create_table(
        "credit_transactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("transaction_type", ENUM, nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("payment_status", ENUM, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("campaign_id", sa.Integer(), nullable=True),
        sa.Column("referred_user_id", sa.Integer(), nullable=True),
        sa.Column("redemption_id", sa.Integer(), nullable=True),
        sa.Column("upi_id", sa.String(255), nullable=True),
        sa.Column("payment_reference_id", sa.String(255), nullable=True),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("processed_by", sa.Integer(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"]),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"]),
        sa.ForeignKeyConstraint(["referred_user_id"], ["influencers.id"]),
        sa.ForeignKeyConstraint(["redemption_id"], ["credit_transactions.id"]),
        sa.ForeignKeyConstraint(["processed_by"], ["admins.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_credit_transactions_influencer_id", "credit_transactions", ["influencer_id"], unique=False)
    op.create_index("ix_credit_transactions_payment_status", "credit_transactions", ["payment_status"], unique=False)
    op.create_index("ix_credit_transactions_redemption_id", "credit_transactions", ["redemption_id"], unique=False)

    op.create_table(
        "influencer_referral_usages",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("influencer_id", sa.Integer(), nullable=False),
        sa.Column("referral_code", sa.String(8), nullable=False),
        sa.Column("credit_awarded", sa.Boolean(), nullable=False),
        sa.Column("credit_awarded_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["influencer_id"], ["influencers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("influencer_id"),
    )
    op.create_index("ix_influencer_referral_usages_referral_code", "influencer_referral_usages", ["referral_code"], unique=False)

    # Push notifications
    op.create_table(
        "device_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("user_type", ENUM, nullable=False),
        sa.Column("fcm_token", sa.String(500), nullable=False),
        sa.Column("device_id", sa.String(255), nullable=True),
        sa.Column("device_name", sa.String(255), nullable=True),
        sa.Column("device_os", ENUM, nullable=True),
        sa.Column("app_version", sa.String(50), nullable=True),
        sa.Column("last_used_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fcm_token"),
    )
    op.create_index("ix_device_tokens_user_id", "device_tokens", ["user_id"], unique=False)
    op.create_index("ix_device_tokens_last_used_at", "device_tokens", ["last_used_at"], unique=False)

    # Profile review queue
    op.create_table(
        "profile_reviews",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("profile_id", sa.Integer(), nullable=False),
        sa.Column("profile_type", ENUM, nullable=False),
        sa.Column("status", ENUM, nullable=False),
        sa.Column("submitted_data", sa.JSON(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("admin_comments", sa.Text(), nullable=True),
        sa.Column("status_viewed", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["reviewed_by"], ["admins.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_profile_reviews_profile_id", "profile_reviews", ["profile_id"], unique=False)
    op.create_index("ix_profile_reviews_status", "profile_reviews", ["status"], unique=False)


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    for table in (
        "profile_reviews",
        "device_tokens",
        "influencer_referral_usages",
        "credit_transactions",
        "pro_subscriptions",
        "influencer_upi_ids",
        "experience_social_links",
        "experiences",
        "campaign_applications",
        "campaign_invitations",
        "campaign_deliverables",
        "campaign_cities",
        "campaigns",
        "processed_webhook_events",
        "password_reset_tokens",
        "auth_sessions",
        "otp_request_logs",
        "otp_failures",
        "otps",
        "custom_niches",
        "brand_niches",
        "influencer_niches",
        "brands",
        "influencers",
        "admins",
        "niches",
        "company_types",
        "cities",
        "countries",
    ):
        op.drop_table(table)

"""Authentication for influencers (phone OTP) and brands (email + password)."""

from brandcollab.auth.models import Brand, Influencer

__all__ = ["Brand", "Influencer"]

"""Influencer profiles, campaign discovery, experiences and weekly credits."""

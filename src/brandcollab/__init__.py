"""BrandCollab - influencer and brand collaboration marketplace backend."""

__version__ = "1.0.0"

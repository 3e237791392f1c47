"""Declarative base and shared master data models."""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def enum_type(enum_cls: type[Enum]) -> SQLEnum:
    """Portable enum column storing the member values, not names."""
    return SQLEnum(
        enum_cls,
        values_callable=lambda members: [m.value for m in members],
        native_enum=False,
        length=32,
    )


class UserType(str, Enum):
    """Account kinds that can hold tokens, devices and reviews."""
    INFLUENCER = "influencer"
    BRAND = "brand"
    ADMIN = "admin"


class Country(Base):
    """Country master data."""

    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    code: Mapped[str] = mapped_column(String(3), nullable=False, unique=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    cities: Mapped[list["City"]] = relationship("City", back_populates="country")

    def __repr__(self) -> str:
        return f"<Country(id={self.id}, code='{self.code}')>"


class City(Base):
    """City master data with market tier (1 = metro)."""

    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    tier: Mapped[int | None] = mapped_column(Integer, nullable=True)
    country_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("countries.id"), nullable=False, index=True
    )

    country: Mapped["Country"] = relationship("Country", back_populates="cities")

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "state": self.state, "tier": self.tier}

    def __repr__(self) -> str:
        return f"<City(id={self.id}, name='{self.name}', tier={self.tier})>"


class CompanyType(Base):
    """Legal company types offered during brand onboarding."""

    __tablename__ = "company_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class Niche(Base):
    """Content niche (fashion, tech, food...)."""

    __tablename__ = "niches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "icon": self.icon}

    def __repr__(self) -> str:
        return f"<Niche(id={self.id}, name='{self.name}')>"

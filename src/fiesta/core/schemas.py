# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request/response models.

Clients speak camelCase; rows and services use snake_case. Every model
accepts both spellings on input and serialises camelCase.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, Dict, FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialModel(CamelModel):
    """Update payload: every field optional, but null only where the column allows it."""

    nullable: ClassVar[FrozenSet[str]] = frozenset()

    @model_validator(mode="after")
    def _reject_nulls(self):
        bad = [n for n in self.model_fields_set if getattr(self, n) is None and n not in self.nullable]
        if bad:
            raise ValueError(f"Fields may not be null: {', '.join(sorted(bad))}")
        return self

    def changes(self) -> Dict[str, Any]:
        """Only the fields the client sent, nested models flattened to their wire form."""
        out: Dict[str, Any] = {}
        for name in self.model_fields_set:
            value = getattr(self, name)
            out[name] = value.model_dump(by_alias=True) if isinstance(value, BaseModel) else value
        return out


# ------------------ auth ------------------


class Credentials(BaseModel):
    username: str
    password: str


class NewUser(CamelModel):
    username: str
    password: str
    is_admin: bool = False


class PasswordChange(CamelModel):
    current_password: str
    new_password: str


# ------------------ events / wiki ------------------


class EventIn(CamelModel):
    title: str
    description: str
    date: str
    time: str
    location: str
    category: str
    image: str
    presenter: str
    presenter_image: Optional[str] = None
    is_featured: bool = False
    registration_link: Optional[str] = None


class EventPatch(PartialModel):
    nullable: ClassVar[FrozenSet[str]] = frozenset({"presenter_image", "registration_link"})

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None
    category: Optional[str] = None
    image: Optional[str] = None
    presenter: Optional[str] = None
    presenter_image: Optional[str] = None
    is_featured: Optional[bool] = None
    registration_link: Optional[str] = None


class EventOut(EventIn):
    id: int
    created_at: datetime


class ArticleIn(CamelModel):
    title: str
    content: str
    category: str
    icon: str
    is_featured: bool = False


class ArticlePatch(PartialModel):
    title: Optional[str] = None
    content: Optional[str] = None
    category: Optional[str] = None
    icon: Optional[str] = None
    is_featured: Optional[bool] = None


class ArticleOut(ArticleIn):
    id: int
    created_at: datetime


# ------------------ settings ------------------


class SocialLinks(CamelModel):
    facebook: str
    twitter: str
    instagram: str
    youtube: str


class ContactInfo(CamelModel):
    email: str
    phone: str
    address: str = ""


class WebsiteSettings(CamelModel):
    title: str
    description: str
    favicon: str
    header_code: str
    footer_code: str


class NavbarSettings(CamelModel):
    logo: str
    logo_text: str
    site_title: str
    primary_color: str
    registration_link: str
    display_mode: Literal["logo-only", "logo-text"]


class FooterSettings(CamelModel):
    logo_text: str
    tagline: str
    description: str
    privacy_policy_link: str
    terms_link: str
    copyright_text: str


class CountdownSettings(CamelModel):
    enabled: bool
    title: str
    subtitle: str
    button_text: str
    button_link: str
    background_color: str
    text_color: str


class SettingsPatch(PartialModel):
    """Partial settings update. Nested objects must be sent complete."""

    carnival_date: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    contact_mail: Optional[str] = None
    social_facebook: Optional[str] = None
    social_twitter: Optional[str] = None
    social_instagram: Optional[str] = None
    social_youtube: Optional[str] = None
    social_links: Optional[SocialLinks] = None
    contact_info: Optional[ContactInfo] = None
    website_settings: Optional[WebsiteSettings] = None
    navbar_settings: Optional[NavbarSettings] = None
    footer_settings: Optional[FooterSettings] = None
    countdown_settings: Optional[CountdownSettings] = None

    @field_validator("carnival_date")
    @classmethod
    def _iso_datetime(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        s = v.strip()
        try:
            datetime.fromisoformat(s[:-1] + "+00:00" if s.endswith("Z") else s)
        except ValueError as e:
            raise ValueError("carnivalDate must be an ISO 8601 datetime") from e
        return s


class SettingsOut(CamelModel):
    id: int
    carnival_date: str
    contact_email: str
    contact_phone: str
    contact_mail: str
    social_facebook: str
    social_twitter: str
    social_instagram: str
    social_youtube: str
    social_links: Dict[str, Any]
    contact_info: Dict[str, Any]
    website_settings: Dict[str, Any]
    navbar_settings: Dict[str, Any]
    footer_settings: Dict[str, Any]
    countdown_settings: Dict[str, Any]


# ------------------ contact ------------------


class ContactMessage(BaseModel):
    name: str = Field(min_length=2)
    email: EmailStr
    subject: str = Field(min_length=5)
    message: str = Field(min_length=10)

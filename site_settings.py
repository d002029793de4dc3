"""
Site-wide configuration documents.

Each kind of settings lives in its own collection as a single document with
_id "main". Reads fill missing fields from the schema defaults; writes replace
the whole document.
"""
from typing import Dict, List, Optional, Type

from pydantic import BaseModel, Field
from pymongo.database import Database

from database import now_utc

SETTINGS_DOC_ID = "main"


class HomeSettings(BaseModel):
    hero_title: str = "José Vega Art"
    hero_subtitle: str = "Original paintings and commissioned work"
    profile_image_url: Optional[str] = None
    about_text: str = ""
    banner_images: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    show_video: bool = False
    show_recent_paintings: bool = True
    recent_paintings_count: int = Field(6, ge=0, le=24)


class MusicTrack(BaseModel):
    id: str
    title: str
    url: str
    duration: Optional[int] = Field(None, ge=0, description="Seconds")


class MusicSettings(BaseModel):
    enabled: bool = False
    autoplay: bool = False
    volume: float = Field(0.5, ge=0, le=1)
    tracks: List[MusicTrack] = Field(default_factory=list)


class GeneralSettings(BaseModel):
    show_pwa_prompt: bool = False
    primary_color: str = "#5B7F2D"
    secondary_color: str = "#0F172A"
    accent_color: str = "#F59E0B"
    contact_email: str = ""
    contact_phone: str = ""
    whatsapp_number: str = ""
    instagram_url: Optional[str] = None
    tiktok_url: Optional[str] = None
    facebook_url: Optional[str] = None
    footer_text: str = ""
    show_social_in_footer: bool = True
    banner_background_color: str = "#000000"
    banner_overlay_opacity: float = Field(0.5, ge=0, le=1)
    enable_animations: bool = True
    button_style: str = "rounded"


SETTINGS_KINDS: Dict[str, Type[BaseModel]] = {
    "home": HomeSettings,
    "music": MusicSettings,
    "general": GeneralSettings,
}


def _collection(kind: str) -> str:
    if kind not in SETTINGS_KINDS:
        raise KeyError(kind)
    return f"{kind}settings"


def get_settings(db: Database, kind: str) -> BaseModel:
    model = SETTINGS_KINDS[kind]
    doc = db[_collection(kind)].find_one({"_id": SETTINGS_DOC_ID}) or {}
    return model(**doc)


def put_settings(db: Database, kind: str, values: BaseModel, updated_by: Optional[str] = None) -> BaseModel:
    model = SETTINGS_KINDS[kind]
    validated = model(**values.model_dump())
    doc = {"_id": SETTINGS_DOC_ID, **validated.model_dump(), "updated_at": now_utc(), "updated_by": updated_by}
    db[_collection(kind)].replace_one({"_id": SETTINGS_DOC_ID}, doc, upsert=True)
    return validated

"""
Pydantic schemas for site settings.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ValueItem(BaseModel):
    title: str = ""
    description: str = ""
    icon: str = ""


class SettingResponse(BaseModel):
    main_logo: str
    dark_mode_logo: str
    carousel: list[str]
    about_text: str
    carousel_welcome_text: str
    carousel_app_name_text: str
    carousel_description_text: str
    founder_name: str
    founder_role: str
    founder_image: str
    founder_bio: str
    call_to_action_text: str
    values: list[ValueItem]

    model_config = {"from_attributes": True}


class SettingUpdate(BaseModel):
    main_logo: Optional[str] = Field(None, max_length=500)
    dark_mode_logo: Optional[str] = Field(None, max_length=500)
    carousel: Optional[list[str]] = None
    about_text: Optional[str] = Field(None, max_length=5000)
    carousel_welcome_text: Optional[str] = Field(None, max_length=255)
    carousel_app_name_text: Optional[str] = Field(None, max_length=255)
    carousel_description_text: Optional[str] = Field(None, max_length=500)
    founder_name: Optional[str] = Field(None, max_length=255)
    founder_role: Optional[str] = Field(None, max_length=255)
    founder_image: Optional[str] = Field(None, max_length=500)
    founder_bio: Optional[str] = Field(None, max_length=5000)
    call_to_action_text: Optional[str] = Field(None, max_length=2000)
    values: Optional[list[ValueItem]] = None

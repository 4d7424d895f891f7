"""
Site-wide branding settings. Singleton: the row always has id 1.
"""

from sqlalchemy import JSON, Column, Integer, String

from eventhub.db.base import Base, TimestampMixin

SETTINGS_ROW_ID = 1

DEFAULTS = {
    "main_logo": "/uploads/default-logo-light.png",
    "dark_mode_logo": "/uploads/default-logo-dark.png",
    "carousel": [],
    "about_text": (
        "EventHub is your platform for discovering and organizing local events. "
        "We connect communities by making cultural, sports and social activities "
        "easier to find than ever."
    ),
    "carousel_welcome_text": "Welcome to",
    "carousel_app_name_text": "EventHub",
    "carousel_description_text": "Discover the best events near you",
    "founder_name": "",
    "founder_role": "",
    "founder_image": "/uploads/default-founder.png",
    "founder_bio": "",
    "call_to_action_text": (
        "Join the EventHub community and discover events near you, "
        "or start organizing your own today!"
    ),
    "values": [],
}


class Setting(Base, TimestampMixin):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, default=SETTINGS_ROW_ID)
    main_logo = Column(String(500), nullable=False, default=DEFAULTS["main_logo"])
    dark_mode_logo = Column(String(500), nullable=False, default=DEFAULTS["dark_mode_logo"])
    carousel = Column(JSON, nullable=False, default=list)
    about_text = Column(String(5000), nullable=False, default=DEFAULTS["about_text"])
    carousel_welcome_text = Column(String(255), nullable=False, default=DEFAULTS["carousel_welcome_text"])
    carousel_app_name_text = Column(String(255), nullable=False, default=DEFAULTS["carousel_app_name_text"])
    carousel_description_text = Column(
        String(500), nullable=False, default=DEFAULTS["carousel_description_text"]
    )
    founder_name = Column(String(255), nullable=False, default=DEFAULTS["founder_name"])
    founder_role = Column(String(255), nullable=False, default=DEFAULTS["founder_role"])
    founder_image = Column(String(500), nullable=False, default=DEFAULTS["founder_image"])
    founder_bio = Column(String(5000), nullable=False, default=DEFAULTS["founder_bio"])
    call_to_action_text = Column(String(2000), nullable=False, default=DEFAULTS["call_to_action_text"])
    values = Column(JSON, nullable=False, default=list)  # [{title, description, icon}]

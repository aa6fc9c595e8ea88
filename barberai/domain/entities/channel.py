from enum import Enum


class Channel(str, Enum):
    WEBSITE = "website"
    WHATSAPP = "whatsapp"

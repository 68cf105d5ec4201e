"""Service types a provider can declare support for."""

from __future__ import annotations

from enum import Enum


class ServiceType(str, Enum):
    TEXT_TEXT = "text_text"
    IMAGE_TEXT = "image_text"
    TEXT_IMAGE = "text_image"
    IMAGE_IMAGE = "image_image"

    def produces_text(self) -> bool:
        return self in (ServiceType.TEXT_TEXT, ServiceType.IMAGE_TEXT)

    def produces_image(self) -> bool:
        return self in (ServiceType.TEXT_IMAGE, ServiceType.IMAGE_IMAGE)

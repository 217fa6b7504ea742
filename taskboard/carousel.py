"""
Carousel image catalog: append-only, read in full.
"""

from __future__ import annotations

from taskboard.db import CarouselImageRecord, DbClient
from taskboard.errors import ValidationError


class CarouselCatalog:
    def __init__(self, db: DbClient):
        self._db = db

    def add_image(self, imgurl: str, maker: str) -> CarouselImageRecord:
        if not imgurl or not maker:
            raise ValidationError("Image URL and maker are required")
        return self._db.add_carousel_image(imgurl, maker)

    def list_images(self) -> list[CarouselImageRecord]:
        return self._db.list_carousel_images()

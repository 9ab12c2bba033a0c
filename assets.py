# assets.py
from __future__ import annotations

import io
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from reportlab.lib.utils import ImageReader

from config import Config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LogoAsset:
    """A loaded image plus the logical name both adapters refer to it by."""
    name: str
    data: bytes
    width: int
    height: int

    def reader(self) -> ImageReader:
        return ImageReader(io.BytesIO(self.data))


def load_logo(assets_dir: str | None = None, name: str | None = None) -> LogoAsset | None:
    """
    Single best-effort load of the company logo.
    Any failure is logged and returns None; callers render without the image.
    """
    name = name or Config.LOGO_FILE
    path = Path(assets_dir or Config.ASSETS_DIR) / name
    if not os.path.exists(path):
        logger.warning("Failed to load logo %s: file not found", path)
        return None
    try:
        data = path.read_bytes()
        width, height = ImageReader(io.BytesIO(data)).getSize()
    except Exception as exc:
        logger.warning("Failed to load logo %s: %s", path, exc)
        return None
    return LogoAsset(name=name, data=data, width=int(width), height=int(height))

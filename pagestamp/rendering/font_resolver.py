"""
Font resolver for the Hebrew text face.

Looks in the configured font directory first, then in an on-disk cache, and
optionally downloads Noto Sans Hebrew into that cache.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional
import urllib.request

from pagestamp.core.config import TemplateConfig

logger = logging.getLogger(__name__)


class FontResolver:
    """Resolve and cache font files for the scripts templates can contain."""

    FONT_URLS = {
        "hebrew": "https://github.com/google/fonts/raw/main/ofl/notosanshebrew/NotoSansHebrew%5Bwdth%2Cwght%5D.ttf",
    }

    def __init__(self, config: Optional[TemplateConfig] = None, download_enabled: Optional[bool] = None):
        """
        Initialize font resolver.

        Args:
            config: Engine configuration (font directory, cache directory)
            download_enabled: Override ``config.download_fonts``
        """
        self.config = config or TemplateConfig()
        self.cache_dir = self.config.font_cache_dir or Path.home() / ".pagestamp" / "fonts"
        self.download_enabled = (
            self.config.download_fonts if download_enabled is None else download_enabled
        )
        self._font_cache: Dict[str, Optional[Path]] = {}

    def hebrew_fonts(self) -> Dict[str, Path]:
        """
        Paths of the available Hebrew faces, keyed by ``regular``/``bold``.

        Configured files win. Without a regular face the cached or downloaded
        Noto font is used for both weights.
        """
        found = {
            style: path
            for style, path in self.config.hebrew_font_paths().items()
            if path.exists()
        }
        if "regular" in found:
            return found

        fallback = self.get_font_for_script("hebrew")
        if fallback is not None:
            found.setdefault("regular", fallback)
        return found

    def get_font_for_script(self, script: str) -> Optional[Path]:
        """
        Get a cached (or freshly downloaded) font for ``script``.

        Returns:
            Path to font file, or None if not available
        """
        if script in self._font_cache:
            return self._font_cache[script]

        font_path = self.cache_dir / f"noto-{script}.ttf"
        if font_path.exists():
            logger.debug(f"Using cached font for {script}: {font_path}")
            self._font_cache[script] = font_path
            return font_path

        url = self.FONT_URLS.get(script)
        if self.download_enabled and url:
            try:
                logger.info(f"Downloading font for {script}...")
                self._download_font(url, font_path)
                self._font_cache[script] = font_path
                return font_path
            except RuntimeError as e:
                logger.error(f"Failed to download font for {script}: {e}")
                self._font_cache[script] = None
                return None

        logger.warning(f"Font for {script} not available (download disabled)")
        self._font_cache[script] = None
        return None

    def _download_font(self, url: str, dest_path: Path):
        """
        Download a font file.

        Args:
            url: Font URL
            dest_path: Destination path
        """
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = dest_path.with_suffix('.tmp')

        try:
            with urllib.request.urlopen(url, timeout=30) as response:
                data = response.read()

            if len(data) < 1000:
                raise ValueError("Downloaded file too small to be a valid font")

            with open(temp_path, 'wb') as f:
                f.write(data)
            temp_path.rename(dest_path)

            logger.info(f"Downloaded font: {dest_path} ({len(data)} bytes)")

        except (OSError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise RuntimeError(f"Font download failed: {e}") from e

    def list_cached_fonts(self) -> List[str]:
        """List cached font filenames."""
        if not self.cache_dir.exists():
            return []
        return sorted(f.name for f in self.cache_dir.glob("*.ttf"))

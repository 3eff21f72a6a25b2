"""Image loading, normalisation and saving utilities."""

from PIL import Image, ImageOps
import numpy as np
from pathlib import Path
from typing import Tuple, Union
import logging

logger = logging.getLogger(__name__)

MAX_SIDE = 8192
MAX_PIXELS = 33_554_432  # 8192^2 / 2


class ImageLoader:
    """Handle loading and validation of input images."""

    SUPPORTED_FORMATS = {".png", ".jpg", ".jpeg", ".gif", ".webp", ".bmp"}

    def __init__(self, path: Path):
        self.path = Path(path)
        self._validate_format()

    def _validate_format(self) -> None:
        """Validate image format is supported."""
        if not self.path.exists():
            raise FileNotFoundError(f"Image file not found: {self.path}")

        if not self.path.is_file():
            raise ValueError(f"Path is not a file: {self.path}")

        suffix = self.path.suffix.lower()
        if suffix not in self.SUPPORTED_FORMATS:
            supported = ", ".join(sorted(self.SUPPORTED_FORMATS))
            raise ValueError(
                f"Unsupported format '{suffix}'. Supported formats: {supported}"
            )

    def load(self) -> np.ndarray:
        """Load image as an RGBA uint8 numpy array."""
        try:
            with Image.open(self.path) as img:
                logger.debug(f"Loaded image: {img.format} {img.mode} {img.size}")
                img.verify()

            # verify() leaves the file unusable, reopen for decoding
            with Image.open(self.path) as img:
                if getattr(img, "is_animated", False):
                    logger.warning(
                        f"{self.path.name} has {getattr(img, 'n_frames', '?')} frames; "
                        "only the first frame is processed"
                    )
                    img.seek(0)
                return self._process_static_image(img)

        except (OSError, IOError) as e:
            raise RuntimeError(f"Failed to load image {self.path}: {e}")
        except Exception as e:
            raise RuntimeError(f"Unexpected error loading {self.path}: {e}")

    def _process_static_image(self, img: Image.Image) -> np.ndarray:
        """Convert PIL image to RGBA numpy array."""
        img = ImageOps.exif_transpose(img)

        if img.mode != "RGBA":
            original_mode = img.mode
            img = img.convert("RGBA")
            logger.debug(f"Converted image from {original_mode} to RGBA")

        array = np.array(img)

        if array.ndim != 3 or array.shape[2] != 4:
            raise RuntimeError(f"Expected RGBA array, got shape {array.shape}")

        logger.debug(f"Converted to numpy array: {array.shape}")
        return array


def load_image(path: Path) -> Tuple[np.ndarray, Tuple[int, int]]:
    """Convenience function to load image and return array + dimensions."""
    array = ImageLoader(path).load()
    return array, array.shape[:2]


def to_rgba(image: Union[np.ndarray, Image.Image]) -> np.ndarray:
    """Normalise a decoded image into an (H, W, 4) uint8 RGBA array.

    Accepts PIL images of any mode, or uint8 arrays shaped (H, W),
    (H, W, 3) or (H, W, 4). A fresh array is always returned so callers
    never share a buffer with the pipeline.
    """
    if isinstance(image, Image.Image):
        return np.array(image.convert("RGBA"))

    if not isinstance(image, np.ndarray):
        raise ValueError(f"Expected numpy array or PIL image, got {type(image).__name__}")

    if image.dtype != np.uint8:
        raise ValueError(f"Expected uint8 array, got {image.dtype}")

    if image.ndim == 2:
        rgba = np.empty(image.shape + (4,), dtype=np.uint8)
        rgba[..., :3] = image[..., None]
        rgba[..., 3] = 255
        return rgba

    if image.ndim == 3 and image.shape[2] == 3:
        rgba = np.empty(image.shape[:2] + (4,), dtype=np.uint8)
        rgba[..., :3] = image
        rgba[..., 3] = 255
        return rgba

    if image.ndim == 3 and image.shape[2] == 4:
        return image.copy()

    raise ValueError(f"Expected grayscale, RGB or RGBA image, got shape {image.shape}")


def validate_image_dimensions(image: np.ndarray) -> None:
    """Validate image meets size requirements."""
    if image.ndim != 3 or image.shape[2] != 4:
        raise ValueError(f"Expected RGBA image, got shape {image.shape}")

    height, width = image.shape[:2]

    if width > MAX_SIDE or height > MAX_SIDE:
        raise ValueError(
            f"Image too large: {width}×{height}. "
            f"Maximum size: {MAX_SIDE}×{MAX_SIDE} pixels. "
            f"Consider downscaling your image before processing."
        )

    total_pixels = width * height
    if total_pixels > MAX_PIXELS:
        megapixels = total_pixels / 1_000_000
        max_megapixels = MAX_PIXELS / 1_000_000
        raise ValueError(
            f"Image has too many pixels: {megapixels:.1f}MP. "
            f"Maximum: {max_megapixels:.1f}MP. "
            f"This helps prevent memory issues during processing."
        )

    logger.debug(
        f"Image dimensions validated: {width}×{height} ({total_pixels:,} pixels)"
    )


def save_image(image: np.ndarray, path: Path) -> Path:
    """Write an RGBA buffer to disk as PNG."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(image).save(path, format="PNG")
    logger.debug(f"Saved {image.shape[1]}×{image.shape[0]} image to {path}")
    return path


def save_mask(mask: np.ndarray, path: Path) -> Path:
    """Write a binary mask as an 8-bit black/white PNG."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.fromarray(mask.astype(np.uint8) * 255).save(path, format="PNG")
    return path

"""Save the rendered matrix as a PNG inside the vault."""

import io
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path

from PIL import Image

from linkmatrix.config import Config

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def export_filename(prefix: str, now: datetime) -> str:
    """``"{prefix} {YYYYMMDDHHMMSS}.png"``."""
    return f"{prefix} {now.strftime(TIMESTAMP_FORMAT)}.png"


def resolve_export_folder(storage_root: Path, folder_path: str) -> Path:
    """Resolve a vault-relative folder; ``"/"`` or ``""`` is the vault root.

    Raises FileNotFoundError if the folder does not exist and ValueError if it
    points outside the storage root.
    """
    root = storage_root.resolve()
    relative = folder_path.replace("\\", "/").strip().strip("/")
    folder = (root / relative).resolve() if relative else root
    if folder != root and root not in folder.parents:
        raise ValueError(f"Export folder {folder_path!r} is outside {root}")
    if not folder.is_dir():
        raise FileNotFoundError(f"Export folder {folder_path!r} does not exist in {root}")
    return folder


def encode_png(image: Image.Image) -> bytes:
    if image.width == 0 or image.height == 0:
        raise ValueError("Nothing to export: the matrix is empty")
    buffer = io.BytesIO()
    image.save(buffer, "PNG")
    return buffer.getvalue()


def _write_atomic(path: Path, payload: bytes) -> None:
    fd, tmp_name = tempfile.mkstemp(prefix=".", suffix=".png.tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as fh:
            fh.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def export_image(
    image: Image.Image,
    storage_root: Path,
    config: Config,
    now: datetime | None = None,
) -> Path:
    """Validate the target folder, then write the PNG. Returns the file path.

    Nothing is written when validation or encoding fails.
    """
    folder = resolve_export_folder(storage_root, config.export_folder_path)
    payload = encode_png(image)
    path = folder / export_filename(config.export_name_prefix, now or datetime.now())
    _write_atomic(path, payload)
    logger.info("Image saved to %s (%dx%d)", path, image.width, image.height)
    return path

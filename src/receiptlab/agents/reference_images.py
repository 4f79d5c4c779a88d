"""Best-effort loading of example receipt photos used as visual references."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

logger = logging.getLogger(__name__)

REFERENCE_FILES: tuple[str, ...] = ("tofes1.jpeg", "tofes2.jpeg", "tofes3.jpeg", "tofes4.jpeg")


@dataclass(frozen=True)
class ReferenceImage:
    mime_type: str
    data: bytes

    @property
    def b64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.b64}"


def _read_file(directory: Path, name: str) -> Optional[ReferenceImage]:
    try:
        return ReferenceImage(mime_type="image/jpeg", data=(directory / name).read_bytes())
    except OSError as exc:
        logger.warning("Failed to load example image %s: %s", name, exc)
        return None


def _fetch(client: httpx.Client, base_url: str, name: str) -> Optional[ReferenceImage]:
    url = f"{base_url.rstrip('/')}/{name}"
    try:
        response = client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("Failed to load example image %s: %s", name, exc)
        return None
    if not response.is_success:
        logger.warning("Failed to load example image %s: HTTP %s", name, response.status_code)
        return None
    mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0]
    return ReferenceImage(mime_type=mime_type, data=response.content)


def load_reference_images(
    base_url: Optional[str] = None,
    directory: Optional[Path] = None,
    client: Optional[httpx.Client] = None,
    files: Sequence[str] = REFERENCE_FILES,
) -> List[ReferenceImage]:
    """Load whichever reference photos are reachable, in ``files`` order.

    A local ``directory`` wins over ``base_url``. Failed images are logged and
    dropped, so the result may be shorter than ``files`` or empty.
    """

    if directory is not None:
        loaded = [_read_file(Path(directory), name) for name in files]
        return [image for image in loaded if image is not None]
    if not base_url:
        return []

    owns_client = client is None
    client = client or httpx.Client(timeout=30.0)
    try:
        loaded = [_fetch(client, base_url, name) for name in files]
    finally:
        if owns_client:
            client.close()
    return [image for image in loaded if image is not None]

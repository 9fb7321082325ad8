"""Image host resolver - moves image payloads to durable hosted URLs.

Inline ``data:`` payloads and third-party URLs are short-lived; persisted
project records only ever reference files on the deployment's static host.
Every failure here is reported as ``None`` so the caller decides whether to
drop a field or abort the save.
"""

import base64
import binascii
import re
import secrets
import string
import time
from dataclasses import dataclass
from typing import Literal
from urllib.parse import unquote_to_bytes, urlparse

import httpx

from src.roomify.core.config import Settings
from src.roomify.core.hosting import HostingBackend
from src.roomify.core.logging import get_logger
from src.roomify.repositories.kv import KeyValueStore
from src.roomify.repositories.project_repository import HOSTING_CONFIG_KEY

logger = get_logger(__name__)

ImageLabel = Literal["source", "rendered"]

DEFAULT_EXTENSION = "png"
_CONTENT_TYPE_EXTENSIONS = (
    ("image/png", "png"),
    ("image/jpeg", "jpg"),
    ("image/jpg", "jpg"),
    ("image/webp", "webp"),
    ("image/gif", "gif"),
    ("image/svg", "svg"),
)
_DATA_URL_SUBTYPE = re.compile(r"^data:image/([a-z0-9+.-]+);", re.IGNORECASE)
_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class HostingConfig:
    subdomain: str
    root_dir: str


@dataclass(frozen=True)
class ImagePayload:
    data: bytes
    content_type: str


def _to_base36(value: int) -> str:
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits)) or "0"


def create_hosting_slug() -> str:
    """Subdomain slug: ``roomify-<base36 epoch ms>-<6 random chars>``."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"roomify-{_to_base36(int(time.time() * 1000))}-{suffix}"


def _normalize_path(value: str) -> str:
    return value.strip("/")


def get_image_extension(content_type: str, url: str) -> str:
    """Pick a file extension for an image.

    Tries, in order: the content type, a plain path's suffix, the subtype of
    a ``data:image/...`` URL, the suffix of a URL's path, then ``png``.
    """
    ctype = (content_type or "").lower()
    for marker, ext in _CONTENT_TYPE_EXTENSIONS:
        if marker in ctype:
            return ext

    if url and not url.startswith("http") and not url.startswith("data:"):
        _, dot, ext = url.rpartition(".")
        if dot and ext:
            return ext.lower()

    match = _DATA_URL_SUBTYPE.match(url or "")
    if match:
        ext = match.group(1).lower()
        return "jpg" if ext == "jpeg" else ext

    try:
        path = urlparse(url or "").path
    except ValueError:
        path = ""
    last_segment = path.rsplit("/", 1)[-1]
    _, dot, ext = last_segment.rpartition(".")
    return ext.lower() if dot and ext else DEFAULT_EXTENSION


def decode_data_url(data_url: str) -> ImagePayload | None:
    """Decode a ``data:`` URL. Returns None if it is malformed."""
    header, sep, data = data_url.partition(",")
    if not sep or not header.startswith("data:"):
        return None

    content_type = header[len("data:") :].split(";", 1)[0]
    try:
        if ";base64" in header:
            raw = base64.b64decode("".join(data.split()), validate=True)
        else:
            raw = unquote_to_bytes(data)
    except (binascii.Error, ValueError):
        return None
    return ImagePayload(data=raw, content_type=content_type)


class ImageHostResolver:
    """Ensures images live at a durable URL under the caller's hosting site."""

    def __init__(
        self,
        backend: HostingBackend,
        http_client: httpx.AsyncClient,
        settings: Settings,
    ):
        self.backend = backend
        self.http_client = http_client
        self.settings = settings

    def is_hosted_url(self, value: object) -> bool:
        return isinstance(value, str) and self.settings.hosting_domain_suffix in value

    def resolve_root_dir(self, directory: str) -> str:
        if not directory or directory.startswith(("/", "~")):
            return directory
        if self.settings.hosting_app_id:
            return f"~/AppData/{self.settings.hosting_app_id}/{directory}"
        return f"~/{directory}"

    def get_hosted_url(self, hosting: HostingConfig, file_path: str) -> str | None:
        """Public URL of ``file_path`` relative to the site's root directory."""
        if not hosting.subdomain or not hosting.root_dir:
            return None
        suffix = self.settings.hosting_domain_suffix
        host = hosting.subdomain
        if not host.endswith(suffix):
            host = f"{host}{suffix}"
        root_dir = _normalize_path(hosting.root_dir)
        normalized_file = _normalize_path(file_path)
        prefix = f"{root_dir}/" if root_dir else ""
        if prefix and normalized_file.startswith(prefix):
            normalized_file = normalized_file[len(prefix) :]
        return f"https://{host}/{normalized_file}"

    async def ensure_hosting(self, kv: KeyValueStore) -> HostingConfig | None:
        """Return the caller's hosting site, provisioning it on first use.

        The configuration is cached in the caller's own store under
        ``roomify_hosting_config``. Provisioning failures return None.
        """
        try:
            existing = await kv.get(HOSTING_CONFIG_KEY)
        except Exception as e:
            logger.warning(f"Hosting config lookup failed: {e}")
            existing = None

        if isinstance(existing, dict) and existing.get("subdomain") and existing.get("root_dir"):
            return HostingConfig(
                subdomain=existing["subdomain"],
                root_dir=self.resolve_root_dir(existing["root_dir"]),
            )

        subdomain = create_hosting_slug()
        # One directory per site; project ids are only unique per owner
        root_dir = self.resolve_root_dir(
            f"{_normalize_path(self.settings.hosting_root_dir)}/{subdomain}"
        )
        try:
            site = await self.backend.create_site(subdomain, root_dir)
        except Exception as e:
            logger.warning(f"Hosting create failed: {e}")
            return None

        config = HostingConfig(
            subdomain=site.subdomain or subdomain,
            root_dir=self.resolve_root_dir(site.root_dir or root_dir),
        )
        try:
            await kv.set(
                HOSTING_CONFIG_KEY,
                {"subdomain": config.subdomain, "root_dir": config.root_dir},
            )
        except Exception as e:
            logger.warning(f"Hosting config cache write failed: {e}")
        return config

    async def fetch_image(self, url: str) -> ImagePayload | None:
        """Load image bytes from a data URL or over HTTP. Returns None on failure."""
        if url.startswith("data:"):
            return decode_data_url(url)

        try:
            response = await self.http_client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning("Image fetch failed", url=url, error=str(e))
            return None
        return ImagePayload(
            data=response.content,
            content_type=response.headers.get("content-type", ""),
        )

    async def store_image(
        self,
        hosting: HostingConfig,
        url: str,
        project_id: str,
        label: ImageLabel,
    ) -> str | None:
        """Copy an image into the site at ``projects/<id>/<label>.<ext>``.

        Any fetch or upload failure returns None.
        """
        try:
            payload = await self.fetch_image(url)
            if payload is None:
                return None

            ext = get_image_extension(payload.content_type, url)
            base_dir = self.resolve_root_dir(hosting.root_dir)
            directory = f"{base_dir}/projects/{project_id}"
            file_path = f"{directory}/{label}.{ext}"

            await self.backend.mkdir(directory)
            await self.backend.write_file(
                file_path,
                payload.data,
                payload.content_type or "application/octet-stream",
            )
        except Exception as e:
            logger.warning("Failed to store hosted image", project_id=project_id, error=str(e))
            return None

        return self.get_hosted_url(HostingConfig(hosting.subdomain, base_dir), file_path)

    async def ensure_durable(
        self,
        image: str | None,
        kv: KeyValueStore,
        project_id: str,
        label: ImageLabel,
    ) -> str | None:
        """Return a durable URL for ``image``, or None if one can't be made.

        Already-hosted URLs are returned unchanged without touching hosting.
        """
        if not image:
            return None
        if self.is_hosted_url(image):
            return image

        hosting = await self.ensure_hosting(kv)
        if hosting is None:
            return None
        return await self.store_image(hosting, image, project_id, label)

    async def reset(self, kv: KeyValueStore) -> None:
        """Forget the cached hosting site so the next save provisions a new one."""
        await kv.delete(HOSTING_CONFIG_KEY)

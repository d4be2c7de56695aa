"""Web fetch tool: read a page and hand its main text back to the model."""

import asyncio
import logging
from urllib.parse import urlparse

import httpx
import trafilatura
from bs4 import BeautifulSoup
from pydantic import Field

from jeff.config import settings
from jeff.tools.base import ToolParams, ToolResult
from jeff.tools.registry import registry

logger = logging.getLogger(__name__)

MAX_DOWNLOAD_BYTES = 2 * 1024 * 1024  # 2 MB
DEFAULT_USER_AGENT = "JeffBot/1.0 (NaviGrad Assistant)"


class ReadWebpageParams(ToolParams):
    url: str = Field(description="Absolute http(s) URL of the webpage to read")
    max_length: int = Field(
        default=5000,
        description="Maximum character length of extracted content (100-20000)",
        ge=100,
        le=20000,
    )


def _is_html(content_type: str) -> bool:
    """Check if a Content-Type header value indicates HTML."""
    ct = content_type.lower().split(";")[0].strip()
    return ct in ("text/html", "application/xhtml+xml")


def _is_fetchable(url: str) -> bool:
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _fallback_text(html: str) -> tuple[str | None, str]:
    """Plain-text extraction for pages trafilatura cannot make sense of."""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(["script", "style", "noscript"]):
        tag.decompose()
    title = soup.title.get_text(strip=True) if soup.title else ""
    container = soup.find("main") or soup.find("article") or soup.find("body") or soup
    text = container.get_text(" ", strip=True)
    return (text or None), title


def _extract(html: str) -> tuple[str | None, str]:
    """Return (main text, title) for an HTML document."""
    content = trafilatura.extract(html)
    if content is None:
        return _fallback_text(html)

    metadata = trafilatura.extract_metadata(html)
    title = metadata.title if metadata and metadata.title else ""
    return content, title


@registry.tool(
    name="read_webpage",
    description=(
        "Fetch a URL and extract its main text content and page title. "
        "Use this when you need current details from a specific university or "
        "program page that are not in your NaviGrad resources."
    ),
    params_model=ReadWebpageParams,
)
async def read_webpage(url: str, max_length: int = 5000) -> ToolResult:
    if not _is_fetchable(url):
        return ToolResult(error=f"Only http(s) URLs can be read: {url}")

    try:
        async with httpx.AsyncClient(
            timeout=settings.fetch_timeout_seconds,
            follow_redirects=True,
            headers={"User-Agent": DEFAULT_USER_AGENT},
            max_redirects=5,
        ) as client:
            resp = await client.get(url)

        if resp.status_code != 200:
            return ToolResult(error=f"HTTP {resp.status_code} fetching {url}")

        content_type = resp.headers.get("content-type", "")
        if not _is_html(content_type):
            return ToolResult(error=f"Not an HTML page (Content-Type: {content_type})")

        # Guard against huge pages
        if len(resp.content) > MAX_DOWNLOAD_BYTES:
            return ToolResult(
                error=f"Page too large ({len(resp.content)} bytes, max {MAX_DOWNLOAD_BYTES})"
            )

        html = resp.text

    except httpx.TimeoutException:
        return ToolResult(error=f"Timeout fetching {url}")
    except httpx.HTTPError as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return ToolResult(error=f"Failed to fetch webpage: {exc}")

    # Extraction is CPU-bound and synchronous
    content, title = await asyncio.to_thread(_extract, html)

    if content is None:
        return ToolResult(error=f"Could not extract content from {url}")

    limit = min(max_length, settings.fetch_max_chars)
    truncated = len(content) > limit
    if truncated:
        content = content[:limit]

    return ToolResult(
        data={
            "title": title,
            "url": url,
            "content": content + (" [Content truncated]" if truncated else ""),
            "length": len(content),
        }
    )

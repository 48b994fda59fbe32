"""
SEO & metadata checks: title, description, H1, robots, canonical, Open Graph,
structured data, viewport, image alts, favicon.
"""
from __future__ import annotations

from analyzers.base import BaseCheck
from config import DESCRIPTION_MAX_CHARS, DESCRIPTION_MIN_CHARS, TITLE_MAX_CHARS, TITLE_MIN_CHARS
from crawler.parser import find_link_rel, meta_content, parse_markup
from models import AnalysisConfig, CategoryResult, CheckSeverity


class SeoCheck(BaseCheck):
    category = "SEO & Metadata"
    icon = "📊"

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        page = self.fetch(url, config)
        soup = parse_markup(page.body)
        checks = []

        # ── Title ─────────────────────────────────────────────────────────────
        title = soup.title.get_text(strip=True) if soup.title else ""
        length = len(title)
        if not title:
            checks.append(self.failed("Page Title", "No <title> found", CheckSeverity.HIGH))
        elif TITLE_MIN_CHARS <= length <= TITLE_MAX_CHARS:
            checks.append(self.passed("Page Title", f'"{title}" ({length} chars)', CheckSeverity.HIGH))
        else:
            checks.append(self.warned(
                "Page Title",
                f'"{title}" ({length} chars; {TITLE_MIN_CHARS}-{TITLE_MAX_CHARS} recommended)',
                CheckSeverity.HIGH,
            ))

        # ── Description ───────────────────────────────────────────────────────
        # JS sites often inject the description, so a missing one only warns
        description = (meta_content(soup, name="description") or "").strip()
        if description and DESCRIPTION_MIN_CHARS <= len(description) <= DESCRIPTION_MAX_CHARS:
            checks.append(self.passed("Meta Description", f"{len(description)} chars", CheckSeverity.HIGH))
        elif description:
            checks.append(self.warned(
                "Meta Description",
                f"{len(description)} chars ({DESCRIPTION_MIN_CHARS}-{DESCRIPTION_MAX_CHARS} recommended)",
                CheckSeverity.HIGH,
            ))
        else:
            checks.append(self.warned(
                "Meta Description", "No meta description (may be loaded dynamically)", CheckSeverity.HIGH
            ))

        # ── Headings ──────────────────────────────────────────────────────────
        h1_count = len(soup.find_all("h1"))
        if h1_count == 1:
            checks.append(self.passed("H1 Tag Structure", "Single H1 tag found", CheckSeverity.HIGH))
        elif h1_count:
            checks.append(self.warned("H1 Tag Structure", f"{h1_count} H1 tags found (should be 1)", CheckSeverity.HIGH))
        else:
            checks.append(self.warned(
                "H1 Tag Structure", "No H1 in static HTML (may be rendered by JavaScript)", CheckSeverity.HIGH
            ))

        # ── Indexing ──────────────────────────────────────────────────────────
        robots = meta_content(soup, name="robots")
        if robots and "noindex" in robots.lower():
            checks.append(self.warned("Robots Meta Tag", f"Page is excluded from indexing: {robots}", CheckSeverity.LOW))
        elif robots:
            checks.append(self.passed("Robots Meta Tag", f"Robots: {robots}", CheckSeverity.LOW))
        else:
            checks.append(self.noted("Robots Meta Tag", "No robots meta tag (default: index, follow)", CheckSeverity.LOW))

        canonical = find_link_rel(soup, "canonical")
        checks.append(
            self.passed("Canonical Tag", f"Canonical: {canonical.get('href', '')}")
            if canonical is not None else
            self.warned("Canonical Tag", "No canonical tag")
        )

        # ── Sharing and rich results ──────────────────────────────────────────
        og_title = meta_content(soup, prop="og:title")
        og_image = meta_content(soup, prop="og:image")
        checks.append(
            self.passed("Open Graph Tags", "og:title and og:image configured")
            if og_title and og_image else
            self.warned("Open Graph Tags", "Missing Open Graph tags for social sharing")
        )

        has_ld_json = soup.find("script", type="application/ld+json") is not None
        checks.append(
            self.passed("Structured Data (Schema.org)", "JSON-LD structured data found")
            if has_ld_json else
            self.noted("Structured Data (Schema.org)", "No structured data detected")
        )

        viewport = meta_content(soup, name="viewport")
        checks.append(
            self.passed("Mobile Viewport", f"Viewport: {viewport}", CheckSeverity.HIGH)
            if viewport else
            self.warned("Mobile Viewport", "No viewport meta tag in static HTML", CheckSeverity.HIGH)
        )

        # ── Images ────────────────────────────────────────────────────────────
        images = soup.find_all("img")
        with_alt = sum(1 for img in images if (img.get("alt") or "").strip())
        if not images:
            checks.append(self.passed("Image Alt Attributes", "No images", CheckSeverity.HIGH))
        elif with_alt / len(images) > 0.8:
            checks.append(self.passed("Image Alt Attributes", f"{with_alt}/{len(images)} images have alt text", CheckSeverity.HIGH))
        elif with_alt:
            checks.append(self.warned("Image Alt Attributes", f"{with_alt}/{len(images)} images have alt text", CheckSeverity.HIGH))
        else:
            checks.append(self.failed("Image Alt Attributes", f"None of {len(images)} images have alt text", CheckSeverity.HIGH))

        favicon = find_link_rel(soup, "icon", "shortcut icon", "apple-touch-icon")
        checks.append(
            self.passed("Favicon", "Favicon found", CheckSeverity.LOW)
            if favicon is not None else
            self.noted("Favicon", "No favicon detected", CheckSeverity.LOW)
        )

        return self._result(checks, extra={"title": title, "description": description})

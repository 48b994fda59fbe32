"""
Accessibility checks (WCAG 2.1 subset that can be read from static markup).
"""
from __future__ import annotations

from analyzers.base import BaseCheck
from config import GENERIC_LINK_TEXT
from crawler.parser import parse_markup, visible_text
from models import AnalysisConfig, CategoryResult, CheckSeverity

_SKIP_TARGETS = {"#main", "#content", "#main-content", "#maincontent", "#skip"}
_UNLABELLED_INPUT_TYPES = {"hidden", "submit", "button", "reset", "image"}

# Average words per sentence above which body copy is considered dense
_DENSE_SENTENCE_WORDS = 25


class AccessibilityCheck(BaseCheck):
    category = "Accessibility (WCAG 2.1)"
    icon = "♿"

    def analyze(self, url: str, config: AnalysisConfig) -> CategoryResult:
        page = self.fetch(url, config)
        soup = parse_markup(page.body)
        checks = []

        html = soup.find("html")
        lang = html.get("lang") if html else None
        checks.append(
            self.passed("Page Language Declaration", f"Language set to: {lang}")
            if lang else
            self.warned("Page Language Declaration", "<html> has no lang attribute")
        )

        images = soup.find_all("img")
        with_alt = sum(1 for img in images if img.has_attr("alt"))
        if not images or with_alt == len(images):
            checks.append(self.passed(
                "Image Alt Text", f"{with_alt}/{len(images)} images have alt text" if images else "No images"
            ))
        else:
            checks.append(self.warned("Image Alt Text", f"{with_alt}/{len(images)} images have alt text"))

        # ── Forms ─────────────────────────────────────────────────────────────
        label_targets = {lbl.get("for") for lbl in soup.find_all("label", attrs={"for": True})}
        inputs = [
            i for i in soup.find_all(["input", "select", "textarea"])
            if (i.get("type") or "").lower() not in _UNLABELLED_INPUT_TYPES
        ]
        labelled = sum(
            1 for i in inputs
            if (i.get("id") and i["id"] in label_targets)
            or i.has_attr("aria-label") or i.has_attr("aria-labelledby")
            or i.find_parent("label") is not None
        )
        if not inputs or labelled == len(inputs):
            checks.append(self.passed(
                "Form Input Labels",
                f"{labelled}/{len(inputs)} form inputs have labels" if inputs else "No form inputs",
                CheckSeverity.HIGH,
            ))
        else:
            checks.append(self.warned(
                "Form Input Labels", f"{labelled}/{len(inputs)} form inputs have labels", CheckSeverity.HIGH
            ))

        # ── Headings ──────────────────────────────────────────────────────────
        headings = soup.find_all(["h1", "h2", "h3", "h4", "h5", "h6"])
        skipped = _first_skipped_level(int(h.name[1]) for h in headings)
        if not headings:
            checks.append(self.noted("Heading Hierarchy (H1-H6)", "No headings found", CheckSeverity.HIGH))
        elif skipped:
            checks.append(self.warned(
                "Heading Hierarchy (H1-H6)",
                f"{len(headings)} headings; level jumps to h{skipped}",
                CheckSeverity.HIGH,
            ))
        else:
            checks.append(self.passed(
                "Heading Hierarchy (H1-H6)", f"{len(headings)} headings in proper order", CheckSeverity.HIGH
            ))

        checks.append(self.noted("Color Contrast Ratio", "Contrast analysis requires manual review", CheckSeverity.HIGH))
        checks.append(self.noted("Keyboard Navigation", "Keyboard navigation requires manual testing", CheckSeverity.HIGH))

        aria = soup.select("[aria-label], [aria-labelledby], [role]")
        checks.append(
            self.passed("ARIA Labels & Roles", f"{len(aria)} elements with ARIA attributes")
            if aria else
            self.noted("ARIA Labels & Roles", "No ARIA attributes detected")
        )

        has_skip = any((a.get("href") or "").lower() in _SKIP_TARGETS for a in soup.find_all("a", href=True))
        checks.append(
            self.passed("Skip to Main Content Link", "Skip link found")
            if has_skip else
            self.warned("Skip to Main Content Link", "No skip link for keyboard users")
        )

        # ── Link text ─────────────────────────────────────────────────────────
        links = soup.find_all("a")
        generic = sum(1 for a in links if a.get_text(strip=True).lower() in GENERIC_LINK_TEXT)
        if not links or generic == 0:
            checks.append(self.passed(
                "Link Text Quality", f"0 of {len(links)} links have generic text" if links else "No links"
            ))
        elif generic / len(links) < 0.2:
            checks.append(self.warned("Link Text Quality", f"{generic} of {len(links)} links have generic text"))
        else:
            checks.append(self.failed("Link Text Quality", f"{generic} of {len(links)} links have generic text"))

        # ── Readability ───────────────────────────────────────────────────────
        text = visible_text(soup)
        sentences = [s for s in text.replace("!", ".").replace("?", ".").split(".") if s.strip()]
        avg_words = (len(text.split()) / len(sentences)) if sentences else 0
        if avg_words > _DENSE_SENTENCE_WORDS:
            checks.append(self.warned(
                "Text Readability", f"Average sentence length is {avg_words:.0f} words"
            ))
        else:
            checks.append(self.passed(
                "Text Readability",
                f"Average sentence length is {avg_words:.0f} words" if sentences else "No body copy",
            ))

        return self._result(checks)


def _first_skipped_level(levels) -> int:
    """First heading level that jumps more than one step deeper than its predecessor, else 0."""
    last = 0
    for level in levels:
        if level > last + 1:
            return level
        last = level
    return 0

"""
Core data models for SiteSentinel.
All modules import from here; nothing else is cross-imported at this level.

NOTE: `from __future__ import annotations` is intentionally omitted here.
Python 3.13.0 has a regression (bpo-121814) where that import causes a crash
in the dataclasses decorator when the module is not yet fully registered in
sys.modules. Python 3.9+ supports generic aliases (list[str], dict[str, Any])
natively, so the future import is unnecessary.
"""

import os
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from dotenv import load_dotenv

import config as cfg


# ── Enumerations ──────────────────────────────────────────────────────────────
class SourceKind:
    ANCHOR            = "anchor"
    ONCLICK_HANDLER   = "onclickHandler"
    INLINE_SCRIPT     = "inlineScriptLiteral"
    DATA_ATTRIBUTE    = "dataAttribute"
    FORM_ACTION       = "formAction"
    IFRAME_SRC        = "iframeSrc"
    NETWORK_REQUEST   = "networkRequest"
    NAVIGATION_EVENT  = "navigationEvent"
    REDIRECT_HEADER   = "redirectHeader"

    ALL = [
        ANCHOR, ONCLICK_HANDLER, INLINE_SCRIPT, DATA_ATTRIBUTE, FORM_ACTION,
        IFRAME_SRC, NETWORK_REQUEST, NAVIGATION_EVENT, REDIRECT_HEADER,
    ]


class LinkStatus:
    SAFE        = "Safe"
    WARNING     = "Warning"
    UNSAFE      = "Unsafe"
    BROKEN      = "Broken"
    UNREACHABLE = "Unreachable"
    UNKNOWN     = "Unknown"
    NOT_SCORED  = "Not Scored"

    ALL = [SAFE, WARNING, UNSAFE, BROKEN, UNREACHABLE, UNKNOWN, NOT_SCORED]

    # Probe verdicts that the score thresholds never override
    STICKY = {BROKEN, UNREACHABLE}

    COLORS = {
        SAFE:        "#10b981",
        WARNING:     "#f59e0b",
        UNSAFE:      "#dc2626",
        BROKEN:      "#ef4444",
        UNREACHABLE: "#8b5cf6",
        UNKNOWN:     "#6b7280",
        NOT_SCORED:  "#374151",
    }


class CheckStatus:
    PASS  = "pass"
    WARN  = "warn"
    INFO  = "info"
    FAIL  = "fail"
    ERROR = "error"

    ALL = [PASS, WARN, INFO, FAIL, ERROR]

    ICONS = {
        PASS:  "✅",
        WARN:  "🟡",
        INFO:  "🔵",
        FAIL:  "🔴",
        ERROR: "⚠️",
    }


class CheckSeverity:
    CRITICAL = "critical"
    HIGH     = "high"
    MEDIUM   = "medium"
    LOW      = "low"

    ALL = [CRITICAL, HIGH, MEDIUM, LOW]


# ── Link discovery ────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class RawReference:
    value: str
    source_kind: str        # SourceKind.*


@dataclass(frozen=True)
class ResolvedLink:
    absolute_url: str
    hostname: str


@dataclass(frozen=True)
class LinkAssessment:
    url: str
    score: Optional[int]
    status: str             # LinkStatus.*
    issues: tuple[str, ...] = ()

    @classmethod
    def not_scored(cls, url: str) -> "LinkAssessment":
        return cls(url=url, score=None, status=LinkStatus.NOT_SCORED)


@dataclass(frozen=True)
class ThreatMatch:
    url: str
    pattern: str            # name of the pattern family that matched
    detail: str = ""


@dataclass
class FetchResult:
    url: str
    final_url: str = ""
    status: int = 0
    headers: dict[str, str] = field(default_factory=dict)   # lower-cased keys
    body: str = ""
    elapsed_ms: float = 0.0
    redirect_chain: list[str] = field(default_factory=list)

    @property
    def size_bytes(self) -> int:
        return len(self.body.encode("utf-8", errors="ignore"))


@dataclass
class RenderObservation:
    url: str
    final_url: str = ""
    dom_references: list[RawReference] = field(default_factory=list)
    api_navigation_log: list[str] = field(default_factory=list)
    foreign_network_requests: list[str] = field(default_factory=list)
    foreign_frame_navigations: list[str] = field(default_factory=list)
    redirect_locations: list[str] = field(default_factory=list)
    clicks_attempted: int = 0
    error: Optional[str] = None

    def references(self) -> list[RawReference]:
        refs = list(self.dom_references)
        refs += [RawReference(u, SourceKind.NAVIGATION_EVENT) for u in self.api_navigation_log]
        refs += [RawReference(u, SourceKind.NAVIGATION_EVENT) for u in self.foreign_frame_navigations]
        refs += [RawReference(u, SourceKind.REDIRECT_HEADER) for u in self.redirect_locations]
        refs += [RawReference(u, SourceKind.NETWORK_REQUEST) for u in self.foreign_network_requests]
        return refs

    @property
    def redirect_links(self) -> list[str]:
        """Navigations initiated by scripts, frames or redirect headers."""
        out: list[str] = []
        for url in self.api_navigation_log + self.foreign_frame_navigations + self.redirect_locations:
            if url not in out:
                out.append(url)
        return out


@dataclass
class LinkDiscoveryResult:
    url: str
    unique_external_links: list[str] = field(default_factory=list)
    unique_external_domains: list[str] = field(default_factory=list)
    scored_links: list[LinkAssessment] = field(default_factory=list)
    threat_detected: bool = False
    threat_matches: list[ThreatMatch] = field(default_factory=list)
    redirect_links: list[str] = field(default_factory=list)
    reference_counts: dict[str, int] = field(default_factory=dict)
    static_error: Optional[str] = None
    dynamic_error: Optional[str] = None
    dynamic_enabled: bool = True


# ── Checks and categories ─────────────────────────────────────────────────────
@dataclass(frozen=True)
class CheckResult:
    name: str
    status: str             # CheckStatus.*
    description: str
    severity: str           # CheckSeverity.*


@dataclass(frozen=True)
class CategoryResult:
    category: str
    icon: str
    score: int
    checks: tuple[CheckResult, ...] = ()
    extra: dict[str, Any] = field(default_factory=dict)
    threat_detected: bool = False


@dataclass
class OverallResult:
    url: str
    score: int
    label: str
    color: str
    categories: list[CategoryResult] = field(default_factory=list)
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def threat_detected(self) -> bool:
        return any(c.threat_detected for c in self.categories)


# ── Analysis configuration ────────────────────────────────────────────────────
@dataclass(frozen=True)
class AnalysisConfig:
    request_timeout: int = cfg.DEFAULT_REQUEST_TIMEOUT
    probe_timeout: int = cfg.DEFAULT_PROBE_TIMEOUT
    max_redirects: int = cfg.DEFAULT_MAX_REDIRECTS
    user_agent: str = cfg.DEFAULT_USER_AGENT
    enable_dynamic_extraction: bool = True
    enable_link_probes: bool = True
    keyword_malware_heuristic: bool = True
    navigation_timeout_ms: int = cfg.NAVIGATION_TIMEOUT_MS
    settle_delay_ms: int = cfg.SETTLE_DELAY_MS
    max_clicks_per_selector: int = cfg.MAX_CLICKS_PER_SELECTOR
    max_scored_links: int = cfg.MAX_SCORED_LINKS
    max_probe_workers: int = cfg.MAX_PROBE_WORKERS
    safe_browsing_api_key: Optional[str] = None

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides: Any) -> "AnalysisConfig":
        """Build a config from the process environment (and an optional .env file)."""
        load_dotenv(env_file)
        values: dict[str, Any] = {
            "enable_dynamic_extraction": _env_flag("SENTINEL_DYNAMIC_EXTRACTION", True),
            "enable_link_probes": _env_flag("SENTINEL_LINK_PROBES", True),
            "keyword_malware_heuristic": _env_flag("SENTINEL_KEYWORD_HEURISTIC", True),
            "request_timeout": int(os.getenv("SENTINEL_REQUEST_TIMEOUT", cfg.DEFAULT_REQUEST_TIMEOUT)),
            "safe_browsing_api_key": os.getenv("GOOGLE_SAFE_BROWSING_API_KEY") or None,
        }
        values.update(overrides)
        return cls(**values)


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")

"""
Global configuration constants for SiteSentinel.
All tunable thresholds live here; AnalysisConfig (models.py) is built from them.
"""

# ── Network defaults ──────────────────────────────────────────────────────────
DEFAULT_REQUEST_TIMEOUT = 15            # seconds, page fetches
DEFAULT_PROBE_TIMEOUT = 5               # seconds, link reachability probes
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (compatible; SiteSentinel/2.0; +https://github.com/sitesentinel)"
)

USER_AGENT_PRESETS = {
    "SiteSentinel (default)": DEFAULT_USER_AGENT,
    "Desktop Chrome": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                      "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
    "Googlebot": "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)",
}

# ── Dynamic extraction (headless browser) ─────────────────────────────────────
NAVIGATION_TIMEOUT_MS = 30_000
SETTLE_DELAY_MS = 2_500
CLICK_TIMEOUT_MS = 1_000
MAX_CLICKS_PER_SELECTOR = 50

CLICKABLE_SELECTORS = [
    "button",
    "a",
    '[role="button"]',
    "[onclick]",
    'input[type="button"]',
    'input[type="submit"]',
]

# ── Link scoring ──────────────────────────────────────────────────────────────
MAX_SCORED_LINKS = 50
MAX_PROBE_WORKERS = 10
UNSAFE_LINK_SCORE = 50                  # below this a scored link is "potentially unsafe"

SUSPICIOUS_TLDS = [
    ".click", ".loan", ".win", ".download", ".bid", ".racing", ".top", ".stream",
]

URL_SHORTENERS = ["bit.ly", "tinyurl", "goo.gl", "ow.ly", "adf.ly", "t.co"]

MAX_HOSTNAME_LABELS = 4

# ── Threat classifier ─────────────────────────────────────────────────────────
# Ad-network click tracking only; login redirects (return_to, redirect_url) are not listed.
PHISHING_QUERY_PARAMS = {
    "click_id", "clickid", "campaign_id", "zoneid", "zone_id",
}

URGENCY_KEYWORDS = [
    "verify-account", "verify_account", "account-verify", "confirm-identity",
    "account-suspended", "suspended", "unlock-account", "urgent", "security-alert",
    "update-billing", "password-reset", "confirm-human", "not-a-bot",
]

# Brand name → registered domains of the brand's own infrastructure.
# The brand's own name under any suffix (google.co.uk, amazon.co.jp) is genuine as well.
BRAND_DOMAINS: dict[str, list[str]] = {
    "paypal":    ["paypal.com", "paypal.me", "paypalobjects.com", "paypal-community.com"],
    "google":    ["google.com", "googleapis.com", "gstatic.com", "googleusercontent.com",
                  "googletagmanager.com", "google-analytics.com", "goo.gl",
                  "googlesyndication.com", "googleadservices.com", "googlevideo.com",
                  "google-apps.com", "googlemail.com", "googleblog.com"],
    "microsoft": ["microsoft.com", "microsoftonline.com", "live.com", "office.com",
                  "microsoftstore.com", "microsoft-int.com"],
    "apple":     ["apple.com", "icloud.com", "apple-cloudkit.com", "apple-dns.net", "apple-mapkit.com"],
    "amazon":    ["amazon.com", "amazonaws.com", "amazon-adsystem.com", "media-amazon.com",
                  "ssl-images-amazon.com", "images-amazon.com", "amazontrust.com"],
    "facebook":  ["facebook.com", "fb.com", "facebook.net", "fbcdn.net"],
    "netflix":   ["netflix.com", "nflxext.com"],
    "instagram": ["instagram.com", "cdninstagram.com"],
    "binance":   ["binance.com"],
    "coinbase":  ["coinbase.com"],
}

# ── Aggregation ───────────────────────────────────────────────────────────────
STATUS_VALUES: dict[str, float] = {
    "pass":  100,
    "info":   75,
    "warn":   60,
    "fail":    0,
    "error":   0,
}

SEVERITY_WEIGHTS: dict[str, float] = {
    "critical": 3,
    "high":     2,
    "medium":   1,
    "low":      0.5,
}

SCORE_BANDS = [
    (90, "Excellent", "#10b981"),
    (75, "Good",      "#3b82f6"),
    (60, "Fair",      "#f59e0b"),
    (45, "Poor",      "#ef4444"),
    (0,  "Critical",  "#dc2626"),
]

# ── Category thresholds ───────────────────────────────────────────────────────
TITLE_MIN_CHARS = 30
TITLE_MAX_CHARS = 60
DESCRIPTION_MIN_CHARS = 120
DESCRIPTION_MAX_CHARS = 160

SLOW_RESPONSE_TIME_MS = 2000
VERY_SLOW_RESPONSE_TIME_MS = 4000
LARGE_PAGE_SIZE_BYTES = 2_097_152        # 2 MB

MALWARE_KEYWORDS = [
    "malware", "virus", "trojan", "ransomware", "phishing", "infected", "malicious",
    "drive-by", "you have been infected", "click here to download", "decrypt", "scam",
]

GENERIC_LINK_TEXT = {"click here", "read more", "more", "link", "here"}

SAFE_BROWSING_ENDPOINT = "https://safebrowsing.googleapis.com/v4/threatMatches:find"

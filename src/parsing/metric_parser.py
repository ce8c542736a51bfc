"""
Metric Parser
Pulls the GMV amount and the LIVE session duration out of OCR text.

Both extractors are pure functions: each is an ordered cascade of
(name, pattern, extractor) rules and the first rule that yields a value wins.
"""
import re
from typing import Callable, List, Optional, Tuple, Union

Number = Union[int, float]

# Max believable GMV for a single session (10 billion Rupiah)
MAX_VALID_GMV = 10_000_000_000

# OCR frequently misreads the "GMV" label
_GMV_MISREADINGS = re.compile(r'BMV|GMY|GMW')

# Digits with "." thousands and "," decimals, optional K suffix
_NUMERIC = r'[\d.,K]+'

_LEADING_DECIMAL = re.compile(r'\d+(?:\.\d*)?|\.\d+')


def _to_number(value: float) -> Number:
    """Return an int when the amount has no fractional part."""
    return int(value) if float(value).is_integer() else value


def clean_number(num_str: str) -> float:
    """
    Convert an Indonesian-formatted number token to float.

    "." is a thousands separator and is dropped, "," becomes the decimal
    point. Anything that is not a digit or point is discarded and the leading
    decimal is parsed. Unparseable input yields 0.
    """
    cleaned = num_str.replace('.', '').replace(',', '.')
    cleaned = re.sub(r'[^\d.]', '', cleaned)
    match = _LEADING_DECIMAL.match(cleaned)
    if not match:
        return 0.0
    return float(match.group(0))


def apply_multiplier(num_str: str) -> float:
    """Parse a numeric token, multiplying by 1000 when it ends in K."""
    token = num_str.upper()
    multiplier = 1
    if token.endswith('K'):
        multiplier = 1000
        token = token[:-1]
    return clean_number(token) * multiplier


def normalize_gmv_text(text: str) -> str:
    """Uppercase, collapse whitespace and repair common GMV misreadings."""
    clean = re.sub(r'\s+', ' ', text or '').upper()
    return _GMV_MISREADINGS.sub('GMV', clean)


# ─── GMV cascade ──────────────────────────────────────────────────

def _first_positive(pattern: re.Pattern) -> Callable[[str], Optional[float]]:
    def extract(clean_text: str) -> Optional[float]:
        match = pattern.search(clean_text)
        if match:
            amount = apply_multiplier(match.group(1))
            if amount > 0:
                return amount
        return None
    return extract


def _max_positive(pattern: re.Pattern) -> Callable[[str], Optional[float]]:
    def extract(clean_text: str) -> Optional[float]:
        amounts = [apply_multiplier(m) for m in pattern.findall(clean_text)]
        amounts = [a for a in amounts if a > 0]
        return max(amounts) if amounts else None
    return extract


GMV_RULES: List[Tuple[str, Callable[[str], Optional[float]]]] = [
    ('gmv_langsung', _first_positive(re.compile(rf'GMV\s*LANGSUNG[^A-Z]*RP\s*({_NUMERIC})'))),
    ('gmv_total', _first_positive(re.compile(rf'GMV[^A-Z]*RP\s*({_NUMERIC})'))),
    ('max_rupiah', _max_positive(re.compile(rf'RP\s*({_NUMERIC})'))),
]


def parse_gmv(text: str) -> Number:
    """
    Extract the GMV amount from OCR text.

    Priority: "GMV LANGSUNG ... RP n", then "GMV ... RP n", then the largest
    "RP n" anywhere. Returns 0 when nothing matches.
    """
    clean_text = normalize_gmv_text(text)
    for _name, extract in GMV_RULES:
        amount = extract(clean_text)
        if amount is not None:
            return _to_number(amount)
    return 0


def match_gmv_rule(text: str) -> Optional[str]:
    """Name of the GMV rule that fires for this text, or None."""
    clean_text = normalize_gmv_text(text)
    for name, extract in GMV_RULES:
        if extract(clean_text) is not None:
            return name
    return None


# ─── Duration cascade ─────────────────────────────────────────────

_DURATION_HOURS = re.compile(r'Durasi[:\s]*(\d+)\s*jam(?:\s*(\d+)\s*(?:menit|mnt))?', re.IGNORECASE)
_DURATION_MINUTES = re.compile(r'Durasi[:\s]*(\d+)\s*(?:menit|mnt)', re.IGNORECASE)
_BARE_HOURS = re.compile(r'(\d+)\s*jam', re.IGNORECASE)


def _compose_duration(hours: int, minutes: int) -> Optional[str]:
    parts = []
    if hours > 0:
        parts.append(f"{hours} jam")
    if minutes > 0:
        parts.append(f"{minutes} menit")
    return ' '.join(parts) or None


def _duration_hours_minutes(clean_text: str) -> Optional[str]:
    match = _DURATION_HOURS.search(clean_text)
    if not match:
        return None
    return _compose_duration(int(match.group(1)), int(match.group(2) or 0))


def _duration_minutes(clean_text: str) -> Optional[str]:
    match = _DURATION_MINUTES.search(clean_text)
    if not match:
        return None
    return _compose_duration(0, int(match.group(1)))


def _bare_hours(clean_text: str) -> Optional[str]:
    # Only the first "<n> jam" counts; later mentions are not searched
    match = _BARE_HOURS.search(clean_text)
    if not match:
        return None
    hours = int(match.group(1))
    if 0 < hours <= 24:
        return f"{hours} jam"
    return None


DURATION_RULES: List[Tuple[str, Callable[[str], Optional[str]]]] = [
    ('durasi_jam_menit', _duration_hours_minutes),
    ('durasi_menit', _duration_minutes),
    ('jam', _bare_hours),
]


def parse_duration(text: str) -> Optional[str]:
    """
    Extract a human-readable LIVE duration ("1 jam 30 menit", "45 menit").

    Returns None when no rule matches.
    """
    clean_text = re.sub(r'\s+', ' ', text or '').strip()
    for _name, extract in DURATION_RULES:
        label = extract(clean_text)
        if label:
            return label
    return None


# ─── Helpers ──────────────────────────────────────────────────────

def is_valid_gmv(gmv: Number) -> bool:
    """True for a positive GMV under the 10 billion ceiling."""
    return bool(gmv) and 0 < gmv < MAX_VALID_GMV


def format_rupiah(amount: Number) -> str:
    """Format an amount the Indonesian way: Rp 1.234.567"""
    rounded = int(round(amount or 0))
    return "Rp " + f"{rounded:,}".replace(',', '.')

"""Asset code generation.

Format: [CATEGORY]-[ABBREVIATION]-[BRAND?]-[WWYY]

    CC-MK-0226       tools/equipment "Máy khoan", week 02 of 2026
    VT-BLM-0126      materials "Bu lông M10", week 01 of 2026
    CC-MT-DOP-0226   "Máy tính" by "Dell OptiPlex"
"""

import unicodedata
from datetime import date

from src.modules.assets.models import AssetType

CATEGORY_CODES = {
    AssetType.TOOLS: "CC",
    AssetType.EQUIPMENT: "CC",
    AssetType.MATERIALS: "VT",
}

# Vietnamese connectives skipped when abbreviating
STOP_WORDS = {"và", "hoặc", "của", "cho", "với", "trong", "ngoài", "các", "những"}


def _ascii_initial(word: str) -> str:
    # "Đ" has no decomposition, everything else drops its diacritics.
    char = word[0].upper().replace("Đ", "D")
    return unicodedata.normalize("NFKD", char).encode("ascii", "ignore").decode() or ""


def abbreviate(name: str, max_length: int = 4) -> str:
    """First letter of each significant word, at most max_length letters."""
    words = [w for w in name.strip().split() if w.lower() not in STOP_WORDS]
    return "".join(_ascii_initial(w) for w in words if w)[:max_length]


def abbreviate_brand(brand: str) -> str:
    """'Dell OptiPlex' -> 'DOP', 'Bosch' -> 'BOS'."""
    words = brand.strip().split()
    if not words:
        return ""
    if len(words) == 1:
        return words[0][:3].upper()
    result = words[0][0].upper() + "".join(w[:2].upper() for w in words[1:])
    return result[:4]


def week_code(today: date | None = None) -> str:
    today = today or date.today()
    week = today.isocalendar()[1]
    return f"{week:02d}{today.year % 100:02d}"


def generate_asset_code(
    asset_name: str,
    asset_type: AssetType | str,
    brand: str | None = None,
    today: date | None = None,
) -> str:
    parts = [CATEGORY_CODES[AssetType(asset_type)]]
    abbreviation = abbreviate(asset_name)
    if abbreviation:
        parts.append(abbreviation)
    if brand and brand.strip():
        parts.append(abbreviate_brand(brand))
    parts.append(week_code(today))
    return "-".join(parts)

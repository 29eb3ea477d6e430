from datetime import date

from src.modules.assets.models import AssetType
from src.shared.utils.asset_code import abbreviate, abbreviate_brand, generate_asset_code, week_code

JAN_8_2026 = date(2026, 1, 8)  # ISO week 2


class TestAssetCode:
    def test_tool_code(self):
        assert generate_asset_code("Máy khoan", AssetType.TOOLS, today=JAN_8_2026) == "CC-MK-0226"

    def test_equipment_shares_tool_prefix(self):
        code = generate_asset_code("Máy khoan", AssetType.EQUIPMENT, today=JAN_8_2026)
        assert code.startswith("CC-")

    def test_material_code(self):
        assert generate_asset_code("Bu lông M10", AssetType.MATERIALS, today=JAN_8_2026) == "VT-BLM-0226"

    def test_brand_segment(self):
        code = generate_asset_code("Máy tính", "tools", brand="Dell OptiPlex", today=JAN_8_2026)
        assert code == "CC-MT-DOP-0226"

    def test_abbreviate_skips_connectives_and_diacritics(self):
        assert abbreviate("Đèn và ổ cắm") == "DOC"
        assert abbreviate("Một hai ba bốn năm") == "MHBB"

    def test_abbreviate_brand_single_word(self):
        assert abbreviate_brand("Bosch") == "BOS"

    def test_week_code(self):
        assert week_code(date(2025, 12, 31)) == "0125"

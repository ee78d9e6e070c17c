"""ドメインモデル・通貨・招待コードのテスト"""

import pytest
from familyfin.domain.currencies import CURRENCIES, find_currency
from familyfin.domain.models import (
    DEFAULT_MEMBER_NAME,
    NOTIFICATION_SOUNDS,
    CategoryType,
    LedgerKind,
    UserProfile,
)
from familyfin.services.invite_codes import (
    INVITE_CODE_LENGTH,
    generate_invite_code,
    normalize_invite_code,
)


class TestKinds:
    def test_ledger_collections(self):
        assert LedgerKind.EXPENSE.collection == "expenses"
        assert LedgerKind.EARNING.collection == "earnings"

    def test_category_collections(self):
        assert CategoryType.EXPENSE.collection == "expenseCategories"
        assert CategoryType.SHOPPING.collection == "shoppingCategories"

    def test_ledger_kind_maps_to_category_type(self):
        assert LedgerKind.EARNING.category_type is CategoryType.EARNING


class TestUserProfile:
    """UserProfile dataclass のテスト"""

    def test_display_name_fallback(self):
        """名前未設定なら既定の表示名になる"""
        assert UserProfile(uid="u").display_name == DEFAULT_MEMBER_NAME
        assert UserProfile(uid="u", name="Asha").display_name == "Asha"

    def test_default_private_per_kind(self):
        profile = UserProfile(uid="u", default_expenses_private=True)
        assert profile.default_private(LedgerKind.EXPENSE) is True
        assert profile.default_private(LedgerKind.EARNING) is False

    def test_profile_is_frozen(self):
        profile = UserProfile(uid="u")
        with pytest.raises(AttributeError):
            profile.name = "x"  # type: ignore

    def test_default_sound_registered(self):
        assert NOTIFICATION_SOUNDS["Default"] == "/sounds/default-notification.mp3"


class TestCurrencies:
    def test_sixteen_currencies(self):
        assert len(CURRENCIES) == 16

    def test_find_is_case_insensitive(self):
        currency = find_currency(" usd ")
        assert currency is not None
        assert currency.symbol == "$"

    def test_unknown_currency(self):
        assert find_currency("XYZ") is None


class TestInviteCodes:
    def test_generated_code_format(self):
        code = generate_invite_code()
        assert len(code) == INVITE_CODE_LENGTH
        assert code.isalnum()
        assert code == code.upper()

    def test_normalize(self):
        assert normalize_invite_code("  ab12cd ") == "AB12CD"

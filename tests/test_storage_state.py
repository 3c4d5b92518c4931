"""JSON storage helpers, session defaults/busy flags, and configuration."""

import pytest

from core.cart import Cart, CartItem
from core.config import ConfigError, Settings
from core.constants import MAX_FILE_SIZE, check_upload, file_extension
from core.state import (
    DEFAULTS,
    busy,
    ensure_defaults,
    is_busy,
    mark_busy,
    pop_notice,
    reset_upload_form,
    set_notice,
    track_account,
)
from services.storage import JsonStorage, cart_key, safe_parse


def test_safe_parse():
    assert safe_parse('{"a": 1}', {}) == {"a": 1}
    assert safe_parse("{broken", []) == []
    assert safe_parse(None, "d") == "d"


def test_cart_key_lowercases_or_anon():
    assert cart_key("0xAbC") == "pending_purchases_0xabc"
    assert cart_key(None) == "pending_purchases_anon"


def test_json_storage_roundtrip_and_corruption(tmp_path):
    path = tmp_path / "store.json"
    storage = JsonStorage(path)
    assert storage.read("k", []) == []

    cart = Cart([CartItem(1, "Guide", "0xs", "0.01", 2, 2)])
    storage.write(cart_key("0xA"), cart.to_records())
    restored = Cart.from_records(JsonStorage(path).read(cart_key("0xa"), []))
    assert restored.get(1).quantity == 2

    storage.delete(cart_key("0xa"))
    assert storage.read(cart_key("0xa"), None) is None

    path.write_text("not json", encoding="utf-8")
    assert storage.read("k", "default") == "default"


def test_ensure_defaults_preserves_existing():
    state = {"SEARCH_QUERY": "guide"}
    ensure_defaults(state)
    assert set(DEFAULTS) <= set(state)
    assert state["SEARCH_QUERY"] == "guide"
    assert isinstance(state["CART"], Cart)

    other = {}
    ensure_defaults(other)
    assert other["CART"] is not state["CART"]


def test_reset_upload_form():
    state = {"UPLOAD_FORM": {"title": "x"}}
    reset_upload_form(state)
    assert state["UPLOAD_FORM"]["title"] == ""
    assert state["UPLOAD_FORM"]["amount"] == "1"


def test_busy_flag_cleared_on_error():
    state = {}
    with pytest.raises(RuntimeError):
        with busy("checkout", state):
            assert is_busy("checkout", state)
            raise RuntimeError("revert")
    assert not is_busy("checkout", state)


def test_settings_require():
    s = Settings(REGISTRY_CONTRACT_ADDRESS="0x" + "11" * 20, TOKEN_ADDRESS="")
    assert s.require("REGISTRY_CONTRACT_ADDRESS").startswith("0x11")
    with pytest.raises(ConfigError, match="TOKEN_ADDRESS"):
        s.require("TOKEN_ADDRESS")


def test_upload_rules():
    assert file_extension("a.b.JPEG") == "jpeg"
    assert check_upload("guide.pdf", 10 * 1024, "").label == "PDF"
    with pytest.raises(ValueError, match="50MB"):
        check_upload("guide.pdf", MAX_FILE_SIZE + 1)
    with pytest.raises(ValueError, match="Unsupported"):
        check_upload("photo.png", 10, "application/pdf")


def test_click_callback_keeps_action_busy_until_handled():
    state = {}
    mark_busy("checkout", state)
    # The rerun after the click renders the button with this flag set.
    assert is_busy("checkout", state)

    with busy("checkout", state):
        assert is_busy("checkout", state)
    assert not is_busy("checkout", state)


def test_notice_is_shown_once():
    state = {}
    set_notice("checkout", "error", "Checkout failed: reverted", state)
    assert pop_notice("checkout", state) == ("error", "Checkout failed: reverted")
    assert pop_notice("checkout", state) is None


def test_account_change_resets_airdrop_status():
    state = {}
    ensure_defaults(state)
    assert track_account("0xA", state) is True
    state["AIRDROP_RECEIVED"] = True

    assert track_account("0xA", state) is False
    assert state["AIRDROP_RECEIVED"] is True

    assert track_account("0xB", state) is True
    assert state["WALLET_ACCOUNT"] == "0xB"
    assert state["AIRDROP_RECEIVED"] is None

    track_account(None, state)
    assert state["WALLET_ACCOUNT"] == ""


def test_delete_rewrites_through_temp_file(tmp_path):
    path = tmp_path / "store.json"
    storage = JsonStorage(path)
    storage.write("a", 1)
    storage.write("b", 2)
    storage.delete("a")
    storage.delete("missing")

    assert storage.read("a", None) is None
    assert storage.read("b", None) == 2
    assert not path.with_suffix(".json.tmp").exists()

"""
Unit tests for the selector registry.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from plainstep.resolver.registry import SelectorRegistry, descriptor_key, page_identity


class TestPageIdentity:
    def test_html_suffix_and_query_dropped(self):
        assert page_identity("https://shop.test/inventory.html?sort=az#top") == "inventory"

    def test_root_is_home(self):
        assert page_identity("http://localhost:3000/") == "home"
        assert page_identity("http://localhost:3000") == "home"

    def test_nested_path(self):
        assert page_identity("http://localhost:3000/checkout/step-one.html") == "checkout_step-one"


class TestDescriptorKey:
    def test_whitespace_collapsed_and_lowered(self):
        assert descriptor_key("  Add To   Cart ", "button") == "add_to_cart_button"

    def test_missing_type_is_any(self):
        assert descriptor_key("password") == "password_any"


class TestSelectorRegistry:
    @pytest.fixture
    def registry(self, tmp_path):
        return SelectorRegistry(str(tmp_path / "registries"))

    def test_round_trip_across_instances(self, registry):
        registry.save("login", "password_input", "#password")
        fresh = SelectorRegistry(str(registry.registry_dir))
        assert fresh.get("login", "password_input") == "#password"

    def test_save_merges_keys(self, registry):
        registry.save("login", "password_input", "#password")
        registry.save("login", "username_input", "#user-name")
        assert registry.load("login") == {
            "password_input": "#password",
            "username_input": "#user-name",
        }

    def test_invalidate_removes_only_that_key(self, registry):
        registry.save("login", "password_input", "#password")
        registry.save("login", "username_input", "#user-name")
        registry.invalidate("login", "password_input")
        assert registry.load("login") == {"username_input": "#user-name"}

    def test_corrupt_file_reads_as_empty(self, registry):
        registry.path_for("broken").write_text("{not json")
        assert registry.load("broken") == {}
        registry.save("broken", "login_button", "#login")
        assert registry.get("broken", "login_button") == "#login"

    def test_pages_and_clear(self, registry):
        registry.save("login", "password_input", "#password")
        registry.save("inventory", "cart_link", "#cart")
        assert registry.pages() == ["inventory", "login"]
        assert registry.clear("login") == 1
        assert registry.pages() == ["inventory"]
        assert registry.clear() == 1
        assert registry.pages() == []

    def test_concurrent_writers_keep_every_key(self, registry):
        def write(i):
            SelectorRegistry(str(registry.registry_dir)).save("login", f"field_{i}_input", f"#field-{i}")

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(write, range(40)))

        assert len(registry.load("login")) == 40
        assert not list(registry.registry_dir.glob("*.tmp"))

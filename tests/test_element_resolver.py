"""
Unit tests for the element resolver cascade.
"""
import asyncio

import pytest

from plainstep.core.exceptions import ElementNotFoundError
from plainstep.resolver.element_resolver import ElementResolver
from plainstep.resolver.registry import SelectorRegistry
from plainstep.resolver.strategies import ElementDescriptor
from tests.fakes import FakeElement, FakePage


@pytest.fixture
def registry(tmp_path):
    return SelectorRegistry(str(tmp_path / "registries"))


def resolve(resolver, page, name, element_type=None):
    descriptor = ElementDescriptor(name=name, element_type=element_type or "any")
    return asyncio.run(resolver.resolve_descriptor(page, descriptor))


def login_page():
    return FakePage(
        elements=[
            FakeElement(tag="input", name="user-name", placeholder="Username"),
            FakeElement(tag="input", name="password"),
            FakeElement(tag="button", text="Login", id="login-button"),
        ],
        url="http://localhost:3000/",
    )


class TestIdempotence:
    def test_second_resolution_is_a_registry_hit(self, registry):
        resolver = ElementResolver(registry)
        page = login_page()

        first = resolve(resolver, page, "Login", "button")
        second = resolve(resolver, page, "Login", "button")

        assert first.selector == second.selector == "#login-button"
        assert first.strategy == "semantic:role"
        assert second.strategy == "registry"
        assert page.scan_count == 0


class TestRoundTrip:
    def test_fresh_resolver_reuses_learned_selector(self, registry):
        page = login_page()
        learned = resolve(ElementResolver(registry), page, "password", "input")
        assert learned.strategy == "structural"
        assert learned.selector == 'input[name="password"]'
        assert page.scan_count == 1

        fresh_page = login_page()
        fresh = ElementResolver(SelectorRegistry(str(registry.registry_dir)))
        reused = resolve(fresh, fresh_page, "password", "input")

        assert reused.strategy == "registry"
        assert reused.selector == learned.selector
        assert fresh_page.scan_count == 0


class TestCascadePrecedence:
    def test_semantic_hit_skips_structural_scan(self, registry):
        page = login_page()
        resolution = resolve(ElementResolver(registry), page, "Username", "input")
        assert resolution.strategy == "semantic:placeholder"
        assert resolution.selector == 'input[name="user-name"]'
        assert page.scan_count == 0

    def test_semantic_match_without_stable_attributes_is_not_stored(self, registry):
        page = FakePage(elements=[FakeElement(tag="a", text="About")])
        resolution = resolve(ElementResolver(registry), page, "About", "link")
        assert resolution.strategy == "semantic:role"
        assert registry.load("home") == {}

    def test_stale_registry_entry_is_dropped(self, registry):
        registry.save("home", "login_button", "#old-login")
        page = login_page()

        resolution = resolve(ElementResolver(registry), page, "Login", "button")

        assert resolution.strategy == "semantic:role"
        assert registry.get("home", "login_button") == "#login-button"


class TestFrames:
    def test_element_in_child_frame(self, registry):
        page = FakePage(
            elements=[FakeElement(tag="h1", text="Checkout")],
            child_frames=[[FakeElement(tag="input", id="card-number")]],
            url="http://localhost:3000/checkout.html",
        )
        resolution = resolve(ElementResolver(registry), page, "card number", "input")
        assert resolution.selector == "#card-number"
        assert registry.get("checkout", "card_number_input") == "#card-number"

    def test_not_found_names_descriptor_and_frames(self, registry):
        page = FakePage(
            elements=[FakeElement(tag="button", text="Login")],
            child_frames=[[], []],
        )
        with pytest.raises(ElementNotFoundError) as exc:
            asyncio.run(ElementResolver(registry).resolve(page, "Checkout", "button"))
        assert exc.value.frames_searched == 3
        assert 'Element "Checkout (button)"' in exc.value.message

    def test_hidden_elements_are_skipped(self, registry):
        page = FakePage(
            elements=[
                FakeElement(tag="button", text="Login", id="hidden-login", visible=False),
                FakeElement(tag="button", text="Login", id="login-button"),
            ]
        )
        resolution = resolve(ElementResolver(registry), page, "Login", "button")
        assert resolution.selector == "#login-button"


def gender_page(with_values=True):
    return FakePage(
        elements=[
            FakeElement(tag="input", input_type="radio", name="gender", label="Male",
                        value="male" if with_values else ""),
            FakeElement(tag="input", input_type="radio", name="gender", label="Female",
                        value="female" if with_values else ""),
        ],
        url="http://localhost:3000/signup.html",
    )


class TestSharedNames:
    """Options of one group share a name attribute."""

    def test_learned_radio_selector_targets_the_same_option(self, registry):
        learned = resolve(ElementResolver(registry), gender_page(), "Female", "radio")
        assert learned.strategy == "semantic:label"
        assert learned.selector == 'input[name="gender"][value="female"]'

        fresh = ElementResolver(SelectorRegistry(str(registry.registry_dir)))
        reused = resolve(fresh, gender_page(), "Female", "radio")

        assert reused.strategy == "registry"
        assert reused.selector == learned.selector
        asyncio.run(reused.locator.click())
        assert reused.locator.frame.elements[1].clicks == 1
        assert reused.locator.frame.elements[0].clicks == 0

    def test_shared_name_without_value_is_not_stored(self, registry):
        resolution = resolve(ElementResolver(registry), gender_page(with_values=False), "Female", "radio")
        assert resolution.strategy == "semantic:label"
        assert resolution.selector is None
        assert registry.load("signup") == {}

    def test_structural_scan_prefers_the_closest_option(self, registry):
        page = FakePage(
            elements=[
                FakeElement(tag="input", input_type="radio", name="gender", value="m", aria_label="Male"),
                FakeElement(tag="input", input_type="radio", name="gender", value="f", aria_label="Female"),
            ]
        )
        resolution = resolve(ElementResolver(registry), page, "Female", "radio")
        assert resolution.strategy == "structural"
        assert resolution.selector == 'input[name="gender"][value="f"]'
        assert registry.get("home", "female_radio") == 'input[name="gender"][value="f"]'

    def test_ambiguous_structural_match_is_used_but_not_stored(self, registry):
        page = FakePage(elements=[FakeElement(tag="div", text="Login"), FakeElement(tag="div", text="Login")])
        resolution = resolve(ElementResolver(registry), page, "Login")
        assert resolution.strategy == "structural"
        assert resolution.persist is False
        assert registry.load("home") == {}

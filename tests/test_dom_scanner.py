"""
Unit tests for the structural DOM scan.
"""
import asyncio

from plainstep.resolver.dom_scanner import (
    DOMScanner,
    ScannedElement,
    candidate_selectors,
    element_matches,
    id_selector,
    match_score,
)
from tests.fakes import FakeElement, FakePage


class TestElementMatches:
    def test_name_contained_in_attribute(self):
        assert element_matches(ScannedElement(tag="input", id="password-field"), "password")

    def test_attribute_contained_in_name(self):
        assert element_matches(ScannedElement(tag="button", text="Login"), "Login button")

    def test_short_attribute_not_contained(self):
        assert not element_matches(ScannedElement(tag="a", text="a"), "password")

    def test_similarity_above_threshold(self):
        assert element_matches(ScannedElement(tag="input", id="user-name"), "username")

    def test_scores_rank_exact_over_contained(self):
        male = ScannedElement(tag="input", aria_label="Male")
        female = ScannedElement(tag="input", aria_label="Female")
        assert match_score(female, "female") == 3
        assert match_score(female, "fem") == 2
        assert match_score(male, "female") == 1

    def test_unrelated(self):
        assert not element_matches(ScannedElement(tag="button", text="Checkout"), "password")


class TestCandidateSelectors:
    def test_most_stable_first(self):
        element = ScannedElement(tag="button", text="Login", id="login-button", name="login", test_id="login")
        assert candidate_selectors(element) == [
            '[data-testid="login"], [data-test="login"]',
            "#login-button",
            'button[name="login"]',
            'button:has-text("Login")',
        ]

    def test_grouped_input_is_narrowed_by_value(self):
        element = ScannedElement(tag="input", name="gender", input_type="radio", value="female")
        assert candidate_selectors(element) == ['input[name="gender"][value="female"]']

    def test_awkward_id_is_attribute_selector(self):
        assert id_selector("user.name") == '[id="user.name"]'


class TestDOMScanner:
    def test_scans_every_frame_and_skips_broken_ones(self):
        page = FakePage(
            elements=[FakeElement(tag="input", name="password")],
            child_frames=[[FakeElement(tag="button", text="Pay now", id="pay")]],
        )
        page.child_frames[0].broken = True
        suggestions = asyncio.run(DOMScanner().suggest_selectors(page.frames, "password"))
        assert suggestions == ['input[name="password"]']
        assert page.scan_count == 2

    def test_suggestions_are_unique(self):
        page = FakePage(
            elements=[FakeElement(tag="input", name="email"), FakeElement(tag="input", name="email")]
        )
        suggestions = asyncio.run(DOMScanner().suggest_selectors(page.frames, "email"))
        assert suggestions == ['input[name="email"]']

    def test_closest_matches_come_first(self):
        page = FakePage(
            elements=[
                FakeElement(tag="input", id="male-option", aria_label="Male"),
                FakeElement(tag="input", id="female-option", aria_label="Female"),
            ]
        )
        suggestions = asyncio.run(DOMScanner().suggest_selectors(page.frames, "Female"))
        assert suggestions == ["#female-option", "#male-option"]

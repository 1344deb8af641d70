"""
Unit tests for step interpretation.
"""
import asyncio

import pytest

from plainstep.core.exceptions import DataNotFoundError, UnrecognizedStepError
from plainstep.nlp.classifier import Classification, Entity, PatternIntentClassifier
from plainstep.nlp.interpreter import ElementType, Intent, StepInterpreter, find_url_path
from tests.fakes import StubClassifier


def interpret(text, classifier=None, data=None):
    lookup = (data or {}).get
    interpreter = StepInterpreter(classifier or PatternIntentClassifier(), resolve_placeholder=lookup)
    return asyncio.run(interpreter.interpret(text))


class TestNavigation:
    """Navigation phrasing, with and without a classifier match."""

    def test_is_on_literal_path(self):
        action = interpret("Given the user is on /login")
        assert action.intent == Intent.NAVIGATE
        assert action.value == "/login"

    def test_goes_to_descriptive_page(self):
        action = interpret("When the user goes to the inventory page")
        assert action.intent == Intent.NAVIGATE
        assert action.value == "inventory"

    def test_literal_path_beats_page_name(self):
        action = interpret('Given I am on the "/cart.html" page')
        assert action.value == "/cart.html"

    def test_am_on_page(self):
        action = interpret("Given I am on the inventory page")
        assert action.intent == Intent.NAVIGATE
        assert action.value == "inventory"

    def test_fallback_when_classifier_has_no_intent(self):
        action = interpret("Given the shopper is on /checkout-step-one.html", classifier=StubClassifier())
        assert action.intent == Intent.NAVIGATE
        assert action.value == "/checkout-step-one.html"

    def test_fallback_without_path_is_unknown(self):
        action = interpret("When she goes to somewhere nice", classifier=StubClassifier())
        assert action.intent == Intent.NAVIGATE
        assert action.value == "unknown"


class TestTwoSlotIntents:
    """Value/element steps assign slots by reading order."""

    def test_fill_example(self):
        action = interpret('When I fill "secret_sauce" in "password" input')
        assert action.intent == Intent.FILL
        assert action.locator == "password"
        assert action.value == "secret_sauce"
        assert action.element_type == ElementType.INPUT

    def test_quoted_value_may_contain_joining_word(self):
        action = interpret('When I type "log in now" into the "search" input')
        assert action.value == "log in now"
        assert action.locator == "search"

    def test_select_from_dropdown(self):
        action = interpret("When I select 'Price (low to high)' from the sort dropdown")
        assert action.intent == Intent.SELECT
        assert action.value == "Price (low to high)"
        assert action.locator == "sort"
        assert action.element_type == ElementType.DROPDOWN

    def test_radio_becomes_click_on_radio(self):
        action = interpret('When I select "Express" from "shipping" radio')
        assert action.intent == Intent.CLICK
        assert action.element_type == ElementType.RADIO
        assert action.value == "Express"
        assert action.locator == "shipping"

    def test_uncheck(self):
        action = interpret('And I uncheck "Newsletter" from "preferences" checkbox')
        assert action.intent == Intent.UNCHECK
        assert action.value == "Newsletter"
        assert action.locator == "preferences"

    def test_positional_order_overrides_roles(self):
        classification = Classification(
            intent="fill",
            entities=[
                Entity(role="value", start=20, text='"email" input'),
                Entity(role="element", start=5, text='"bob@example.com"'),
            ],
        )
        action = interpret("x", classifier=StubClassifier(classification))
        assert action.value == "bob@example.com"
        assert action.locator == "email"


class TestSingleSlotIntents:
    def test_click_button(self):
        action = interpret("When I click the Login button")
        assert action.intent == Intent.CLICK
        assert action.locator == "Login"
        assert action.element_type == ElementType.BUTTON

    def test_click_link(self):
        action = interpret("When I click on 'About' link")
        assert action.locator == "About"
        assert action.element_type == ElementType.LINK

    def test_assert_text(self):
        action = interpret('Then I should see a "Epic sadface" message')
        assert action.intent == Intent.ASSERT_TEXT
        assert action.value == "Epic sadface"

    def test_assert_url(self):
        action = interpret("Then I should be redirected to /inventory.html")
        assert action.intent == Intent.ASSERT_URL
        assert action.value == "/inventory.html"

    def test_assert_visible(self):
        action = interpret("Then the 'Checkout' button should be visible")
        assert action.intent == Intent.ASSERT_VISIBLE
        assert action.locator == "Checkout"
        assert action.element_type == ElementType.BUTTON


class TestQuotedPhrases:
    """Words inside quoted values never decide the intent."""

    def test_click_label_containing_go_to(self):
        action = interpret('When I click the "Go to cart" button')
        assert action.intent == Intent.CLICK
        assert action.locator == "Go to cart"
        assert action.element_type == ElementType.BUTTON

    def test_fill_value_containing_is_on(self):
        action = interpret('When I fill "who is on call" in "search" input')
        assert action.intent == Intent.FILL
        assert action.value == "who is on call"
        assert action.locator == "search"

    def test_fallback_ignores_quoted_navigation_words(self):
        with pytest.raises(UnrecognizedStepError):
            interpret('When I frobnicate "what goes to eleven"', classifier=StubClassifier())

    def test_apostrophes_inside_words_are_not_quotes(self):
        action = interpret("When the shopper's basket is on /cart.html")
        assert action.intent == Intent.NAVIGATE
        assert action.value == "/cart.html"


class TestPlaceholders:
    def test_placeholder_is_substituted(self):
        data = {"users.valid.password": "secret_sauce"}
        action = interpret('When I fill "{users.valid.password}" in "password" input', data=data)
        assert action.value == "secret_sauce"

    def test_missing_placeholder_raises(self):
        with pytest.raises(DataNotFoundError) as exc:
            interpret('When I fill "{users.locked.password}" in "password" input')
        assert exc.value.key == "users.locked.password"


class TestUnrecognized:
    def test_unrecognized_step(self):
        with pytest.raises(UnrecognizedStepError) as exc:
            interpret("When Frobnicate the whatsit")
        assert exc.value.step_text == "When Frobnicate the whatsit"

    def test_intent_without_table_entry(self):
        classifier = StubClassifier(Classification(intent="teleport"))
        with pytest.raises(UnrecognizedStepError):
            interpret("When I teleport home", classifier=classifier)


class TestFindUrlPath:
    def test_plain_path(self):
        assert find_url_path("Given I am on /login") == "/login"

    def test_full_url_has_no_path_token(self):
        assert find_url_path("Given I am on https://example.com/login") is None

    def test_no_path(self):
        assert find_url_path("When I click the Login button") is None

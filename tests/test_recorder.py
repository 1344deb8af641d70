"""
Unit tests for the action recorder.
"""
import asyncio

import pytest

from plainstep.nlp.classifier import PatternIntentClassifier
from plainstep.nlp.interpreter import ElementType, Intent, StepInterpreter
from plainstep.tools.recorder import BINDING_NAME, RECORDER_SCRIPT, ActionRecorder, step_for_event


class RecordingPage:
    """The two page hooks the recorder installs itself with."""

    def __init__(self):
        self.bindings = {}
        self.init_scripts = []

    async def expose_binding(self, name, callback):
        self.bindings[name] = callback

    async def add_init_script(self, script):
        self.init_scripts.append(script)


def interpret(text):
    return asyncio.run(StepInterpreter(PatternIntentClassifier()).interpret(text))


class TestStepForEvent:
    def test_click_link(self):
        assert step_for_event({"type": "click", "tagName": "a", "name": "About"}) == 'And user click "About" link'

    def test_click_button(self):
        event = {"type": "click", "tagName": "button", "name": "Login"}
        assert step_for_event(event) == 'And user click "Login" button'

    def test_fill(self):
        event = {"type": "fill", "name": "Username", "value": "standard_user"}
        assert step_for_event(event) == 'And user fill "standard_user" in "Username" input'

    def test_inner_double_quotes_become_single(self):
        event = {"type": "fill", "name": "Comment", "value": 'say "hi"'}
        assert step_for_event(event) == "And user fill \"say 'hi'\" in \"Comment\" input"

    def test_nameless_events_are_dropped(self):
        assert step_for_event({"type": "click", "tagName": "div", "name": "  "}) is None
        assert step_for_event({"type": "scroll", "name": "page"}) is None


class TestRecordedStepsAreRunnable:
    """Every generated step reads back as the action that produced it."""

    @pytest.mark.parametrize(
        "event, intent, locator, value, element_type",
        [
            ({"type": "click", "tagName": "button", "name": "Go to cart"}, Intent.CLICK, "Go to cart", None, ElementType.BUTTON),
            ({"type": "click", "tagName": "a", "name": "About"}, Intent.CLICK, "About", None, ElementType.LINK),
            ({"type": "fill", "name": "Username", "value": "who is on call"}, Intent.FILL, "Username", "who is on call", ElementType.INPUT),
            ({"type": "select", "name": "sort", "value": "Price (low to high)"}, Intent.SELECT, "sort", "Price (low to high)", ElementType.DROPDOWN),
            ({"type": "check", "name": "remember", "value": "Remember me"}, Intent.CHECK, "remember", "Remember me", ElementType.CHECKBOX),
            ({"type": "uncheck", "name": "remember", "value": "Remember me"}, Intent.UNCHECK, "remember", "Remember me", ElementType.CHECKBOX),
            ({"type": "radio", "name": "shipping", "value": "Express"}, Intent.CLICK, "shipping", "Express", ElementType.RADIO),
        ],
    )
    def test_step_interprets_back(self, event, intent, locator, value, element_type):
        action = interpret(step_for_event(event))
        assert action.intent == intent
        assert action.locator == locator
        assert action.value == value
        assert action.element_type == element_type


class TestActionRecorder:
    def test_start_installs_binding_and_script(self):
        page = RecordingPage()
        asyncio.run(ActionRecorder().start(page))
        assert BINDING_NAME in page.bindings
        assert page.init_scripts == [RECORDER_SCRIPT]

    def test_binding_collects_steps(self):
        page = RecordingPage()
        printed = []
        recorder = ActionRecorder(on_step=printed.append)
        asyncio.run(recorder.start(page))

        callback = page.bindings[BINDING_NAME]
        callback({"frame": None}, {"type": "fill", "name": "Username", "value": "standard_user"})
        callback({"frame": None}, {"type": "fill", "name": "Username", "value": "standard_user"})
        callback({"frame": None}, {"type": "click", "tagName": "span", "name": ""})
        callback({"frame": None}, {"type": "click", "tagName": "button", "name": "Login"})

        assert recorder.steps == [
            'And user fill "standard_user" in "Username" input',
            'And user click "Login" button',
        ]
        assert printed == recorder.steps

"""
PlainStep: Natural-Language Step Runner

Runs plain-English Gherkin steps against live web pages without
hand-written step definitions. Step text is interpreted into structured
actions, target elements are resolved on the page by description, and
scenarios are executed with retries, stability waits and diagnostics.
"""

__version__ = "0.1.0"

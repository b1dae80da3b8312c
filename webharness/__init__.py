"""Feature-test harness for the Rustodon web application.

This package holds the pieces the pytest-bdd step definitions in
tests/step_defs/ are built on:

    config:         HarnessConfig, built once per test run
    browser:        selenium driver factory and BrowserSession helpers
    fixture_store:  per-scenario database reset
    world:          per-scenario assertion context
    vocabulary:     typed step operations and their dispatcher
    assets:         build-time stylesheet/script/icon pipeline
"""

__version__ = "0.1.0"

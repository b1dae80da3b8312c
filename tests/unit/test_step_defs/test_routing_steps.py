"""Unit tests for navigation step definitions."""

import pytest

from tests.step_defs.routing_steps import (
    logout,
    should_be_on_homepage,
    should_be_on_page,
    should_be_on_user_profile_page,
    visit_homepage,
    visit_settings_page,
    visit_signin_page,
    visit_signup_page,
    visit_user_profile_page,
)
from tests.unit.mocks import MockBrowserSession
from webharness.errors import ElementNotFound
from webharness.world import World


@pytest.mark.parametrize(
    "step, path",
    [
        (visit_homepage, "/"),
        (visit_signup_page, "/auth/sign_up"),
        (visit_signin_page, "/auth/sign_in"),
        (visit_settings_page, "/settings/profile"),
    ],
)
def test_visit_named_page(browser: MockBrowserSession, world: World, step, path):
    """Each named page resolves to its fixed path."""
    step(browser=browser, world=world)

    assert browser.actions == [("visit", path)]


def test_visit_user_profile_page(browser: MockBrowserSession, world: World):
    """The profile path is parameterised by username."""
    visit_user_profile_page(browser=browser, world=world, username="alice")

    assert browser.actions == [("visit", "/users/alice")]


def test_logout_clicks_sign_out_on_homepage(browser: MockBrowserSession, world: World):
    """Logging out visits the homepage first, then clicks the sign out link."""
    browser.add_control("sign out.")

    logout(browser=browser, world=world)

    assert browser.actions == [
        ("visit", "/"),
        ("click_link_or_button", "sign out."),
    ]


def test_logout_without_sign_out_link_fails(browser: MockBrowserSession, world: World):
    """A missing sign out link is a hard failure."""
    with pytest.raises(ElementNotFound, match="sign out."):
        logout(browser=browser, world=world)


def test_should_be_on_page_success(browser: MockBrowserSession, world: World):
    browser.current_path = "/auth/sign_in"

    should_be_on_page(browser=browser, world=world, page_name="signin")

    assert world.assertions == 1


def test_should_be_on_page_failure(browser: MockBrowserSession, world: World):
    """Being redirected elsewhere fails the assertion."""
    browser.current_path = "/auth/sign_in"

    with pytest.raises(AssertionError, match="Expected to be on /settings/profile"):
        should_be_on_page(browser=browser, world=world, page_name="settings")


def test_should_be_on_unknown_page(browser: MockBrowserSession, world: World):
    """An unknown page name is a parameter error."""
    with pytest.raises(ValueError):
        should_be_on_page(browser=browser, world=world, page_name="dashboard")


def test_should_be_on_homepage(browser: MockBrowserSession, world: World):
    browser.current_path = "/"

    should_be_on_homepage(browser=browser, world=world)

    assert world.assertions == 1


def test_should_be_on_user_profile_page(browser: MockBrowserSession, world: World):
    browser.current_path = "/users/bob"

    with pytest.raises(AssertionError):
        should_be_on_user_profile_page(browser=browser, world=world, username="alice")

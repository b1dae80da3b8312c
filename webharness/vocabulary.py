"""Typed step operations for the Rustodon feature tests.

Every step a scenario can take is one of the frozen dataclasses below, each
tagged with an Intent. perform() is the single entry point: composite steps
(LOGIN, ENSURE_USER, BECOME_USER, SET_BIO, LOGOUT) are expanded into their
fixed sequence of simpler steps, everything else is dispatched to its
handler in OPERATIONS.

The pytest-bdd modules in tests/step_defs/ only parse sentences; the work
happens here.

Example:
    perform(BecomeUser("alice"), browser, world)
    perform(SetBio("Hello world"), browser, world)
    perform(Visit(Page.USER_PROFILE, username="alice"), browser, world)
    perform(SeeText("Hello world"), browser, world)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, ClassVar, Dict, List, Optional, Union

import yaml

from webharness.browser import css_string
from webharness.world import World

logger = logging.getLogger(__name__)

PAGE_MAP_FILE = Path(__file__).parent / "pages.yaml"

DEFAULT_PASSWORD = "password"
EMAIL_DOMAIN = "test.org"


class Intent(str, Enum):
    VISIT = "visit"
    FILL_SIGNUP_FORM = "fill_signup_form"
    FILL_LOGIN_FORM = "fill_login_form"
    FILL_BIOGRAPHY_FORM = "fill_biography_form"
    SUBMIT_FORM = "submit_form"
    CLICK_CONTROL = "click_control"
    LOGIN = "login"
    ENSURE_USER = "ensure_user"
    BECOME_USER = "become_user"
    SET_BIO = "set_bio"
    LOGOUT = "logout"
    SEE_TEXT = "see_text"
    SEE_PROFILE_LINK = "see_profile_link"
    SEE_LINK = "see_link"
    SEE_TAG = "see_tag"
    PRESS_KEYS = "press_keys"
    CLICK_ELEMENT = "click_element"
    SEE_CHECKED = "see_checked"
    SEE_PAGE = "see_page"


class Page(str, Enum):
    HOMEPAGE = "homepage"
    SIGNUP = "signup"
    SIGNIN = "signin"
    SETTINGS = "settings"
    USER_PROFILE = "user_profile"


class Form(str, Enum):
    SIGNUP = "signup"
    SIGNIN = "signin"
    BIOGRAPHY = "biography"


@lru_cache(maxsize=None)
def load_page_map(path: Path = PAGE_MAP_FILE) -> Dict[str, Any]:
    """Load routes and form selectors from YAML."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def page_path(page: Page, username: Optional[str] = None) -> str:
    """Return the site-relative path of a logical page."""
    template = load_page_map()["pages"][page.value]
    if "{username}" in template:
        if not username:
            raise ValueError(f"Page '{page.value}' needs a username")
        return template.format(username=username)
    return template


def form_spec(form: Form) -> Dict[str, Any]:
    return load_page_map()["forms"][form.value]


def control_label(name: str) -> str:
    return load_page_map()["controls"][name]


# -- Step variants --


@dataclass(frozen=True)
class Visit:
    page: Page
    username: Optional[str] = None
    intent: ClassVar[Intent] = Intent.VISIT

    def __post_init__(self):
        if self.page is Page.USER_PROFILE and not self.username:
            raise ValueError("Visiting a user profile page needs a username")


@dataclass(frozen=True)
class FillSignupForm:
    username: str
    password: str
    email: str
    intent: ClassVar[Intent] = Intent.FILL_SIGNUP_FORM

    def values(self) -> Dict[str, str]:
        return {"username": self.username, "password": self.password, "email": self.email}


@dataclass(frozen=True)
class FillLoginForm:
    username: str
    password: str
    intent: ClassVar[Intent] = Intent.FILL_LOGIN_FORM

    def values(self) -> Dict[str, str]:
        return {"username": self.username, "password": self.password}


@dataclass(frozen=True)
class FillBiographyForm:
    bio: str
    intent: ClassVar[Intent] = Intent.FILL_BIOGRAPHY_FORM

    def values(self) -> Dict[str, str]:
        return {"summary": self.bio}


@dataclass(frozen=True)
class SubmitForm:
    form: Form
    intent: ClassVar[Intent] = Intent.SUBMIT_FORM


@dataclass(frozen=True)
class ClickControl:
    locator: str
    intent: ClassVar[Intent] = Intent.CLICK_CONTROL


@dataclass(frozen=True)
class Login:
    username: str
    password: str
    intent: ClassVar[Intent] = Intent.LOGIN


@dataclass(frozen=True)
class EnsureUser:
    username: str
    intent: ClassVar[Intent] = Intent.ENSURE_USER


@dataclass(frozen=True)
class BecomeUser:
    username: str
    intent: ClassVar[Intent] = Intent.BECOME_USER


@dataclass(frozen=True)
class SetBio:
    bio: str
    intent: ClassVar[Intent] = Intent.SET_BIO


@dataclass(frozen=True)
class Logout:
    intent: ClassVar[Intent] = Intent.LOGOUT


@dataclass(frozen=True)
class SeeText:
    content: str
    present: bool = True
    intent: ClassVar[Intent] = Intent.SEE_TEXT


@dataclass(frozen=True)
class SeeProfileLink:
    username: str
    scope: str
    intent: ClassVar[Intent] = Intent.SEE_PROFILE_LINK


@dataclass(frozen=True)
class SeeLink:
    href: str
    scope: str
    intent: ClassVar[Intent] = Intent.SEE_LINK


@dataclass(frozen=True)
class SeeTag:
    tag: str
    scope: str
    present: bool = True
    intent: ClassVar[Intent] = Intent.SEE_TAG


@dataclass(frozen=True)
class PressKeys:
    selector: str
    keys: str
    intent: ClassVar[Intent] = Intent.PRESS_KEYS


@dataclass(frozen=True)
class ClickElement:
    selector: str
    intent: ClassVar[Intent] = Intent.CLICK_ELEMENT


@dataclass(frozen=True)
class SeeChecked:
    selector: str
    checked: bool = True
    intent: ClassVar[Intent] = Intent.SEE_CHECKED


@dataclass(frozen=True)
class SeePage:
    page: Page
    username: Optional[str] = None
    intent: ClassVar[Intent] = Intent.SEE_PAGE


Step = Union[
    Visit,
    FillSignupForm,
    FillLoginForm,
    FillBiographyForm,
    SubmitForm,
    ClickControl,
    Login,
    EnsureUser,
    BecomeUser,
    SetBio,
    Logout,
    SeeText,
    SeeProfileLink,
    SeeLink,
    SeeTag,
    PressKeys,
    ClickElement,
    SeeChecked,
    SeePage,
]


# -- Composite steps --


def _login(step: Login) -> List[Step]:
    return [
        Visit(Page.SIGNIN),
        FillLoginForm(step.username, step.password),
        SubmitForm(Form.SIGNIN),
    ]


def _ensure_user(step: EnsureUser) -> List[Step]:
    return [
        Visit(Page.SIGNUP),
        FillSignupForm(
            step.username, DEFAULT_PASSWORD, f"{step.username}@{EMAIL_DOMAIN}"
        ),
        SubmitForm(Form.SIGNUP),
    ]


def _become_user(step: BecomeUser) -> List[Step]:
    # The account must exist before signing in with it
    return [EnsureUser(step.username), Login(step.username, DEFAULT_PASSWORD)]


def _set_bio(step: SetBio) -> List[Step]:
    return [
        Visit(Page.SETTINGS),
        FillBiographyForm(step.bio),
        SubmitForm(Form.BIOGRAPHY),
    ]


def _logout(step: Logout) -> List[Step]:
    return [Visit(Page.HOMEPAGE), ClickControl(control_label("sign_out"))]


MACROS: Dict[Intent, Callable[[Any], List[Step]]] = {
    Intent.LOGIN: _login,
    Intent.ENSURE_USER: _ensure_user,
    Intent.BECOME_USER: _become_user,
    Intent.SET_BIO: _set_bio,
    Intent.LOGOUT: _logout,
}


def expand(step: Step) -> List[Step]:
    """Flatten a step into the primitive steps it runs, in order."""
    macro = MACROS.get(step.intent)
    if macro is None:
        return [step]
    primitives: List[Step] = []
    for sub_step in macro(step):
        primitives.extend(expand(sub_step))
    return primitives


# -- Primitive operations --


def _visit(step: Visit, browser, world: World) -> None:
    browser.visit(page_path(step.page, step.username))


def _fill_form(form: Form):
    def fill(step, browser, world: World) -> None:
        values = step.values()
        for field in form_spec(form)["fields"]:
            browser.fill_in(field, values[field])

    return fill


def _submit_form(step: SubmitForm, browser, world: World) -> None:
    submit = form_spec(step.form)["submit"]
    if submit["by"] == "link_or_button":
        browser.click_link_or_button(submit["selector"])
    else:
        browser.find(submit["selector"]).click()


def _click_control(step: ClickControl, browser, world: World) -> None:
    browser.click_link_or_button(step.locator)


def _see_text(step: SeeText, browser, world: World) -> None:
    if step.present:
        world.assert_includes(browser.page_source, step.content)
    else:
        world.refute_includes(browser.page_source, step.content)


def _see_profile_link(step: SeeProfileLink, browser, world: World) -> None:
    with browser.within(step.scope):
        browser.find(f"a[href*={css_string(step.username)}]", text=f"@{step.username}")


def _see_link(step: SeeLink, browser, world: World) -> None:
    with browser.within(step.scope):
        browser.find(f"a[href={css_string(step.href)}]")


def _see_tag(step: SeeTag, browser, world: World) -> None:
    with browser.within(step.scope):
        count = len(browser.all(step.tag))
    if step.present:
        world.assert_(count > 0, f"Expected a <{step.tag}> tag in {step.scope!r}")
    else:
        world.assert_(
            count == 0,
            f"Expected no <{step.tag}> tag in {step.scope!r}, found {count}",
        )


def _press_keys(step: PressKeys, browser, world: World) -> None:
    browser.press(step.selector, step.keys)


def _click_element(step: ClickElement, browser, world: World) -> None:
    browser.click(step.selector)


def _see_checked(step: SeeChecked, browser, world: World) -> None:
    state = "checked" if step.checked else "unchecked"
    world.assert_equal(
        step.checked,
        browser.is_checked(step.selector),
        f"Expected {step.selector!r} to be {state}",
    )


def _see_page(step: SeePage, browser, world: World) -> None:
    expected = page_path(step.page, step.username)
    world.assert_equal(
        expected,
        browser.current_path,
        f"Expected to be on {expected}, but was on {browser.current_path}",
    )


OPERATIONS: Dict[Intent, Callable[[Any, Any, World], None]] = {
    Intent.VISIT: _visit,
    Intent.FILL_SIGNUP_FORM: _fill_form(Form.SIGNUP),
    Intent.FILL_LOGIN_FORM: _fill_form(Form.SIGNIN),
    Intent.FILL_BIOGRAPHY_FORM: _fill_form(Form.BIOGRAPHY),
    Intent.SUBMIT_FORM: _submit_form,
    Intent.CLICK_CONTROL: _click_control,
    Intent.SEE_TEXT: _see_text,
    Intent.SEE_PROFILE_LINK: _see_profile_link,
    Intent.SEE_LINK: _see_link,
    Intent.SEE_TAG: _see_tag,
    Intent.PRESS_KEYS: _press_keys,
    Intent.CLICK_ELEMENT: _click_element,
    Intent.SEE_CHECKED: _see_checked,
    Intent.SEE_PAGE: _see_page,
}


def perform(step: Step, browser, world: World) -> None:
    """Run a step against the browser session, failing fast on any error."""
    for primitive in expand(step):
        logger.debug("Performing %s", primitive)
        OPERATIONS[primitive.intent](primitive, browser, world)

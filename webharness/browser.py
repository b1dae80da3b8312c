"""Browser driver setup and page helpers.

create_driver() builds the selenium WebDriver used for a whole test run.
BrowserSession wraps that driver with the handful of page operations the
step vocabulary needs: visiting a path, filling a field, clicking a link or
button, scoping queries to an element, and sending key chords.

Element lookups wait up to HarnessConfig.wait_timeout for a match and raise
ElementNotFound when nothing turns up. Unless ignore_hidden_elements is set,
hidden elements are returned like any other and never raise visibility
errors.

Example usage in a step definition:
    @when('I submit the signup form')
    def step(browser):
        browser.find("form#signup button[type='submit']").click()
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional
from urllib.parse import urlparse

from selenium import webdriver
from selenium.common.exceptions import TimeoutException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.firefox.options import Options as FirefoxOptions
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from selenium.webdriver.support.ui import WebDriverWait

from webharness.config import HarnessConfig
from webharness.errors import ElementNotFound

logger = logging.getLogger(__name__)

KEY_NAMES = {
    "space": Keys.SPACE,
    "enter": Keys.ENTER,
    "return": Keys.RETURN,
    "tab": Keys.TAB,
    "escape": Keys.ESCAPE,
    "ctrl": Keys.CONTROL,
    "control": Keys.CONTROL,
    "shift": Keys.SHIFT,
    "alt": Keys.ALT,
    "meta": Keys.META,
}

MODIFIER_KEYS = (Keys.CONTROL, Keys.SHIFT, Keys.ALT, Keys.META)


def create_driver(config: HarnessConfig) -> WebDriver:
    """Start the headless browser named by config.browser_driver."""
    if config.browser_driver == "headless_firefox":
        options = FirefoxOptions()
        options.add_argument("-headless")
        logger.info("Starting headless Firefox")
        return webdriver.Firefox(options=options)

    options = ChromeOptions()
    options.add_argument("--headless=new")
    options.add_argument("--disable-gpu")
    logger.info("Starting headless Chrome")
    return webdriver.Chrome(options=options)


def parse_key_chord(chord: str) -> List[str]:
    """Translate "ctrl+enter" style chords into selenium key codes.

    Single printable characters are passed through unchanged.
    """
    keys = []
    for name in chord.split("+"):
        name = name.strip()
        if name.lower() in KEY_NAMES:
            keys.append(KEY_NAMES[name.lower()])
        elif len(name) == 1:
            keys.append(name)
        else:
            raise ValueError(f"Unknown key '{name}' in chord '{chord}'")
    return keys


def css_string(value: str) -> str:
    """Quote a value for use inside a CSS attribute selector."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def xpath_literal(value: str) -> str:
    """Quote a value as an XPath 1.0 string literal."""
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    return "concat(" + ", \"'\", ".join(f"'{part}'" for part in parts) + ")"


def link_or_button_xpath(locator: str) -> str:
    """XPath matching links and buttons by id, name, value, title or text."""
    lit = xpath_literal(locator)
    text = f"contains(normalize-space(string(.)), {lit})"
    return (
        f".//a[@href][@id={lit} or @title={lit} or {text}]"
        f" | .//button[@id={lit} or @name={lit} or @value={lit} or @title={lit} or {text}]"
        " | .//input[@type='submit' or @type='button' or @type='reset' or @type='image']"
        f"[@id={lit} or @name={lit} or @value={lit} or @title={lit}]"
    )


class BrowserSession:
    """Page operations on top of a selenium WebDriver.

    One session is bound to each scenario; the driver underneath is shared
    for the whole test run.
    """

    def __init__(self, driver: WebDriver, config: HarnessConfig):
        self.driver = driver
        self.config = config
        self._scopes: List[WebElement] = []

    # -- Queries --

    @property
    def page_source(self) -> str:
        return self.driver.page_source

    @property
    def current_path(self) -> str:
        return urlparse(self.driver.current_url).path

    @property
    def _scope(self):
        return self._scopes[-1] if self._scopes else self.driver

    def _visible(self, elements: List[WebElement]) -> List[WebElement]:
        if self.config.ignore_hidden_elements:
            return [element for element in elements if element.is_displayed()]
        return list(elements)

    def _text(self, element: WebElement) -> str:
        if self.config.ignore_hidden_elements:
            return element.text
        return element.get_attribute("textContent") or ""

    def _wait_for(self, finder, description: str) -> List[WebElement]:
        try:
            return WebDriverWait(self.driver, self.config.wait_timeout).until(
                lambda _driver: finder() or False
            )
        except TimeoutException:
            raise ElementNotFound(f"Unable to find {description}") from None

    def all(self, css: str) -> List[WebElement]:
        """Return every element in the current scope matching css, without waiting."""
        return self._visible(self._scope.find_elements(By.CSS_SELECTOR, css))

    def find(self, css: str, text: Optional[str] = None) -> WebElement:
        """Return the first element matching css (and containing text, if given)."""

        def finder():
            matches = self.all(css)
            if text is not None:
                matches = [element for element in matches if text in self._text(element)]
            return matches

        description = f"css {css!r}" + (f" with text {text!r}" if text is not None else "")
        return self._wait_for(finder, description)[0]

    def is_checked(self, css: str) -> bool:
        return self.find(css).is_selected()

    @contextmanager
    def within(self, css: str) -> Iterator[WebElement]:
        """Scope every query inside the block to the first element matching css."""
        scope = self.find(css)
        self._scopes.append(scope)
        try:
            yield scope
        finally:
            self._scopes.pop()

    # -- Actions --

    def visit(self, path: str) -> None:
        """Navigate to a site-relative path and wait for the page to load."""
        url = self.config.url_for(path)
        logger.debug("Visiting %s", url)
        self.driver.get(url)
        WebDriverWait(self.driver, self.config.wait_timeout).until(
            lambda driver: driver.execute_script("return document.readyState") == "complete"
        )

    def fill_in(self, field: str, value: str) -> None:
        """Set the value of the input whose id or name is field."""

        def finder():
            return self._visible(
                self._scope.find_elements(By.ID, field)
                or self._scope.find_elements(By.NAME, field)
            )

        element = self._wait_for(finder, f"field {field!r}")[0]
        element.clear()
        element.send_keys(value)

    def click(self, css: str) -> None:
        self.find(css).click()

    def click_link_or_button(self, locator: str) -> None:
        """Click the link or button identified by id, name, value, title or text."""
        xpath = link_or_button_xpath(locator)

        def finder():
            return self._visible(self._scope.find_elements(By.XPATH, xpath))

        self._wait_for(finder, f"link or button {locator!r}")[0].click()

    def press(self, css: str, chord: str) -> None:
        """Send a key chord such as "space" or "ctrl+enter" to an element."""
        keys = parse_key_chord(chord)
        element = self.find(css)
        modifiers = [key for key in keys if key in MODIFIER_KEYS]
        others = [key for key in keys if key not in MODIFIER_KEYS]
        if not modifiers:
            element.send_keys(*others)
            return

        actions = ActionChains(self.driver)
        for key in modifiers:
            actions.key_down(key)
        actions.send_keys_to_element(element, *others)
        for key in reversed(modifiers):
            actions.key_up(key)
        actions.perform()

    def reset(self) -> None:
        """Forget the signed-in session and any pending query scope."""
        self._scopes.clear()
        self.driver.delete_all_cookies()

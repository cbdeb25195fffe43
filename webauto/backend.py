# webauto/backend.py
"""
@file backend.py
@brief Capability interface for the remote browser and its Selenium implementation.

The query engine talks to the browser only through IBackend, so a session
can be driven by Selenium WebDriver or by any object providing the same
capabilities (the test-suite uses an in-memory fake).
"""

from abc import ABC, abstractmethod
import logging
from typing import Any, Dict, List, Optional, Tuple

from selenium import webdriver
from selenium.common.exceptions import NoSuchElementException
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support.select import Select

from .exceptions import ConfigError
from .locators import Locator, css_literal


log = logging.getLogger("webauto.backend")


class IBackend(ABC):
    """
    Abstract browser backend.

    Every call is synchronous and blocks until the browser answers.
    Element handles are opaque to the engine.
    """

    # --- Element lookup ---

    @abstractmethod
    def find_one(self, locator: Locator) -> Optional[Any]:
        """
        Find the first element matching a locator.

        Returns:
            Element handle, or None when nothing matches
        """
        pass

    @abstractmethod
    def find_all(self, locator: Locator) -> List[Any]:
        """
        Find every element matching a locator, in document order.

        Returns:
            List of element handles (empty when nothing matches)
        """
        pass

    # --- Element state ---

    @abstractmethod
    def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        """Attribute value, or None when the element lacks the attribute."""
        pass

    @abstractmethod
    def get_text(self, handle: Any) -> str:
        """Rendered text content."""
        pass

    @abstractmethod
    def get_tag_name(self, handle: Any) -> str:
        """Lower-case tag name."""
        pass

    @abstractmethod
    def get_rect(self, handle: Any) -> Dict[str, float]:
        """Bounding box as a mapping with x, y, width and height."""
        pass

    @abstractmethod
    def is_displayed(self, handle: Any) -> bool:
        pass

    @abstractmethod
    def is_enabled(self, handle: Any) -> bool:
        pass

    @abstractmethod
    def is_selected(self, handle: Any) -> bool:
        pass

    # --- Element actions ---

    @abstractmethod
    def click(self, handle: Any) -> None:
        pass

    @abstractmethod
    def send_keys(self, handle: Any, text: str) -> None:
        pass

    @abstractmethod
    def clear(self, handle: Any) -> None:
        pass

    @abstractmethod
    def submit(self, handle: Any) -> None:
        pass

    # --- Select lists ---

    @abstractmethod
    def select_options(self, handle: Any) -> List[Any]:
        """Every <option> of a select list, in document order."""
        pass

    @abstractmethod
    def selected_options(self, handle: Any) -> List[Any]:
        pass

    @abstractmethod
    def is_multiple(self, handle: Any) -> bool:
        """True when the select list allows several selected options."""
        pass

    @abstractmethod
    def select_option(self, handle: Any, by: str, value: Any) -> None:
        """
        Select the options of a select list matching one criterion.

        Args:
            by: "value", "index" (0-based) or "text" (visible text)
            value: Value to match
        """
        pass

    @abstractmethod
    def deselect_option(self, handle: Any, by: str, value: Any) -> None:
        """Deselect the options matching one criterion (see select_option)."""
        pass

    # --- Page state ---

    @abstractmethod
    def current_url(self) -> str:
        pass

    @abstractmethod
    def title(self) -> str:
        pass

    @abstractmethod
    def page_source(self) -> str:
        pass

    # --- Windows and frames ---

    @abstractmethod
    def list_windows(self) -> List[str]:
        """Backend ids of every open window, in the backend's order."""
        pass

    @abstractmethod
    def current_window(self) -> str:
        pass

    @abstractmethod
    def switch_to_window(self, window_id: str) -> None:
        pass

    @abstractmethod
    def switch_to_frame(self, frame: Any) -> None:
        """
        Switch focus to a frame.

        Args:
            frame: Frame index, name/id, or element handle
        """
        pass

    @abstractmethod
    def switch_to_default(self) -> None:
        pass

    @abstractmethod
    def active_element(self) -> Any:
        pass

    # --- Navigation ---

    @abstractmethod
    def navigate_back(self) -> None:
        pass

    @abstractmethod
    def navigate_forward(self) -> None:
        pass

    @abstractmethod
    def refresh(self) -> None:
        pass

    @abstractmethod
    def navigate_to(self, url: str) -> None:
        pass

    @abstractmethod
    def close_window(self) -> None:
        pass

    @abstractmethod
    def quit(self) -> None:
        pass

    # --- Pass-throughs ---

    @abstractmethod
    def execute_script(self, script: str, *args: Any) -> Any:
        pass

    @abstractmethod
    def screenshot(self, fmt: str) -> Any:
        """
        Capture the viewport.

        Args:
            fmt: "base64" (str), "bytes" (PNG bytes) or "file" (temporary file path)
        """
        pass

    @abstractmethod
    def get_cookies(self) -> List[Dict[str, Any]]:
        pass

    @abstractmethod
    def add_cookie(self, cookie: Dict[str, Any]) -> None:
        pass

    @abstractmethod
    def delete_cookie(self, name: str) -> None:
        pass

    @abstractmethod
    def delete_all_cookies(self) -> None:
        pass


def to_by(locator: Locator) -> Tuple[str, str]:
    """Translate a Locator into a Selenium (By, value) pair."""
    if locator.kind == Locator.CSS:
        return By.CSS_SELECTOR, locator.value
    if locator.kind == Locator.XPATH:
        return By.XPATH, locator.value
    if locator.kind == Locator.TAG:
        return By.TAG_NAME, locator.value
    if locator.kind == Locator.ATTRIBUTE:
        # class compares the whole attribute value, never a single token
        if locator.tag in (None, "*"):
            if locator.attribute == "id":
                return By.ID, locator.value
            if locator.attribute == "name":
                return By.NAME, locator.value
        tag = locator.tag or "*"
        return By.CSS_SELECTOR, f"{tag}[{locator.attribute}={css_literal(locator.value)}]"
    raise ValueError(f"Unknown locator kind: {locator.kind}")


BROWSERS = {
    "chrome": (webdriver.Chrome, webdriver.ChromeOptions),
    "firefox": (webdriver.Firefox, webdriver.FirefoxOptions),
    "edge": (webdriver.Edge, webdriver.EdgeOptions),
    "safari": (webdriver.Safari, webdriver.SafariOptions),
}


def create_webdriver(browser: str = "firefox", headless: bool = False, arguments: Optional[List[str]] = None) -> WebDriver:
    """
    Start a local Selenium WebDriver.

    @param browser One of chrome, firefox, edge, safari
    @param headless Run without a visible window (ignored by safari)
    @param arguments Extra browser command-line arguments
    """
    key = browser.lower()
    if key not in BROWSERS:
        raise ConfigError(f"Unknown browser '{browser}'. Supported: {sorted(BROWSERS)}")
    driver_cls, options_cls = BROWSERS[key]
    options = options_cls()
    if key != "safari":
        if headless:
            options.add_argument("-headless" if key == "firefox" else "--headless=new")
        for arg in arguments or []:
            options.add_argument(arg)
    log.info("Starting %s (headless=%s)", key, headless)
    return driver_cls(options=options)


class SeleniumBackend(IBackend):
    """
    IBackend over a Selenium WebDriver instance.
    """

    def __init__(self, driver: WebDriver):
        self.driver = driver

    @classmethod
    def launch(cls, browser: str = "firefox", headless: bool = False, arguments: Optional[List[str]] = None) -> "SeleniumBackend":
        return cls(create_webdriver(browser, headless=headless, arguments=arguments))

    def find_one(self, locator: Locator) -> Optional[Any]:
        by, value = to_by(locator)
        try:
            return self.driver.find_element(by, value)
        except NoSuchElementException:
            return None

    def find_all(self, locator: Locator) -> List[Any]:
        by, value = to_by(locator)
        return list(self.driver.find_elements(by, value))

    def get_attribute(self, handle: Any, name: str) -> Optional[str]:
        return handle.get_attribute(name)

    def get_text(self, handle: Any) -> str:
        return handle.text

    def get_tag_name(self, handle: Any) -> str:
        return handle.tag_name.lower()

    def get_rect(self, handle: Any) -> Dict[str, float]:
        return dict(handle.rect)

    def is_displayed(self, handle: Any) -> bool:
        return handle.is_displayed()

    def is_enabled(self, handle: Any) -> bool:
        return handle.is_enabled()

    def is_selected(self, handle: Any) -> bool:
        return handle.is_selected()

    def click(self, handle: Any) -> None:
        handle.click()

    def send_keys(self, handle: Any, text: str) -> None:
        handle.send_keys(text)

    def clear(self, handle: Any) -> None:
        handle.clear()

    def submit(self, handle: Any) -> None:
        handle.submit()

    def select_options(self, handle: Any) -> List[Any]:
        return list(Select(handle).options)

    def selected_options(self, handle: Any) -> List[Any]:
        return list(Select(handle).all_selected_options)

    def is_multiple(self, handle: Any) -> bool:
        return bool(Select(handle).is_multiple)

    def select_option(self, handle: Any, by: str, value: Any) -> None:
        select = Select(handle)
        if by == "value":
            select.select_by_value(str(value))
        elif by == "index":
            select.select_by_index(int(value))
        elif by == "text":
            select.select_by_visible_text(str(value))
        else:
            raise ValueError(f"Unknown option criterion: {by}. Use 'value', 'index' or 'text'")

    def deselect_option(self, handle: Any, by: str, value: Any) -> None:
        select = Select(handle)
        if by == "value":
            select.deselect_by_value(str(value))
        elif by == "index":
            select.deselect_by_index(int(value))
        elif by == "text":
            select.deselect_by_visible_text(str(value))
        else:
            raise ValueError(f"Unknown option criterion: {by}. Use 'value', 'index' or 'text'")

    def current_url(self) -> str:
        return self.driver.current_url

    def title(self) -> str:
        return self.driver.title

    def page_source(self) -> str:
        return self.driver.page_source

    def list_windows(self) -> List[str]:
        return list(self.driver.window_handles)

    def current_window(self) -> str:
        return self.driver.current_window_handle

    def switch_to_window(self, window_id: str) -> None:
        self.driver.switch_to.window(window_id)

    def switch_to_frame(self, frame: Any) -> None:
        self.driver.switch_to.frame(frame)

    def switch_to_default(self) -> None:
        self.driver.switch_to.default_content()

    def active_element(self) -> Any:
        return self.driver.switch_to.active_element

    def navigate_back(self) -> None:
        self.driver.back()

    def navigate_forward(self) -> None:
        self.driver.forward()

    def refresh(self) -> None:
        self.driver.refresh()

    def navigate_to(self, url: str) -> None:
        self.driver.get(url)

    def close_window(self) -> None:
        self.driver.close()

    def quit(self) -> None:
        self.driver.quit()

    def execute_script(self, script: str, *args: Any) -> Any:
        return self.driver.execute_script(script, *args)

    def screenshot(self, fmt: str) -> Any:
        if fmt == "base64":
            return self.driver.get_screenshot_as_base64()
        if fmt == "bytes":
            return self.driver.get_screenshot_as_png()
        if fmt == "file":
            import tempfile
            fd, path = tempfile.mkstemp(prefix="webauto_", suffix=".png")
            with open(fd, "wb") as f:
                f.write(self.driver.get_screenshot_as_png())
            return path
        raise ValueError(f"Unknown screenshot format: {fmt}. Use 'file', 'base64' or 'bytes'")

    def get_cookies(self) -> List[Dict[str, Any]]:
        return list(self.driver.get_cookies())

    def add_cookie(self, cookie: Dict[str, Any]) -> None:
        self.driver.add_cookie(cookie)

    def delete_cookie(self, name: str) -> None:
        self.driver.delete_cookie(name)

    def delete_all_cookies(self) -> None:
        self.driver.delete_all_cookies()

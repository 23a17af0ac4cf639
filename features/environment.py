"""Behave environment hooks for the admin page BDD smoke test.

Starts a headless Chrome/Chromium before the run and quits it afterwards.
The driver is taken from CHROMEDRIVER or the system PATH when present,
otherwise Selenium Manager resolves one.

BASE_URL is taken in this order:
  1) env:      BASE_URL
  2) behave:   -D BASE_URL=...
  3) default:  http://localhost:8080
"""

from __future__ import annotations

import os
import shutil
from typing import Optional

from selenium import webdriver
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService


def _find_binary(env_var: str, names) -> Optional[str]:
    """Return the executable named by env_var, or the first of names on PATH."""
    configured = os.getenv(env_var)
    if configured and os.path.exists(configured):
        return configured
    for name in names:
        path = shutil.which(name)
        if path:
            return path
    return None


def before_all(context):
    """Start a headless browser and remember the base URL."""
    context.base_url = (
        os.getenv("BASE_URL")
        or context.config.userdata.get("BASE_URL")
        or "http://localhost:8080"
    )

    options = ChromeOptions()
    options.add_argument("--headless=new")
    options.add_argument("--no-sandbox")
    options.add_argument("--disable-dev-shm-usage")

    chrome_bin = _find_binary("CHROME_BIN", ("chromium", "chromium-browser", "google-chrome"))
    if chrome_bin:
        options.binary_location = chrome_bin

    driver_path = _find_binary("CHROMEDRIVER", ("chromedriver",))
    try:
        if driver_path:
            context.browser = webdriver.Chrome(
                service=ChromeService(executable_path=driver_path), options=options
            )
        else:
            context.browser = webdriver.Chrome(options=options)
    except Exception as exc:  # pragma: no cover
        raise RuntimeError(
            "Cannot start Chrome/Chromium in headless mode. Install chromium and "
            "chromium-driver, or point CHROME_BIN / CHROMEDRIVER at them. "
            f"Original error: {type(exc).__name__}: {exc}"
        ) from exc
    context.browser.set_window_size(1400, 1000)


def after_all(context):
    """Shut down the browser if it was started."""
    browser = getattr(context, "browser", None)
    if browser:
        browser.quit()

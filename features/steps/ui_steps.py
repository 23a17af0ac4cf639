"""Step definitions for the admin statistics page BDD smoke test.

All interactions are performed via the browser (Selenium) against /ui.
"""

import re

from behave import given, then, when
from selenium.webdriver.common.by import By


@given("the Promo Admin UI is available")
def step_ui_is_available(context):
    """Navigate to the /ui page and ensure basic content is present."""
    context.browser.get(context.base_url + "/ui")
    assert "Promo Code Statistics" in (context.browser.title or "")


@when('I click "Refresh Data"')
def step_refresh(context):
    """Reload the statistics through the page's refresh link."""
    context.browser.find_element(By.ID, "refresh").click()


@then('the page title contains "{text}"')
def step_title_contains(context, text):
    """Assert that the document.title and the heading contain a substring."""
    assert text in (context.browser.title or "")
    h1 = context.browser.find_element(By.ID, "title")
    assert text in h1.text


@then("the usage rate is shown with one decimal place")
def step_usage_rate_format(context):
    """The overall usage card renders like 12.5%."""
    card = context.browser.find_element(By.ID, "usage-rate")
    assert re.search(r"\d+\.\d%", card.text), card.text

import logging
import os
import time
from typing import Optional

from playwright.sync_api import Page, sync_playwright

from compliance_investigator.errors import CustomerSearchError, LoginError, SessionError
from compliance_investigator.scraper.page_context import PlaywrightPageContext

logger = logging.getLogger(__name__)

USERNAME_INPUT = 'input[type="text"], input[name="username"], input[id*="user"]'
PASSWORD_INPUT = 'input[type="password"], input[name="password"], input[id*="pass"]'
SUBMIT_BUTTON = 'button[type="submit"], button:has-text("Login"), button:has-text("Sign in"), input[type="submit"]'
LOGIN_ERROR = '.error, .alert-danger, [role="alert"]'

SEARCH_INPUT = 'input[type="search"], input[placeholder*="Search"], input[name*="search"], input[id*="search"]'
SEARCH_BUTTON = 'button:has-text("Search"), button[type="submit"], button:has-text("Go")'
RESULT_ROWS = 'table tbody tr'

PROFILE_URL_MARKERS = ('/customer', '/profile')


def result_selectors(customer_name: str):
    """Clickable elements that could open the customer's profile, most specific first."""
    return [
        f'a:text-is("{customer_name}")',
        f'a:has-text("{customer_name}")',
        f'tr:has-text("{customer_name}") a',
        f'tr:has-text("{customer_name}")',
        f'div:has-text("{customer_name}") a',
        f'button:has-text("{customer_name}")',
        f'[role="button"]:has-text("{customer_name}")',
    ]


def is_profile_url(url: str, customer_name: str) -> bool:
    return any(m in url for m in PROFILE_URL_MARKERS) or customer_name.replace(' ', '-') in url


class PortalSession:
    """
    One browser session against the ComplianceOS portal. Owns its page for the
    whole investigation; use as a context manager so the browser is always
    closed.
    """

    def __init__(self, url: str, username: str, password: str, headless: bool = True,
                 timeout: int = 30000, screenshot_dir: str = './screenshots'):
        self.url = url
        self.username = username
        self.password = password
        self.headless = headless
        self.timeout = timeout
        self.screenshot_dir = screenshot_dir
        self._playwright = None
        self.browser = None
        self.context = None
        self.page: Optional[Page] = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        logger.info("Initializing browser (headless=%s)", self.headless)
        self._playwright = sync_playwright().start()
        self.browser = self._playwright.chromium.launch(
            headless=self.headless,
            args=['--no-sandbox', '--disable-setuid-sandbox'],
        )
        self.context = self.browser.new_context(
            viewport={'width': 1920, 'height': 1080},
            user_agent='Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36',
        )
        self.page = self.context.new_page()
        self.page.set_default_timeout(self.timeout)

    def _require_page(self) -> Page:
        if self.page is None or self.page.is_closed():
            raise SessionError('Browser not initialized. Open the portal session first.')
        return self.page

    def login(self):
        page = self._require_page()
        logger.info("Logging into ComplianceOS at %s", self.url)
        try:
            page.goto(self.url, wait_until='networkidle')
            page.wait_for_selector(USERNAME_INPUT, state='visible', timeout=10000)
            page.locator(USERNAME_INPUT).first.fill(self.username)
            page.locator(PASSWORD_INPUT).first.fill(self.password)
            page.locator(SUBMIT_BUTTON).first.click()
            page.wait_for_load_state('networkidle', timeout=15000)
        except Exception as e:
            self.capture_screenshot('login-error')
            raise LoginError(f'Login failed: {e}') from e

        if 'login' in page.url:
            self.capture_screenshot('login-error')
            message = ''
            error = page.locator(LOGIN_ERROR)
            if error.count():
                message = (error.first.text_content() or '').strip()
            raise LoginError(f'Login failed: {message}' if message else 'Login failed: still on login page')
        logger.info("Logged into ComplianceOS (%s)", page.url)

    def search_customer(self, customer_name: str) -> bool:
        """
        Search for the customer and open their profile. Returns False when the
        search shows no matching result.
        """
        page = self._require_page()
        logger.info("Searching for customer %r", customer_name)
        try:
            page.wait_for_load_state('domcontentloaded')
            search_input = page.locator(SEARCH_INPUT).first
            try:
                search_input.wait_for(state='visible', timeout=3000)
            except Exception:
                search_input = page.locator('input[type="text"]').first
                search_input.wait_for(state='visible', timeout=3000)
            search_input.fill(customer_name)

            try:
                page.locator(SEARCH_BUTTON).first.click(timeout=2000)
            except Exception:
                search_input.press('Enter')

            # Results are rendered client side after the request settles.
            time.sleep(3)
            page.wait_for_load_state('networkidle', timeout=15000)
            self.capture_screenshot('after-search')

            if is_profile_url(page.url, customer_name):
                logger.info("Landed directly on customer profile: %s", page.url)
                return True
            return self._open_result(page, customer_name)
        except Exception as e:
            self.capture_screenshot('search-error')
            raise CustomerSearchError(f'Customer search failed: {e}') from e

    def _open_result(self, page: Page, customer_name: str) -> bool:
        body_text = page.text_content('body') or ''
        if customer_name.lower() in body_text.lower():
            for selector in result_selectors(customer_name):
                element = page.locator(selector).first
                try:
                    visible = element.is_visible()
                except Exception:
                    continue
                if visible:
                    logger.debug("Opening profile via %s", selector)
                    element.click()
                    page.wait_for_load_state('networkidle', timeout=10000)
                    return True

        rows = page.locator(RESULT_ROWS)
        if rows.count() == 0:
            logger.warning("No search results found for %r", customer_name)
            return False
        first_row = rows.first
        link = first_row.locator('a').first
        if link.count():
            link.click()
        else:
            first_row.click()
        page.wait_for_load_state('networkidle', timeout=10000)
        logger.info("Customer profile loaded from first result row")
        return True

    def page_context(self) -> PlaywrightPageContext:
        return PlaywrightPageContext(self.page)

    def capture_screenshot(self, name: str) -> Optional[str]:
        if self.page is None:
            return None
        try:
            os.makedirs(self.screenshot_dir, exist_ok=True)
            path = os.path.join(self.screenshot_dir, f'{name}-{int(time.time() * 1000)}.png')
            self.page.screenshot(path=path, full_page=True)
            logger.debug("Screenshot captured: %s", path)
            return path
        except Exception as e:
            logger.warning("Failed to capture screenshot %s: %s", name, e)
            return None

    def close(self):
        for resource in (self.page, self.context, self.browser):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception as e:
                logger.error("Error during browser cleanup: %s", e)
        if self._playwright is not None:
            self._playwright.stop()
        self.page = self.context = self.browser = self._playwright = None
        logger.debug("Browser resources cleaned up")

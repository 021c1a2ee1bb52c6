"""Unit tests for cardpilot.engine.login_flow — sign-in state machine.

Runs against the scripted ``StreamingSite`` from ``fakes``.
"""

from __future__ import annotations

import pytest
from fakes import ACCOUNT_URL, BROWSE_URL, HOME_URL, FakeElement, StreamingSite
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from cardpilot.credentials import Credentials
from cardpilot.engine.errors import SubmitControlNotFoundError
from cardpilot.engine.login_flow import LoginFlow, LoginState


async def _login(site: StreamingSite, config, emulator, credentials) -> LoginFlow:
    flow = LoginFlow(site.page, config, emulator)
    await flow.run(credentials)
    return flow


# ---------------------------------------------------------------------------
# 1. Happy paths
# ---------------------------------------------------------------------------

class TestSingleStep:
    async def test_signs_in(self, config, emulator, credentials) -> None:
        site = StreamingSite()
        flow = await _login(site, config, emulator, credentials)

        assert site.logged_in is True
        assert site.login_attempts == 1
        assert site.email_input.value == credentials.email
        assert site.password_input.value == credentials.password
        assert site.page.url == BROWSE_URL
        assert flow.state == LoginState.DONE
        assert flow.history == [
            LoginState.HOMEPAGE,
            LoginState.FOUND_SIGNIN,
            LoginState.ACCOUNT_PAGE,
            LoginState.EMAIL_ENTERED,
            LoginState.PASSWORD_ENTERED,
            LoginState.SUBMITTED,
            LoginState.DONE,
        ]

    async def test_visits_homepage_first(self, config, emulator, credentials) -> None:
        site = StreamingSite()
        await _login(site, config, emulator, credentials)
        assert site.page.visited[:2] == [HOME_URL, ACCOUNT_URL]


class TestTwoStep:
    async def test_signs_in(self, config, emulator, credentials) -> None:
        site = StreamingSite(login_mode="two-step")
        flow = await _login(site, config, emulator, credentials)

        assert site.logged_in is True
        assert site.email_input.value == credentials.email
        assert LoginState.CONTINUED in flow.history
        # email entered exactly once, before continuing
        assert flow.history.count(LoginState.EMAIL_ENTERED) == 1
        assert flow.history.index(LoginState.EMAIL_ENTERED) < flow.history.index(LoginState.CONTINUED)

    async def test_inside_iframe(self, config, emulator, credentials) -> None:
        site = StreamingSite(login_mode="two-step", login_in_frame=True)
        await _login(site, config, emulator, credentials)
        assert site.logged_in is True


class TestVariants:
    async def test_form_inside_iframe(self, config, emulator, credentials) -> None:
        site = StreamingSite(login_in_frame=True)
        await _login(site, config, emulator, credentials)
        assert site.logged_in is True
        assert site.login_container is not site.page

    async def test_prefilled_email_not_retyped(self, config, emulator, credentials) -> None:
        site = StreamingSite(prefilled_email=credentials.email)
        flow = await _login(site, config, emulator, credentials)
        assert site.email_input.value == credentials.email
        assert site.logged_in is True
        assert LoginState.EMAIL_ENTERED in flow.history

    async def test_no_sign_in_link_goes_to_account_url(self, config, emulator, credentials) -> None:
        site = StreamingSite(sign_in_link=False)
        flow = await _login(site, config, emulator, credentials)
        assert ACCOUNT_URL in site.page.visited
        assert LoginState.FOUND_SIGNIN not in flow.history
        assert site.logged_in is True

    async def test_submit_falls_back_to_label(self, config, emulator, credentials) -> None:
        site = StreamingSite()

        def account_without_typed_submit(page) -> None:
            StreamingSite._account(site, page)
            page.elements.remove(site.submit_button)
            page.elements.append(FakeElement("button", text="Log In", on_click=site._submit_login))

        site.page.routes[ACCOUNT_URL] = account_without_typed_submit
        await _login(site, config, emulator, credentials)
        assert site.logged_in is True

    async def test_hidden_sign_in_link_falls_back_to_account_url(self, config, emulator, credentials) -> None:
        site = StreamingSite(sign_in_link=False)
        collapsed = FakeElement("a", text="Sign In", visible=False)

        def home_with_collapsed_nav(page) -> None:
            StreamingSite._home(site, page)
            page.elements.insert(0, collapsed)

        site.page.routes[HOME_URL] = home_with_collapsed_nav
        flow = await _login(site, config, emulator, credentials)
        assert ACCOUNT_URL in site.page.visited
        assert LoginState.FOUND_SIGNIN not in flow.history
        assert collapsed.clicks == 0
        assert site.logged_in is True

    async def test_hidden_duplicate_sign_in_link_skipped(self, config, emulator, credentials) -> None:
        site = StreamingSite()
        collapsed = FakeElement("a", text="Sign In", visible=False)

        def home_with_collapsed_nav(page) -> None:
            StreamingSite._home(site, page)
            page.elements.insert(0, collapsed)

        site.page.routes[HOME_URL] = home_with_collapsed_nav
        flow = await _login(site, config, emulator, credentials)
        assert LoginState.FOUND_SIGNIN in flow.history
        assert collapsed.click_kwargs == []
        assert site.logged_in is True

    async def test_hidden_submit_button_before_the_form(self, config, emulator, credentials) -> None:
        site = StreamingSite()
        search = FakeElement('button[type="submit"]', "button", text="Search", visible=False)

        def account_with_header_search(page) -> None:
            StreamingSite._account(site, page)
            page.elements.insert(0, search)

        site.page.routes[ACCOUNT_URL] = account_with_header_search
        await _login(site, config, emulator, credentials)
        assert site.logged_in is True
        assert site.login_attempts == 1
        assert search.click_kwargs == []
        assert site.submit_button.click_kwargs[0]["timeout"] == config.click_timeout * 1000


# ---------------------------------------------------------------------------
# 2. Cookie banner
# ---------------------------------------------------------------------------

class TestCookieBanner:
    async def test_banner_dismissed(self, config, emulator) -> None:
        site = StreamingSite()
        await site.page.goto(HOME_URL)
        banner = site.page.find("#onetrust-accept-btn-handler")
        flow = LoginFlow(site.page, config, emulator)
        assert await flow.dismiss_cookie_banner() is True
        assert banner.clicks == 1

    async def test_no_banner_is_not_an_error(self, config, emulator) -> None:
        site = StreamingSite(cookie_banner=False)
        await site.page.goto(HOME_URL)
        flow = LoginFlow(site.page, config, emulator)
        assert await flow.dismiss_cookie_banner() is False

    async def test_hidden_banner_ignored(self, config, emulator) -> None:
        site = StreamingSite(cookie_banner=False)
        await site.page.goto(HOME_URL)
        hidden = FakeElement("button.cookie-accept", visible=False)
        site.page.elements.append(hidden)
        flow = LoginFlow(site.page, config, emulator)
        assert await flow.dismiss_cookie_banner() is False
        assert hidden.clicks == 0


# ---------------------------------------------------------------------------
# 3. Failures
# ---------------------------------------------------------------------------

class TestFailures:
    async def test_missing_submit_control(self, config, emulator, credentials) -> None:
        site = StreamingSite(login_submit_button=False)
        with pytest.raises(SubmitControlNotFoundError):
            await _login(site, config, emulator, credentials)
        assert site.logged_in is False

    async def test_rejected_password_retries_submit_then_fails(self, config, emulator) -> None:
        site = StreamingSite()
        bad = Credentials(email=site.email, password="wrong")
        with pytest.raises(PlaywrightTimeoutError):
            await _login(site, config, emulator, bad)
        # initial attempt plus three submit retries
        assert site.login_attempts == 4

    async def test_no_email_field_anywhere(self, config, emulator, credentials) -> None:
        site = StreamingSite()
        site.page.routes[ACCOUNT_URL] = lambda page: None
        flow = LoginFlow(site.page, config, emulator)
        with pytest.raises(PlaywrightTimeoutError):
            await flow.run(credentials)
        assert flow.state == LoginState.ACCOUNT_PAGE

"""Unit tests for cardpilot.engine.clicker — click by visible label."""

from __future__ import annotations

from fakes import FakeElement, FakePage

from cardpilot.engine.clicker import click_by_text


class TestClickByText:
    async def test_case_insensitive_trimmed_match(self) -> None:
        target = FakeElement("a", text="  Sign In  ")
        page = FakePage([FakeElement("a", text="Browse"), target])
        assert await click_by_text(page, "a, button", ["sign in"]) is True
        assert target.clicks == 1

    async def test_substring_match(self) -> None:
        target = FakeElement("button", text="Continue to password")
        page = FakePage([target])
        assert await click_by_text(page, "button", ["CONTINUE"]) is True
        assert target.clicks == 1

    async def test_first_match_in_document_order(self) -> None:
        first = FakeElement("button", text="Next")
        second = FakeElement("button", text="Continue")
        page = FakePage([first, second])
        assert await click_by_text(page, "button", ["continue", "next"]) is True
        assert first.clicks == 1
        assert second.clicks == 0

    async def test_no_match_returns_false(self) -> None:
        page = FakePage([FakeElement("button", text="Cancel")])
        assert await click_by_text(page, "button", ["sign in"]) is False

    async def test_no_elements(self) -> None:
        assert await click_by_text(FakePage(), "button", ["sign in"]) is False

    async def test_selector_limits_candidates(self) -> None:
        link = FakeElement("a", text="Sign in")
        page = FakePage([link])
        assert await click_by_text(page, "button", ["sign in"]) is False
        assert link.clicks == 0

    async def test_detached_element_is_skipped(self) -> None:
        stale = FakeElement("button", text="Sign in", detached=True)
        live = FakeElement("button", text="Sign in")
        page = FakePage([stale, live])
        assert await click_by_text(page, "button", ["sign in"]) is True
        assert stale.clicks == 0
        assert live.clicks == 1

    async def test_hidden_match_is_skipped(self) -> None:
        collapsed = FakeElement("a", text="Sign In", visible=False)
        shown = FakeElement("a", text="Sign In")
        page = FakePage([collapsed, shown])
        assert await click_by_text(page, "a", ["sign in"]) is True
        assert collapsed.click_kwargs == []
        assert shown.clicks == 1

    async def test_only_hidden_matches_returns_false(self) -> None:
        collapsed = FakeElement("a", text="Sign In", visible=False)
        assert await click_by_text(FakePage([collapsed]), "a", ["sign in"]) is False
        assert collapsed.clicks == 0

    async def test_refused_click_moves_to_next_match(self) -> None:
        class Covered(FakeElement):
            async def is_visible(self) -> bool:
                return True

        covered = Covered("button", text="Continue", visible=False)
        live = FakeElement("button", text="Continue")
        page = FakePage([covered, live])
        assert await click_by_text(page, "button", ["continue"]) is True
        assert covered.clicks == 0
        assert live.clicks == 1

    async def test_click_is_bounded(self) -> None:
        target = FakeElement("button", text="Continue")
        await click_by_text(FakePage([target]), "button", ["continue"], timeout=1.5)
        assert target.click_kwargs == [{"timeout": 1500}]

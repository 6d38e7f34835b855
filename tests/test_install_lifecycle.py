"""Install lifecycle controller, its reducer and the install banner."""

from __future__ import annotations

import itertools
import logging

import pytest
from pydantic import ValidationError

from coachpwa.exceptions import PwaInstallPromptError
from coachpwa.install import InstallBanner, InstallLifecycleController
from coachpwa.state.events import PageEvent, PageEventType
from coachpwa.state.install import BeforeInstallPromptEvent, InstallOutcome, InstallState, reduce_install
from coachpwa.storage import MemoryStorage


def _candidate(outcome: InstallOutcome = InstallOutcome.ACCEPTED) -> BeforeInstallPromptEvent:
    async def _choose() -> InstallOutcome:
        return outcome

    return BeforeInstallPromptEvent(_choose)


def test_before_install_prompt_stores_candidate_and_prevents_default() -> None:
    controller = InstallLifecycleController()
    candidate = _candidate()

    controller.dispatch(PageEvent.before_install_prompt(candidate))

    assert candidate.default_prevented
    assert controller.can_install
    assert controller.state.candidate is candidate
    assert not controller.is_installed


@pytest.mark.parametrize("prompts", [0, 1, 3])
def test_app_installed_clears_candidate_after_any_prompts(prompts: int) -> None:
    controller = InstallLifecycleController()
    for _ in range(prompts):
        controller.dispatch(PageEvent.before_install_prompt(_candidate()))

    controller.dispatch(PageEvent.of(PageEventType.APP_INSTALLED))

    assert controller.is_installed
    assert controller.state.candidate is None
    assert not controller.can_install


def test_reducer_install_invariant_over_event_orders() -> None:
    candidates = [_candidate() for _ in range(2)]
    events = [
        PageEvent.before_install_prompt(candidates[0]),
        PageEvent.before_install_prompt(candidates[1]),
        PageEvent.of(PageEventType.CANDIDATE_CONSUMED),
        PageEvent.of(PageEventType.DELAY_ELAPSED),
    ]
    installed = PageEvent.of(PageEventType.APP_INSTALLED)

    for prefix in itertools.permutations(events, 3):
        state = InstallState()
        for event in (*prefix, installed):
            state = reduce_install(state, event)
        # Nothing after install brings a candidate back.
        for event in events:
            state = reduce_install(state, event)
            assert state.is_installed
            assert state.candidate is None


def test_standalone_display_mode_means_installed() -> None:
    controller = InstallLifecycleController(standalone=True)
    controller.dispatch(PageEvent.before_install_prompt(_candidate()))

    assert controller.is_installed
    assert not controller.can_install


def test_install_prompt_event_requires_candidate() -> None:
    with pytest.raises(ValidationError):
        PageEvent.of(PageEventType.BEFORE_INSTALL_PROMPT)
    with pytest.raises(ValidationError):
        PageEvent(type=PageEventType.APP_INSTALLED, candidate=_candidate())


@pytest.mark.asyncio
async def test_install_without_candidate_is_a_noop(caplog) -> None:
    controller = InstallLifecycleController()
    before = controller.state

    with caplog.at_level(logging.INFO, logger="coachpwa.install"):
        assert await controller.install_pwa() is False

    assert controller.state is before
    assert "No install prompt available" in caplog.text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("outcome", "expected"),
    [(InstallOutcome.ACCEPTED, True), (InstallOutcome.DISMISSED, False)],
)
async def test_install_prompts_candidate_once(outcome: InstallOutcome, expected: bool) -> None:
    controller = InstallLifecycleController()
    candidate = _candidate(outcome)
    controller.dispatch(PageEvent.before_install_prompt(candidate))

    assert await controller.install_pwa() is expected

    assert candidate.consumed
    assert not controller.can_install
    assert await controller.install_pwa() is False
    with pytest.raises(PwaInstallPromptError):
        await candidate.prompt()


@pytest.mark.asyncio
async def test_candidate_dropped_when_dialog_fails() -> None:
    async def _broken() -> InstallOutcome:
        raise RuntimeError("dialog crashed")

    controller = InstallLifecycleController()
    controller.dispatch(PageEvent.before_install_prompt(BeforeInstallPromptEvent(_broken)))

    with pytest.raises(RuntimeError):
        await controller.install_pwa()
    assert not controller.can_install


class TestInstallBanner:
    def test_visible_only_with_candidate(self) -> None:
        controller = InstallLifecycleController()
        banner = InstallBanner(controller, MemoryStorage())
        assert not banner.visible

        controller.dispatch(PageEvent.before_install_prompt(_candidate()))
        assert banner.visible

        controller.dispatch(PageEvent.of(PageEventType.APP_INSTALLED))
        assert not banner.visible

    def test_dismissal_survives_reload(self) -> None:
        storage = MemoryStorage()
        controller = InstallLifecycleController()
        controller.dispatch(PageEvent.before_install_prompt(_candidate()))
        InstallBanner(controller, storage).dismiss()

        assert storage.get_item("pwa-banner-dismissed") == "true"

        # Reload: fresh controllers, same storage.
        reloaded = InstallLifecycleController()
        reloaded.dispatch(PageEvent.before_install_prompt(_candidate()))
        banner = InstallBanner(reloaded, storage)
        assert banner.dismissed
        assert not banner.visible

    @pytest.mark.asyncio
    async def test_accepted_install_hides_for_session_only(self) -> None:
        storage = MemoryStorage()
        controller = InstallLifecycleController()
        controller.dispatch(PageEvent.before_install_prompt(_candidate(InstallOutcome.ACCEPTED)))
        banner = InstallBanner(controller, storage)

        assert await banner.install() is True
        assert not banner.visible
        assert storage.get_item("pwa-banner-dismissed") is None

    @pytest.mark.asyncio
    async def test_dismissed_dialog_keeps_banner_eligible(self) -> None:
        controller = InstallLifecycleController()
        controller.dispatch(PageEvent.before_install_prompt(_candidate(InstallOutcome.DISMISSED)))
        banner = InstallBanner(controller, MemoryStorage())

        assert await banner.install() is False
        assert not banner.dismissed
        # The candidate is spent; the banner returns with the next beforeinstallprompt.
        assert not banner.visible
        controller.dispatch(PageEvent.before_install_prompt(_candidate()))
        assert banner.visible

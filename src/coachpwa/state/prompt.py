"""Notification permission prompt state and its pure transition function.

::

    hidden --(delay elapsed)--> visible
    visible --granted--> hidden + dismissed (session only)
    visible --denied--> hidden + dismissed (durable)
    visible --user dismiss--> hidden + dismissed (durable)
    visible --ignored--> visible

Whether a dismissal is durable is decided by the controller, which owns
the storage; the reducer only reports it via :func:`is_durable_dismissal`.
"""

from __future__ import annotations

from dataclasses import dataclass

from coachpwa.state.events import PageEvent, PageEventType

_DURABLE_DISMISSALS: frozenset[PageEventType] = frozenset(
    {PageEventType.PERMISSION_DENIED, PageEventType.USER_DISMISSED}
)


@dataclass(frozen=True, slots=True)
class PromptState:
    visible: bool = False
    dismissed: bool = False


def reduce_prompt(state: PromptState, event: PageEvent) -> PromptState:
    if state.dismissed:
        return state

    if event.type == PageEventType.DELAY_ELAPSED:
        return PromptState(visible=True, dismissed=False)

    if event.type in (
        PageEventType.PERMISSION_GRANTED,
        PageEventType.PERMISSION_DENIED,
        PageEventType.USER_DISMISSED,
    ):
        return PromptState(visible=False, dismissed=True)

    return state


def is_durable_dismissal(event: PageEvent) -> bool:
    """Whether *event* must persist the dismissal flag across reloads."""
    return event.type in _DURABLE_DISMISSALS

"""
Modal dialog descriptions + presenters.

The locator never draws anything itself: it builds a `Dialog` (title, message, actions)
and hands it to a `DialogPresenter` together with the UI context it was given.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Protocol

from pindistance.domain.models import DistanceReport

logger = logging.getLogger(__name__)

ActionStyle = Literal["default", "cancel"]


@dataclass(frozen=True)
class DialogAction:
    """One button. `opens_settings` marks the "go to system settings" side channel."""

    label: str
    style: ActionStyle = "default"
    handler: Callable[[], None] | None = None
    opens_settings: bool = False

    def trigger(self) -> None:
        if self.handler is not None:
            self.handler()


@dataclass(frozen=True)
class Dialog:
    title: str
    message: str
    actions: list[DialogAction] = field(default_factory=list)
    kind: str = "info"

    def action(self, label: str) -> DialogAction:
        """Look up an action by its label."""
        for action in self.actions:
            if action.label == label:
                return action
        raise KeyError(f"Dialog '{self.title}' has no action '{label}'")


class DialogPresenter(Protocol):
    def present(self, ui_context: Any, dialog: Dialog) -> None: ...


ALLOW = "Allow"
CANCEL = "Cancel"
OK = "OK"
OPEN_SETTINGS = "Open Settings"


def permission_request_dialog(on_allow: Callable[[], None], on_cancel: Callable[[], None]) -> Dialog:
    return Dialog(
        title="Location Permission",
        message=(
            "Location access is needed to measure the distance between the selected point "
            "and your current location. Allow access?"
        ),
        actions=[
            DialogAction(ALLOW, handler=on_allow),
            DialogAction(CANCEL, style="cancel", handler=on_cancel),
        ],
        kind="permission_request",
    )


def permission_denied_dialog() -> Dialog:
    return Dialog(
        title="Location Permission Required",
        message="Location access was denied. Please allow it in Settings.",
        actions=[
            DialogAction(OPEN_SETTINGS, opens_settings=True),
            DialogAction(CANCEL, style="cancel"),
        ],
        kind="permission_denied",
    )


def error_dialog(message: str) -> Dialog:
    return Dialog(title="Error", message=message, actions=[DialogAction(OK)], kind="error")


def result_dialog(report: DistanceReport) -> Dialog:
    message = (
        f"The selected location ({report.place_description}) is "
        f"{report.rounded_m} meters from your current location."
    )
    return Dialog(title="Distance Result", message=message, actions=[DialogAction(OK)], kind="result")


class ConsoleDialogPresenter:
    """Render dialogs on a terminal and let the user pick an action.

    Single-action dialogs are shown without prompting. `input_fn`/`output_fn` are
    injectable for non-interactive runs.
    """

    SETTINGS_HINT = "Open your system privacy settings to enable location access."

    def __init__(
        self,
        *,
        input_fn: Callable[[str], str] = input,
        output_fn: Callable[[str], None] = print,
    ) -> None:
        self._input = input_fn
        self._output = output_fn

    def present(self, ui_context: Any, dialog: Dialog) -> None:
        self._output(f"[{dialog.title}]")
        self._output(dialog.message)
        if not dialog.actions:
            return
        if len(dialog.actions) == 1:
            self._run(dialog.actions[0])
            return

        for i, action in enumerate(dialog.actions, start=1):
            self._output(f"  {i}) {action.label}")
        choice = self._choose(dialog)
        self._run(choice)

    def _choose(self, dialog: Dialog) -> DialogAction:
        fallback = next((a for a in dialog.actions if a.style == "cancel"), dialog.actions[-1])
        try:
            raw = self._input("> ").strip()
        except EOFError:
            logger.debug("No input for dialog %r; choosing %r", dialog.title, fallback.label)
            return fallback
        if raw.isdigit() and 1 <= int(raw) <= len(dialog.actions):
            return dialog.actions[int(raw) - 1]
        for action in dialog.actions:
            if action.label.lower() == raw.lower():
                return action
        logger.debug("Unrecognised choice %r for dialog %r; choosing %r", raw, dialog.title, fallback.label)
        return fallback

    def _run(self, action: DialogAction) -> None:
        if action.opens_settings:
            self._output(self.SETTINGS_HINT)
        action.trigger()

"""Modal dialogs for the Lunch Manager pages.

Replaces the blocking ``alert``/``confirm`` browser dialogs with a single
overlay driven from asyncio. A page owns one :class:`ModalManager`; every
dialog reuses its overlay, so only one dialog is visible at a time.

    modals = ModalManager()
    if await modals.confirm("Delete this user?", "Delete User"):
        ...

The front end forwards user input to ``click_confirm``, ``click_cancel``,
``click_backdrop`` and ``double_click``.
"""
import asyncio
import html
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

FADE_IN_SECONDS = 0.01
FADE_SECONDS = 0.3

DIALOG_TYPES = ("alert", "confirm", "success", "error", "warning")


@dataclass
class Overlay:
    """State of the ``customModal`` overlay element."""

    element_id: str = "customModal"
    title: str = "Alert"
    message: str = ""
    dialog_type: str = "alert"
    confirm_text: str = "OK"
    cancel_text: str = "Cancel"
    show_cancel: bool = False
    display: str = "none"
    opacity: float = 0.0
    pointer_events: str = "none"
    focused: Optional[str] = None

    @property
    def visible(self) -> bool:
        return self.display != "none"

    @property
    def content_class(self) -> str:
        classes = "modal-content custom-modal-content"
        if self.dialog_type != "alert":
            classes += f" modal-{self.dialog_type}"
        return classes

    def render(self) -> str:
        cancel_display = "inline-block" if self.show_cancel else "none"
        return (
            f'<div id="{self.element_id}" class="modal" '
            f'style="display: {self.display}; opacity: {self.opacity:g}; pointer-events: {self.pointer_events};">'
            f'<div class="{self.content_class}">'
            f'<div class="custom-modal-header"><h2 id="modalTitle">{html.escape(self.title)}</h2></div>'
            f'<div class="custom-modal-body"><p id="modalMessage">{html.escape(self.message)}</p></div>'
            '<div class="custom-modal-actions">'
            f'<button id="modalCancelBtn" class="btn btn-secondary" style="display: {cancel_display};">'
            f"{html.escape(self.cancel_text)}</button>"
            f'<button id="modalConfirmBtn" class="btn btn-primary">{html.escape(self.confirm_text)}</button>'
            "</div></div></div>"
        )


class ModalManager:
    def __init__(self, overlay: Optional[Overlay] = None):
        self._overlay = overlay
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Optional[asyncio.Future] = None
        self._declined_value = False
        self._swallow_dblclick = False
        self._fade_in_handle: Optional[asyncio.TimerHandle] = None
        self._hide_handle: Optional[asyncio.TimerHandle] = None

    @property
    def overlay(self) -> Overlay:
        if self._overlay is None:
            self._overlay = Overlay()
        return self._overlay

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def show(
        self,
        title: str = "Alert",
        message: str = "",
        dialog_type: str = "alert",
        confirm_text: str = "OK",
        cancel_text: str = "Cancel",
        show_cancel: bool = False,
    ) -> asyncio.Future:
        """Configures and shows the overlay; the future resolves with the user's answer.

        A dialog still waiting for an answer is resolved with its declined
        value first.
        """
        if dialog_type not in DIALOG_TYPES:
            raise ValueError(f"Unknown dialog type: {dialog_type}")

        self._loop = asyncio.get_running_loop()
        if self._pending is not None:
            logger.debug("Dialog superseded before the user answered")
            self._resolve(self._declined_value)
        self._cancel_timers()

        overlay = self.overlay
        overlay.title = title
        overlay.message = message
        overlay.dialog_type = dialog_type
        overlay.confirm_text = confirm_text
        overlay.cancel_text = cancel_text
        overlay.show_cancel = show_cancel

        overlay.display = "flex"
        overlay.opacity = 0.0
        overlay.pointer_events = "auto"
        overlay.focused = "cancel" if show_cancel else "confirm"
        self._fade_in_handle = self._loop.call_later(FADE_IN_SECONDS, self._fade_in)

        self._pending = self._loop.create_future()
        self._declined_value = not show_cancel
        self._swallow_dblclick = True
        return self._pending

    # User input

    def click_confirm(self) -> bool:
        return self._settle(True)

    def click_cancel(self) -> bool:
        return self._settle(self._declined_value)

    def click_backdrop(self) -> bool:
        return self._settle(self._declined_value)

    def double_click(self) -> bool:
        """Returns True when the double-click was swallowed."""
        if self._swallow_dblclick:
            self._swallow_dblclick = False
            return True
        return False

    def dismiss(self) -> bool:
        """Closes the visible dialog as if it had been declined."""
        return self._settle(self._declined_value)

    # Convenience dialogs

    async def alert(self, message: str, title: str = "Alert") -> bool:
        return await self.show(title=title, message=message, dialog_type="alert")

    async def confirm(self, message: str, title: str = "Confirm") -> bool:
        return await self.show(
            title=title,
            message=message,
            dialog_type="confirm",
            confirm_text="Yes",
            cancel_text="No",
            show_cancel=True,
        )

    async def success(self, message: str, title: str = "Success") -> bool:
        return await self.show(title=title, message=message, dialog_type="success")

    async def error(self, message: str, title: str = "Error") -> bool:
        return await self.show(title=title, message=message, dialog_type="error")

    # Internals

    def _settle(self, value: bool) -> bool:
        # Clicks after the dialog settled belong to the same interaction
        if self._pending is None:
            return False
        self._resolve(value)
        self._hide()
        return True

    def _resolve(self, value: bool):
        future, self._pending = self._pending, None
        self._swallow_dblclick = False
        if not future.done():
            future.set_result(value)

    def _hide(self):
        self._cancel_timers()
        self.overlay.opacity = 0.0
        self.overlay.focused = None
        self._hide_handle = self._loop.call_later(FADE_SECONDS, self._finish_hide)

    def _fade_in(self):
        self._fade_in_handle = None
        self.overlay.opacity = 1.0

    def _finish_hide(self):
        self._hide_handle = None
        self.overlay.display = "none"
        self.overlay.pointer_events = "none"

    def _cancel_timers(self):
        for handle in (self._fade_in_handle, self._hide_handle):
            if handle is not None:
                handle.cancel()
        self._fade_in_handle = None
        self._hide_handle = None

"""Failure types raised by the automation flows."""

from __future__ import annotations


class FlowError(Exception):
    """A flow step could not complete."""

    pass


class FieldNotFoundError(FlowError):
    """No candidate selector resolved in the page or any of its frames."""

    def __init__(self, selectors: tuple[str, ...] | list[str]) -> None:
        self.selectors = tuple(selectors)
        super().__init__(f"Field not found; tried: {', '.join(self.selectors)}")


class SubmitControlNotFoundError(FlowError):
    """No submit button could be located for the current form."""

    pass


class ResponseNotConfirmedError(FlowError):
    """The form was submitted but no acceptable network response arrived."""

    pass

"""Resumable waterfall interpreter.

A dialog is a named list of steps. Its progress lives in a DialogFrame
(dialog id, step index, values, pending prompt) that is persisted with the
conversation, so each turn can be served by a different process: the frame
is restored at the top of the turn, re-entered, and saved at the bottom.

A step either ends its dialog, moves on to the next step, or starts a
prompt. A prompt that cannot answer in the current turn suspends the frame;
the next turn resumes the prompt and, once it produces a result, feeds it to
the step following the one that started it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

from ..exceptions import ConfigurationError
from ..logging_config import get_logger
from ..models import DialogFrame, DialogStackState
from ..state import TurnState
from ..turns import TurnContext

logger = get_logger(__name__)


class DialogTurnStatus(str, Enum):
    """Stack status after a dialog call."""

    EMPTY = "empty"  # nothing was active
    WAITING = "waiting"  # suspended on a prompt
    COMPLETE = "complete"  # the dialog ended this turn


@dataclass
class DialogTurnResult:
    status: DialogTurnStatus
    result: Any = None


class IPrompt(Protocol):
    """A prompt that may need several turns to produce its result."""

    prompt_id: str

    async def begin(self, context: TurnContext, state: dict) -> Any | None:
        """Start prompting. Return the result now, or None to wait."""
        ...

    async def resume(self, context: TurnContext, state: dict) -> Any | None:
        """Re-enter with a new turn. Return the result, or None to keep waiting."""
        ...


WaterfallStep = Callable[["WaterfallStepContext"], Awaitable[DialogTurnResult]]


class WaterfallDialog:
    """Named, ordered list of steps."""

    def __init__(self, dialog_id: str, steps: list[WaterfallStep]):
        if not dialog_id:
            raise ConfigurationError("dialog_id is required")
        if not steps:
            raise ConfigurationError(f"dialog {dialog_id} has no steps")
        self.dialog_id = dialog_id
        self._steps = list(steps)

    async def run_step(
        self,
        dc: "DialogContext",
        frame: DialogFrame,
        index: int,
        result: Any = None,
        resumed: bool = False,
    ) -> DialogTurnResult:
        # Falling off the last step ends the dialog with the last result
        if index >= len(self._steps):
            return await dc.end_dialog(result)

        frame.step_index = index
        step_context = WaterfallStepContext(dc, self, frame, index, result, resumed)
        return await self._steps[index](step_context)


class WaterfallStepContext:
    """What a step sees: the turn, its frame values and the previous result."""

    def __init__(
        self,
        dc: "DialogContext",
        dialog: WaterfallDialog,
        frame: DialogFrame,
        index: int,
        result: Any,
        resumed: bool = False,
    ):
        self._dc = dc
        self._dialog = dialog
        self._frame = frame
        self.index = index
        self.result = result
        # True when result comes from a prompt that waited for an earlier turn
        self.resumed = resumed

    @property
    def context(self) -> TurnContext:
        return self._dc.context

    @property
    def state(self) -> TurnState:
        return self._dc.state

    @property
    def values(self) -> dict[str, Any]:
        return self._frame.values

    async def next(self, result: Any = None) -> DialogTurnResult:
        return await self._dialog.run_step(self._dc, self._frame, self.index + 1, result)

    async def prompt(self, prompt_id: str) -> DialogTurnResult:
        return await self._dc.prompt(prompt_id)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        return await self._dc.end_dialog(result)


class DialogSet:
    """Registry of dialogs and prompts."""

    def __init__(self, max_depth: int = 1):
        self._dialogs: dict[str, WaterfallDialog] = {}
        self._prompts: dict[str, IPrompt] = {}
        self._max_depth = max_depth

    def add(self, dialog: WaterfallDialog) -> None:
        if dialog.dialog_id in self._dialogs:
            raise ConfigurationError(f"dialog {dialog.dialog_id} already registered")
        self._dialogs[dialog.dialog_id] = dialog

    def add_prompt(self, prompt: IPrompt) -> None:
        if prompt.prompt_id in self._prompts:
            raise ConfigurationError(f"prompt {prompt.prompt_id} already registered")
        self._prompts[prompt.prompt_id] = prompt

    def find(self, dialog_id: str) -> WaterfallDialog | None:
        return self._dialogs.get(dialog_id)

    def find_prompt(self, prompt_id: str) -> IPrompt | None:
        return self._prompts.get(prompt_id)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def create_context(
        self,
        context: TurnContext,
        stack: DialogStackState,
        state: TurnState,
    ) -> "DialogContext":
        return DialogContext(self, context, stack, state)


class DialogContext:
    """Runs the dialog stack of one conversation for one turn."""

    def __init__(
        self,
        dialogs: DialogSet,
        context: TurnContext,
        stack: DialogStackState,
        state: TurnState,
    ):
        self._dialogs = dialogs
        self.context = context
        self.stack = stack
        self.state = state

    @property
    def active_frame(self) -> DialogFrame | None:
        return self.stack.active

    async def begin_dialog(self, dialog_id: str) -> DialogTurnResult:
        """Push a frame for dialog_id and run its first step."""
        dialog = self._dialogs.find(dialog_id)
        if dialog is None:
            raise KeyError(f"Unknown dialog: {dialog_id}")
        if len(self.stack.frames) >= self._dialogs.max_depth:
            raise RuntimeError(
                f"Cannot begin {dialog_id}: {len(self.stack.frames)} frame(s) active"
            )

        frame = DialogFrame(dialog_id=dialog_id)
        self.stack.frames.append(frame)
        logger.debug("Dialog %s started", dialog_id)
        return await dialog.run_step(self, frame, 0)

    async def continue_dialog(self) -> DialogTurnResult:
        """Re-enter the innermost frame with the current turn."""
        frame = self.active_frame
        if frame is None:
            return DialogTurnResult(DialogTurnStatus.EMPTY)

        dialog = self._dialogs.find(frame.dialog_id)
        if dialog is None:
            logger.warning("Dropping frame of unknown dialog %s", frame.dialog_id)
            self.stack.clear()
            return DialogTurnResult(DialogTurnStatus.EMPTY)

        if frame.prompt_id is None:
            # Not suspended on a prompt: the turn's text is the step input
            return await dialog.run_step(
                self, frame, frame.step_index + 1, self.context.turn.text
            )

        prompt = self._dialogs.find_prompt(frame.prompt_id)
        if prompt is None:
            logger.warning("Dropping frame waiting on unknown prompt %s", frame.prompt_id)
            self.stack.clear()
            return DialogTurnResult(DialogTurnStatus.EMPTY)

        result = await prompt.resume(self.context, frame.prompt_state)
        if result is None:
            return DialogTurnResult(DialogTurnStatus.WAITING)

        frame.prompt_id = None
        frame.prompt_state = {}
        return await dialog.run_step(
            self, frame, frame.step_index + 1, result, resumed=True
        )

    async def prompt(self, prompt_id: str) -> DialogTurnResult:
        """Start a prompt from the active frame's current step."""
        frame = self.active_frame
        if frame is None:
            raise RuntimeError("prompt() needs an active dialog")
        prompt = self._dialogs.find_prompt(prompt_id)
        if prompt is None:
            raise KeyError(f"Unknown prompt: {prompt_id}")

        prompt_state: dict[str, Any] = {}
        result = await prompt.begin(self.context, prompt_state)
        if result is not None:
            dialog = self._dialogs.find(frame.dialog_id)
            return await dialog.run_step(self, frame, frame.step_index + 1, result)

        frame.prompt_id = prompt_id
        frame.prompt_state = prompt_state
        return DialogTurnResult(DialogTurnStatus.WAITING)

    async def end_dialog(self, result: Any = None) -> DialogTurnResult:
        """Pop the innermost frame."""
        if self.stack.frames:
            frame = self.stack.frames.pop()
            logger.debug("Dialog %s ended", frame.dialog_id)
        return DialogTurnResult(DialogTurnStatus.COMPLETE, result)

    def cancel_all(self) -> None:
        self.stack.clear()

"""Persisted dialog stack models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass
class DialogFrame:
    """One active instantiation of a dialog on the stack."""

    dialog_id: str
    step_index: int = 0
    values: dict[str, Any] = field(default_factory=dict)
    prompt_id: str | None = None  # set while suspended on a prompt
    prompt_state: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "dialog_id": self.dialog_id,
            "step_index": self.step_index,
            "values": self.values,
            "prompt_id": self.prompt_id,
            "prompt_state": self.prompt_state,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "DialogFrame":
        return cls(
            dialog_id=data["dialog_id"],
            step_index=data.get("step_index", 0),
            values=dict(data.get("values") or {}),
            prompt_id=data.get("prompt_id"),
            prompt_state=dict(data.get("prompt_state") or {}),
        )


@dataclass
class DialogStackState:
    """Ordered active frames of a conversation, innermost last."""

    frames: list[DialogFrame] = field(default_factory=list)

    @property
    def active(self) -> DialogFrame | None:
        return self.frames[-1] if self.frames else None

    def clear(self) -> None:
        self.frames.clear()

    def to_dict(self) -> dict:
        return {"frames": [frame.to_dict() for frame in self.frames]}

    @classmethod
    def from_dict(cls, data: dict | None) -> "DialogStackState":
        if not data:
            return cls()
        return cls(frames=[DialogFrame.from_dict(f) for f in data.get("frames", [])])

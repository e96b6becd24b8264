from __future__ import annotations

from pydantic import BaseModel, Field

from toggleable_bindings.core.binding import Binding, CheckResult


class BindingView(BaseModel):
    id: str
    name: str
    is_applied: bool
    is_vanilla: bool

    # Asset references for the binding button.
    default_sprite: str
    selected_sprite: str

    @staticmethod
    def from_binding(binding: Binding) -> "BindingView":
        return BindingView(
            id=binding.id,
            name=binding.name,
            is_applied=binding.is_applied,
            is_vanilla=binding.is_vanilla,
            default_sprite=binding.default_sprite,
            selected_sprite=binding.selected_sprite,
        )


class BindingListResponse(BaseModel):
    bindings: list[BindingView]


class CheckView(BaseModel):
    allowed: bool
    reason: str

    @staticmethod
    def from_result(result: CheckResult) -> "CheckView":
        return CheckView(allowed=result.allowed, reason=result.reason)


class BindingChecksResponse(BaseModel):
    binding_id: str
    apply: CheckView
    restore: CheckView


class ToggleResponse(BaseModel):
    binding: BindingView
    # False when the binding was already in the requested state.
    changed: bool


class EnvironmentView(BaseModel):
    near_bench: bool
    restrictions: list[str] = Field(default_factory=list)
    equipped_charms: list[int] = Field(default_factory=list)


class EnvironmentUpdateRequest(BaseModel):
    near_bench: bool | None = None
    equipped_charms: list[int] | None = None


class SaveListResponse(BaseModel):
    slots: list[str]


class LoadResponse(BaseModel):
    slot: str
    applied: list[str]

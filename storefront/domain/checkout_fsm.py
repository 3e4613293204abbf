"""Checkout attempt transition rules (single source of truth)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class CheckoutState(str, Enum):
    IDLE = "idle"
    LOADING_ADDRESSES = "loading_addresses"
    ADDRESS_READY = "address_ready"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"
    REDIRECTED = "redirected"


ALLOWED_TRANSITIONS: Mapping[CheckoutState, frozenset[CheckoutState]] = {
    CheckoutState.IDLE: frozenset(
        {
            CheckoutState.LOADING_ADDRESSES,
            CheckoutState.REDIRECTED,
        }
    ),
    CheckoutState.LOADING_ADDRESSES: frozenset(
        {
            CheckoutState.ADDRESS_READY,
            CheckoutState.REDIRECTED,
        }
    ),
    CheckoutState.ADDRESS_READY: frozenset(
        {
            CheckoutState.LOADING_ADDRESSES,
            CheckoutState.SUBMITTING,
            CheckoutState.REDIRECTED,
        }
    ),
    CheckoutState.SUBMITTING: frozenset(
        {
            CheckoutState.SUCCESS,
            CheckoutState.FAILED,
            CheckoutState.REDIRECTED,
        }
    ),
    # A failed attempt stays resubmittable and may refresh its addresses.
    CheckoutState.FAILED: frozenset(
        {
            CheckoutState.SUBMITTING,
            CheckoutState.LOADING_ADDRESSES,
            CheckoutState.REDIRECTED,
        }
    ),
    CheckoutState.SUCCESS: frozenset(),
    CheckoutState.REDIRECTED: frozenset({CheckoutState.LOADING_ADDRESSES}),
}

TERMINAL_STATES = frozenset({CheckoutState.SUCCESS})


@dataclass(frozen=True, slots=True)
class TransitionValidationResult:
    allowed: bool
    reason: str | None = None


def validate_checkout_transition(
    current: CheckoutState,
    target: CheckoutState,
) -> TransitionValidationResult:
    """Check a checkout transition against the matrix."""
    if current == target:
        return TransitionValidationResult(True)

    if current in TERMINAL_STATES:
        return TransitionValidationResult(
            False,
            f"Checkout already finished in state '{current.value}'.",
        )

    allowed_targets = ALLOWED_TRANSITIONS.get(current, frozenset())
    if target not in allowed_targets:
        return TransitionValidationResult(
            False,
            f"Transition '{current.value} -> {target.value}' is not allowed.",
        )
    return TransitionValidationResult(True)

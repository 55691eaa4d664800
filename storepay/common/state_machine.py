"""Phase transitions for the two-phase order/payment flows."""

from storepay.common.logging import logger

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    "CREATE_ORDER": {"CREATE_PAYMENT", "CREATE_CHECKOUT", "FAILED"},
    "CREATE_PAYMENT": {"COMPLETED", "FAILED"},
    "CREATE_CHECKOUT": {"COMPLETED", "FAILED"},
    "COMPLETED": set(),
    "FAILED": set(),
}

# Terminal checkout statuses after which the device will not change it again.
FINAL_CHECKOUT_STATUSES = frozenset({"COMPLETED", "CANCELED"})


def validate_transition(current: str, new: str) -> None:
    """Raise when a transition is not allowed by the state machine."""

    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValueError(f"Invalid transition: {current} -> {new}")


def is_final_checkout_status(status: str | None) -> bool:
    return (status or "").upper() in FINAL_CHECKOUT_STATUSES


class Flow:
    """Tracks one request's phase and logs every transition."""

    def __init__(self, name: str, start: str = "CREATE_ORDER") -> None:
        if start not in ALLOWED_TRANSITIONS:
            raise ValueError(f"Unknown phase: {start}")
        self.name = name
        self.state = start

    def advance(self, new: str) -> None:
        validate_transition(self.state, new)
        logger.info("flow=%s phase %s -> %s", self.name, self.state, new)
        self.state = new

    def fail(self) -> None:
        """Move to FAILED unless the flow already finished."""

        if self.state not in ("COMPLETED", "FAILED"):
            self.advance("FAILED")

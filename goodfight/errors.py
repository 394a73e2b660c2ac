"""
Exception hierarchy for the Good Fight engine.

Input errors (unknown die, unknown operation) are fatal and surface
immediately. Refused actions (no eligible recruiter, unmet requirements)
are recoverable: the engine leaves resources and personnel untouched
before raising, at most recording the refusal in the turn log.
"""


class GameError(Exception):
    """Base class for all engine errors."""
    pass


# ─── Input Errors ───────────────────────────────────────────


class InvalidDieType(GameError, ValueError):
    """A die identifier outside d4/d6/d8/d10/d12/d20/d100."""
    def __init__(self, die: object):
        self.die = die
        super().__init__(f"Unknown die type: {die}")


class UnknownOperation(GameError, ValueError):
    """An operation identifier the engine does not know."""
    def __init__(self, operation: object):
        self.operation = operation
        super().__init__(f"Unknown operation: {operation}")


class InvalidTarget(GameError, IndexError):
    """A pool index or card key that does not point at anything."""
    pass


# ─── Refused Actions ────────────────────────────────────────


class NoEligibleRecruiter(GameError):
    """The named recruiter may not attempt this recruitment."""
    def __init__(self, recruiter: str, reason: str):
        self.recruiter = recruiter
        self.reason = reason
        super().__init__(f"{recruiter} cannot recruit: {reason}")


class RequirementsNotMet(GameError):
    """Resolution was requested for an operation whose requirements fail."""
    def __init__(self, operation: str, unmet: list[str]):
        self.operation = operation
        self.unmet = unmet
        super().__init__(
            f"Requirements not met for {operation}: {', '.join(unmet)}"
        )


class InsufficientSupplies(GameError):
    """An optional supply spend was requested with nothing to spend."""
    pass


class EngineBusy(GameError):
    """A mutating call arrived while another one is still suspended."""
    pass


# ─── Randomness Errors ──────────────────────────────────────


class InvalidRollValue(GameError, ValueError):
    """A provider produced a value outside the die's range."""
    def __init__(self, die: str, value: object):
        self.die = die
        self.value = value
        super().__init__(f"Invalid result {value!r} for {die}")


class CardNotInDeck(GameError, ValueError):
    """A provider produced a card that is not in the backing deck."""
    def __init__(self, card_key: str):
        self.card_key = card_key
        super().__init__(f"Card {card_key} is not in the deck")


class RequestCancelled(GameError):
    """A pending relay request was abandoned by its caller."""
    pass


class ScriptExhausted(GameError):
    """A scripted provider ran out of values."""
    pass

"""Typed failures raised by the marketplace core.

Services raise these instead of HTTP exceptions; the host layer maps each
kind to a status code (see the handler registered in ``app.main``).

Kinds:

- **validation**: malformed input rejected before touching state (422)
- **state_conflict**: the requested transition is illegal right now (409)
- **authorization**: actor may not perform the action (403)
- **resource_constraint**: balances cannot cover the request (422)
- **not_found**: referenced aggregate does not exist (404)
- **infrastructure**: store unavailable or unit of work timed out (503)
"""


class MarketplaceError(Exception):
    status_code: int = 400
    kind: str = "error"
    # Expected outcomes are logged at INFO, never as errors
    expected: bool = True

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationFailed(MarketplaceError):
    status_code = 422
    kind = "validation"


class NotFound(MarketplaceError):
    status_code = 404
    kind = "not_found"


# --- StateConflict ---


class StateConflict(MarketplaceError):
    status_code = 409
    kind = "state_conflict"


class JobNotOpen(StateConflict):
    def __init__(self, status: str) -> None:
        super().__init__(f"Job is not open for bidding, currently {status}")
        self.status = status


class BidNotPending(StateConflict):
    def __init__(self, status: str) -> None:
        super().__init__(f"Bid is not pending, currently {status}")
        self.status = status


class DuplicateBid(StateConflict):
    def __init__(self) -> None:
        super().__init__("Vendor already has an active bid on this job")


class DuplicateReview(StateConflict):
    def __init__(self) -> None:
        super().__init__("You have already reviewed this job")


class ProfileExists(StateConflict):
    def __init__(self) -> None:
        super().__init__("Technician profile already exists")


class ListingUnderModeration(StateConflict):
    def __init__(self, status: str) -> None:
        super().__init__(f"Listing is {status}; only a moderator can change it")
        self.status = status


class InvalidJobState(StateConflict):
    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot transition job from {current} to {target}")
        self.current = current
        self.target = target


class AlreadyResolved(StateConflict):
    def __init__(self, status: str) -> None:
        super().__init__(f"Report already closed as {status}")
        self.status = status


# --- Authorization ---


class AuthorizationFailed(MarketplaceError):
    status_code = 403
    kind = "authorization"


class NotAuthorized(AuthorizationFailed):
    pass


class SelfBidForbidden(AuthorizationFailed):
    def __init__(self) -> None:
        super().__init__("Cannot bid on your own job")


# --- ResourceConstraint ---


class ResourceConstraint(MarketplaceError):
    status_code = 422
    kind = "resource_constraint"


class InsufficientFunds(ResourceConstraint):
    def __init__(self, available: object, requested: object) -> None:
        super().__init__(f"Insufficient balance: {available} < {requested}")
        self.available = available
        self.requested = requested


class InvalidEscrowState(ResourceConstraint):
    def __init__(self, held: object, requested: object) -> None:
        super().__init__(f"Escrow held for job is {held}, cannot move {requested}")
        self.held = held
        self.requested = requested


# --- Infrastructure ---


class OperationTimeout(MarketplaceError):
    status_code = 503
    kind = "infrastructure"
    expected = False

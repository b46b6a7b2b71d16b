"""Exchange Transitions — the ExchangeRequest state machine and its authorization rules.

Invariants:
    - pending -> {accepted, rejected, cancelled}; accepted -> {completed}; all else terminal
    - No transition re-enters pending and none is reversible
    - Every ExchangeStatus has an entry in the transition table (checked at import)
    - Authorization is checked before the lifecycle guard
    - All functions are PURE: no IO, no async, no DB

Design Decisions:
    - cancel is restricted to pending, like accept/reject: an accepted exchange has
      already flipped both products to exchanged and cannot be unwound
    - Table-driven over if/elif: a new status or action without an entry fails loudly
"""

from enum import Enum

from campus_swap.core.domain_types import ExchangeAction, ExchangeStatus, StudentId
from campus_swap.core.errors import ErrorContext, ForbiddenError, InvalidStateError
from campus_swap.core.records import ExchangeRecord


class PartyRole(str, Enum):
    REQUESTER = "requester"
    RECEIVER = "receiver"


TRANSITIONS: dict[ExchangeStatus, dict[ExchangeAction, ExchangeStatus]] = {
    ExchangeStatus.PENDING: {
        ExchangeAction.ACCEPT: ExchangeStatus.ACCEPTED,
        ExchangeAction.REJECT: ExchangeStatus.REJECTED,
        ExchangeAction.CANCEL: ExchangeStatus.CANCELLED,
    },
    ExchangeStatus.ACCEPTED: {
        ExchangeAction.COMPLETE: ExchangeStatus.COMPLETED,
    },
    ExchangeStatus.REJECTED: {},
    ExchangeStatus.CANCELLED: {},
    ExchangeStatus.COMPLETED: {},
}

ALLOWED_ROLES: dict[ExchangeAction, frozenset[PartyRole]] = {
    ExchangeAction.ACCEPT: frozenset({PartyRole.RECEIVER}),
    ExchangeAction.REJECT: frozenset({PartyRole.RECEIVER}),
    ExchangeAction.CANCEL: frozenset({PartyRole.REQUESTER}),
    ExchangeAction.COMPLETE: frozenset({PartyRole.REQUESTER, PartyRole.RECEIVER}),
}

_FORBIDDEN_MESSAGES: dict[ExchangeAction, str] = {
    ExchangeAction.ACCEPT: "Only the receiver can accept or reject",
    ExchangeAction.REJECT: "Only the receiver can accept or reject",
    ExchangeAction.CANCEL: "Only the requester can cancel",
    ExchangeAction.COMPLETE: "Only the parties to this exchange can complete it",
}

# Status each action must start from; used for the guard message.
_REQUIRED_STATUS: dict[ExchangeAction, ExchangeStatus] = {
    ExchangeAction.ACCEPT: ExchangeStatus.PENDING,
    ExchangeAction.REJECT: ExchangeStatus.PENDING,
    ExchangeAction.CANCEL: ExchangeStatus.PENDING,
    ExchangeAction.COMPLETE: ExchangeStatus.ACCEPTED,
}

_INVALID_STATE_MESSAGES: dict[ExchangeAction, str] = {
    ExchangeAction.ACCEPT: "This request has already been processed",
    ExchangeAction.REJECT: "This request has already been processed",
    ExchangeAction.CANCEL: "Only pending requests can be cancelled",
    ExchangeAction.COMPLETE: "Exchange must be accepted first",
}


def _check_tables_exhaustive() -> None:
    missing_status = set(ExchangeStatus) - set(TRANSITIONS)
    if missing_status:
        raise RuntimeError(
            f"Transition table missing statuses: {sorted(s.value for s in missing_status)}",
        )
    for table in (ALLOWED_ROLES, _FORBIDDEN_MESSAGES, _REQUIRED_STATUS, _INVALID_STATE_MESSAGES):
        missing_action = set(ExchangeAction) - set(table)
        if missing_action:
            raise RuntimeError(
                f"Action table missing actions: {sorted(a.value for a in missing_action)}",
            )
    for source, edges in TRANSITIONS.items():
        if ExchangeStatus.PENDING in edges.values():
            raise RuntimeError(f"Transition from {source.value} re-enters pending")


_check_tables_exhaustive()


def is_terminal(status: ExchangeStatus) -> bool:
    return not TRANSITIONS[status]


def allowed_actions(status: ExchangeStatus) -> frozenset[ExchangeAction]:
    return frozenset(TRANSITIONS[status])


def roles_of(exchange: ExchangeRecord, actor_id: StudentId) -> frozenset[PartyRole]:
    """Roles the actor holds in this exchange (empty for outsiders)."""
    roles = set()
    if actor_id == exchange.requester_id:
        roles.add(PartyRole.REQUESTER)
    if actor_id == exchange.receiver_id:
        roles.add(PartyRole.RECEIVER)
    return frozenset(roles)


def authorize_action(
    exchange: ExchangeRecord, actor_id: StudentId, action: ExchangeAction,
) -> None:
    """Raise ForbiddenError unless the actor holds a role allowed to apply action."""
    if not roles_of(exchange, actor_id) & ALLOWED_ROLES[action]:
        raise ForbiddenError(
            _FORBIDDEN_MESSAGES[action],
            ErrorContext(
                exchange_id=str(exchange.id),
                student_id=str(actor_id),
                action=action.value,
            ),
        )


def next_status(
    exchange: ExchangeRecord, action: ExchangeAction,
) -> ExchangeStatus:
    """Target status for action from the exchange's current status.

    Raises InvalidStateError when the table has no edge for (status, action).
    """
    target = TRANSITIONS[exchange.status].get(action)
    if target is None:
        raise InvalidStateError(
            _INVALID_STATE_MESSAGES[action],
            current_status=exchange.status.value,
            context=ErrorContext(exchange_id=str(exchange.id), action=action.value),
        )
    return target


def plan_transition(
    exchange: ExchangeRecord, actor_id: StudentId, action: ExchangeAction,
) -> tuple[ExchangeStatus, ExchangeStatus]:
    """Authorize, then guard. Returns (expected_current, target) for a CAS update."""
    authorize_action(exchange, actor_id, action)
    target = next_status(exchange, action)
    return _REQUIRED_STATUS[action], target


def mutates_products(action: ExchangeAction) -> bool:
    """Only acceptance flips product status (both products -> exchanged)."""
    return action == ExchangeAction.ACCEPT

"""
Proposal lifecycle state machine

Statuses form a closed enumeration; every status has an entry in
OUTBOUND_TRANSITIONS, terminal ones with an empty set. Member-triggered
actions are described by ACTION_RULES, which carries both the legal source
statuses and the author / non-author guard for each action.
"""
from dataclasses import dataclass
from enum import Enum as PyEnum
from typing import Dict, FrozenSet, List
from uuid import UUID

from app.exceptions import ForbiddenError, InvalidTransitionError
from app.models.proposal import Proposal, ProposalStatusType


class ProposalAction(str, PyEnum):
    PUBLISH = "publish"
    WITHDRAW = "withdraw"
    EDIT = "edit"
    CAST_VOTE = "cast_vote"
    RETRACT_VOTE = "retract_vote"


class ActorRole(PyEnum):
    AUTHOR = "AUTHOR"
    NON_AUTHOR = "NON_AUTHOR"


class ViewerMode(str, PyEnum):
    NOT_LOGGED_IN = "not_logged_in"
    DRAFT_AUTHOR = "draft_author"
    DRAFT_NOT_AUTHOR = "draft_not_author"
    DISCUSSION_AUTHOR = "discussion_author"
    DISCUSSION_NO_VOTE = "discussion_no_vote"
    DISCUSSION_VOTED = "discussion_voted"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


@dataclass(frozen=True, slots=True)
class ActionRule:
    allowed_from: FrozenSet[ProposalStatusType]
    actor: ActorRole
    # None means the action leaves the status alone
    to_status: ProposalStatusType | None
    forbidden_detail: str
    invalid_detail: str


EDITABLE_STATUSES: FrozenSet[ProposalStatusType] = frozenset({
    ProposalStatusType.DRAFT,
    ProposalStatusType.DISCUSSION,
})

OUTBOUND_TRANSITIONS: Dict[ProposalStatusType, FrozenSet[ProposalStatusType]] = {
    ProposalStatusType.DRAFT: frozenset({
        ProposalStatusType.DISCUSSION,
        ProposalStatusType.WITHDRAWN,
    }),
    ProposalStatusType.DISCUSSION: frozenset({
        ProposalStatusType.WITHDRAWN,
        ProposalStatusType.ACCEPTED,
        ProposalStatusType.REJECTED,
    }),
    ProposalStatusType.ACCEPTED: frozenset(),
    ProposalStatusType.REJECTED: frozenset(),
    ProposalStatusType.WITHDRAWN: frozenset(),
}

if set(OUTBOUND_TRANSITIONS) != set(ProposalStatusType):
    raise RuntimeError("OUTBOUND_TRANSITIONS must cover every ProposalStatusType")

TERMINAL_STATUSES: FrozenSet[ProposalStatusType] = frozenset(
    status for status, targets in OUTBOUND_TRANSITIONS.items() if not targets
)

ACTION_RULES: Dict[ProposalAction, ActionRule] = {
    ProposalAction.PUBLISH: ActionRule(
        allowed_from=frozenset({ProposalStatusType.DRAFT}),
        actor=ActorRole.AUTHOR,
        to_status=ProposalStatusType.DISCUSSION,
        forbidden_detail="Only authors may mark a BHAP as ready for discussion",
        invalid_detail="Only drafts may be marked as ready for discussion",
    ),
    ProposalAction.WITHDRAW: ActionRule(
        allowed_from=frozenset({ProposalStatusType.DRAFT, ProposalStatusType.DISCUSSION}),
        actor=ActorRole.AUTHOR,
        to_status=ProposalStatusType.WITHDRAWN,
        forbidden_detail="Only authors may withdraw a BHAP",
        invalid_detail="Only draft or discussion BHAPs may be withdrawn",
    ),
    ProposalAction.EDIT: ActionRule(
        allowed_from=EDITABLE_STATUSES,
        actor=ActorRole.AUTHOR,
        to_status=None,
        forbidden_detail="Only authors may edit a BHAP",
        invalid_detail="Only draft or discussion BHAPs may be edited",
    ),
    ProposalAction.CAST_VOTE: ActionRule(
        allowed_from=frozenset({ProposalStatusType.DISCUSSION}),
        actor=ActorRole.NON_AUTHOR,
        to_status=None,
        forbidden_detail="Authors may not vote on their own BHAP",
        invalid_detail="Only discussion BHAPs may be voted on",
    ),
    ProposalAction.RETRACT_VOTE: ActionRule(
        allowed_from=frozenset({ProposalStatusType.DISCUSSION}),
        actor=ActorRole.NON_AUTHOR,
        to_status=None,
        forbidden_detail="Authors may not vote on their own BHAP",
        invalid_detail="Only discussion BHAPs can have votes deleted",
    ),
}

if set(ACTION_RULES) != set(ProposalAction):
    raise RuntimeError("ACTION_RULES must cover every ProposalAction")


def is_editable(status: ProposalStatusType) -> bool:
    return status in EDITABLE_STATUSES


def can_transition(from_status: ProposalStatusType, to_status: ProposalStatusType) -> bool:
    return to_status in OUTBOUND_TRANSITIONS[from_status]


def is_author(proposal: Proposal, member_id: UUID | None) -> bool:
    return member_id is not None and proposal.author_id == member_id


def _role_matches(rule: ActionRule, actor_is_author: bool) -> bool:
    if rule.actor is ActorRole.AUTHOR:
        return actor_is_author
    return not actor_is_author


def check_action(
    action: ProposalAction,
    status: ProposalStatusType,
    actor_is_author: bool,
) -> ActionRule:
    """
    Validate a member-triggered action before anything is written.

    The author guard is checked first, then the source status, so a
    non-author poking at a terminal proposal learns only that it is not
    allowed. Raises ForbiddenError or InvalidTransitionError.
    """
    rule = ACTION_RULES[action]
    if not _role_matches(rule, actor_is_author):
        raise ForbiddenError(message="Forbidden", detail=rule.forbidden_detail)
    if status not in rule.allowed_from:
        raise InvalidTransitionError(
            message="Invalid transition",
            detail=f"{rule.invalid_detail} (current status: {status.value})"
        )
    if rule.to_status is not None and not can_transition(status, rule.to_status):
        raise InvalidTransitionError(
            message="Invalid transition",
            detail=f"Cannot move from {status.value} to {rule.to_status.value}"
        )
    return rule


def check_system_transition(
    from_status: ProposalStatusType,
    to_status: ProposalStatusType,
) -> None:
    """Guard for transitions requested by the tally rather than a member"""
    if not can_transition(from_status, to_status):
        raise InvalidTransitionError(
            message="Invalid transition",
            detail=f"Cannot move from {from_status.value} to {to_status.value}"
        )


def available_actions(
    status: ProposalStatusType,
    actor_is_author: bool,
    has_voted: bool,
    logged_in: bool = True,
) -> List[ProposalAction]:
    """Actions the viewer could perform right now, in ACTION_RULES order"""
    if not logged_in:
        return []
    actions = []
    for action, rule in ACTION_RULES.items():
        if status not in rule.allowed_from or not _role_matches(rule, actor_is_author):
            continue
        if action is ProposalAction.RETRACT_VOTE and not has_voted:
            continue
        actions.append(action)
    return actions


def viewer_mode(
    status: ProposalStatusType,
    actor_is_author: bool,
    has_voted: bool,
    logged_in: bool = True,
) -> ViewerMode:
    if not logged_in:
        return ViewerMode.NOT_LOGGED_IN
    if status is ProposalStatusType.DRAFT:
        return ViewerMode.DRAFT_AUTHOR if actor_is_author else ViewerMode.DRAFT_NOT_AUTHOR
    if status is ProposalStatusType.DISCUSSION:
        if actor_is_author:
            return ViewerMode.DISCUSSION_AUTHOR
        return ViewerMode.DISCUSSION_VOTED if has_voted else ViewerMode.DISCUSSION_NO_VOTE
    if status is ProposalStatusType.ACCEPTED:
        return ViewerMode.ACCEPTED
    if status is ProposalStatusType.REJECTED:
        return ViewerMode.REJECTED
    if status is ProposalStatusType.WITHDRAWN:
        return ViewerMode.WITHDRAWN
    raise ValueError(f"Unhandled status {status!r}")

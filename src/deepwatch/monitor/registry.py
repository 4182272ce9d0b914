"""Correlation registry.

The engine never says which sub-execution a fragment belongs to. Two weak
signals are available instead:

- a namespace string on content fragments, e.g. ``tools:6f1c...|model:2``,
  whose ``tools:<id>`` segment identifies a running sub-execution;
- the tool call id ("token") of a dispatch, echoed back by its completion
  on the update channel.

The registry turns those into stable sub-execution ids and keeps the
pending action requests that completions are matched against. It does no
I/O and never raises on protocol violations; they are logged instead.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
import re

from deepwatch.observability.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class PendingDispatch:
    """An action request awaiting its completion.

    Attributes:
        invocation_id: Id of the invocation (the token itself).
        action_name: Name of the requested action.
        description: Short description captured at request time.
    """

    invocation_id: str
    action_name: str
    description: str


@dataclass(frozen=True, slots=True)
class Attribution:
    """Where a namespaced fragment or a dispatch landed.

    Attributes:
        sub_id: The sub-execution the signal belongs to.
        created: True if the caller must create the sub-execution.
    """

    sub_id: str
    created: bool


@dataclass(frozen=True, slots=True)
class Claim:
    """Result of matching a dispatch completion to a sub-execution.

    Attributes:
        sub_id: The sub-execution to finish.
        heuristic: True if the match came from the oldest-tokenless fallback
            rather than the token itself.
    """

    sub_id: str
    heuristic: bool


class CorrelationRegistry:
    """Maps tokens and namespace fragments to live entities.

    All operations are dictionary bookkeeping. Ordered dicts keep the
    first-in-first-out order the fallbacks depend on.
    """

    def __init__(self, namespace_prefix: str = "tools") -> None:
        self._namespace_pattern = re.compile(rf"^{re.escape(namespace_prefix)}:([A-Za-z0-9_-]+)")
        self._pending: dict[str, PendingDispatch] = {}
        self._completed_tokens: set[str] = set()
        # fragment -> sub id, kept after completion so late fragments stay attributed
        self._fragments: dict[str, str] = {}
        # token -> sub id for live dispatched sub-executions
        self._dispatched: dict[str, str] = {}
        # dispatched sub-executions no fragment has been bound to yet
        self._unbound: OrderedDict[str, None] = OrderedDict()
        # sub-executions created from content that no dispatch has claimed yet
        self._tokenless: OrderedDict[str, None] = OrderedDict()

    def resolve_namespace(self, namespace: str | None) -> str | None:
        """Extract the sub-execution fragment id from a namespace string.

        Returns:
            The identifier after the ``tools:`` prefix, or None when the
            namespace belongs to the root execution.
        """
        if not namespace:
            return None
        for segment in namespace.split("|"):
            match = self._namespace_pattern.match(segment)
            if match:
                return match.group(1)
        return None

    def attribute_fragment(self, fragment: str) -> Attribution:
        """Find the sub-execution a namespace fragment belongs to.

        A fragment seen for the first time is bound to the oldest dispatch
        that has no fragment yet. With no such dispatch, a new tokenless
        sub-execution keyed by the fragment is reported as created.
        """
        sub_id = self._fragments.get(fragment)
        if sub_id is not None:
            return Attribution(sub_id, created=False)

        if self._unbound:
            sub_id, _ = self._unbound.popitem(last=False)
            self._fragments[fragment] = sub_id
            log.debug("monitor.namespace.bound", fragment=fragment, sub_id=sub_id)
            return Attribution(sub_id, created=False)

        self._fragments[fragment] = fragment
        self._tokenless[fragment] = None
        log.debug("monitor.namespace.discovered", fragment=fragment)
        return Attribution(fragment, created=True)

    def register_dispatch(self, token: str, action_name: str, description: str) -> str:
        """Record a pending action request keyed by its token.

        A token that is already pending is a protocol violation: it is logged
        and the new request replaces the old one.

        Returns:
            The invocation id, which is the token.
        """
        if token in self._pending:
            log.warning(
                "monitor.dispatch.duplicate_token",
                token=token,
                previous_action=self._pending[token].action_name,
                action=action_name,
            )
        self._pending[token] = PendingDispatch(
            invocation_id=token,
            action_name=action_name,
            description=description,
        )
        log.debug("monitor.dispatch.registered", token=token, action=action_name)
        return token

    def update_description(self, token: str, description: str) -> None:
        """Replace a pending description once its arguments finished streaming."""
        pending = self._pending.get(token)
        if pending is not None:
            self._pending[token] = PendingDispatch(pending.invocation_id, pending.action_name, description)

    def is_pending(self, token: str) -> bool:
        return token in self._pending

    def pending_dispatch(self, token: str) -> PendingDispatch | None:
        return self._pending.get(token)

    def resolve_completion(self, token: str | None) -> PendingDispatch | None:
        """Remove and return the pending request for a token.

        Returns:
            The pending request, or None for an unknown (orphaned) token.
        """
        if token is None:
            return None
        pending = self._pending.pop(token, None)
        if pending is not None:
            self._completed_tokens.add(token)
        return pending

    def is_completed(self, token: str | None) -> bool:
        """Whether a completion for this token was already applied."""
        return token is not None and token in self._completed_tokens

    def mark_completed(self, token: str) -> None:
        self._completed_tokens.add(token)

    def link_dispatch(self, token: str) -> Attribution:
        """Associate a dispatch token with a sub-execution.

        If content for a sub-execution arrived before its dispatch, the
        oldest such tokenless sub-execution adopts the token. Otherwise a new
        sub-execution keyed by the token is reported as created, and waits
        for the first unseen fragment.
        """
        existing = self._dispatched.get(token)
        if existing is not None:
            return Attribution(existing, created=False)

        if self._tokenless:
            sub_id, _ = self._tokenless.popitem(last=False)
            self._dispatched[token] = sub_id
            log.info("monitor.dispatch.adopted", token=token, sub_id=sub_id)
            return Attribution(sub_id, created=False)

        self._dispatched[token] = token
        self._unbound[token] = None
        return Attribution(token, created=True)

    def claim_sub_execution(self, token: str | None) -> Claim | None:
        """Match a dispatch completion to the sub-execution it finishes.

        The token is tried first. Failing that, the oldest live sub-execution
        that never had a token is taken. This fallback is a best-effort
        guess and is logged as such.

        Returns:
            The claim, or None if nothing could be matched.
        """
        if token is not None:
            sub_id = self._dispatched.pop(token, None)
            if sub_id is not None:
                self._unbound.pop(sub_id, None)
                return Claim(sub_id, heuristic=False)

        if self._tokenless:
            sub_id, _ = self._tokenless.popitem(last=False)
            log.warning("monitor.completion.heuristic_match", token=token, sub_id=sub_id)
            return Claim(sub_id, heuristic=True)

        return None

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def active_count(self) -> int:
        """Sub-executions still eligible for a completion."""
        return len(self._dispatched) + len(self._tokenless)

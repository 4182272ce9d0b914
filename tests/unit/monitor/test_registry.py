"""Unit tests for deepwatch.monitor.registry."""

from unittest.mock import patch

import pytest

from deepwatch.monitor.registry import Attribution, Claim, CorrelationRegistry


@pytest.fixture
def registry() -> CorrelationRegistry:
    return CorrelationRegistry()


class TestResolveNamespace:
    """Tests for namespace parsing."""

    @pytest.mark.parametrize(
        ("namespace", "expected"),
        [
            ("tools:abc123", "abc123"),
            ("tools:call_9f-X|model:4", "call_9f-X"),
            ("model:1|tools:deep_1", "deep_1"),
            ("model:1", None),
            ("", None),
            (None, None),
            ("mytools:abc", None),
        ],
    )
    def test_resolve(self, registry: CorrelationRegistry, namespace: str | None, expected: str | None) -> None:
        assert registry.resolve_namespace(namespace) == expected

    def test_custom_prefix(self) -> None:
        registry = CorrelationRegistry(namespace_prefix="agents")

        assert registry.resolve_namespace("agents:x1") == "x1"
        assert registry.resolve_namespace("tools:x1") is None


class TestAttribution:
    """Tests for binding namespace fragments to sub-executions."""

    def test_unseen_fragment_without_dispatch_creates(self, registry: CorrelationRegistry) -> None:
        assert registry.attribute_fragment("f1") == Attribution("f1", created=True)
        assert registry.attribute_fragment("f1") == Attribution("f1", created=False)

    def test_fragment_binds_to_oldest_unbound_dispatch(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "task", "first")
        registry.register_dispatch("t2", "task", "second")
        registry.link_dispatch("t1")
        registry.link_dispatch("t2")

        assert registry.attribute_fragment("fa") == Attribution("t1", created=False)
        assert registry.attribute_fragment("fb") == Attribution("t2", created=False)
        assert registry.attribute_fragment("fa").sub_id == "t1"

    def test_dispatch_adopts_tokenless_sub(self, registry: CorrelationRegistry) -> None:
        registry.attribute_fragment("f1")
        registry.register_dispatch("t1", "task", "late dispatch")

        assert registry.link_dispatch("t1") == Attribution("f1", created=False)
        assert registry.link_dispatch("t1") == Attribution("f1", created=False)

    def test_dispatch_without_tokenless_creates(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "task", "x")

        assert registry.link_dispatch("t1") == Attribution("t1", created=True)
        assert registry.active_count == 1


class TestPending:
    """Tests for pending request bookkeeping."""

    def test_register_and_resolve(self, registry: CorrelationRegistry) -> None:
        assert registry.register_dispatch("t1", "fetch_webpage", "fetch_webpage") == "t1"
        assert registry.is_pending("t1")

        pending = registry.resolve_completion("t1")

        assert pending is not None
        assert pending.action_name == "fetch_webpage"
        assert not registry.is_pending("t1")
        assert registry.is_completed("t1")
        assert registry.resolve_completion("t1") is None

    def test_resolve_unknown_token(self, registry: CorrelationRegistry) -> None:
        assert registry.resolve_completion("zz") is None
        assert registry.resolve_completion(None) is None
        assert not registry.is_completed("zz")
        assert not registry.is_completed(None)

    def test_duplicate_token_is_logged_and_replaced(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "ls", "ls")

        with patch("deepwatch.monitor.registry.log") as mock_log:
            registry.register_dispatch("t1", "grep", "grep")

        mock_log.warning.assert_called_once()
        assert mock_log.warning.call_args.args[0] == "monitor.dispatch.duplicate_token"
        pending = registry.pending_dispatch("t1")
        assert pending is not None
        assert pending.action_name == "grep"
        assert registry.pending_count == 1

    def test_update_description(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "task", "Processing task...")
        registry.update_description("t1", "index docs")
        registry.update_description("missing", "ignored")

        pending = registry.pending_dispatch("t1")
        assert pending is not None
        assert pending.description == "index docs"


class TestClaimSubExecution:
    """Tests for completion matching, including the heuristic fallback."""

    def test_strict_match_by_token(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "task", "x")
        registry.link_dispatch("t1")

        assert registry.claim_sub_execution("t1") == Claim("t1", heuristic=False)
        assert registry.active_count == 0

    def test_strict_match_clears_unbound(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "task", "x")
        registry.link_dispatch("t1")
        registry.claim_sub_execution("t1")

        # The finished dispatch must not capture a later fragment.
        assert registry.attribute_fragment("f9") == Attribution("f9", created=True)

    def test_fallback_takes_oldest_tokenless(self, registry: CorrelationRegistry) -> None:
        registry.attribute_fragment("f1")
        registry.attribute_fragment("f2")

        with patch("deepwatch.monitor.registry.log") as mock_log:
            claim = registry.claim_sub_execution("unknown")

        assert claim == Claim("f1", heuristic=True)
        mock_log.warning.assert_called_once()
        assert mock_log.warning.call_args.args[0] == "monitor.completion.heuristic_match"
        assert registry.claim_sub_execution(None) == Claim("f2", heuristic=True)

    def test_nothing_to_claim(self, registry: CorrelationRegistry) -> None:
        assert registry.claim_sub_execution("t1") is None
        assert registry.claim_sub_execution(None) is None

    def test_claimed_sub_keeps_fragment_binding(self, registry: CorrelationRegistry) -> None:
        registry.register_dispatch("t1", "task", "x")
        registry.link_dispatch("t1")
        registry.attribute_fragment("fa")
        registry.claim_sub_execution("t1")

        assert registry.attribute_fragment("fa") == Attribution("t1", created=False)

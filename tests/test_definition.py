"""Tests for declaring and re-opening actions."""

from __future__ import annotations

import pytest

from actify import (
    ActionDefinition,
    ActionOptions,
    ActionRegistry,
    ConfigurationError,
    Context,
    Dependency,
    MemoryLogStore,
)


def _always(obj, ctx) -> bool:
    return True


def _never(obj, ctx) -> bool:
    return False


class TestOptions:
    def setup_method(self) -> None:
        self.registry = ActionRegistry(log_store=MemoryLogStore())

    def test_all_recognized_options(self) -> None:
        action = self.registry.define(
            "approve",
            {
                "label": "Approve",
                "order": 3,
                "type": "workflow",
                "use_policy": True,
                "execute_before_action": "stamp",
                "execute_after_action": ("notify", {"channel": "mail"}),
            },
        ).action
        assert action.label == "Approve"
        assert action.order == 3
        assert action.type == "workflow"
        assert action.use_policy is True
        assert action.before_actions == [Dependency(action_code="stamp")]
        assert action.after_actions == [
            Dependency(action_code="notify", options={"channel": "mail"})
        ]

    def test_unknown_option_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            self.registry.define("approve", {"lable": "typo"})
        assert "approve" not in self.registry

    def test_malformed_option_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            self.registry.define("approve", order="first")

    def test_malformed_dependency_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            self.registry.define("approve", execute_after_action=42)

    @pytest.mark.parametrize("options", [["label", "Approve"], "label=Approve"])
    def test_non_mapping_options_rejected(self, options) -> None:
        with pytest.raises(ConfigurationError):
            self.registry.define("approve", options)
        with pytest.raises(ConfigurationError):
            ActionOptions.parse(options)
        assert "approve" not in self.registry

    def test_empty_code_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            self.registry.define("")

    def test_defaults(self) -> None:
        action = self.registry.define("approve").action
        assert action.label is None
        assert action.order == 0
        assert action.use_policy is False
        assert action.before_actions == []
        assert action.after_actions == []

    def test_dependency_list_keeps_order(self) -> None:
        action = self.registry.define(
            "submit", execute_after_action=["notify", ("audit", {"required": True}), "archive"]
        ).action
        assert [dep.action_code for dep in action.after_actions] == ["notify", "audit", "archive"]
        assert action.after_actions[1].required is True
        assert action.after_actions[0].required is False

    def test_options_given_only_lists_explicit_keys(self) -> None:
        parsed = ActionOptions.parse({"label": "Approve"})
        assert parsed.given() == {"label": "Approve"}


class TestRedefinition:
    def setup_method(self) -> None:
        self.registry = ActionRegistry(log_store=MemoryLogStore())

    def test_layered_merge(self) -> None:
        self.registry.define("approve", label="Approve")

        def do_approve(obj, ctx) -> None:
            pass

        self.registry.define("approve", block=lambda d: d.commit(do_approve))

        action = self.registry["approve"]
        assert action.label == "Approve"
        assert action.on_commit is do_approve

    def test_same_action_object_is_reused(self) -> None:
        first = self.registry.define("approve", label="Approve").action
        second = self.registry.define("approve", order=2).action
        assert first is second
        assert second.label == "Approve"
        assert second.order == 2

    def test_handlers_replaced_wholesale(self) -> None:
        definition = self.registry.define("approve")
        definition.authorized(_never)
        definition.commitable(_never)

        self.registry.define("approve").authorized(_always)

        action = self.registry["approve"]
        assert action.on_authorized is _always
        assert action.on_commitable is _never

    def test_redeclared_dependency_replaces_options(self) -> None:
        self.registry.define("submit", execute_after_action="notify")
        self.registry.define("submit", execute_after_action=("notify", {"required": True}))
        self.registry.define("submit", execute_after_action="audit")

        action = self.registry["submit"]
        assert [dep.action_code for dep in action.after_actions] == ["notify", "audit"]
        assert action.has_after_action("notify")
        assert action.after_actions[0].required is True

    def test_registry_policy_default_applies_to_new_actions_only(self) -> None:
        self.registry.define("approve")
        self.registry.use_policy_in_actionable()
        self.registry.define("approve", label="Approve")
        self.registry.define("archive")

        assert self.registry["approve"].use_policy is False
        assert self.registry["archive"].use_policy is True

    def test_explicit_use_policy_overrides_registry_default(self) -> None:
        self.registry.use_policy_in_actionable()
        assert self.registry.define("archive", use_policy=False).action.use_policy is False


class TestBuilder:
    def setup_method(self) -> None:
        self.registry = ActionRegistry(log_store=MemoryLogStore())

    def test_block_receives_builder(self) -> None:
        received: list[ActionDefinition] = []
        definition = self.registry.define("approve", block=received.append)
        assert received == [definition]

    def test_setters_are_decorators(self) -> None:
        definition = self.registry.define("approve")

        @definition.show
        def visible(obj, ctx) -> bool:
            return False

        assert visible(None, None) is False
        assert definition.action.on_show is visible

    def test_builder_registers_immediately(self) -> None:
        definition = ActionDefinition(self.registry, "approve", {"label": "Approve"})
        assert self.registry["approve"] is definition.action
        assert definition.action.registry is self.registry
        assert definition.code == "approve"

    def test_option_setters(self) -> None:
        definition = self.registry.define("approve")
        definition.label("Approve")
        definition.order(5)
        definition.type("review")
        definition.use_policy(True)
        definition.execute_before_action("stamp", {"required": True})
        definition.execute_after_action("notify")

        action = definition.action
        assert (action.label, action.order, action.type, action.use_policy) == (
            "Approve",
            5,
            "review",
            True,
        )
        assert action.before_actions[0].required
        assert action.has_after_action("notify")

    def test_defined_action_is_executable(self) -> None:
        definition = self.registry.define("approve")
        log = definition.action.commit(object(), Context.build(actor="alice"))
        assert log.is_finished
        assert log.actor_id == "alice"

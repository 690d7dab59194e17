"""Demo: declare actions on an invoice type and commit them.

Usage:
    python examples/demo.py

Logs go to ``demo.db`` (SQLite); re-run to see them accumulate.
"""

from __future__ import annotations

from actify import (
    ACTION_ABORTED,
    ACTION_FINISHED,
    Actionable,
    ChangeTracked,
    Context,
    SqliteLogStore,
    configure_logging,
)


class User:
    def __init__(self, id: int, name: str, manager: bool = False) -> None:
        self.id = id
        self.name = name
        self.manager = manager


class Invoice(ChangeTracked, Actionable):
    def __init__(self, id: int, total: int) -> None:
        self.id = id
        self.total = total
        self.status = "draft"
        self.notified = False

    def __repr__(self) -> str:
        return f"<Invoice {self.id} {self.status} total={self.total}>"


def _configure_submit(submit) -> None:
    submit.commitable(lambda invoice, ctx: invoice.status == "draft")
    submit.commit(lambda invoice, ctx: setattr(invoice, "status", "submitted"))


def _configure_approve(approve) -> None:
    approve.authorized(lambda invoice, ctx: ctx.actor.manager)
    approve.commitable(lambda invoice, ctx: invoice.status == "submitted")
    approve.commit(lambda invoice, ctx: setattr(invoice, "status", "approved"))


Invoice.action("notify", label="Notify accounting", block=lambda d: d.commit(
    lambda invoice, ctx: setattr(invoice, "notified", True)
))
Invoice.action(
    "submit",
    label="Submit",
    order=1,
    execute_after_action="notify",
    block=_configure_submit,
)
Invoice.action("approve", label="Approve", order=2, block=_configure_approve)


def main() -> None:
    configure_logging("info")
    store = SqliteLogStore("demo.db")
    Invoice.Actions.log_store = store
    try:
        _run(store)
    finally:
        store.close()


def _run(store: SqliteLogStore) -> None:
    Invoice.Actions.events.on(
        ACTION_FINISHED, lambda log, **kw: print(f"✅ {log.action_code}: {log.object_after}")
    )
    Invoice.Actions.events.on(
        ACTION_ABORTED, lambda log, **kw: print(f"⛔ {log.action_code}: {log.error_message}")
    )

    clerk = Context.build(actor=User(1, "clerk"), data={"channel": "demo"})
    boss = Context.build(actor=User(2, "boss", manager=True))
    invoice = Invoice(42, total=1200)

    print("Visible to clerk:", [a.label for a in Invoice.Actions.visible(invoice, clerk)])

    Invoice.Actions["submit"].commit(invoice, clerk)
    Invoice.Actions["approve"].commit(invoice, clerk)  # not a manager
    Invoice.Actions["approve"].commit(invoice, boss)

    print(f"\nFinal: {invoice}")
    print(f"Logs for invoice 42: {len(store.list(actionable_id='42'))}")


if __name__ == "__main__":
    main()

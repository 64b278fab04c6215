"""Example: drive the ledgers through the command facade (no Flask, no MySQL).

Uses the in-memory store and a manual clock to replay one shift with a pause.
"""

from src.shiftbot.shiftbot.commands.model import Action, ActionKind
from src.shiftbot.shiftbot.common.datetime_utils import FixedClock, format_duration
from src.shiftbot.shiftbot.container import build_container


def main():
    clock = FixedClock(1000)
    container = build_container(store_backend="memory", clock=clock)
    facade = container.command_facade

    def act(kind: ActionKind, **kwargs):
        return facade.handle(Action(kind=kind, actor_id="42", guild_id="1", **kwargs))

    act(ActionKind.SHIFT_START, shift_type="patrol")
    clock.set(1500)
    act(ActionKind.SHIFT_PAUSE)
    clock.set(2000)
    act(ActionKind.SHIFT_RESUME)
    clock.set(2300)
    result = act(ActionKind.SHIFT_END)
    print(result.shift.status.value, format_duration(result.shift.total_seconds))

    print("\n".join(act(ActionKind.SHIFT_LOGS).lines))


if __name__ == "__main__":
    main()

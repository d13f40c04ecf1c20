from gbsengine.events import SLOT_OVERRIDE, InputEvents, Timers
from gbsengine.joypad import Button, Joypad
from gbsengine.vm import ScriptRunner


def op_idle(ctx):
    ctx.waitable = True


def make_inputs():
    runner = ScriptRunner()
    inputs = InputEvents(runner)
    inputs.slots[4] = 1
    inputs.events[0].script = [op_idle, op_idle]
    return runner, inputs


def test_pressed_button_starts_script_with_key():
    runner, inputs = make_inputs()
    pad = Joypad()
    pad.update(Button.A)
    inputs.update(pad)
    assert len(runner.active) == 1
    ctx = runner.active[0]
    assert ctx.read(-1) == Button.A
    assert inputs.events[0].handle.value == ctx.id


def test_running_script_is_not_restarted():
    runner, inputs = make_inputs()
    pad = Joypad()
    pad.update(Button.A)
    inputs.update(pad)
    pad.update(0)
    pad.update(Button.A)
    inputs.update(pad)
    assert len(runner.active) == 1


def test_held_button_does_not_trigger():
    runner, inputs = make_inputs()
    pad = Joypad()
    pad.update(Button.A)
    pad.update(Button.A)
    inputs.update(pad)
    assert runner.active == []


def test_unbound_button_does_nothing():
    runner, inputs = make_inputs()
    pad = Joypad()
    pad.update(Button.B)
    inputs.update(pad)
    assert runner.active == []


def test_override_clears_button():
    runner, inputs = make_inputs()
    inputs.slots[4] = 1 | SLOT_OVERRIDE
    pad = Joypad()
    pad.update(Button.A | Button.UP)
    inputs.update(pad)
    assert not pad.joy & Button.A
    assert pad.joy & Button.UP
    assert len(runner.active) == 1


def test_init_preserve_keeps_bindings():
    runner, inputs = make_inputs()
    pad = Joypad()
    pad.update(Button.A)
    inputs.update(pad)
    inputs.init(True)
    assert inputs.events[0].handle.value == 0
    assert inputs.slots[4] == 1
    inputs.init(False)
    assert inputs.slots == [0] * 8
    assert all(event.script is None for event in inputs.events)


def test_timer_fires_after_interval():
    runner = ScriptRunner()
    timers = Timers(runner)
    timers.values[0].value = 2
    timers.values[0].remains = 2
    timers.events[0].script = [op_idle, op_idle]
    timers.update()
    assert runner.active == []
    timers.update()
    assert len(runner.active) == 1
    assert timers.values[0].remains == 2
    timers.update()
    timers.update()
    assert len(runner.active) == 1


def test_stopped_timer_does_not_fire():
    runner = ScriptRunner()
    timers = Timers(runner)
    timers.events[0].script = [op_idle]
    for _ in range(5):
        timers.update()
    assert runner.active == []


def test_timers_init():
    runner = ScriptRunner()
    timers = Timers(runner, count=2)
    assert len(timers.values) == 2
    timers.values[1].value = 3
    timers.events[1].handle.value = 1
    timers.init(True)
    assert timers.values[1].value == 3
    assert timers.events[1].handle.value == 0
    timers.init(False)
    assert timers.values[1].value == 0
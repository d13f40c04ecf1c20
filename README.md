# gbsengine

The core runtime of a tile-based handheld game engine, written as plain Python
objects. It uses only the standard library. Every part keeps its own state and
is driven one frame or one step at a time by the code that uses it.

## Modules

| Module | Contents |
| --- | --- |
| `gbsengine.fixedmath` | `isqrt`, table-driven `atan2`, `sin8`, `cos8`, `Direction`, `flipped_dir`, `translate_dir`, `angle_to_delta`, `BoundingBox`, `bb_intersects` |
| `gbsengine.palette` | `dmg_palette` packs four 2-bit shades into a byte; `default_dmg_palettes` |
| `gbsengine.joypad` | `Button` flags and `Joypad` (`update`, `pressed`, `reset`) |
| `gbsengine.fade` | `dmg_fade_to_white_step`, `dmg_fade_to_black_step` and `FadeManager` |
| `gbsengine.triggers` | `Trigger` rectangles and `TriggerManager` with enter and leave scripts |
| `gbsengine.vm` | The cooperative script VM: `ScriptRunner`, `ScriptContext`, `ThreadHandle`, `RunnerStatus` |
| `gbsengine.instructions` | VM instructions: calls, jumps, loops, switches, conditions, stack and memory access, the RPN calculator, locks, exceptions, threads, random numbers |
| `gbsengine.events` | `InputEvents` (scripts bound to buttons) and `Timers` (periodic scripts) |
| `gbsengine.music` | `MusicEvents`, the queue of tracker routine calls that start scripts |
| `gbsengine.saves` | `SaveStore`, signed save slots packed into fixed-size banks |
| `gbsengine.actors` | `Actor`, `ActorManager`, `Animation`, `CheckDir`, `Collision`, `check_collision_in_direction` |
| `gbsengine.camera` | `Camera` with per-axis lock, dead zone and offset |
| `gbsengine.projectiles` | `ProjectileDef`, `Projectile`, `ProjectileManager` |
| `gbsengine.link` | `LinkPort`, length-prefixed packets over a byte-at-a-time serial port |
| `gbsengine.printer` | `build_packet`, `PrinterStatus` and a `Printer` driver over any byte-exchange callable |
| `gbsengine.actor_commands` | Script commands on actors: `actor_move_to`, `actor_emote`, flags, bounds, position and animation queries |

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Coordinates and angles

Positions are 16-bit fixed-point values: one pixel is 16 units and one 8×8
tile is 128 units. Angles are bytes; 0 points up, 64 right, 128 down and 192
left.

```python
from gbsengine.fixedmath import atan2, cos8, isqrt, sin8

isqrt(144)          # 12
atan2(0, 5)         # 64: pointing right
sin8(64), cos8(0)   # (127, 127)
```

## Running scripts

A program is a sequence of instructions. Each instruction is a callable taking
the running `ScriptContext`, or a tuple `(callable, *args)`. A `None` entry, or
running past the end, ends the thread. Memory cells hold signed 16-bit values;
a negative index is relative to the thread's stack top, any other index points
into shared script memory.

```python
from gbsengine.instructions import vm_idle, vm_set_const
from gbsengine.vm import RunnerStatus, ScriptRunner, ThreadHandle

runner = ScriptRunner()
handle = ThreadHandle()
program = [(vm_set_const, 0, 42), vm_idle, None]
runner.execute(program, handle)

runner.update()            # RunnerStatus.IDLE: the thread waits for the next frame
runner.update()            # RunnerStatus.DONE
runner.memory[0]           # 42
handle.terminated()        # True
```

`execute` returns `None` when no context is free. `terminate` and `detach`
act on a thread by its ID; `locked` tells whether a thread holds the VM lock.
`vm_rpn` evaluates a reverse Polish expression such as
`[("ref", 0), 3, "*", ("set", 1)]` on the thread's stack.

## Triggers

```python
from gbsengine.triggers import ENTER, HAS_ENTER_SCRIPT, Trigger, TriggerManager

calls = []
triggers = TriggerManager(
    triggers=[Trigger(x=2, y=3, width=2, height=1, script="door", script_flags=HAS_ENTER_SCRIPT)],
    execute=lambda script, event: calls.append((script, event)),
)
triggers.activate_at(3, 3, False)   # True; calls == [("door", ENTER)]
```

## Fades

```python
from gbsengine.fade import FadeManager

fader = FadeManager()
frames = fader.run_in()             # frames taken to fade in fully
bgp, obp0, obp1 = fader.applied_palettes()
```

`fade_in`, `fade_out` and `update` drive a fade frame by frame; `set_speed`
takes 0 to 6 and raises `ValueError` otherwise.

## Save slots

```python
from gbsengine.saves import SaveStore

store = SaveStore(payload_size=4)
store.save(0, b"\x01\x00\x02\x00")
store.load(0)          # b"\x01\x00\x02\x00"
store.peek(0, 1, 1)    # [2]
store.clear(0)
store.load(0)          # None
```

`slot_address` gives `(bank, offset)` or `None` for a slot past the last bank.
`load` and `peek` return `None` when the slot holds no signed save; `save` and
`clear` raise `IndexError` for a slot out of range, and `save` raises
`ValueError` for a payload of the wrong size.

## What this package does not do

It draws nothing and touches no hardware: there is no screen, sprite or
tile-map rendering, no scrolling, no sound or music playback, no scene or
asset loading and no main game loop. Serial traffic for `LinkPort` and
`Printer` goes through callables you supply. Save data lives in memory in
`SaveStore.banks`; writing it to disk is left to the caller. There is no
command-line program.
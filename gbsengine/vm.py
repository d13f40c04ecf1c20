"""Script virtual machine: cooperative threads running bytecode over a shared word memory.

A program is a sequence of instructions. Each instruction is either a callable
taking the executing context, or a tuple ``(callable, *args)``. A ``None``
entry, or running past the end of the sequence, ends the thread.

All memory cells hold signed 16-bit values. Indexes that are negative address
the executing thread's stack relative to its top; others are absolute.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Callable, MutableSequence, Optional, Sequence

SCRIPT_TERMINATED = 0x8000
EXCEPTION_NONE = 0

VM_HEAP_SIZE = 768
VM_MAX_CONTEXTS = 16
VM_CONTEXT_STACK_SIZE = 64
INSTRUCTIONS_PER_QUANT = 0x10


def to_int16(value: int) -> int:
    """Wrap an integer to the signed 16-bit range."""
    return ((int(value) & 0xFFFF) ^ 0x8000) - 0x8000


class RunnerStatus(IntEnum):
    """Outcome of one pass of the script runner."""

    DONE = 0
    IDLE = 1
    BUSY = 2
    EXCEPTION = 3


class ThreadHandle:
    """Word that tracks a thread: its ID, with SCRIPT_TERMINATED set once it ends.

    A handle may live in VM memory, given as ``memory`` and ``index``.
    """

    __slots__ = ("_value", "_memory", "_index")

    def __init__(self, value: int = 0, *, memory: Optional[MutableSequence[int]] = None,
                 index: int = 0) -> None:
        self._memory = memory
        self._index = index
        self._value = 0
        self.value = value

    @property
    def value(self) -> int:
        if self._memory is not None:
            return self._memory[self._index] & 0xFFFF
        return self._value

    @value.setter
    def value(self, value: int) -> None:
        if self._memory is not None:
            self._memory[self._index] = to_int16(value)
        else:
            self._value = int(value) & 0xFFFF

    @property
    def context_id(self) -> int:
        return self.value & 0xFF

    def terminated(self) -> bool:
        """Whether the thread behind this handle has finished."""
        return bool(self.value & SCRIPT_TERMINATED)

    def ready(self) -> bool:
        """Whether no thread is running on this handle."""
        return self.value == 0 or self.terminated()

    def __repr__(self) -> str:
        return f"ThreadHandle(0x{self.value:04X})"


@dataclass(eq=False)
class ScriptContext:
    """One VM thread: program counter, stack and scheduling state."""

    id: int
    base_addr: int
    runner: "ScriptRunner"
    program: Optional[Sequence[Any]] = None
    pc: int = 0
    stack_ptr: int = 0
    handle: Optional[ThreadHandle] = None
    terminated: bool = False
    lock_count: int = 0
    flags: int = 0
    waitable: bool = False
    update_fn: Optional[Callable[..., Any]] = None
    frames: list = field(default_factory=list)

    @property
    def memory(self) -> list[int]:
        return self.runner.memory

    def address(self, idx: int) -> int:
        """Absolute memory index of a VM reference."""
        return self.stack_ptr + idx if idx < 0 else idx

    def read(self, idx: int) -> int:
        """Value at a VM reference."""
        return self.memory[self.address(idx)]

    def write(self, idx: int, value: int) -> None:
        """Store a value at a VM reference."""
        self.memory[self.address(idx)] = to_int16(value)

    def push(self, value: int) -> None:
        """Push a word onto this thread's stack."""
        self.memory[self.stack_ptr] = to_int16(value)
        self.stack_ptr += 1

    def pop(self, n: int) -> int:
        """Drop n words and return the lowest of them."""
        self.stack_ptr -= n
        return self.memory[self.stack_ptr]

    def step(self) -> bool:
        """Execute one instruction; False once the program has ended."""
        program = self.program
        if program is None or not 0 <= self.pc < len(program):
            return False
        instruction = program[self.pc]
        if instruction is None:
            return False
        if callable(instruction):
            fn, args = instruction, ()
        else:
            fn, *args = instruction
        self.pc += 1
        fn(self, *args)
        return True


class ScriptRunner:
    """Schedules script threads over a fixed pool of contexts."""

    def __init__(self, heap_size: int = VM_HEAP_SIZE, max_contexts: int = VM_MAX_CONTEXTS,
                 stack_size: int = VM_CONTEXT_STACK_SIZE, quant: int = INSTRUCTIONS_PER_QUANT) -> None:
        self.heap_size = heap_size
        self.max_contexts = max_contexts
        self.stack_size = stack_size
        self.quant = quant
        self.memory: list[int] = [0] * (heap_size + max_contexts * stack_size)
        self.contexts: list[ScriptContext] = []
        self.active: list[ScriptContext] = []
        self.free: list[ScriptContext] = []
        self.lock_state = 0
        self.loaded_state = False
        self.exception_code = EXCEPTION_NONE
        self.exception_params: Any = None
        self._index = 0
        self.reset(True)

    def reset(self, clear: bool) -> None:
        """Kill all threads; with clear, also zero the whole VM memory."""
        if clear:
            self.memory[:] = [0] * len(self.memory)
        last = self.max_contexts - 1
        self.contexts = [
            ScriptContext(id=i + 1, base_addr=self.heap_size + (last - i) * self.stack_size, runner=self)
            for i in range(self.max_contexts)
        ]
        self.free = list(self.contexts)
        self.active = []
        self.lock_state = 0
        self.loaded_state = False
        self._index = 0

    def execute(self, program: Optional[Sequence[Any]], handle: Optional[ThreadHandle],
                *args: int) -> Optional[ScriptContext]:
        """Start a thread running program, pushing args as thread locals.

        Returns the new context, or None when no context is free.
        """
        if not self.free or program is None:
            return None
        ctx = self.free.pop(0)
        ctx.program = program
        ctx.pc = 0
        ctx.stack_ptr = ctx.base_addr
        ctx.handle = handle
        if handle is not None:
            handle.value = ctx.id
        ctx.terminated = False
        ctx.lock_count = 0
        ctx.flags = 0
        ctx.waitable = False
        ctx.update_fn = None
        ctx.frames = []
        self.active.append(ctx)
        for value in args:
            ctx.push(value)
        return ctx

    def _find(self, context_id: int) -> Optional[ScriptContext]:
        return next((ctx for ctx in self.active if ctx.id == context_id), None)

    def terminate(self, context_id: int) -> bool:
        """Mark a running thread for termination."""
        ctx = self._find(context_id)
        if ctx is None:
            return False
        if ctx.handle is not None:
            ctx.handle.value |= SCRIPT_TERMINATED
            ctx.handle = None
        ctx.terminated = True
        return True

    def detach(self, context_id: int) -> bool:
        """Stop a running thread from reporting to its handle."""
        ctx = self._find(context_id)
        if ctx is None:
            return False
        ctx.handle = None
        return True

    def locked(self) -> bool:
        return self.lock_state != 0

    def update(self) -> RunnerStatus:
        """Run each active thread until it waits or its quantum runs out."""
        if not self.lock_state:
            self._index = 0
        waitable = True
        counter = self.quant
        while self._index < len(self.active):
            ctx = self.active[self._index]
            self.exception_code = EXCEPTION_NONE
            ctx.waitable = False
            if ctx.terminated or not ctx.step():
                self.lock_state -= ctx.lock_count
                if ctx.handle is not None:
                    ctx.handle.value |= SCRIPT_TERMINATED
                del self.active[self._index]
                self.free.insert(0, ctx)
                continue
            if self.exception_code:
                return RunnerStatus.EXCEPTION
            if not ctx.waitable and counter:
                counter -= 1
                continue
            if self.lock_state:
                break
            waitable = waitable and ctx.waitable
            self._index += 1
            counter = self.quant
        if not self.active:
            return RunnerStatus.DONE
        return RunnerStatus.IDLE if waitable else RunnerStatus.BUSY
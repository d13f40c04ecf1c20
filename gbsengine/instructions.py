"""Core VM instructions: control flow, stack and memory access, the RPN calculator, threads.

Every instruction takes the executing context first. The context's program
counter has already moved past the instruction when it runs, so an instruction
that wants to run again on the next step moves it back by one.
"""

from __future__ import annotations

import operator
import random
from enum import IntEnum
from typing import Any, Callable, Iterable, Optional, Sequence

from gbsengine.fixedmath import atan2, isqrt
from gbsengine.vm import ScriptContext, ThreadHandle, to_int16

_DEFAULT_RNG = random.Random()


class Condition(IntEnum):
    """Comparison and logical operators understood by conditionals and the calculator."""

    EQ = 1
    LT = 2
    LE = 3
    GT = 4
    GE = 5
    NE = 6
    AND = 7
    OR = 8
    NOT = 9


_COMPARISONS: dict[int, Callable[[int, int], bool]] = {
    Condition.EQ: operator.eq,
    Condition.LT: operator.lt,
    Condition.LE: operator.le,
    Condition.GT: operator.gt,
    Condition.GE: operator.ge,
    Condition.NE: operator.ne,
}


def _compare(condition: int, a: int, b: int) -> bool:
    test = _COMPARISONS.get(condition)
    return bool(test(a, b)) if test else False


def _cdiv(a: int, b: int) -> int:
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _cmod(a: int, b: int) -> int:
    return a - _cdiv(a, b) * b


class StackFrame:
    """Window onto VM memory starting at a fixed address."""

    __slots__ = ("memory", "base")

    def __init__(self, memory: list[int], base: int) -> None:
        self.memory = memory
        self.base = base

    def __getitem__(self, i: int) -> int:
        return self.memory[self.base + i]

    def __setitem__(self, i: int, value: int) -> None:
        self.memory[self.base + i] = to_int16(value)


# --- control flow -----------------------------------------------------------

def vm_call(ctx: ScriptContext, pc: int) -> None:
    """Call a subroutine in the same program."""
    ctx.push(ctx.pc)
    ctx.pc = pc


def vm_ret(ctx: ScriptContext, n: int) -> None:
    """Return from a subroutine, then drop n words."""
    ctx.stack_ptr -= 1
    ctx.pc = ctx.memory[ctx.stack_ptr]
    ctx.stack_ptr -= n


def vm_call_far(ctx: ScriptContext, program: Sequence[Any], pc: int) -> None:
    """Call a subroutine in another program."""
    ctx.frames.append(ctx.program)
    ctx.push(ctx.pc)
    ctx.push(len(ctx.frames) - 1)
    ctx.program = program
    ctx.pc = pc


def vm_ret_far(ctx: ScriptContext, n: int) -> None:
    """Return from a far call, then drop n words."""
    ctx.stack_ptr -= 1
    frame = ctx.memory[ctx.stack_ptr]
    ctx.program = ctx.frames[frame]
    del ctx.frames[frame:]
    ctx.stack_ptr -= 1
    ctx.pc = ctx.memory[ctx.stack_ptr]
    ctx.stack_ptr -= n


def vm_jump(ctx: ScriptContext, pc: int) -> None:
    ctx.pc = pc


def vm_loop(ctx: ScriptContext, idx: int, pc: int, n: int) -> None:
    """Jump to pc while the counter at idx is non-zero, decrementing it; drop n words when done."""
    address = ctx.address(idx)
    counter = ctx.memory[address]
    if counter:
        ctx.pc = pc
        ctx.memory[address] = to_int16(counter - 1)
    else:
        ctx.stack_ptr -= n


def vm_switch(ctx: ScriptContext, idx: int, table: Iterable[tuple[int, int]], n: int) -> None:
    """Jump to the pc paired with the value at idx; drop n words first."""
    value = ctx.read(idx)
    ctx.stack_ptr -= n
    for case, pc in table:
        if value == to_int16(case):
            ctx.pc = pc
            return


def vm_if(ctx: ScriptContext, condition: int, idx_a: int, idx_b: int, pc: int, n: int) -> None:
    """Jump to pc when the values at idx_a and idx_b satisfy condition; then drop n words."""
    if _compare(condition, ctx.read(idx_a), ctx.read(idx_b)):
        ctx.pc = pc
    ctx.stack_ptr -= n


def vm_if_const(ctx: ScriptContext, condition: int, idx_a: int, value: int, pc: int, n: int) -> None:
    """Jump to pc when the value at idx_a compares with a constant; then drop n words."""
    if _compare(condition, ctx.read(idx_a), to_int16(value)):
        ctx.pc = pc
    ctx.stack_ptr -= n


# --- stack and memory -------------------------------------------------------

def vm_push(ctx: ScriptContext, value: int) -> None:
    ctx.push(value)


def vm_pop(ctx: ScriptContext, n: int) -> int:
    """Drop n words and return the word now at the stack top."""
    return ctx.pop(n)


def vm_push_value(ctx: ScriptContext, idx: int) -> None:
    ctx.push(ctx.read(idx))


def vm_push_value_ind(ctx: ScriptContext, idx: int) -> None:
    """Push the value at the reference stored at idx."""
    ctx.push(ctx.read(ctx.read(idx)))


def vm_push_reference(ctx: ScriptContext, idx: int) -> None:
    """Push the absolute address of a reference."""
    ctx.push(ctx.address(idx))


def vm_reserve(ctx: ScriptContext, offset: int) -> None:
    """Move the stack pointer by offset words."""
    ctx.stack_ptr += offset


def vm_set(ctx: ScriptContext, idx_a: int, idx_b: int) -> None:
    ctx.write(idx_a, ctx.read(idx_b))


def vm_set_const(ctx: ScriptContext, idx: int, value: int) -> None:
    ctx.write(idx, value)


def vm_get_tlocal(ctx: ScriptContext, idx_a: int, idx_b: int) -> None:
    """Copy a thread local (non-negative idx_b counts from the stack base) to idx_a."""
    source = ctx.stack_ptr + idx_b if idx_b < 0 else ctx.base_addr + idx_b
    ctx.write(idx_a, ctx.memory[source])


def vm_set_indirect(ctx: ScriptContext, idx_a: int, idx_b: int) -> None:
    """Store the value at idx_b through the reference held at idx_a."""
    ctx.write(ctx.read(idx_a), ctx.read(idx_b))


def vm_get_indirect(ctx: ScriptContext, idx_a: int, idx_b: int) -> None:
    """Store at idx_a the value behind the reference held at idx_b."""
    ctx.write(idx_a, ctx.read(ctx.read(idx_b)))


def vm_memset(ctx: ScriptContext, idx: int, value: int, count: int) -> None:
    start = ctx.address(idx)
    ctx.memory[start:start + count] = [to_int16(value)] * count


def vm_memcpy(ctx: ScriptContext, idx_a: int, idx_b: int, count: int) -> None:
    dest, source = ctx.address(idx_a), ctx.address(idx_b)
    ctx.memory[dest:dest + count] = ctx.memory[source:source + count]


# --- calculator -------------------------------------------------------------

_BINARY: dict[Any, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": _cdiv,
    "%": _cmod,
    "&": operator.and_,
    "|": operator.or_,
    "^": operator.xor,
    "L": lambda a, b: (a & 0xFFFF) << (b & 0x0F),
    "R": lambda a, b: (a & 0xFFFF) >> (b & 0x0F),
    "m": min,
    "M": max,
    "T": atan2,
    Condition.AND: lambda a, b: int(bool(a) and bool(b)),
    Condition.OR: lambda a, b: int(bool(a) or bool(b)),
}
for _cond, _test in _COMPARISONS.items():
    _BINARY[_cond] = lambda a, b, _test=_test: int(_test(a, b))

_UNARY: dict[Any, Callable[[int], int]] = {
    "@": abs,
    "~": operator.invert,
    "Q": lambda b: isqrt(b & 0xFFFF),
    Condition.NOT: lambda b: int(not b),
}


def vm_rpn(ctx: ScriptContext, expression: Iterable[Any], rng: Optional[random.Random] = None) -> None:
    """Evaluate a reverse Polish expression on the thread's stack.

    Tokens: an int pushes itself; ``("ref", idx)`` and ``("ind", idx)`` push a
    value directly or through a reference; ``("set", idx)`` and
    ``("set_ind", idx)`` pop into memory. Operators are the strings
    ``+ - * / % & | ^ L R m M T`` and the Condition members (binary, except
    NOT), plus the unary ``@ ~ Q r``. Negative references are relative to the
    stack top at the start of the expression.
    """
    rng = rng or _DEFAULT_RNG
    memory = ctx.memory
    args = ctx.stack_ptr

    def address(idx: int) -> int:
        return args + idx if idx < 0 else idx

    for token in expression:
        if isinstance(token, tuple):
            kind, idx = token
            if kind == "ref":
                ctx.push(memory[address(idx)])
            elif kind == "ind":
                ctx.push(memory[address(memory[address(idx)])])
            elif kind == "set":
                target = address(idx)
                ctx.stack_ptr -= 1
                memory[target] = memory[ctx.stack_ptr]
            elif kind == "set_ind":
                target = address(memory[address(idx)])
                ctx.stack_ptr -= 1
                memory[target] = memory[ctx.stack_ptr]
            else:
                raise ValueError(f"unknown reference token {kind!r}")
        elif token in _UNARY and (isinstance(token, (str, Condition))):
            top = ctx.stack_ptr - 1
            memory[top] = to_int16(_UNARY[token](memory[top]))
        elif token == "r" and isinstance(token, str):
            top = ctx.stack_ptr - 1
            memory[top] = to_int16(rng.getrandbits(16) % (memory[top] & 0xFFFF))
        elif isinstance(token, (str, Condition)):
            op = _BINARY.get(token)
            if op is None:
                raise ValueError(f"unknown operator {token!r}")
            a_addr = ctx.stack_ptr - 2
            memory[a_addr] = to_int16(op(memory[a_addr], memory[a_addr + 1]))
            ctx.stack_ptr -= 1
        elif isinstance(token, int):
            ctx.push(token)
        else:
            raise ValueError(f"unknown token {token!r}")


# --- scheduling and state ---------------------------------------------------

def vm_idle(ctx: ScriptContext) -> None:
    """Let other threads run until the next frame."""
    ctx.waitable = True


def vm_lock(ctx: ScriptContext) -> None:
    """Keep this thread running exclusively."""
    ctx.lock_count += 1
    ctx.runner.lock_state += 1


def vm_unlock(ctx: ScriptContext) -> None:
    """Undo one lock taken by this thread."""
    if ctx.lock_count == 0:
        return
    ctx.lock_count -= 1
    ctx.runner.lock_state -= 1


def vm_raise(ctx: ScriptContext, code: int, params: Any) -> None:
    """Raise a VM exception for the main loop to handle."""
    ctx.runner.exception_code = code
    ctx.runner.exception_params = params


def vm_poll_loaded(ctx: ScriptContext, idx: int) -> None:
    """Store and clear the "game was loaded" flag."""
    ctx.write(idx, int(bool(ctx.runner.loaded_state)))
    ctx.runner.loaded_state = False


def vm_init_rng(ctx: ScriptContext, idx: int, rng: Optional[random.Random] = None) -> None:
    """Seed the random generator with the value at idx."""
    (rng or _DEFAULT_RNG).seed(ctx.read(idx) & 0xFFFF)


def vm_rand(ctx: ScriptContext, idx: int, min_value: int, limit: int,
            rng: Optional[random.Random] = None) -> None:
    """Store a random value in min_value <= v < min_value + limit at idx."""
    value = (rng or _DEFAULT_RNG).getrandbits(16) % (limit & 0xFFFF)
    ctx.write(idx, value + min_value)


def vm_join(ctx: ScriptContext, idx: int) -> None:
    """Wait until the thread whose handle is at idx has finished."""
    if not (ctx.read(idx) & 0xFFFF) >> 8:
        ctx.pc -= 1
        ctx.waitable = True


def vm_terminate(ctx: ScriptContext, idx: int) -> None:
    """Terminate the thread whose handle is at idx."""
    ctx.runner.terminate(ctx.read(idx) & 0xFF)


def vm_beginthread(ctx: ScriptContext, program: Sequence[Any], idx: int,
                   args: Sequence[int]) -> Optional[ScriptContext]:
    """Start a thread with its handle at idx, passing the values at the args references."""
    handle = ThreadHandle(memory=ctx.memory, index=ctx.address(idx))
    new = ctx.runner.execute(program, handle)
    if new is not None:
        for ref in args:
            new.push(ctx.read(ref))
    return new


def vm_invoke(ctx: ScriptContext, fn: Callable[[ScriptContext, bool, StackFrame], Any],
              nparams: int, idx: int) -> None:
    """Call fn(ctx, start, frame) each step until it returns true, then drop nparams words."""
    frame = StackFrame(ctx.memory, ctx.address(idx))
    start = ctx.update_fn is not fn
    if start:
        ctx.update_fn = fn
    if fn(ctx, start, frame):
        ctx.stack_ptr -= nparams
        ctx.update_fn = None
        return
    ctx.pc -= 1
"""Core runtime for tile-based handheld games: script VM, actors, triggers, fades, saves and more."""

__version__ = "0.1.0"

__all__ = [
    "actor_commands",
    "actors",
    "camera",
    "events",
    "fade",
    "fixedmath",
    "instructions",
    "joypad",
    "link",
    "music",
    "palette",
    "printer",
    "projectiles",
    "saves",
    "triggers",
    "vm",
]
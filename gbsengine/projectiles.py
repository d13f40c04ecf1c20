"""Projectiles: a fixed pool of moving sprites that hit actors and expire."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Optional

from gbsengine.actors import N_DIRECTIONS, ActorManager, Animation
from gbsengine.fixedmath import BoundingBox, Direction, angle_to_delta, cos8, sin8

MAX_PROJECTILES = 5
PROJECTILE_ANIM_NOLOOP = 0x01
PROJECTILE_STRONG = 0x02
DEVICE_SCREEN_PX_WIDTH = 160
DEVICE_SCREEN_PX_HEIGHT = 144


@dataclass
class ProjectileDef:
    """Template a projectile is launched from."""

    sprite: Any = None
    base_tile: int = 0
    life_time: int = 0
    anim_tick: int = 0
    move_speed: int = 0
    initial_offset: int = 0
    collision_group: int = 0
    collision_mask: int = 0
    bounds: BoundingBox = field(default_factory=BoundingBox)
    animations: list[Animation] = field(
        default_factory=lambda: [Animation() for _ in range(N_DIRECTIONS)])

    def copy(self) -> "ProjectileDef":
        return replace(self, bounds=replace(self.bounds),
                       animations=[replace(a) for a in self.animations])


@dataclass(eq=False)
class Projectile:
    """A launched projectile; position in 1/16 pixel units, delta y positive upwards."""

    definition: ProjectileDef = field(default_factory=ProjectileDef)
    x: int = 0
    y: int = 0
    delta_x: int = 0
    delta_y: int = 0
    frame: int = 0
    frame_start: int = 0
    frame_end: int = 0
    anim_noloop: bool = False
    strong: bool = False


def _direction_for(angle: int) -> Direction:
    if angle <= 224:
        if angle >= 160:
            return Direction.LEFT
        if angle > 96:
            return Direction.DOWN
        if angle >= 32:
            return Direction.RIGHT
    return Direction.UP


@dataclass
class ProjectileManager:
    """Launches, moves, animates and retires projectiles from a fixed pool."""

    defs: list[ProjectileDef] = field(default_factory=list)
    actors: Optional[ActorManager] = None
    capacity: int = MAX_PROJECTILES

    def __post_init__(self) -> None:
        self.init()

    def init(self) -> None:
        """Return every projectile to the free pool."""
        pool = [Projectile() for _ in range(self.capacity)]
        self._inactive: list[Projectile] = list(reversed(pool))
        self._active: list[Projectile] = []

    def active(self) -> tuple[Projectile, ...]:
        """Projectiles in flight, most recently launched first."""
        return tuple(self._active)

    def launch(self, index: int, x: int, y: int, angle: int, flags: int) -> Optional[Projectile]:
        """Fire a projectile of definition index from (x, y) along an 8-bit angle.

        Returns the projectile, or None when the pool is exhausted.
        """
        if not 0 <= index < len(self.defs):
            raise IndexError(f"no projectile definition {index}")
        if not self._inactive:
            return None
        projectile = self._inactive.pop(0)
        spec = self.defs[index].copy()
        projectile.definition = spec
        angle &= 0xFF

        animation = spec.animations[_direction_for(angle)]
        projectile.anim_noloop = bool(flags & PROJECTILE_ANIM_NOLOOP)
        projectile.strong = bool(flags & PROJECTILE_STRONG)
        projectile.frame = animation.start
        projectile.frame_start = animation.start
        projectile.frame_end = (animation.end + 1) & 0xFF

        sinv, cosv = sin8(angle), cos8(angle)
        px, py = x & 0xFFFF, y & 0xFFFF
        offset = spec.initial_offset & 0xFFFF
        while offset > 0xFF:
            px += (sinv * 0xFF) >> 7
            py -= (cosv * 0xFF) >> 7
            offset -= 0xFF
        if offset > 0:
            px += (sinv * offset) >> 7
            py -= (cosv * offset) >> 7
        projectile.x, projectile.y = px & 0xFFFF, py & 0xFFFF
        projectile.delta_x, projectile.delta_y = angle_to_delta(angle, spec.move_speed)

        self._active.insert(0, projectile)
        return projectile

    def _advance(self, projectile: Projectile, game_time: int) -> bool:
        spec = projectile.definition
        if spec.life_time == 0:
            return False
        spec.life_time -= 1

        if (game_time & spec.anim_tick) == 0:
            projectile.frame = (projectile.frame + 1) & 0xFF
            if projectile.frame == projectile.frame_end:
                if projectile.anim_noloop:
                    projectile.frame = (projectile.frame - 1) & 0xFF
                else:
                    projectile.frame = projectile.frame_start

        projectile.x = (projectile.x + projectile.delta_x) & 0xFFFF
        projectile.y = (projectile.y - projectile.delta_y) & 0xFFFF

        if self.actors is not None and (game_time & 1) == 0:
            hit = self.actors.overlapping_bb(spec.bounds, projectile.x, projectile.y, None, False)
            if hit is not None and (hit.collision_group & spec.collision_mask):
                if hit.script and hit.hscript_hit.terminated():
                    self.actors.runner.execute(hit.script, hit.hscript_hit, spec.collision_group)
                if not projectile.strong:
                    return False
        return True

    def update(self, game_time: int, scroll_x: int, scroll_y: int) -> list[tuple[Projectile, int, int]]:
        """Advance every projectile one frame.

        Returns the projectiles still visible with their screen coordinates.
        """
        kept: list[Projectile] = []
        rendered: list[tuple[Projectile, int, int]] = []
        for projectile in self._active:
            if self._advance(projectile, game_time):
                screen_x = ((projectile.x >> 4) - scroll_x + 8) & 0xFF
                screen_y = ((projectile.y >> 4) - scroll_y + 8) & 0xFF
                if screen_x <= DEVICE_SCREEN_PX_WIDTH and screen_y <= DEVICE_SCREEN_PX_HEIGHT:
                    kept.append(projectile)
                    rendered.append((projectile, screen_x, screen_y))
                    continue
            self._inactive.insert(0, projectile)
        self._active = kept
        return rendered
"""Progression levels derived from a trainee's points total."""
from dataclasses import dataclass


@dataclass(frozen=True)
class Level:
    id: str
    name: str
    min_points: int
    max_points: int | None  # None for the open-ended top level
    description: str


LEVELS: tuple[Level, ...] = (
    Level("amateur", "Amateur", 0, 99, "Just getting started on your learning journey"),
    Level("beginner", "Beginner", 100, 249, "Building foundational skills and knowledge"),
    Level("novice", "Novice", 250, 499, "Developing practical skills and confidence"),
    Level("skilled", "Skilled", 500, 799, "Demonstrating competency and expertise"),
    Level("advanced", "Advanced", 800, 1199, "Advanced practitioner with deep knowledge"),
    Level("expert", "Expert", 1200, 1799, "Expert level with exceptional knowledge and skills"),
    Level("elite", "Elite", 1800, 2499, "Elite performer with outstanding achievements"),
    Level("master", "Master", 2500, None, "Master level - the pinnacle of achievement"),
)


@dataclass(frozen=True)
class LevelProgress:
    level: Level
    next_level: Level | None
    progress_percent: int
    points_to_next: int


@dataclass(frozen=True)
class LevelChange:
    leveled_up: bool
    old_level: Level
    new_level: Level
    points_gained: int


def current_level(points: int) -> Level:
    """Level whose range contains ``points``; negative totals stay at the first level."""
    for level in LEVELS:
        if points >= level.min_points and (level.max_points is None or points <= level.max_points):
            return level
    return LEVELS[0]


def next_level(points: int) -> Level | None:
    index = LEVELS.index(current_level(points))
    if index < len(LEVELS) - 1:
        return LEVELS[index + 1]
    return None


def progress_to_next_level(points: int) -> LevelProgress:
    level = current_level(points)
    upcoming = next_level(points)

    if upcoming is None:
        return LevelProgress(level=level, next_level=None, progress_percent=100, points_to_next=0)

    span = upcoming.min_points - level.min_points
    progress = min((points - level.min_points) / span * 100, 100)
    return LevelProgress(
        level=level,
        next_level=upcoming,
        progress_percent=max(int(progress + 0.5), 0),
        points_to_next=max(upcoming.min_points - points, 0),
    )


def check_level_change(old_points: int, new_points: int) -> LevelChange:
    old = current_level(old_points)
    new = current_level(new_points)
    return LevelChange(
        leveled_up=LEVELS.index(new) > LEVELS.index(old),
        old_level=old,
        new_level=new,
        points_gained=new_points - old_points,
    )

from __future__ import annotations

from enum import Enum


class NamedEnum(str, Enum):
    """
    Closed enumeration persisted by name. Lookups are case-insensitive and
    tolerate spaces; anything unrecognized resolves to ``default()`` instead
    of raising, so a stale or hand-edited backup never fails on an enum.
    """

    @classmethod
    def default(cls):
        raise NotImplementedError

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            key = value.strip().lower().replace(" ", "_").replace("-", "_")
            for member in cls:
                if key in (member.value.lower(), member.name.lower()):
                    return member
        return cls.default()


class ReadingStatus(NamedEnum):
    READING = "READING"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    PLAN_TO_READ = "PLAN_TO_READ"
    DROPPED = "DROPPED"

    @classmethod
    def default(cls):
        return cls.READING


# region App settings


class ThemeMode(NamedEnum):
    LIGHT = "LIGHT"
    DARK = "DARK"
    SYSTEM = "SYSTEM"

    @classmethod
    def default(cls):
        return cls.DARK


class UiDensity(NamedEnum):
    COMPACT = "COMPACT"
    DEFAULT = "DEFAULT"
    COMFORTABLE = "COMFORTABLE"

    @classmethod
    def default(cls):
        return cls.DEFAULT


class DisplayMode(NamedEnum):
    GRID = "GRID"
    LIST = "LIST"

    @classmethod
    def default(cls):
        return cls.GRID


class RatingFormat(NamedEnum):
    TEN_POINT = "TEN_POINT"
    FIVE_POINT = "FIVE_POINT"
    PERCENTAGE = "PERCENTAGE"
    ORIGINAL = "ORIGINAL"

    @classmethod
    def default(cls):
        return cls.TEN_POINT


class LibrarySortOrder(NamedEnum):
    LAST_READ = "LAST_READ"
    TITLE_ASC = "TITLE_ASC"
    TITLE_DESC = "TITLE_DESC"
    DATE_ADDED = "DATE_ADDED"
    UNREAD_COUNT = "UNREAD_COUNT"
    NEW_CHAPTERS = "NEW_CHAPTERS"

    @classmethod
    def default(cls):
        return cls.LAST_READ


class LibraryFilter(NamedEnum):
    ALL = "ALL"
    DOWNLOADED = "DOWNLOADED"
    READING = "READING"
    COMPLETED = "COMPLETED"
    ON_HOLD = "ON_HOLD"
    PLAN_TO_READ = "PLAN_TO_READ"
    DROPPED = "DROPPED"

    @classmethod
    def default(cls):
        return cls.DOWNLOADED


# endregion

# region Reader settings (persisted by lowercase id)


class ReaderTheme(NamedEnum):
    DARK = "dark"
    LIGHT = "light"
    SEPIA = "sepia"
    AMOLED = "amoled"

    @classmethod
    def default(cls):
        return cls.DARK


class FontFamily(NamedEnum):
    SYSTEM_SERIF = "system_serif"
    SYSTEM_SANS = "system_sans"
    MONOSPACE = "monospace"

    @classmethod
    def default(cls):
        return cls.SYSTEM_SERIF


class TextAlign(NamedEnum):
    LEFT = "left"
    JUSTIFY = "justify"
    CENTER = "center"
    RIGHT = "right"

    @classmethod
    def default(cls):
        return cls.LEFT


class MaxWidth(NamedEnum):
    MEDIUM = "medium"
    LARGE = "large"
    EXTRA_LARGE = "extra_large"
    FULL = "full"

    @classmethod
    def default(cls):
        return cls.LARGE


class ProgressStyle(NamedEnum):
    BAR = "bar"
    PERCENTAGE = "percentage"
    NONE = "none"

    @classmethod
    def default(cls):
        return cls.BAR


class VolumeKeyDirection(NamedEnum):
    NATURAL = "natural"
    INVERTED = "inverted"

    @classmethod
    def default(cls):
        return cls.NATURAL


class ReadingDirection(NamedEnum):
    LTR = "ltr"
    RTL = "rtl"

    @classmethod
    def default(cls):
        return cls.LTR


class ScrollMode(NamedEnum):
    CONTINUOUS = "continuous"
    PAGED = "paged"

    @classmethod
    def default(cls):
        return cls.CONTINUOUS


class PageAnimation(NamedEnum):
    SLIDE = "slide"
    FADE = "fade"
    NONE = "none"

    @classmethod
    def default(cls):
        return cls.SLIDE


class TapAction(NamedEnum):
    PREVIOUS = "previous"
    NEXT = "next"
    CONTROLS = "controls"
    FULLSCREEN = "fullscreen"
    NONE = "none"

    @classmethod
    def default(cls):
        return cls.CONTROLS


# endregion


# region Jobs


class BackupJobKind(str, Enum):
    EXPORT = "export"
    RESTORE = "restore"


class BackupJobState(str, Enum):
    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class BackupJobPhase(str, Enum):
    READ = "read"
    DECODE = "decode"
    APPLY = "apply"
    WRITE = "write"


# endregion
